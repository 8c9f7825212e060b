from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from src.adapter.services.memory_cache import InMemoryCache
from src.adapter.services.system_clock import SystemClock
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error = exc.base_error
    error_dict = {"code": error.code, "message": error.message, **error.details}
    if error.retryable:
        error_dict["retryable"] = True
    logger.warning("Client error on %s %s: %s", request.method, request.url.path, error_dict)
    return JSONResponse(
        status_code=exc.status_code, content={"error": error_dict}, headers=exc.headers
    )


async def handle_server_error(request: Request, exc: ServerError):
    error = exc.base_error
    logger.error("Server error on %s: %s - %s", request.url.path, error.code, error.message)
    error_dict = {"code": error.code, "message": "Internal server error"}
    if error.retryable:
        # Retryable errors keep their message
        error_dict["retryable"] = True
        error_dict["message"] = error.message
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


def create_app(ApplicationConfig) -> FastAPI:
    app = FastAPI(title="SSO Service", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.cache = InMemoryCache(SystemClock())

    from src.api.routes import admin, audit, auth, health_check, oauth, security, sessions

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(oauth.router, tags=["OAuth"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(security.router, tags=["Security"])
    app.include_router(audit.router, tags=["Audit"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
