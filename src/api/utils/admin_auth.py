"""
Admin API key check for server-to-server endpoints: session introspection,
global IP blocks, client registry and maintenance.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, Request, status
from libs.result import Error
from src.api.error import ClientError
from config import ApplicationConfig

logger = logging.getLogger(__name__)


async def verify_admin_api_key(
    request: Request,
    x_admin_api_key: Optional[str] = Header(None),
) -> bool:
    """
    Raises:
        ClientError: 401 UNAUTHORIZED when the X-Admin-API-Key header is absent,
            401 INVALID_API_KEY when it does not match ADMIN_API_KEY
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not hmac.compare_digest(x_admin_api_key.encode(), ApplicationConfig.ADMIN_API_KEY.encode()):
        client_host = request.client.host if request.client else "unknown"
        logger.warning("Rejected admin API key from %s on %s", client_host, request.url.path)
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
