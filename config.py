import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./sso.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Tokens
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(data.get("ACCESS_TOKEN_EXPIRE_MINUTES", 15))
    REFRESH_TOKEN_HASH_SECRET = data.get(
        "REFRESH_TOKEN_HASH_SECRET", "dev-refresh-secret-change-in-production"
    )
    AUTH_CODE_TTL_SECONDS = int(data.get("AUTH_CODE_TTL_SECONDS", 120))

    # Service-to-service
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Brute force / IP blocking
    LOGIN_ATTEMPT_RETENTION_DAYS = int(data.get("LOGIN_ATTEMPT_RETENTION_DAYS", 30))
    MAX_PROGRESSIVE_DELAY_SECONDS = int(data.get("MAX_PROGRESSIVE_DELAY_SECONDS", 30))
    AUTO_BLOCK_IP_THRESHOLD = int(data.get("AUTO_BLOCK_IP_THRESHOLD", 50))
    AUTO_BLOCK_IP_HOURS = int(data.get("AUTO_BLOCK_IP_HOURS", 24))
    AUTO_BLOCK_IP_WINDOW_MINUTES = int(data.get("AUTO_BLOCK_IP_WINDOW_MINUTES", 60))
    TRUST_PROXY_HEADERS = bool(data.get("TRUST_PROXY_HEADERS", False))

    # Tenant policy cache
    SECURITY_POLICY_CACHE_TTL_SECONDS = int(
        data.get("SECURITY_POLICY_CACHE_TTL_SECONDS", 60)
    )

    # Upstream identity API that verifies credentials
    IDENTITY_API_URL = data.get("IDENTITY_API_URL", "http://localhost:9000")
    IDENTITY_API_TIMEOUT_SECONDS = float(data.get("IDENTITY_API_TIMEOUT_SECONDS", 10))
    IDENTITY_API_KEY = data.get("IDENTITY_API_KEY", "")
