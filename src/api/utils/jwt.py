import uuid
from datetime import UTC, datetime, timedelta
from typing import Optional, Tuple

from jose import JWTError, jwt

from config import ApplicationConfig


def generate_access_token(
    user_id: str,
    tenant_id: str,
    role: str,
    session_id: str,
    email: Optional[str] = None,
    client_id: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> Tuple[str, str]:
    """
    Generate a session-bound JWT access token

    Args:
        user_id: Identity API user id
        tenant_id: Tenant identifier
        role: User role as reported by the identity API
        session_id: SSO session the token belongs to
        email: User email
        client_id: Auth client the token was issued to
        expires_minutes: Override for ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        (token, jti) - HS256 JWT string and its unique id
    """
    now = datetime.now(UTC)
    minutes = expires_minutes or ApplicationConfig.ACCESS_TOKEN_EXPIRE_MINUTES
    jti = uuid.uuid4().hex
    payload = {
        "sub": user_id,
        "user_id": user_id,
        "tenant_id": tenant_id,
        "role": role,
        "session_id": session_id,
        "jti": jti,
        "exp": now + timedelta(minutes=minutes),
        "iat": now,
    }
    if email:
        payload["email"] = email
    if client_id:
        payload["client_id"] = client_id
    token = jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")
    return token, jti


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
