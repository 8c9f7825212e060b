"""
Opaque credential generation and one-way hashing.
"""

import hashlib
import hmac
import secrets


def generate_authorization_code() -> str:
    return secrets.token_urlsafe(32)


def generate_refresh_token() -> str:
    return secrets.token_urlsafe(64)


def generate_client_secret() -> str:
    return secrets.token_urlsafe(32)


def hash_refresh_token(refresh_token: str, secret: str) -> str:
    """
    HMAC-SHA256 digest of a refresh token (hex, 64 chars).

    Keyed so a leaked sessions table cannot be used to test guessed tokens
    offline; deterministic so lookups stay indexed.
    """
    return hmac.new(
        secret.encode(), refresh_token.encode(), hashlib.sha256
    ).hexdigest()
