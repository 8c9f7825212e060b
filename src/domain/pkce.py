"""
PKCE (RFC 7636) helpers.
"""

import base64
import hashlib
import hmac
import secrets
from typing import Optional, Tuple

from src.domain.entities.enums import CodeChallengeMethod

MAX_VERIFIER_LENGTH = 128


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def create_code_challenge(verifier: str, method: CodeChallengeMethod) -> str:
    """
    Derive the challenge a client sends for a given verifier.

    S256: base64url(sha256(verifier)) without padding
    plain: the verifier itself
    """
    if method == CodeChallengeMethod.S256:
        return _base64url(hashlib.sha256(verifier.encode("ascii")).digest())
    return verifier


def verify_code_challenge(
    verifier: Optional[str], challenge: str, method: Optional[CodeChallengeMethod]
) -> bool:
    """Constant-time check that verifier satisfies the stored challenge."""
    if not verifier or len(verifier) > MAX_VERIFIER_LENGTH:
        return False
    try:
        computed = create_code_challenge(verifier, method or CodeChallengeMethod.plain)
    except UnicodeEncodeError:
        # Verifiers are restricted to unreserved ASCII characters
        return False
    return hmac.compare_digest(computed.encode(), challenge.encode())


def generate_pkce_pair() -> Tuple[str, str, CodeChallengeMethod]:
    """Generate (verifier, challenge, method) for S256."""
    verifier = secrets.token_urlsafe(32)
    return verifier, create_code_challenge(verifier, CodeChallengeMethod.S256), CodeChallengeMethod.S256
