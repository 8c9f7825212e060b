"""
Authenticated user identity as reported by the upstream identity API.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class UserIdentity(BaseModel):
    """
    Identity carried through the authorization code into the session.

    `profile` is an opaque payload owned by the identity API; it is stored
    and returned untouched.
    """

    user_id: str
    email: str
    role: str
    name: Optional[str] = None
    company_name: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None


TENANT_ADMIN_ROLES = ("owner", "admin", "super_admin")


def is_tenant_admin(role: Optional[str]) -> bool:
    return role in TENANT_ADMIN_ROLES
