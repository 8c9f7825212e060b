"""
Device / network fingerprint of a request.
"""

import hashlib
import re
from typing import Optional

from pydantic import BaseModel

from src.domain.entities.enums import DeviceType


class DeviceInfo(BaseModel):
    """Client fingerprint captured at login and stored on the session"""

    ip_address: str
    user_agent: Optional[str] = None
    device_type: DeviceType = DeviceType.unknown
    browser: Optional[str] = None
    browser_version: Optional[str] = None
    os: Optional[str] = None
    os_version: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    device_fingerprint: Optional[str] = None


_BROWSER_PATTERNS = (
    # Order matters: Edge and Opera also advertise Chrome, Chrome advertises Safari
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/([\d.]+)")),
    ("Opera", re.compile(r"OPR/([\d.]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
)

_OS_PATTERNS = (
    ("Windows", re.compile(r"Windows NT ([\d.]+)")),
    ("iOS", re.compile(r"(?:iPhone|iPad|iPod).*? OS ([\d_]+)")),
    ("macOS", re.compile(r"Mac OS X ([\d_.]+)")),
    ("Android", re.compile(r"Android ([\d.]+)")),
    ("Linux", re.compile(r"Linux()")),
)


def parse_user_agent(user_agent: Optional[str]) -> dict:
    """
    Extract device_type, browser and OS (with versions) from a user agent.

    Returns a dict of DeviceInfo field values; unknown parts are None.
    """
    parsed = {
        "device_type": DeviceType.unknown,
        "browser": None,
        "browser_version": None,
        "os": None,
        "os_version": None,
    }
    if not user_agent:
        return parsed

    ua_lower = user_agent.lower()
    if "ipad" in ua_lower or "tablet" in ua_lower:
        parsed["device_type"] = DeviceType.tablet
    elif "mobile" in ua_lower or "iphone" in ua_lower or "android" in ua_lower:
        parsed["device_type"] = DeviceType.mobile
    elif "windows" in ua_lower or "macintosh" in ua_lower or "x11" in ua_lower:
        parsed["device_type"] = DeviceType.desktop

    for name, pattern in _BROWSER_PATTERNS:
        match = pattern.search(user_agent)
        if match:
            parsed["browser"] = name
            parsed["browser_version"] = match.group(1)
            break

    for name, pattern in _OS_PATTERNS:
        match = pattern.search(user_agent)
        if match:
            parsed["os"] = name
            parsed["os_version"] = match.group(1).replace("_", ".") or None
            break

    return parsed


def build_device_info(
    ip_address: str,
    user_agent: Optional[str] = None,
    country: Optional[str] = None,
    city: Optional[str] = None,
    accept_language: Optional[str] = None,
) -> DeviceInfo:
    parsed = parse_user_agent(user_agent)
    fingerprint = None
    if user_agent:
        raw = f"{user_agent}|{accept_language or ''}|{parsed['device_type'].value}"
        fingerprint = hashlib.sha256(raw.encode()).hexdigest()[:32]
    return DeviceInfo(
        ip_address=ip_address,
        user_agent=user_agent,
        country=country,
        city=city,
        device_fingerprint=fingerprint,
        **parsed,
    )
