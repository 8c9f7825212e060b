import pytest

from src.domain.device import build_device_info, parse_user_agent
from src.domain.entities import DeviceType

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.6099.109 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.77"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
FIREFOX_ANDROID = "Mozilla/5.0 (Android 14; Mobile; rv:121.0) Gecko/121.0 Firefox/121.0"
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)


@pytest.mark.parametrize(
    "user_agent,device_type,browser,os_name",
    [
        (CHROME_WINDOWS, DeviceType.desktop, "Chrome", "Windows"),
        (EDGE_WINDOWS, DeviceType.desktop, "Edge", "Windows"),
        (SAFARI_IPHONE, DeviceType.mobile, "Safari", "iOS"),
        (FIREFOX_ANDROID, DeviceType.mobile, "Firefox", "Android"),
        (SAFARI_IPAD, DeviceType.tablet, "Safari", "iOS"),
    ],
)
def test_parse_user_agent(user_agent, device_type, browser, os_name):
    parsed = parse_user_agent(user_agent)

    assert parsed["device_type"] == device_type
    assert parsed["browser"] == browser
    assert parsed["os"] == os_name


def test_versions_are_extracted():
    parsed = parse_user_agent(SAFARI_IPHONE)

    assert parsed["browser_version"] == "17.2"
    assert parsed["os_version"] == "17.2"


def test_missing_user_agent_is_unknown():
    parsed = parse_user_agent(None)

    assert parsed["device_type"] == DeviceType.unknown
    assert parsed["browser"] is None


def test_fingerprint_is_stable_and_language_sensitive():
    first = build_device_info("203.0.113.9", CHROME_WINDOWS, accept_language="it-IT")
    second = build_device_info("198.51.100.1", CHROME_WINDOWS, accept_language="it-IT")
    other_language = build_device_info("203.0.113.9", CHROME_WINDOWS, accept_language="en-US")

    assert first.device_fingerprint == second.device_fingerprint
    assert first.device_fingerprint != other_language.device_fingerprint
    assert build_device_info("203.0.113.9").device_fingerprint is None
