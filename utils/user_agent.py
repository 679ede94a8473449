# utils/user_agent.py
"""
Coarse User-Agent classification for login security and login history.

Only what the login gate needs: a browser family name, an OS name and a
device class. Browser names follow the common parser conventions ("Edge",
"Chrome", "Firefox", "Safari", "Opera", ...) so they read the same in the
login-history screen as before.
"""
from __future__ import annotations

import enum
import ipaddress
from dataclasses import dataclass
from typing import Optional

from flask import Request

__all__ = ["DeviceClass", "ClientInfo", "parse_user_agent", "client_info_from_request", "client_ip"]

UNKNOWN = "Unknown"


class DeviceClass(str, enum.Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClientInfo:
    browser: str
    os: str
    device: DeviceClass
    ip: str

    @property
    def is_mobile(self) -> bool:
        return self.device is DeviceClass.MOBILE

    @property
    def is_edge(self) -> bool:
        return "edge" in self.browser.lower()


# Order matters: Edge and Opera UAs also carry "Chrome/" and "Safari/",
# Chrome UAs also carry "Safari/".
_BROWSERS = (
    (("edg/", "edga/", "edgios/", "edge/"), "Edge"),
    (("opr/", "opera"), "Opera"),
    (("samsungbrowser/",), "Samsung Internet"),
    (("firefox/", "fxios/"), "Firefox"),
    (("crios/", "chrome/", "chromium/"), "Chrome"),
    (("msie ", "trident/"), "IE"),
    (("safari/",), "Safari"),
)

_OSES = (
    (("windows phone",), "Windows Phone"),
    (("windows",), "Windows"),
    (("android",), "Android"),
    (("iphone", "ipad", "ipod"), "iOS"),
    (("cros",), "Chrome OS"),
    (("mac os", "macintosh"), "Mac OS"),
    (("linux", "x11"), "Linux"),
)

# Tablets count as desktop; the mobile login window is for phones only.
_TABLET_MARKERS = ("ipad", "tablet")
_MOBILE_MARKERS = ("iphone", "ipod", "windows phone", "mobi", "blackberry", "opera mini")


def _match(ua: str, table) -> str:
    for needles, name in table:
        if any(n in ua for n in needles):
            return name
    return UNKNOWN


def _device_class(ua: str) -> DeviceClass:
    if not ua:
        return DeviceClass.UNKNOWN
    if any(m in ua for m in _TABLET_MARKERS):
        return DeviceClass.DESKTOP
    if any(m in ua for m in _MOBILE_MARKERS):
        return DeviceClass.MOBILE
    return DeviceClass.DESKTOP


def parse_user_agent(user_agent: Optional[str]) -> tuple[str, str, DeviceClass]:
    """Return ``(browser, os, device)`` for a raw User-Agent header."""
    ua = (user_agent or "").strip().lower()
    if not ua:
        return UNKNOWN, UNKNOWN, DeviceClass.UNKNOWN
    return _match(ua, _BROWSERS), _match(ua, _OSES), _device_class(ua)


def client_ip(request: Request) -> str:
    """Client address as resolved by ProxyFix. Anything that is not an IP is dropped."""
    raw = (request.remote_addr or "").strip()
    try:
        return str(ipaddress.ip_address(raw))
    except ValueError:
        return UNKNOWN


def client_info_from_request(request: Request) -> ClientInfo:
    browser, os_name, device = parse_user_agent(request.headers.get("User-Agent"))
    return ClientInfo(browser=browser, os=os_name, device=device, ip=client_ip(request))
