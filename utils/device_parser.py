"""
utils/device_parser.py
---------------------------------
Turns a login request's User-Agent header into readable device, browser
and OS labels, and finds the client IP behind proxies.

Matching is ordered substring checks on the lower-cased agent string, so
the order of each list below matters.
"""

UNKNOWN_DEVICE = "Unknown Device"
UNKNOWN_BROWSER = "Unknown Browser"
UNKNOWN_OS = "Unknown OS"

WINDOWS_VERSIONS = [
    ("windows nt 10.0", "Windows 10/11"),
    ("windows nt 6.3", "Windows 8.1"),
    ("windows nt 6.2", "Windows 8"),
    ("windows nt 6.1", "Windows 7"),
]


def detect_os(ua):
    if "windows" in ua:
        for marker, label in WINDOWS_VERSIONS:
            if marker in ua:
                return label
        return "Windows"
    if "mac os x" in ua:
        # iPhone and iPad agents also claim "like Mac OS X"
        if "iphone" in ua:
            return "iOS"
        if "ipad" in ua:
            return "iPadOS"
        return "macOS"
    if "android" in ua:
        return "Android"
    if "linux" in ua:
        return "Linux"
    if "iphone" in ua:
        return "iOS"
    if "ipad" in ua:
        return "iPadOS"
    return UNKNOWN_OS


def detect_browser(ua):
    # Edge agents also carry "chrome/", and Chrome agents carry "safari/"
    if "edg/" in ua:
        return "Microsoft Edge"
    if "chrome/" in ua:
        return "Google Chrome"
    if "firefox/" in ua:
        return "Mozilla Firefox"
    if "safari/" in ua and "chrome/" not in ua:
        return "Safari"
    if "opera/" in ua or "opr/" in ua:
        return "Opera"
    if "msie" in ua or "trident/" in ua:
        return "Internet Explorer"
    return UNKNOWN_BROWSER


def detect_device(ua):
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        return "Mobile"
    if "tablet" in ua or "ipad" in ua:
        return "Tablet"
    if "smart-tv" in ua or "smarttv" in ua:
        return "Smart TV"
    return "Desktop"


def parse_user_agent(user_agent):
    """
    Returns {"device": ..., "browser": ..., "os": ...}.
    Missing agents give the three "Unknown ..." labels.
    """
    if not user_agent:
        return {"device": UNKNOWN_DEVICE, "browser": UNKNOWN_BROWSER, "os": UNKNOWN_OS}

    ua = user_agent.lower()
    return {
        "device": detect_device(ua),
        "browser": detect_browser(ua),
        "os": detect_os(ua),
    }


def get_client_ip(headers):
    forwarded = headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    cf_ip = headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip

    return None
