"""Input checks for analysis targets, report recipients and report types.

Every validator returns ``(is_valid, message)``; the message is empty when
the input is accepted.
"""

import re
from urllib.parse import urlparse

REPORT_TYPES = ("full", "seo", "performance", "security")

_EMAIL_RE = re.compile(r"^[^@\s]+@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9-]+)+$")


def validate_url(url: str) -> tuple[bool, str]:
    """Accept absolute http(s) URLs with a host name.

    Examples:
        >>> validate_url("https://example.com")
        (True, '')
        >>> validate_url("example.com")[0]
        False
    """
    if not isinstance(url, str) or not url.strip():
        return False, "No URL given."
    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except ValueError as exc:
        return False, f"Cannot parse URL: {exc}"
    if parsed.scheme.lower() not in ("http", "https"):
        return False, "URL must start with http:// or https://."
    if not host or len(host) > 253:
        return False, "URL has no valid host name."
    return True, ""


def validate_email(email: str) -> tuple[bool, str]:
    """Accept ``local@domain.tld`` addresses of at most 320 characters."""
    if not isinstance(email, str) or not email.strip():
        return False, "No e-mail address given."
    email = email.strip()
    if len(email) > 320 or not _EMAIL_RE.match(email):
        return False, "Not a valid e-mail address."
    return True, ""


def validate_report_type(report_type: str) -> tuple[bool, str]:
    if report_type not in REPORT_TYPES:
        return False, f"Report type {report_type!r} is not one of: {', '.join(REPORT_TYPES)}."
    return True, ""
