"""Security posture derived from the response URL, headers and cookies."""

from typing import Iterable, Mapping, Optional
from urllib.parse import urlparse

from site_analyzer.modules.analysis.report import (
    CookieStats,
    HttpsStatus,
    SecurityHeaders,
    SecurityReport,
)
from site_analyzer.utils.helpers import round_half_up

SECURITY_HEADERS = (
    "Strict-Transport-Security",
    "Content-Security-Policy",
    "X-XSS-Protection",
    "X-Frame-Options",
    "X-Content-Type-Options",
    "Referrer-Policy",
)

COOKIE_FLAGS = ("Secure", "HttpOnly", "SameSite")


def check_https(url: str) -> HttpsStatus:
    return HttpsStatus(enabled=urlparse(url).scheme.lower() == "https")


def collect_headers(headers: Mapping[str, str]) -> dict[str, Optional[str]]:
    """Look up each checked header case-insensitively; absent or empty -> None."""
    lowered = {str(k).lower(): v for k, v in headers.items()}
    return {name: lowered.get(name.lower()) or None for name in SECURITY_HEADERS}


def header_score(found: Mapping[str, Optional[str]]) -> int:
    implemented = sum(1 for value in found.values() if value is not None)
    return round_half_up(implemented / len(SECURITY_HEADERS) * 100)


def cookie_attributes(cookie: str) -> set[str]:
    """Lower-cased attribute names of one ``Set-Cookie`` value (name=value pair excluded)."""
    parts = cookie.split(";")[1:]
    return {part.split("=", 1)[0].strip().lower() for part in parts if part.strip()}


def has_flag(cookie: str, flag: str, attribute_aware: bool = False) -> bool:
    """Check a cookie for *flag*.

    The default mode is plain substring containment on the whole header
    value, so a cookie named ``XSecureToken`` counts as ``Secure``.
    ``attribute_aware`` inspects only the attributes after the first ``;``.
    """
    if attribute_aware:
        return flag.lower() in cookie_attributes(cookie)
    return flag in cookie


def evaluate_cookies(cookies: Iterable[str], attribute_aware: bool = False) -> CookieStats:
    cookies = list(cookies)
    counts = [
        sum(1 for c in cookies if has_flag(c, flag, attribute_aware))
        for flag in COOKIE_FLAGS
    ]
    total = len(cookies)
    if total == 0:
        score = 100
    else:
        score = round_half_up(sum(counts) / (total * len(COOKIE_FLAGS)) * 100)
    return CookieStats(
        total=total,
        secure=counts[0],
        http_only=counts[1],
        same_site=counts[2],
        score=score,
    )


def evaluate_security(
    headers: Mapping[str, str],
    cookies: Iterable[str],
    url: str,
    attribute_aware: bool = False,
) -> SecurityReport:
    """Build the security section for a fetched page.

    Args:
        headers: Response headers (any mapping, matched case-insensitively).
        cookies: Raw ``Set-Cookie`` header values.
        url: Final resolved URL of the response.
        attribute_aware: Parse cookie attributes instead of substring matching.

    Returns:
        A :class:`SecurityReport` with exactly six header entries.
    """
    found = collect_headers(headers)
    return SecurityReport(
        https=check_https(url),
        security_headers=SecurityHeaders(headers=found, score=header_score(found)),
        cookies=evaluate_cookies(cookies, attribute_aware),
    )
