"""Text and DOM metrics extracted from a parsed HTML document.

Both entry points are pure functions of a BeautifulSoup tree (and, for SEO,
the analyzed URL).
"""

import re

from bs4 import BeautifulSoup

from site_analyzer.modules.analysis.report import (
    ContentReport,
    HeadingCounts,
    ImageStats,
    LinkStats,
    MetaInfo,
    ResponsiveDesign,
    SeoReport,
    TextStats,
)
from site_analyzer.utils.helpers import round_half_up


_WHITESPACE = re.compile(r"\s+")
_VIDEO_HOSTS = ("youtube", "vimeo")
_MEDIA_RULE = re.compile(r"@media\b", re.IGNORECASE)


def parse_html(html: str) -> BeautifulSoup:
    """Parse a raw HTML string with the built-in parser."""
    return BeautifulSoup(html, "html.parser")


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": name})
    if tag is None:
        return ""
    return tag.get("content") or ""


# ---------------------------------------------------------------------------
# SEO
# ---------------------------------------------------------------------------

def extract_meta(soup: BeautifulSoup) -> MetaInfo:
    title_tag = soup.find("title")
    return MetaInfo(
        title=title_tag.get_text() if title_tag is not None else "",
        description=_meta_content(soup, "description"),
        keywords=_meta_content(soup, "keywords"),
    )


def count_headings(soup: BeautifulSoup) -> HeadingCounts:
    return HeadingCounts(*(len(soup.find_all(f"h{level}")) for level in range(1, 7)))


def count_images(soup: BeautifulSoup) -> ImageStats:
    """Count images and those carrying an ``alt`` attribute (any value, even empty)."""
    images = soup.find_all("img")
    total = len(images)
    with_alt = sum(1 for img in images if img.has_attr("alt"))
    percentage = round_half_up(with_alt / total * 100) if total > 0 else 0
    return ImageStats(total=total, with_alt=with_alt, alt_percentage=percentage)


def count_links(soup: BeautifulSoup, url: str) -> LinkStats:
    """Split anchors into internal and external links.

    Internal: ``href`` starts with ``/`` or with the analyzed URL verbatim.
    External: ``href`` starts with ``http`` and is not internal. Each anchor
    is counted at most once; anchors matching neither rule are ignored.
    """
    internal = external = 0
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if href.startswith("/") or (url and href.startswith(url)):
            internal += 1
        elif href.startswith("http"):
            external += 1
    return LinkStats(internal=internal, external=external)


def extract_seo(soup: BeautifulSoup, url: str) -> SeoReport:
    """Collect meta tags, heading, image and link counts."""
    return SeoReport(
        meta=extract_meta(soup),
        headings=count_headings(soup),
        images=count_images(soup),
        links=count_links(soup, url),
    )


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

def body_text(soup: BeautifulSoup) -> str:
    """Return the body text with whitespace runs collapsed and ends trimmed."""
    root = soup.body if soup.body is not None else soup
    return _WHITESPACE.sub(" ", root.get_text()).strip()


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens in *text*.

    Splitting an empty string still yields one empty token, so an empty body
    reports a word count of 1. Historical reports were computed this way and
    trend comparisons depend on it.
    """
    return len(_WHITESPACE.split(text))


def count_videos(soup: BeautifulSoup) -> int:
    videos = len(soup.find_all("video"))
    for frame in soup.find_all("iframe", src=True):
        if any(host in frame["src"] for host in _VIDEO_HOSTS):
            videos += 1
    return videos


def check_responsive(soup: BeautifulSoup) -> ResponsiveDesign:
    """Look for a viewport meta tag and media queries in the markup.

    Only inline ``<style>`` blocks and ``<link media="(...)">`` count as media
    queries; external stylesheets are not downloaded.
    """
    viewport = soup.find("meta", attrs={"name": "viewport"}) is not None
    media = any(_MEDIA_RULE.search(style.get_text()) for style in soup.find_all("style"))
    if not media:
        media = any("(" in link["media"] for link in soup.find_all("link", media=True))
    return ResponsiveDesign(viewport_meta=viewport, media_queries=media)


def extract_content(soup: BeautifulSoup) -> ContentReport:
    """Compute text statistics, media counts and structural element counts."""
    text = body_text(soup)
    words = count_words(text)
    chars = len(text)
    paragraphs = len(soup.find_all("p"))

    stats = TextStats(
        word_count=words,
        character_count=chars,
        average_word_length=round_half_up(chars / words, 1) if words > 0 else 0,
        paragraph_count=paragraphs,
    )
    return ContentReport(
        text_stats=stats,
        images=len(soup.find_all("img")),
        videos=count_videos(soup),
        paragraphs=paragraphs,
        lists=len(soup.find_all(["ul", "ol"])),
        tables=len(soup.find_all("table")),
        responsive=check_responsive(soup),
    )


def count_dom_elements(soup: BeautifulSoup) -> int:
    return len(soup.find_all(True))
