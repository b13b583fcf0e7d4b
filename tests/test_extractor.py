"""Tests for HTML text and DOM metric extraction."""

import pytest

from site_analyzer.modules.analysis.extractor import (
    body_text,
    check_responsive,
    count_dom_elements,
    count_images,
    count_links,
    count_words,
    extract_content,
    extract_meta,
    extract_seo,
    parse_html,
)


# ===========================================================================
# 1. SEO metrics
# ===========================================================================
class TestSeoExtraction:
    """Meta tags, headings, images and links of the sample page."""

    def test_meta(self, sample_html):
        meta = extract_meta(parse_html(sample_html))
        assert meta.title == "Beispiel GmbH - Webdesign und Beratung aus Berlin"
        assert meta.title_length == 49
        assert meta.description_length == 90
        assert meta.keywords == "webdesign, berlin"

    def test_missing_meta_defaults_to_empty(self):
        meta = extract_meta(parse_html("<html><body><p>x</p></body></html>"))
        assert meta.title == ""
        assert meta.description == ""
        assert meta.title_length == 0

    def test_headings(self, sample_html):
        seo = extract_seo(parse_html(sample_html), "https://example.com")
        assert seo.headings.h1 == 1
        assert seo.headings.h2 == 2
        assert seo.headings.h3 == 0

    def test_images_count_empty_alt_as_present(self, sample_html):
        images = count_images(parse_html(sample_html))
        assert images.total == 3
        assert images.with_alt == 2
        assert images.without_alt == 1
        assert images.alt_percentage == 67

    def test_no_images_gives_zero_percentage(self):
        images = count_images(parse_html("<p>text</p>"))
        assert images.total == 0
        assert images.alt_percentage == 0

    def test_links(self, sample_html):
        links = count_links(parse_html(sample_html), "https://example.com")
        assert links.internal == 2
        assert links.external == 1
        assert links.total == 3

    @pytest.mark.parametrize("href,internal,external", [
        ("/about", 1, 0),
        ("https://example.com/page", 1, 0),
        ("http://other.org", 0, 1),
        ("mailto:a@b.de", 0, 0),
        ("#top", 0, 0),
        ("relative/page", 0, 0),
    ])
    def test_link_classification(self, href, internal, external):
        links = count_links(parse_html(f'<a href="{href}">x</a>'), "https://example.com")
        assert (links.internal, links.external) == (internal, external)

    def test_anchor_without_href_is_ignored(self):
        links = count_links(parse_html("<a name='x'>x</a>"), "https://example.com")
        assert links.total == 0


# ===========================================================================
# 2. Content metrics
# ===========================================================================
class TestContentExtraction:
    """Text statistics, media and structure counts."""

    def test_sample_content(self, sample_html):
        content = extract_content(parse_html(sample_html))
        assert content.text_stats.word_count == 16
        assert content.text_stats.paragraph_count == 2
        assert content.images == 3
        assert content.videos == 1
        assert content.paragraphs == 2
        assert content.lists == 1
        assert content.tables == 1

    def test_body_text_collapses_whitespace(self):
        soup = parse_html("<body>  Hallo\n\n  Welt \t!  </body>")
        assert body_text(soup) == "Hallo Welt !"

    def test_average_word_length_rounded_to_one_decimal(self):
        content = extract_content(parse_html("<body>ab abc</body>"))
        # 6 characters / 2 words
        assert content.text_stats.word_count == 2
        assert content.text_stats.character_count == 6
        assert content.text_stats.average_word_length == 3.0

    def test_empty_body_counts_one_word(self):
        assert count_words("") == 1
        content = extract_content(parse_html("<html><body></body></html>"))
        assert content.text_stats.word_count == 1
        assert content.text_stats.character_count == 0
        assert content.text_stats.average_word_length == 0

    def test_video_sources(self):
        html = (
            "<video src='a.mp4'></video>"
            "<iframe src='https://player.vimeo.com/video/1'></iframe>"
            "<iframe src='https://maps.example.com'></iframe>"
        )
        assert extract_content(parse_html(html)).videos == 2

    def test_dom_element_count(self):
        assert count_dom_elements(parse_html("<div><p>a</p><p>b</p></div>")) == 3


# ===========================================================================
# 3. Responsive design
# ===========================================================================
class TestResponsiveDesign:

    def test_sample_page(self, sample_html):
        responsive = extract_content(parse_html(sample_html)).responsive
        assert responsive.viewport_meta is True
        assert responsive.media_queries is False
        assert responsive.label == "Mittelmäßig"

    @pytest.mark.parametrize("head,viewport,media", [
        ("", False, False),
        ("<meta name=\"viewport\" content=\"width=device-width\">", True, False),
        ("<style>@media (max-width: 600px) { nav { display: none; } }</style>", False, True),
        ("<link rel=\"stylesheet\" href=\"m.css\" media=\"(max-width: 600px)\">", False, True),
        ("<link rel=\"stylesheet\" href=\"p.css\" media=\"print\">", False, False),
    ])
    def test_check_responsive(self, head, viewport, media):
        responsive = check_responsive(parse_html(f"<html><head>{head}</head><body>x</body></html>"))
        assert (responsive.viewport_meta, responsive.media_queries) == (viewport, media)

    def test_both_present_is_good(self):
        html = (
            "<head><meta name=\"viewport\" content=\"width=device-width\">"
            "<style>@media print { body { color: black; } }</style></head>"
        )
        responsive = check_responsive(parse_html(html))
        assert responsive.label == "Gut"
        assert responsive.to_dict() == {"viewportMeta": True, "mediaQueries": True, "score": "Gut"}
