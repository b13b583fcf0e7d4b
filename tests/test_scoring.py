"""Tests for score calculation."""

from dataclasses import replace

import pytest

from site_analyzer.modules.analysis.extractor import extract_seo, parse_html
from site_analyzer.modules.analysis.report import (
    NA,
    DomainError,
    HeadingCounts,
    ImageStats,
    LinkStats,
    MetaInfo,
    SeoReport,
)
from site_analyzer.modules.analysis.scoring import (
    calculate_scores,
    calculate_seo_score,
    numeric_score,
    seo_rules,
)


def _seo(title_len=45, desc_len=100, h1=1, alt=100, internal=3, external=2):
    return SeoReport(
        meta=MetaInfo(title="t" * title_len, description="d" * desc_len),
        headings=HeadingCounts(h1=h1),
        images=ImageStats(total=10, with_alt=alt // 10, alt_percentage=alt),
        links=LinkStats(internal=internal, external=external),
    )


class TestSeoScore:

    def test_all_rules_pass(self):
        assert calculate_seo_score(_seo()) == 100

    @pytest.mark.parametrize("kwargs,expected", [
        ({"title_len": 29}, 80),
        ({"title_len": 61, "desc_len": 49}, 60),
        ({"h1": 2, "alt": 79}, 60),
        ({"internal": 0}, 80),
        ({"title_len": 0, "desc_len": 0, "h1": 0, "alt": 0, "external": 0}, 0),
    ])
    def test_failed_rules(self, kwargs, expected):
        assert calculate_seo_score(_seo(**kwargs)) == expected

    def test_boundaries_are_inclusive(self):
        rules = seo_rules(_seo(title_len=30, desc_len=160, alt=80))
        assert rules == [True, True, True, True, True]
        rules = seo_rules(_seo(title_len=60, desc_len=50))
        assert rules[:2] == [True, True]

    def test_failed_section_is_na(self):
        assert calculate_seo_score(DomainError("SEO-Analyse fehlgeschlagen")) == NA

    def test_element_order_does_not_change_score(self):
        head = (
            "<title>Beispiel GmbH - Webdesign und Beratung</title>"
            '<meta name="description" content="Websites und Shops für kleine Unternehmen in Berlin.">'
        )
        parts = [
            "<h1>Willkommen</h1>",
            '<img src="a.png" alt="Logo">',
            '<img src="b.png">',
            '<a href="/kontakt">Kontakt</a>',
            '<a href="https://other.example.org/">Partner</a>',
        ]
        scores = []
        for body in (parts, list(reversed(parts))):
            html = f"<html><head>{head}</head><body>{''.join(body)}</body></html>"
            scores.append(calculate_seo_score(extract_seo(parse_html(html), "https://example.com/")))
        # alt coverage is 50%, so four of five rules pass
        assert scores == [80, 80]


class TestScoreSummary:

    def test_sample_report(self, sample_report):
        scores = calculate_scores(sample_report)
        assert scores.seo == 80
        assert scores.performance == 63
        assert scores.security == 50
        assert scores.cookies == 50

    def test_failed_sections(self, sample_report):
        broken = replace(
            sample_report,
            seo=DomainError("x"),
            security=DomainError("y"),
            performance=DomainError("z"),
        )
        scores = calculate_scores(broken)
        assert scores.to_dict() == {"seo": NA, "performance": NA, "security": NA, "cookies": NA}

    def test_numeric_score(self):
        assert numeric_score(75) == 75
        assert numeric_score(NA) is None
        assert numeric_score(None) is None
        assert numeric_score(True) is None
