"""Shared pytest fixtures for Site Analyzer tests."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Ensure project root is on sys.path so 'site_analyzer' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>Beispiel GmbH - Webdesign und Beratung aus Berlin</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta name="description" content="Die Beispiel GmbH entwickelt Websites, Shops und Apps für kleine und mittlere Unternehmen.">
  <meta name="keywords" content="webdesign, berlin">
  <link rel="stylesheet" href="/css/main.css">
  <script src="/js/app.js"></script>
</head>
<body>
  <h1>Willkommen</h1>
  <h2>Leistungen</h2>
  <h2>Referenzen</h2>
  <p>Wir bauen schnelle Websites.</p>
  <p>Sprechen Sie uns an.</p>
  <img src="/img/team.jpg" alt="Team">
  <img src="/img/office.jpg" alt="">
  <img src="/img/logo.png">
  <ul>
    <li><a href="/kontakt">Kontakt</a></li>
    <li><a href="https://example.com/impressum">Impressum</a></li>
  </ul>
  <a href="https://partner.example.org">Partner</a>
  <a href="mailto:info@example.com">Mail</a>
  <iframe src="https://www.youtube.com/embed/abc"></iframe>
  <table><tr><td>1</td></tr></table>
</body>
</html>
"""


LIGHTHOUSE_RESULT = {
    "categories": {"performance": {"score": 0.625}},
    "audits": {
        "first-contentful-paint": {"displayValue": "1.2 s"},
        "largest-contentful-paint": {"displayValue": "2.8 s"},
        "interactive": {"displayValue": "3.4 s"},
        "total-blocking-time": {"displayValue": "120 ms"},
        "cumulative-layout-shift": {"displayValue": "0.05"},
        "speed-index": {"displayValue": "2.1 s"},
        "render-blocking-resources": {
            "score": 0.3,
            "title": "Eliminate render-blocking resources",
            "description": "Resources are blocking the first paint.",
            "numericValue": 450,
            "details": {"items": [{"url": "https://example.com/css/main.css"}]},
        },
        "unused-css-rules": {
            "score": 0.95,
            "title": "Reduce unused CSS",
            "details": {"items": [{"url": "x"}]},
        },
        "offscreen-images": {
            "score": 0.5,
            "title": "Defer offscreen images",
            "details": {"items": []},
        },
    },
}


@pytest.fixture()
def sample_html():
    return SAMPLE_HTML


@pytest.fixture()
def lighthouse_result():
    return LIGHTHOUSE_RESULT


@pytest.fixture()
def fetch_result(sample_html):
    """A successful fetch of https://example.com with two cookies."""
    from site_analyzer.modules.analysis.probes import FetchResult
    return FetchResult(
        url="https://example.com",
        final_url="https://example.com/",
        status_code=200,
        headers={
            "Content-Type": "text/html; charset=utf-8",
            "strict-transport-security": "max-age=31536000",
            "X-Frame-Options": "DENY",
            "X-Content-Type-Options": "nosniff",
        },
        set_cookies=(
            "session=abc; Path=/; Secure; HttpOnly; SameSite=Lax",
            "tracking=1; Path=/",
        ),
        body=sample_html,
        elapsed_ms=340,
    )


@pytest.fixture()
def mock_fetcher(fetch_result):
    """Return a mock PageFetcher that returns the sample page."""
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=fetch_result)
    return fetcher


@pytest.fixture()
def mock_performance_source(lighthouse_result):
    source = MagicMock()
    source.name = "mock-lighthouse"
    source.audit = AsyncMock(return_value=lighthouse_result)
    return source


@pytest.fixture()
def mock_resource_source():
    from site_analyzer.modules.analysis.probes import ResourceEntry, ResourceProbeResult
    source = MagicMock()
    source.name = "mock-resources"
    source.probe = AsyncMock(return_value=ResourceProbeResult(
        entries=(
            ResourceEntry(url="https://example.com/", resource_type="document", byte_size=2048),
            ResourceEntry(url="https://example.com/js/app.js", resource_type="script", byte_size=1024),
            ResourceEntry(url="https://example.com/css/main.css", resource_type="stylesheet", byte_size=512),
        ),
        load_event_end=812.4,
        dom_content_loaded=402.5,
        document_size=2048,
    ))
    return source


@pytest.fixture()
def fixed_clock():
    return lambda: "2024-05-01T10:00:00.000Z"


@pytest.fixture()
def pipeline(mock_fetcher, mock_performance_source, mock_resource_source, fixed_clock):
    from site_analyzer.modules.analysis.pipeline import AnalysisPipeline
    return AnalysisPipeline(
        fetcher=mock_fetcher,
        performance_source=mock_performance_source,
        resource_source=mock_resource_source,
        clock=fixed_clock,
    )


@pytest.fixture()
def sample_report(fetch_result, lighthouse_result, mock_resource_source, fixed_clock):
    """A finished report for the sample page, assembled synchronously from the real analyzers."""
    from site_analyzer.modules.analysis.extractor import (
        count_dom_elements, extract_content, extract_seo, parse_html,
    )
    from site_analyzer.modules.analysis.performance import normalize_performance
    from site_analyzer.modules.analysis.pipeline import AnalysisPipeline
    from site_analyzer.modules.analysis.report import PartialReport
    from site_analyzer.modules.analysis.security import evaluate_security
    from site_analyzer.modules.analysis.statistics import build_statistics

    soup = parse_html(fetch_result.body)
    partial = PartialReport(
        url=fetch_result.url,
        timestamp=fixed_clock(),
        status_code=fetch_result.status_code,
        load_time_ms=fetch_result.elapsed_ms,
        seo=extract_seo(soup, fetch_result.url),
        performance=normalize_performance(lighthouse_result),
        content=extract_content(soup),
        security=evaluate_security(fetch_result.headers, fetch_result.set_cookies, fetch_result.final_url),
        statistics=build_statistics(
            fetch_result.body, count_dom_elements(soup), mock_resource_source.probe.return_value
        ),
    )
    return AnalysisPipeline.finalize(partial)


@pytest.fixture()
def database():
    """Provide an in-memory SQLite database with all tables created."""
    from site_analyzer.database import Database
    db = Database("sqlite:///:memory:")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def storage(database):
    from site_analyzer.modules.history.storage import SqlAlchemyStorage
    return SqlAlchemyStorage(database)


@pytest.fixture()
def schedule_repository(database):
    from site_analyzer.modules.history.schedules import ScheduleRepository
    return ScheduleRepository(database)


@pytest.fixture()
def mock_llm_client():
    """Return a mock LLMClient that returns canned recommendations."""
    client = MagicMock()
    client.is_configured = True
    client.generate_text = AsyncMock(return_value=(
        "1. Meta-Beschreibung erweitern\n"
        "Beschreibung: Die Beschreibung sollte 50-160 Zeichen lang sein.\n"
        "Vorteile: Höhere Klickrate in den Suchergebnissen.\n"
        "2. Bilder komprimieren\n"
        "Beschreibung: Große Bilder verlangsamen die Ladezeit erheblich.\n"
        "Vorteile: Schnellere Ladezeit.\n"
    ))
    client.get_usage_stats = MagicMock(return_value={
        "requests": 1,
        "cost_usd": 0.00042,
    })
    return client
