"""Tests for text and JSON report rendering and AI recommendations."""

import json
from dataclasses import replace
from unittest.mock import patch

import pytest

from site_analyzer.modules.analysis.ai_recommendations import (
    GENERATION_FAILED,
    MANUAL_REVIEW,
    build_prompt,
    generate_ai_recommendations,
    parse_recommendations,
)
from site_analyzer.modules.analysis.report import Category, DomainError, Priority, Recommendation
from site_analyzer.modules.reporting import ReportRenderer


# ===========================================================================
# 1. Text report
# ===========================================================================
class TestTextReport:

    def test_full_report_sections(self, sample_report):
        text = ReportRenderer().render_text(sample_report)
        assert text.startswith("Website-Analysebericht: https://example.com")
        assert "Erstellt am: 01.05.2024, 10:00:00" in text
        for heading in (
            "1. Zusammenfassung", "2. SEO-Analyse", "3. Performance-Analyse",
            "4. Inhaltsanalyse", "5. Sicherheitsanalyse", "6. Website-Statistiken", "Empfehlungen",
        ):
            assert heading in text
        assert "Titellänge: 49 Zeichen (gut)" in text
        assert "  - SEO: 80/100" in text
        assert "  - Aktiviert: Ja" in text
        assert "  Content-Security-Policy: Nicht implementiert" in text
        assert "  - JavaScript-Dateien: 1" in text
        assert "      - Minimiere CSS und JavaScript" in text

    def test_failed_section_renders_error(self, sample_report):
        report = replace(sample_report, security=DomainError("Sicherheitsanalyse fehlgeschlagen", "boom"))
        text = ReportRenderer().render_text(report)
        assert "Fehler: Sicherheitsanalyse fehlgeschlagen" in text
        assert "Aktiviert" not in text

    def test_security_report_only_has_security(self, sample_report):
        text = ReportRenderer().render_text(sample_report, report_type="security")
        assert "1. Zusammenfassung" in text
        assert "2. Sicherheitsanalyse" in text
        assert "SEO-Analyse" not in text
        assert "Füge die fehlenden Sicherheits-Header hinzu:" in text
        assert "Setze die Flags Secure, HttpOnly und SameSite für alle Cookies." in text
        assert "Füge Alt-Attribute" not in text

    def test_seo_report_includes_content_recommendations(self, sample_report):
        text = ReportRenderer().render_text(sample_report, report_type="seo")
        assert "Erweitere den Textinhalt auf mindestens 300 Wörter." in text
        assert "Verbessere die Website-Performance:" not in text

    def test_ai_recommendations_are_placed_by_category(self, sample_report):
        report = replace(sample_report, recommendations=(
            Recommendation(text="Browser-Cache aktivieren", category=Category.PERFORMANCE),
        ))
        renderer = ReportRenderer()
        assert "Browser-Cache aktivieren" in renderer.render_text(report, report_type="performance")
        assert "Browser-Cache aktivieren" not in renderer.render_text(report, report_type="security")

    def test_responsive_design_lines(self, sample_report):
        text = ReportRenderer().render_text(sample_report)
        assert "  - Viewport-Meta-Tag: Vorhanden" in text
        assert "  - Media Queries: Fehlt" in text

    def test_performance_report(self, sample_report):
        text = ReportRenderer().render_text(sample_report, report_type="performance")
        assert "2. Performance-Analyse" in text
        assert "3. Website-Statistiken" in text
        assert "Eliminate render-blocking resources (Einsparung: 450)" in text

    def test_report_without_matching_recommendations(self, sample_report):
        report = replace(sample_report, recommendations=())
        text = ReportRenderer().render_text(report, report_type="seo")
        assert text.rstrip().endswith("Keine spezifischen Empfehlungen notwendig.")

    def test_unknown_report_type(self, sample_report):
        with pytest.raises(ValueError):
            ReportRenderer().render_text(sample_report, report_type="pdf")


# ===========================================================================
# 2. JSON and files
# ===========================================================================
class TestReportOutput:

    def test_render_json(self, sample_report):
        data = json.loads(ReportRenderer().render_json(sample_report))
        assert data["url"] == "https://example.com"
        assert data["scores"]["performance"] == 63
        assert data["security"]["https"]["score"] == "Gut"

    def test_write_report(self, sample_report, tmp_path):
        path = ReportRenderer().write_report(sample_report, str(tmp_path / "out"), report_type="seo")
        assert path.exists()
        assert path.suffix == ".txt"
        assert "https---example-com_seo_" in path.name
        assert path.read_text(encoding="utf-8").startswith("SEO-Analyse-Bericht")

    def test_write_json_report(self, sample_report, tmp_path):
        path = ReportRenderer().write_report(sample_report, str(tmp_path), fmt="json")
        assert json.loads(path.read_text(encoding="utf-8"))["statusCode"] == 200


# ===========================================================================
# 3. AI recommendations
# ===========================================================================
class TestAiRecommendations:

    def test_build_prompt(self, sample_report):
        prompt = build_prompt(sample_report)
        assert "URL: https://example.com" in prompt
        assert "Titellänge: 49 Zeichen" in prompt
        assert "HTTPS: Aktiviert" in prompt
        assert "Wortanzahl: 16" in prompt

    def test_build_prompt_with_failed_section(self, sample_report):
        prompt = build_prompt(replace(sample_report, seo=DomainError("x")))
        assert "Titel: Nicht verfügbar" in prompt
        assert "H1-Tags: N/A" in prompt

    def test_parse_recommendations(self):
        recs = parse_recommendations(
            "1. Meta-Beschreibung erweitern\n"
            "Beschreibung: Die Beschreibung sollte länger sein.\n"
            "Vorteile: Mehr Klicks.\n"
            "2. Browser-Cache aktivieren\n"
            "Beschreibung: Dringend den Browser-Cache nutzen.\n"
            "Vorteile: Schnellere Ladezeit.\n"
        )
        assert [r.text for r in recs] == ["Meta-Beschreibung erweitern", "Browser-Cache aktivieren"]
        assert recs[0].category == Category.SEO
        assert recs[0].priority == Priority.MEDIUM
        assert recs[0].benefits == "Mehr Klicks."
        assert recs[1].category == Category.PERFORMANCE
        assert recs[1].priority == Priority.HIGH

    def test_parse_section_without_title_line(self):
        recs = parse_recommendations("1. Nur ein Satz ohne Struktur")
        assert recs[0].text == "Empfehlung"
        assert recs[0].description == ""

    @pytest.mark.asyncio
    async def test_generate(self, sample_report, mock_llm_client):
        result = await generate_ai_recommendations(sample_report, mock_llm_client)
        assert result.error == ""
        assert len(result.recommendations) == 2
        mock_llm_client.generate_text.assert_awaited_once()
        assert "generatedAt" in result.to_dict()

    @pytest.mark.asyncio
    async def test_generate_failure_falls_back(self, sample_report, mock_llm_client):
        mock_llm_client.generate_text.side_effect = RuntimeError("rate limited")
        result = await generate_ai_recommendations(sample_report, mock_llm_client)
        assert result.error == GENERATION_FAILED
        assert [r.text for r in result.recommendations] == [MANUAL_REVIEW]

    @pytest.mark.asyncio
    async def test_generate_without_client(self, sample_report):
        result = await generate_ai_recommendations(sample_report, None)
        assert result.to_dict()["error"] == GENERATION_FAILED


# ===========================================================================
# 4. LLM client
# ===========================================================================
class TestLLMClient:

    def test_unconfigured_without_key(self, monkeypatch):
        from site_analyzer.integrations.llm_client import LLMClient

        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert LLMClient().is_configured is False

    @pytest.mark.asyncio
    async def test_generate_without_key_raises(self, monkeypatch):
        from site_analyzer.integrations.llm_client import LLMClient

        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(RuntimeError):
            await LLMClient().generate_text("Hallo")

    @pytest.mark.asyncio
    async def test_generate_caches_and_tracks_usage(self):
        from types import SimpleNamespace
        from unittest.mock import AsyncMock

        from site_analyzer.integrations.llm_client import LLMClient

        client = LLMClient(api_key="sk-test", requests_per_minute=6000)
        completion = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=" 1. Caching aktivieren \n"))],
            usage=SimpleNamespace(prompt_tokens=1000, completion_tokens=1000),
        )
        create = AsyncMock(return_value=completion)
        client._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

        assert await client.generate_text("prompt") == "1. Caching aktivieren"
        assert await client.generate_text("prompt") == "1. Caching aktivieren"
        create.assert_awaited_once()
        stats = client.get_usage_stats()
        assert stats["requests"] == 1
        assert stats["cost_usd"] == 0.00075

    def test_prompt_cache_evicts_oldest(self):
        from site_analyzer.integrations.llm_client import PromptCache

        cache = PromptCache(max_entries=2)
        cache.store("a", "1")
        cache.store("b", "2")
        assert cache.lookup("a") == "1"
        cache.store("c", "3")
        assert cache.lookup("b") is None
        assert len(cache) == 2

    def test_prompt_cache_expires(self):
        from site_analyzer.integrations.llm_client import PromptCache

        cache = PromptCache(ttl_hours=0)
        cache.store("a", "1")
        # ttl 0 means any positive age is stale
        with patch("site_analyzer.integrations.llm_client.time.monotonic", return_value=1e12):
            assert cache.lookup("a") is None
