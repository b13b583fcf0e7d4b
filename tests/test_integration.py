"""Integration tests for Site Analyzer.

Covers module imports, configuration loading, application wiring,
the probe adapters that run without network access, CLI smoke tests,
and syntax validation of every Python file in the package.
"""

import ast
import importlib
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml

from site_analyzer.modules.analysis.probes import (
    PerformanceSourceUnavailable,
    ResourceProbeResult,
)

# ---------------------------------------------------------------------------
# Project root (conftest.py already puts it on sys.path)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent


# ===========================================================================
# 1. Model imports
# ===========================================================================
class TestModelImports:
    """All ORM models should be importable from site_analyzer.models."""

    @pytest.mark.parametrize("model_name", [
        "Website",
        "Analysis",
        "SeoResult",
        "PerformanceResult",
        "ContentResult",
        "SecurityResult",
        "ReportSchedule",
        "ReportExecution",
    ])
    def test_model_importable(self, model_name):
        import site_analyzer.models as models_pkg
        assert hasattr(models_pkg, model_name), (
            "Model not found in site_analyzer.models: " + model_name
        )


# ===========================================================================
# 2. Module imports
# ===========================================================================
class TestModuleImports:
    """All packages should expose their public classes."""

    @pytest.mark.parametrize("module_path,names", [
        ("site_analyzer.modules.analysis", ["AnalysisPipeline", "AnalysisReport", "AnalysisResult", "DomainError"]),
        ("site_analyzer.modules.history", ["SqlAlchemyStorage", "ScheduleRepository", "save_report"]),
        ("site_analyzer.modules.reporting", ["ReportRenderer"]),
        ("site_analyzer.integrations.lighthouse", ["LighthouseSource", "PageSpeedSource", "ChainedPerformanceSource"]),
        ("site_analyzer.integrations.resource_probe", ["PlaywrightResourceSource", "LightweightResourceSource"]),
        ("site_analyzer.integrations.page_fetcher", ["AiohttpPageFetcher"]),
        ("site_analyzer.integrations.llm_client", ["LLMClient"]),
        ("site_analyzer.scheduler", ["ReportScheduler"]),
        ("site_analyzer.app", ["SiteAnalyzerApp"]),
    ])
    def test_module_importable(self, module_path, names):
        mod = importlib.import_module(module_path)
        for name in names:
            assert hasattr(mod, name), name + " not found in " + module_path


# ===========================================================================
# 3. Configuration
# ===========================================================================
class TestConfiguration:

    def test_settings_yaml_parses(self):
        config_file = PROJECT_ROOT / "config" / "settings.yaml"
        assert config_file.exists(), "config/settings.yaml is missing"
        with open(config_file, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh)
        for section in ("app", "database", "analysis", "scheduler", "llm"):
            assert section in config, "Missing config section: " + section

    def test_performance_source_choices_are_documented(self):
        with open(PROJECT_ROOT / "config" / "settings.yaml", "r", encoding="utf-8") as fh:
            analysis = yaml.safe_load(fh)["analysis"]
        assert analysis["performance_source"] in ("lighthouse", "pagespeed", "chained", "none")
        assert analysis["resource_source"] in ("playwright", "lightweight", "none")


# ===========================================================================
# 4. Application wiring
# ===========================================================================
@pytest.fixture()
def analyzer_app(tmp_path, monkeypatch):
    from site_analyzer.app import SiteAnalyzerApp

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    config = {
        "app": {"data_dir": str(tmp_path / "data"), "report_dir": str(tmp_path / "data" / "reports")},
        "database": {"url": "sqlite:///:memory:"},
        "analysis": {"performance_source": "none", "resource_source": "lightweight", "cookie_flags": "attribute"},
        "scheduler": {"timezone": "UTC"},
        "llm": {"model": "gpt-4o-mini"},
    }
    config_path = tmp_path / "settings.yaml"
    config_path.write_text(yaml.safe_dump(config), encoding="utf-8")

    analyzer = SiteAnalyzerApp(config_path=str(config_path), env_path=str(tmp_path / ".env"))
    analyzer.initialize()
    yield analyzer
    analyzer.shutdown()


class TestSiteAnalyzerApp:

    def test_initialize_creates_directories(self, analyzer_app, tmp_path):
        assert (tmp_path / "data" / "reports").is_dir()
        assert analyzer_app.database.url == "sqlite:///:memory:"

    def test_components_are_shared(self, analyzer_app):
        assert analyzer_app.storage() is analyzer_app.storage()
        assert analyzer_app.schedule_repository() is analyzer_app.schedule_repository()

    def test_pipeline_from_config(self, analyzer_app):
        from site_analyzer.integrations.resource_probe import LightweightResourceSource

        pipeline = analyzer_app.pipeline()
        assert pipeline._performance_source is None
        assert isinstance(pipeline._resource_source, LightweightResourceSource)
        assert pipeline._cookie_attribute_aware is True

    def test_get_status(self, analyzer_app):
        status = analyzer_app.get_status()
        assert status["database"]["status"] == "ok"
        assert status["scheduler"]["status"] == "warning"
        assert status["llm"]["status"] == "warning"
        assert status["config"]["details"] == "5 sections loaded"

    def test_missing_config_uses_defaults(self, tmp_path, monkeypatch):
        from site_analyzer.app import SiteAnalyzerApp

        monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
        analyzer = SiteAnalyzerApp(config_path=str(tmp_path / "missing.yaml"), env_path=str(tmp_path / ".env"))
        analyzer.initialize()
        try:
            assert analyzer.config == {}
            assert analyzer.get_status()["config"]["status"] == "warning"
        finally:
            analyzer.shutdown()

    def test_requires_initialize(self, tmp_path):
        from site_analyzer.app import SiteAnalyzerApp

        with pytest.raises(RuntimeError):
            SiteAnalyzerApp(config_path=str(tmp_path / "x.yaml")).pipeline()


# ===========================================================================
# 5. Probe adapters
# ===========================================================================
class TestProbeAdapters:

    @pytest.mark.asyncio
    async def test_lightweight_resource_source(self, fetch_result):
        from site_analyzer.integrations.resource_probe import LightweightResourceSource

        result = await LightweightResourceSource().probe("https://example.com", fetch_result)
        assert isinstance(result, ResourceProbeResult)
        types = [entry.resource_type for entry in result.entries]
        assert types.count("script") == 1
        assert types.count("stylesheet") == 1
        assert types.count("image") == 3
        assert result.entries[0].url == "https://example.com/"
        assert result.document_size == len(fetch_result.body.encode("utf-8"))
        assert result.load_event_end == fetch_result.elapsed_ms

    @pytest.mark.asyncio
    async def test_lighthouse_unavailable_without_binary(self):
        from site_analyzer.integrations.lighthouse import LighthouseSource

        with patch("site_analyzer.integrations.lighthouse.shutil.which", return_value=None):
            with pytest.raises(PerformanceSourceUnavailable):
                await LighthouseSource().audit("https://example.com")

    @pytest.mark.asyncio
    async def test_chained_source_skips_unavailable(self, lighthouse_result):
        from site_analyzer.integrations.lighthouse import ChainedPerformanceSource

        first = MagicMock()
        first.name = "lighthouse"
        first.audit = AsyncMock(side_effect=PerformanceSourceUnavailable("no chrome"))
        second = MagicMock()
        second.name = "pagespeed"
        second.audit = AsyncMock(return_value=lighthouse_result)

        result = await ChainedPerformanceSource([first, second]).audit("https://example.com")
        assert result is lighthouse_result
        second.audit.assert_awaited_once_with("https://example.com")

    @pytest.mark.asyncio
    async def test_chained_source_all_unavailable(self):
        from site_analyzer.integrations.lighthouse import ChainedPerformanceSource

        source = MagicMock()
        source.name = "lighthouse"
        source.audit = AsyncMock(side_effect=PerformanceSourceUnavailable("no chrome"))
        with pytest.raises(PerformanceSourceUnavailable):
            await ChainedPerformanceSource([source]).audit("https://example.com")


# ===========================================================================
# 6. CLI smoke tests
# ===========================================================================
class TestCLI:
    """Smoke tests using typer's CliRunner."""

    @pytest.fixture()
    def runner(self):
        from typer.testing import CliRunner
        return CliRunner()

    def test_help(self, runner):
        from site_analyzer.cli import app

        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Site Analyzer" in result.output

    @pytest.mark.parametrize("command", [
        "analyze",
        "recommend",
        "history",
        "websites",
        "details",
        "schedule-add",
        "schedule-list",
        "schedule-remove",
        "schedule-run",
        "status",
    ])
    def test_command_help(self, runner, command):
        from site_analyzer.cli import app

        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0, command + " --help failed: " + result.output


# ===========================================================================
# 7. Syntax validation
# ===========================================================================
def _python_files():
    return sorted((PROJECT_ROOT / "site_analyzer").rglob("*.py"))


class TestSyntax:

    @pytest.mark.parametrize("path", _python_files(), ids=lambda p: str(p.relative_to(PROJECT_ROOT)))
    def test_file_parses(self, path):
        source = path.read_text(encoding="utf-8")
        ast.parse(source, filename=str(path))
