"""Main application orchestrator for Site Analyzer."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from site_analyzer.database import Database

logger = logging.getLogger(__name__)


class SiteAnalyzerApp:
    """Central application class that wires the analysis pipeline to its
    probes, the history database and the report scheduler.

    Usage::

        app = SiteAnalyzerApp()
        app.initialize()
        result = await app.pipeline().analyze("https://example.com")
        status = app.get_status()
    """

    def __init__(
        self,
        config_path: str = "config/settings.yaml",
        env_path: str = ".env",
    ):
        self._config_path = config_path
        self._env_path = env_path
        self.config: dict[str, Any] = {}
        self._initialized = False
        self._database: Optional[Database] = None
        self._storage = None
        self._schedules = None
        self._scheduler = None
        self._llm_client = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load environment and configuration, then open the database."""
        if self._initialized:
            return

        env_file = Path(self._env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", self._env_path)

        self.config = self._load_config()

        for dir_key in ("data_dir", "report_dir"):
            dir_path = self.config.get("app", {}).get(dir_key, "")
            if dir_path:
                Path(dir_path).mkdir(parents=True, exist_ok=True)

        db_cfg = self.config.get("database", {})
        self._database = Database(
            database_url=db_cfg.get("url") or None,
            echo=db_cfg.get("echo", False),
        )
        self._database.create_all()

        self._initialized = True
        logger.info("SiteAnalyzerApp initialised.")

    def shutdown(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop(wait=False)
        if self._database is not None:
            self._database.dispose()
        self._initialized = False

    def _load_config(self) -> dict[str, Any]:
        """Load the YAML configuration file."""
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s, using defaults.", self._config_path)
            return {}
        with open(config_file, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Call initialize() before using the application.")

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def database(self) -> Database:
        self._ensure_initialized()
        return self._database

    def storage(self):
        """Return the shared history store."""
        self._ensure_initialized()
        if self._storage is None:
            from site_analyzer.modules.history.storage import SqlAlchemyStorage
            self._storage = SqlAlchemyStorage(self._database)
        return self._storage

    def schedule_repository(self):
        self._ensure_initialized()
        if self._schedules is None:
            from site_analyzer.modules.history.schedules import ScheduleRepository
            self._schedules = ScheduleRepository(self._database)
        return self._schedules

    def _performance_source(self, analysis_cfg: dict[str, Any]):
        """Build the configured performance source: lighthouse, pagespeed, chained or none."""
        from site_analyzer.integrations.lighthouse import (
            ChainedPerformanceSource,
            LighthouseSource,
            PageSpeedSource,
        )
        choice = str(analysis_cfg.get("performance_source", "chained")).lower()
        lh_cfg = analysis_cfg.get("lighthouse", {})
        ps_cfg = analysis_cfg.get("pagespeed", {})

        def _lighthouse():
            return LighthouseSource(
                binary=lh_cfg.get("binary", "lighthouse"),
                chrome_flags=lh_cfg.get("chrome_flags"),
                timeout=lh_cfg.get("timeout", 90),
            )

        def _pagespeed():
            return PageSpeedSource(
                api_key=os.getenv("PAGESPEED_API_KEY", ""),
                strategy=ps_cfg.get("strategy", "mobile"),
                timeout=ps_cfg.get("timeout", 120),
                max_retries=ps_cfg.get("max_retries", 3),
            )

        if choice == "none":
            return None
        if choice == "lighthouse":
            return _lighthouse()
        if choice == "pagespeed":
            return _pagespeed()
        if choice != "chained":
            logger.warning("Unknown performance source %r, using chained.", choice)
        return ChainedPerformanceSource([_lighthouse(), _pagespeed()])

    def _resource_source(self, analysis_cfg: dict[str, Any]):
        from site_analyzer.integrations.resource_probe import (
            LightweightResourceSource,
            PlaywrightResourceSource,
        )
        choice = str(analysis_cfg.get("resource_source", "lightweight")).lower()
        if choice == "none":
            return None
        if choice == "playwright":
            pw_cfg = analysis_cfg.get("playwright", {})
            return PlaywrightResourceSource(
                headless=pw_cfg.get("headless", True),
                timeout=pw_cfg.get("timeout_ms", 30000),
            )
        if choice != "lightweight":
            logger.warning("Unknown resource source %r, using lightweight.", choice)
        return LightweightResourceSource()

    def pipeline(self):
        """Build an analysis pipeline from the ``analysis`` config section."""
        self._ensure_initialized()
        from site_analyzer.integrations.page_fetcher import DEFAULT_USER_AGENT, AiohttpPageFetcher
        from site_analyzer.modules.analysis.pipeline import AnalysisPipeline

        analysis_cfg = self.config.get("analysis", {})
        fetcher = AiohttpPageFetcher(
            timeout=analysis_cfg.get("fetch_timeout", 15),
            user_agent=analysis_cfg.get("user_agent", DEFAULT_USER_AGENT),
        )
        cookie_mode = str(analysis_cfg.get("cookie_flags", "substring")).lower()
        return AnalysisPipeline(
            fetcher=fetcher,
            performance_source=self._performance_source(analysis_cfg),
            resource_source=self._resource_source(analysis_cfg),
            cookie_attribute_aware=cookie_mode == "attribute",
        )

    def scheduler(self, deliver=None):
        """Return the report scheduler, creating it on first use."""
        self._ensure_initialized()
        if self._scheduler is None:
            from site_analyzer.scheduler import ReportScheduler
            sched_cfg = self.config.get("scheduler", {})
            self._scheduler = ReportScheduler(
                repository=self.schedule_repository(),
                pipeline=self.pipeline(),
                storage=self.storage(),
                deliver=deliver,
                timezone=sched_cfg.get("timezone", "UTC"),
                max_workers=sched_cfg.get("max_concurrent_jobs", 3),
            )
        return self._scheduler

    def llm_client(self):
        """Lazy-initialise and return the LLM client."""
        if self._llm_client is None:
            from site_analyzer.integrations.llm_client import LLMClient
            llm_cfg = self.config.get("llm", {})
            cache_cfg = llm_cfg.get("cache", {})
            self._llm_client = LLMClient(
                model=llm_cfg.get("model", "gpt-4o-mini"),
                max_tokens=llm_cfg.get("max_tokens", 800),
                temperature=llm_cfg.get("temperature", 0.7),
                timeout=llm_cfg.get("timeout", 60),
                requests_per_minute=llm_cfg.get("requests_per_minute", 60),
                cache_enabled=cache_cfg.get("enabled", True),
                cache_ttl_hours=cache_cfg.get("ttl_hours", 24),
            )
        return self._llm_client

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict[str, dict[str, Any]]:
        """Return health status of all major components."""
        self._ensure_initialized()
        status: dict[str, dict[str, Any]] = {}

        try:
            from sqlalchemy import text
            with self._database.session() as session:
                tables = session.execute(
                    text("SELECT count(*) FROM sqlite_master WHERE type='table'")
                ).scalar()
            status["database"] = {"status": "ok", "details": f"{tables} tables"}
        except Exception as exc:
            status["database"] = {"status": "error", "details": str(exc)}

        if self._scheduler is not None:
            jobs = self._scheduler.list_jobs()
            running = "running" if self._scheduler.is_running else "stopped"
            status["scheduler"] = {"status": "ok", "details": f"{running}, {len(jobs)} jobs"}
        else:
            active = len(self.schedule_repository().list_active_schedules())
            status["scheduler"] = {"status": "warning", "details": f"not started, {active} active schedules"}

        analysis_cfg = self.config.get("analysis", {})
        status["analysis"] = {
            "status": "ok",
            "details": (
                f"performance: {analysis_cfg.get('performance_source', 'chained')}, "
                f"resources: {analysis_cfg.get('resource_source', 'lightweight')}"
            ),
        }

        openai_configured = bool(os.getenv("OPENAI_API_KEY"))
        status["llm"] = {
            "status": "ok" if openai_configured else "warning",
            "details": "OpenAI configured" if openai_configured else "OPENAI_API_KEY not set",
        }

        status["config"] = {
            "status": "ok" if self.config else "warning",
            "details": f"{len(self.config)} sections loaded" if self.config else "no config",
        }
        return status
