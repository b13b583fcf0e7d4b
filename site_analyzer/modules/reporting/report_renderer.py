"""
report_renderer.py - Website analysis report rendering

Renders a finished :class:`AnalysisReport` as a German plain-text report
(full or focused on SEO, performance or security) or as JSON. A section
that failed renders as ``Fehler: <message>`` in place of its content.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from site_analyzer.modules.analysis.report import (
    AnalysisReport,
    Category,
    DomainError,
    Recommendation,
    ResourceStats,
)
from site_analyzer.utils.validators import REPORT_TYPES

logger = logging.getLogger(__name__)


def _verdict(ok: bool) -> str:
    return "(gut)" if ok else "(nicht optimal)"


def _presence(found: bool) -> str:
    return "Vorhanden" if found else "Fehlt"


def _error_lines(section: DomainError) -> list[str]:
    return [f"Fehler: {section.error}"]


class ReportRenderer:
    """Renders analysis reports into text and JSON documents."""

    TITLES = {
        "full": "Website-Analysebericht",
        "seo": "SEO-Analyse-Bericht",
        "performance": "Performance-Analyse-Bericht",
        "security": "Sicherheits-Analyse-Bericht",
    }

    RECOMMENDATION_SECTIONS = {
        "seo": {"seo", "content"},
        "performance": {"performance"},
        "security": {"security"},
    }

    # AI suggestions carry no section; place them by category instead
    CATEGORY_SECTIONS = {
        Category.SEO: "seo",
        Category.CONTENT: "content",
        Category.MOBILE: "content",
        Category.PERFORMANCE: "performance",
        Category.SECURITY: "security",
    }

    def __init__(self, date_format: str = "%d.%m.%Y, %H:%M:%S"):
        self._date_format = date_format

    # ------------------------------------------------------------------
    # Public rendering methods
    # ------------------------------------------------------------------

    def render_text(self, report: AnalysisReport, report_type: str = "full") -> str:
        """Render *report* as numbered plain-text sections.

        Args:
            report: The finished analysis report.
            report_type: One of ``full``, ``seo``, ``performance``, ``security``.

        Returns:
            The report text.
        """
        if report_type not in REPORT_TYPES:
            raise ValueError(f"Unknown report type: {report_type!r}")
        logger.info("Rendering %s text report for %s", report_type, report.url)

        builders: list[tuple[str, Callable[[AnalysisReport], list[str]]]] = [
            ("Zusammenfassung", self._summary),
        ]
        if report_type in ("full", "seo"):
            builders.append(("SEO-Analyse", self._seo))
        if report_type in ("full", "performance"):
            builders.append(("Performance-Analyse", self._performance))
        if report_type in ("full", "seo"):
            builders.append(("Inhaltsanalyse", self._content))
        if report_type in ("full", "security"):
            builders.append(("Sicherheitsanalyse", self._security))
        if report_type in ("full", "performance"):
            builders.append(("Website-Statistiken", self._statistics))

        lines = [
            f"{self.TITLES[report_type]}: {report.url}",
            f"Erstellt am: {self._format_date(report.timestamp)}",
            "",
        ]
        for number, (title, build) in enumerate(builders, start=1):
            lines.append(f"{number}. {title}")
            lines.append("-" * (len(title) + len(str(number)) + 2))
            lines.extend(build(report))
            lines.append("")

        lines.append("Empfehlungen")
        lines.append("------------")
        lines.extend(self._recommendations(report, report_type))
        return "\n".join(lines).rstrip() + "\n"

    def render_json(self, report: AnalysisReport, indent: int = 2) -> str:
        """Serialise the full report document."""
        return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False)

    def write_report(
        self,
        report: AnalysisReport,
        output_dir: str,
        report_type: str = "full",
        fmt: str = "txt",
    ) -> Path:
        """Render and write a report file; returns its path."""
        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        slug = re.sub(r"[^a-z0-9]", "-", report.url, flags=re.IGNORECASE)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = directory / f"{slug}_{report_type}_{stamp}.{fmt}"
        content = self.render_json(report) if fmt == "json" else self.render_text(report, report_type)
        path.write_text(content, encoding="utf-8")
        logger.info("Report written to %s", path)
        return path

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _format_date(self, timestamp: str) -> str:
        try:
            return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).strftime(self._date_format)
        except ValueError:
            return timestamp

    def _summary(self, report: AnalysisReport) -> list[str]:
        scores = report.scores
        lines = [
            "Gesamtbewertung:",
            f"  - SEO: {scores.seo}/100",
            f"  - Performance: {scores.performance}/100",
            f"  - Sicherheit: {scores.security}/100",
            f"  - Cookies: {scores.cookies}/100",
            f"Statuscode: {report.status_code}",
            f"Ladezeit: {report.load_time}",
            "",
            "Wichtigste Erkenntnisse:",
        ]
        lines.extend(f"  - {insight.text}" for insight in report.insights)
        return lines

    def _seo(self, report: AnalysisReport) -> list[str]:
        seo = report.seo
        if isinstance(seo, DomainError):
            return _error_lines(seo)
        meta, headings, images, links = seo.meta, seo.headings, seo.images, seo.links
        return [
            "Meta-Informationen:",
            f"  Titel: {meta.title}",
            f"  Titellänge: {meta.title_length} Zeichen {_verdict(30 <= meta.title_length <= 60)}",
            f"  Beschreibung: {meta.description}",
            f"  Beschreibungslänge: {meta.description_length} Zeichen "
            f"{_verdict(50 <= meta.description_length <= 160)}",
            "Überschriften:",
            f"  - H1: {headings.h1} {_verdict(headings.h1 == 1)}",
            f"  - H2: {headings.h2}",
            f"  - H3: {headings.h3}",
            f"  - H4: {headings.h4}",
            f"  - H5: {headings.h5}",
            f"  - H6: {headings.h6}",
            "Bilder:",
            f"  - Gesamtzahl: {images.total}",
            f"  - Mit Alt-Text: {images.with_alt}",
            f"  - Ohne Alt-Text: {images.without_alt}",
            f"  - Alt-Text-Abdeckung: {images.alt_percentage}%",
            "Links:",
            f"  - Interne Links: {links.internal}",
            f"  - Externe Links: {links.external}",
            f"  - Gesamtzahl: {links.total}",
        ]

    def _performance(self, report: AnalysisReport) -> list[str]:
        perf = report.performance
        if isinstance(perf, DomainError):
            return _error_lines(perf)
        m = perf.metrics
        lines = [
            "Performance-Metriken:",
            f"  - Gesamt-Score: {perf.score}/100",
            f"  - First Contentful Paint: {m.fcp}",
            f"  - Largest Contentful Paint: {m.lcp}",
            f"  - Time to Interactive: {m.tti}",
            f"  - Total Blocking Time: {m.tbt}",
            f"  - Cumulative Layout Shift: {m.cls}",
            f"  - Speed Index: {m.speed_index}",
        ]
        if perf.opportunities:
            lines.append("Optimierungsmöglichkeiten:")
            for opp in perf.opportunities:
                lines.append(f"  - {opp.name} (Einsparung: {opp.impact})")
        return lines

    def _content(self, report: AnalysisReport) -> list[str]:
        content = report.content
        if isinstance(content, DomainError):
            return _error_lines(content)
        stats = content.text_stats
        return [
            "Textstatistiken:",
            f"  - Wortanzahl: {stats.word_count}",
            f"  - Zeichenanzahl: {stats.character_count}",
            f"  - Durchschnittliche Wortlänge: {stats.average_word_length} Zeichen",
            f"  - Absätze: {stats.paragraph_count}",
            "Medien:",
            f"  - Bilder: {content.images}",
            f"  - Videos: {content.videos}",
            "Seitenstruktur:",
            f"  - Absätze: {content.paragraphs}",
            f"  - Listen: {content.lists}",
            f"  - Tabellen: {content.tables}",
            "Responsive Design:",
            f"  - Viewport-Meta-Tag: {_presence(content.responsive.viewport_meta)}",
            f"  - Media Queries: {_presence(content.responsive.media_queries)}",
        ]

    def _security(self, report: AnalysisReport) -> list[str]:
        security = report.security
        if isinstance(security, DomainError):
            return _error_lines(security)
        headers = security.security_headers
        cookies = security.cookies
        lines = [
            "HTTPS:",
            f"  - Aktiviert: {'Ja' if security.https.enabled else 'Nein'}",
            f"  - Bewertung: {security.https.label}",
            "Sicherheits-Header:",
            f"  Implementiert: {headers.implemented} von {headers.implemented + headers.missing}",
            f"  Score: {headers.score}%",
        ]
        for name, value in headers.headers.items():
            lines.append(f"  {name}: {value or 'Nicht implementiert'}")
        lines.extend([
            "Cookies:",
            f"  - Gesamtzahl: {cookies.total}",
            f"  - Secure: {cookies.secure}",
            f"  - HttpOnly: {cookies.http_only}",
            f"  - SameSite: {cookies.same_site}",
            f"  - Score: {cookies.score}%",
        ])
        return lines

    def _statistics(self, report: AnalysisReport) -> list[str]:
        stats = report.statistics
        lines = [
            f"  - HTML-Größe: {stats.html_size}",
            f"  - DOM-Elemente: {stats.dom_elements}",
            f"  - Ladezeit: {report.load_time}",
        ]
        resources = stats.resources
        if isinstance(resources, DomainError):
            lines.append(f"Fehler: {resources.error}")
            return lines
        lines.extend(self._resource_lines(resources))
        return lines

    @staticmethod
    def _resource_lines(resources: ResourceStats) -> list[str]:
        by_type = resources.by_type
        script = by_type.get("script")
        stylesheet = by_type.get("stylesheet")
        return [
            f"  - JavaScript-Dateien: {script.count if script else 0}",
            f"  - CSS-Dateien: {stylesheet.count if stylesheet else 0}",
            f"  - Ressourcen gesamt: {resources.total_resources} ({resources.total_size})",
        ]

    def _recommendations(self, report: AnalysisReport, report_type: str) -> list[str]:
        allowed: Optional[set] = self.RECOMMENDATION_SECTIONS.get(report_type)
        selected: list[Recommendation] = [
            rec for rec in report.recommendations
            if allowed is None or (rec.section or self.CATEGORY_SECTIONS.get(rec.category)) in allowed
        ]
        if not selected:
            return ["  - Keine spezifischen Empfehlungen notwendig."]
        lines = []
        for rec in selected:
            lines.append(f"  - [{rec.priority.value}] {rec.text}")
            lines.extend(f"      - {detail}" for detail in rec.details)
        return lines
