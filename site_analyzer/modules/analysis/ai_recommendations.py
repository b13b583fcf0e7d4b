"""LLM-generated improvement suggestions for a finished report."""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from site_analyzer.modules.analysis.insights import detect_category, determine_priority
from site_analyzer.modules.analysis.report import AnalysisReport, Recommendation

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "Du bist ein erfahrener SEO- und Web-Performance-Experte."

GENERATION_FAILED = "Fehler bei der Generierung von KI-Empfehlungen"
MANUAL_REVIEW = (
    "Die automatischen Empfehlungen konnten nicht generiert werden. "
    "Bitte überprüfen Sie die Analyseergebnisse manuell."
)

_SECTION_SPLIT = re.compile(r"\d+\.\s+")
_DESCRIPTION = re.compile(r"Beschreibung:\s*(.+?)(?=Vorteile:|$)", re.DOTALL)
_BENEFITS = re.compile(r"Vorteile:\s*(.+?)$", re.DOTALL)


@dataclass(frozen=True)
class AiRecommendations:
    recommendations: tuple[Recommendation, ...] = ()
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "recommendations": [r.to_dict() for r in self.recommendations],
            "generatedAt": self.generated_at,
        }
        if self.error:
            data["error"] = self.error
        return data


def _value(section: Any, path: str, default: str = "N/A") -> Any:
    """Walk a dotted attribute path, returning *default* for failed or falsy values."""
    current = section
    for part in path.split("."):
        current = getattr(current, part, None)
        if current is None:
            return default
    return current or default


def build_prompt(report: AnalysisReport) -> str:
    """Describe the report's key figures and ask for five structured suggestions."""
    https = _value(report.security, "https.enabled", default=False)
    return f"""Analysiere die folgenden Website-Daten und gib 5 spezifische, umsetzbare Verbesserungsvorschläge.

URL: {report.url}

SEO-DATEN:
- Titel: {_value(report.seo, "meta.title", "Nicht verfügbar")}
- Titellänge: {_value(report.seo, "meta.title_length")} Zeichen
- Meta-Beschreibung: {_value(report.seo, "meta.description", "Nicht verfügbar")}
- Meta-Beschreibungslänge: {_value(report.seo, "meta.description_length")} Zeichen
- H1-Tags: {_value(report.seo, "headings.h1")}
- Bilder ohne Alt-Text: {_value(report.seo, "images.without_alt")} von {_value(report.seo, "images.total")}

PERFORMANCE-DATEN:
- Performance-Score: {_value(report.performance, "score")}/100
- First Contentful Paint: {_value(report.performance, "metrics.fcp")}
- Largest Contentful Paint: {_value(report.performance, "metrics.lcp")}
- Time to Interactive: {_value(report.performance, "metrics.tti")}
- Ladezeit: {report.load_time}

SICHERHEITS-DATEN:
- HTTPS: {"Aktiviert" if https else "Nicht aktiviert"}
- Security-Headers-Score: {_value(report.security, "security_headers.score")}/100

INHALTS-DATEN:
- Wortanzahl: {_value(report.content, "text_stats.word_count")}
- Anzahl Absätze: {_value(report.content, "paragraphs")}

Gib 5 konkrete, priorisierte Empfehlungen zurück, die den größten Einfluss auf SEO, Performance und Nutzererfahrung haben werden.
Stelle für jede Empfehlung einen klaren Titel, eine Beschreibung und die erwarteten Vorteile bereit.
Formatiere die Antwort strukturiert im Format:

1. [TITEL DER EMPFEHLUNG]
Beschreibung: [DETAILLIERTE BESCHREIBUNG]
Vorteile: [ERWARTETE VORTEILE]
"""


def parse_recommendations(text: str) -> tuple[Recommendation, ...]:
    """Split numbered free text into classified recommendations.

    Each ``N.`` section contributes its first line as title plus the
    ``Beschreibung:`` and ``Vorteile:`` blocks. Category is detected from
    title and description, priority from the description.
    """
    found = []
    for section in _SECTION_SPLIT.split(text):
        if not section.strip():
            continue
        first_line, newline, _ = section.partition("\n")
        title = first_line.strip() if newline and first_line.strip() else "Empfehlung"
        match = _DESCRIPTION.search(section)
        description = match.group(1).strip() if match else ""
        match = _BENEFITS.search(section)
        benefits = match.group(1).strip() if match else ""
        found.append(
            Recommendation(
                text=title,
                category=detect_category(f"{title} {description}"),
                priority=determine_priority(description),
                description=description,
                benefits=benefits,
            )
        )
    return tuple(found)


async def generate_ai_recommendations(
    report: AnalysisReport,
    llm_client: Optional[Any],
    max_tokens: int = 800,
) -> AiRecommendations:
    """Ask the LLM for suggestions; failures yield a single manual-review entry."""
    if llm_client is None:
        return AiRecommendations(
            recommendations=(Recommendation(text=MANUAL_REVIEW),),
            error=GENERATION_FAILED,
        )
    try:
        text = await llm_client.generate_text(
            build_prompt(report), system_prompt=SYSTEM_PROMPT, max_tokens=max_tokens
        )
    except Exception as exc:
        logger.error("AI recommendations for %s failed: %s", report.url, exc)
        return AiRecommendations(
            recommendations=(Recommendation(text=MANUAL_REVIEW),),
            error=GENERATION_FAILED,
        )
    return AiRecommendations(recommendations=parse_recommendations(text))
