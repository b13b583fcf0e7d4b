"""Rule-based insights and recommendations for an assembled report.

Rules run in a fixed order (SEO, performance, security, content). Each rule
adds at most one message, every violated rule is reported, and messages keep
declaration order. Sections that failed are skipped. When nothing fires a
single positive fallback message is returned.
"""

import re
from typing import Any

from site_analyzer.modules.analysis.report import (
    Category,
    Insight,
    Priority,
    Recommendation,
    is_error,
)
from site_analyzer.modules.analysis.scoring import (
    DESCRIPTION_LENGTH_RANGE,
    TITLE_LENGTH_RANGE,
    numeric_score,
)

MIN_TITLE_LENGTH = 10
MIN_DESCRIPTION_LENGTH = 50
SEVERE_PERFORMANCE = 50
WEAK_PERFORMANCE = 80
RECOMMEND_PERFORMANCE = 70
WEAK_HEADER_SCORE = 50
THIN_CONTENT_WORDS = 300

NO_ISSUES_INSIGHT = "Keine kritischen Probleme gefunden. Die Website ist gut optimiert."
NO_RECOMMENDATIONS = "Keine spezifischen Empfehlungen notwendig."

PERFORMANCE_STEPS = (
    "Optimiere Bilder (Komprimierung, richtige Größe)",
    "Minimiere CSS und JavaScript",
    "Nutze Browser-Caching",
    "Reduziere Server-Antwortzeiten",
)

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

# Checked in this order; the first match wins. Plain substring matches, so
# "alt" also hits "Inhalt" and "Textinhalt".
_CATEGORY_PATTERNS = [
    (Category.SEO, re.compile(r"meta|title|description|keyword|h1|h2|h3|alt|headings", re.IGNORECASE)),
    (Category.PERFORMANCE, re.compile(r"speed|performance|loading|fcp|lcp|tti|cls|cache", re.IGNORECASE)),
    (Category.CONTENT, re.compile(r"content|text|word|paragraph|struktur", re.IGNORECASE)),
    (Category.SECURITY, re.compile(r"security|https|header|ssl|tls", re.IGNORECASE)),
    (Category.MOBILE, re.compile(r"mobile|responsive|viewport", re.IGNORECASE)),
]

_HIGH_PRIORITY = re.compile(r"kritisch|sofort|dringend|schwerwiegend|umgehend", re.IGNORECASE)
_MEDIUM_PRIORITY = re.compile(r"wichtig|sollte|empfehlenswert|relevant", re.IGNORECASE)


def detect_category(text: str) -> Category:
    """Classify *text* by keyword, falling back to :attr:`Category.GENERAL`."""
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(text):
            return category
    return Category.GENERAL


def determine_priority(text: str) -> Priority:
    if _HIGH_PRIORITY.search(text):
        return Priority.HIGH
    if _MEDIUM_PRIORITY.search(text):
        return Priority.MEDIUM
    return Priority.NORMAL


def make_insight(text: str) -> Insight:
    return Insight(text=text, category=detect_category(text), priority=determine_priority(text))


def make_recommendation(text: str, details: tuple[str, ...] = (), section: str = "") -> Recommendation:
    return Recommendation(
        text=text,
        category=detect_category(text),
        priority=determine_priority(text),
        details=details,
        section=section,
    )


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

def _seo_insights(seo) -> list[str]:
    found = []
    if not seo.meta.title or seo.meta.title_length < MIN_TITLE_LENGTH:
        found.append("Der Seitentitel fehlt oder ist zu kurz für SEO.")
    if not seo.meta.description or seo.meta.description_length < MIN_DESCRIPTION_LENGTH:
        found.append("Die Meta-Beschreibung fehlt oder ist zu kurz für SEO.")
    if seo.headings.h1 != 1:
        found.append(f"Die Seite hat {seo.headings.h1} H1-Elemente (optimal: genau 1).")
    if seo.images.without_alt > 0:
        found.append(f"{seo.images.without_alt} Bilder haben keine Alt-Attribute.")
    if seo.links.internal == 0 or seo.links.external == 0:
        found.append(
            "Der Seite fehlen interne oder externe Links "
            f"(intern: {seo.links.internal}, extern: {seo.links.external})."
        )
    return found


def _performance_insights(performance) -> list[str]:
    score = numeric_score(performance.score)
    if score is None:
        return []
    if score < SEVERE_PERFORMANCE:
        return ["Die Website hat erhebliche Performance-Probleme."]
    if score < WEAK_PERFORMANCE:
        return ["Die Website-Performance könnte verbessert werden."]
    return []


def _security_insights(security) -> list[str]:
    found = []
    if not security.https.enabled:
        found.append("Die Website verwendet kein HTTPS, was ein Sicherheitsrisiko darstellt.")
    if security.security_headers.score < WEAK_HEADER_SCORE:
        found.append("Wichtige Sicherheits-Header fehlen auf der Website.")
    return found


def _content_insights(content) -> list[str]:
    found = []
    words = content.text_stats.word_count
    if words < THIN_CONTENT_WORDS:
        found.append(f"Die Seite enthält nur {words} Wörter, der Inhalt ist sehr dünn.")
    if not content.responsive.viewport_meta:
        found.append("Kein Viewport-Tag gefunden, die Seite ist nicht für mobile Geräte optimiert.")
    return found


def generate_insights(report: Any) -> tuple[Insight, ...]:
    """Evaluate insight rules against the report's successful sections."""
    texts: list[str] = []
    if not is_error(report.seo):
        texts.extend(_seo_insights(report.seo))
    if not is_error(report.performance):
        texts.extend(_performance_insights(report.performance))
    if not is_error(report.security):
        texts.extend(_security_insights(report.security))
    if not is_error(report.content):
        texts.extend(_content_insights(report.content))

    if not texts:
        return (Insight(text=NO_ISSUES_INSIGHT),)
    return tuple(make_insight(text) for text in texts)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def _outside(value: int, bounds: tuple[int, int]) -> bool:
    return value < bounds[0] or value > bounds[1]


def _seo_recommendations(seo) -> list[Recommendation]:
    found = []
    if _outside(seo.meta.title_length, TITLE_LENGTH_RANGE):
        found.append(make_recommendation(
            "Optimiere den Seitentitel auf 30-60 Zeichen für bessere SEO-Ergebnisse.", section="seo"
        ))
    if _outside(seo.meta.description_length, DESCRIPTION_LENGTH_RANGE):
        found.append(make_recommendation("Passe die Meta-Beschreibung auf 50-160 Zeichen an.", section="seo"))
    if seo.headings.h1 != 1:
        found.append(make_recommendation("Verwende genau ein H1-Element pro Seite.", section="seo"))
    if seo.images.without_alt > 0:
        found.append(make_recommendation(
            f"Füge Alt-Attribute zu allen {seo.images.without_alt} Bildern ohne Alt-Text hinzu.", section="seo"
        ))
    if seo.links.internal == 0 or seo.links.external == 0:
        found.append(make_recommendation(
            "Ergänze sowohl interne Links als auch Links auf externe Quellen.", section="seo"
        ))
    return found


def _performance_recommendations(performance) -> list[Recommendation]:
    score = numeric_score(performance.score)
    if score is not None and score < RECOMMEND_PERFORMANCE:
        return [make_recommendation("Verbessere die Website-Performance:", PERFORMANCE_STEPS, "performance")]
    return []


def _security_recommendations(security) -> list[Recommendation]:
    found = []
    if not security.https.enabled:
        found.append(make_recommendation("Implementiere HTTPS für deine Website.", section="security"))
    missing = security.security_headers.missing_names
    if missing:
        found.append(make_recommendation(
            "Füge die fehlenden Sicherheits-Header hinzu:", tuple(missing), "security"
        ))
    if security.cookies.score < 100:
        found.append(make_recommendation(
            "Setze die Flags Secure, HttpOnly und SameSite für alle Cookies.", section="security"
        ))
    return found


def _content_recommendations(content) -> list[Recommendation]:
    found = []
    if content.text_stats.word_count < THIN_CONTENT_WORDS:
        found.append(make_recommendation(
            f"Erweitere den Textinhalt auf mindestens {THIN_CONTENT_WORDS} Wörter.", section="content"
        ))
    if not content.responsive.viewport_meta:
        found.append(make_recommendation(
            "Füge ein Viewport-Tag für responsive Design hinzu.", section="content"
        ))
    return found


def generate_recommendations(report: Any) -> tuple[Recommendation, ...]:
    """Evaluate recommendation rules against the report's successful sections."""
    found: list[Recommendation] = []
    if not is_error(report.seo):
        found.extend(_seo_recommendations(report.seo))
    if not is_error(report.performance):
        found.extend(_performance_recommendations(report.performance))
    if not is_error(report.security):
        found.extend(_security_recommendations(report.security))
    if not is_error(report.content):
        found.extend(_content_recommendations(report.content))

    if not found:
        return (Recommendation(text=NO_RECOMMENDATIONS),)
    return tuple(found)
