"""Page statistics: HTML size, DOM size and grouped network resources."""

from collections import defaultdict
from typing import Union

from site_analyzer.modules.analysis.probes import ResourceProbeResult
from site_analyzer.modules.analysis.report import (
    DomainError,
    ResourceStats,
    ResourceTypeStats,
    Statistics,
)
from site_analyzer.utils.helpers import format_bytes, format_duration_ms


def group_resources(probe: ResourceProbeResult) -> dict[str, ResourceTypeStats]:
    """Count resources and sum their byte sizes per resource type (``other`` when untyped)."""
    counts: dict[str, int] = defaultdict(int)
    sizes: dict[str, int] = defaultdict(int)
    for entry in probe.entries:
        key = entry.resource_type or "other"
        counts[key] += 1
        sizes[key] += max(entry.byte_size, 0)
    return {key: ResourceTypeStats(count=counts[key], size=sizes[key]) for key in counts}


def summarize_resources(probe: ResourceProbeResult) -> ResourceStats:
    total_size = sum(entry.byte_size for entry in probe.entries if entry.byte_size > 0)
    return ResourceStats(
        load_time=format_duration_ms(probe.load_event_end),
        dom_content_loaded=format_duration_ms(probe.dom_content_loaded),
        page_size=format_bytes(probe.document_size),
        total_size=format_bytes(total_size),
        total_resources=len(probe.entries),
        by_type=group_resources(probe),
    )


def build_statistics(
    html: str,
    dom_elements: int,
    probe: Union[ResourceProbeResult, DomainError],
) -> Statistics:
    """Combine HTML measurements with the resource probe outcome.

    HTML size and DOM element count are always present, even when the
    resource probe failed and its slot holds a :class:`DomainError`.
    """
    resources = probe if isinstance(probe, DomainError) else summarize_resources(probe)
    return Statistics(
        html_size=format_bytes(len(html)),
        dom_elements=dom_elements,
        resources=resources,
    )
