"""Reporting module: text and JSON rendering of analysis reports."""

from site_analyzer.modules.reporting.report_renderer import ReportRenderer

__all__ = ["ReportRenderer"]
