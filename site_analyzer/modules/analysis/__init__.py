"""Website analysis module: extraction, evaluation, scoring and insights."""

from site_analyzer.modules.analysis.pipeline import AnalysisPipeline
from site_analyzer.modules.analysis.report import AnalysisReport, AnalysisResult, DomainError

__all__ = ["AnalysisPipeline", "AnalysisReport", "AnalysisResult", "DomainError"]
