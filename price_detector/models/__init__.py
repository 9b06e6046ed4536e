"""Data models for price candidates, element context, settings and results."""

from .candidate import PriceCandidate, StrategyTag
from .context import AttributeSummary, ElementContext, Hierarchy, PriceIndicators, Semantics
from .result import AnalysisResult, ExtractionResult, TraceEntry
from .settings import ExtractionSettings

__all__ = [
    "PriceCandidate",
    "StrategyTag",
    "ElementContext",
    "PriceIndicators",
    "Hierarchy",
    "AttributeSummary",
    "Semantics",
    "AnalysisResult",
    "ExtractionResult",
    "TraceEntry",
    "ExtractionSettings",
]
