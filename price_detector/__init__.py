"""
price-detector: multi-strategy price detection for e-commerce markup.

Example:
    >>> from price_detector import extract_price_sync
    >>> candidate = extract_price_sync("Under $20")
    >>> candidate.value, candidate.currency, candidate.context
    ('20', '$', 'under')
"""

from .exceptions import DelimiterError, HandlerRegistrationError, PriceDetectorError
from .formats import FormatDescriptor, FormatResolver, infer_format, resolve_format
from .models import (
    AnalysisResult,
    ElementContext,
    ExtractionResult,
    ExtractionSettings,
    PriceCandidate,
    StrategyTag,
    TraceEntry,
)
from .pattern_builder import (
    PatternBuilder,
    PatternCache,
    build_match_pattern,
    build_reverse_match_pattern,
)
from .pipeline import (
    ExtractionPipeline,
    classify_input,
    create_pipeline,
    extract_price,
    extract_price_sync,
)
from .site_handlers import SiteHandlerRegistry, create_default_registry
from .strategies import analyze_element, get_element_context
from .text_patterns import normalize_price, select_best_pattern
from .universal import extract_prices, process_with_universal_extractor

__version__ = "0.1.0"

__all__ = [
    "PriceDetectorError",
    "DelimiterError",
    "HandlerRegistrationError",
    "FormatDescriptor",
    "FormatResolver",
    "resolve_format",
    "infer_format",
    "PatternBuilder",
    "PatternCache",
    "build_match_pattern",
    "build_reverse_match_pattern",
    "PriceCandidate",
    "StrategyTag",
    "ElementContext",
    "AnalysisResult",
    "ExtractionResult",
    "ExtractionSettings",
    "TraceEntry",
    "analyze_element",
    "get_element_context",
    "normalize_price",
    "select_best_pattern",
    "SiteHandlerRegistry",
    "create_default_registry",
    "extract_prices",
    "process_with_universal_extractor",
    "ExtractionPipeline",
    "classify_input",
    "create_pipeline",
    "extract_price",
    "extract_price_sync",
]
