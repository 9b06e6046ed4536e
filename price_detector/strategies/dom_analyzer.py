"""Run the structural strategies against one element."""

import time
from typing import List, Optional

import structlog

from ..models import AnalysisResult, ExtractionSettings, PriceCandidate
from ..pattern_builder import PatternBuilder
from ..utils.html_utils import is_element
from ._base import dedupe_candidates, sort_candidates
from .attribute import extract_from_attributes
from .contextual import extract_contextual
from .nested_currency import extract_nested_currency
from .split_component import extract_split_components
from .text_content import extract_from_text_content

logger = structlog.get_logger(__name__, component="dom_analyzer")


def analyze_element(
    node,
    settings: Optional[ExtractionSettings] = None,
    builder: Optional[PatternBuilder] = None,
) -> AnalysisResult:
    """
    Extract prices from an element with every structural strategy.

    Attribute, split-component, nested-currency and contextual extraction
    run first; plain text content is only consulted when they found nothing.

    Args:
        node: Element to analyze
        settings: Caller settings (allowMultipleResults, maxDepth, ...)
        builder: PatternBuilder to use

    Returns:
        AnalysisResult with the best price (or all prices when
        allowMultipleResults is set) and analysis metadata
    """
    settings = ExtractionSettings.coerce(settings)
    started = time.perf_counter()
    metadata = {
        "strategies_attempted": [],
        "extraction_time_ms": 0.0,
        "element_type": getattr(node, "name", None),
        "has_children": False,
        "error": None,
    }

    if not is_element(node):
        metadata["error"] = "Invalid element provided"
        return AnalysisResult(prices=[], metadata=metadata)

    metadata["has_children"] = node.find(True) is not None
    caller_format = settings.format_descriptor()

    steps = [
        ("attribute", lambda: extract_from_attributes(node, caller_format, builder)),
        ("splitComponent", lambda: extract_split_components(
            node, max_depth=settings.max_depth + 1, max_fragments=settings.max_fragments, builder=builder,
        )),
        ("nestedCurrency", lambda: extract_nested_currency(node, max_depth=settings.max_depth + 1, builder=builder)),
        ("contextual", lambda: extract_contextual(node, builder)),
    ]

    prices: List[PriceCandidate] = []
    for name, step in steps:
        metadata["strategies_attempted"].append(name)
        prices.extend(step())

    if not prices:
        metadata["strategies_attempted"].append("textContent")
        prices.extend(extract_from_text_content(node, caller_format, builder))

    prices = sort_candidates(dedupe_candidates(prices))
    if not settings.allow_multiple_results:
        prices = prices[:1]

    metadata["extraction_time_ms"] = round((time.perf_counter() - started) * 1000, 3)
    logger.debug(
        "element_analyzed",
        element=metadata["element_type"],
        prices=len(prices),
        strategies=metadata["strategies_attempted"],
    )
    return AnalysisResult(prices=prices, metadata=metadata)
