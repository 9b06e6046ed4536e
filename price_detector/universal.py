"""
Universal extractor.

Domain-agnostic structural extraction that works without any site handler
registration: every structural strategy runs against the node, results are
merged by (value, currency) and optionally filtered to one currency.
"""

from typing import Callable, List, Optional

import structlog

from .formats import currency_code_for, find_currency_markers
from .models import ExtractionSettings, PriceCandidate
from .pattern_builder import PatternBuilder
from .strategies import (
    contextual_candidates,
    dedupe_candidates,
    extract_contextual,
    extract_from_attributes,
    extract_from_text,
    extract_from_text_content,
    extract_nested_currency,
    extract_split_components,
    sort_candidates,
)
from .utils.html_utils import is_element, is_text_node

logger = structlog.get_logger(__name__, component="universal")


def filter_by_currency(candidates: List[PriceCandidate], currency: Optional[str]) -> List[PriceCandidate]:
    """
    Keep candidates in the given currency.

    Symbols and codes are compared by ISO code ("$" matches "USD").
    Candidates with an undetermined currency are kept.
    """
    if not currency:
        return list(candidates)
    wanted = currency_code_for(currency) or currency
    return [c for c in candidates if c.currency is None or (c.currency_code or c.currency) == wanted]


def detect_price_currency(text: Optional[str]) -> Optional[str]:
    """ISO code of the first currency marker in a text, or None."""
    markers = find_currency_markers(text)
    if not markers:
        return None
    return currency_code_for(markers[0]) or markers[0]


def _finish(candidates: List[PriceCandidate], settings: ExtractionSettings) -> List[PriceCandidate]:
    candidates = sort_candidates(dedupe_candidates(candidates))
    if settings.filter_currency:
        candidates = filter_by_currency(candidates, settings.currency_code)
    return [c for c in candidates if c.confidence >= settings.min_confidence]


def extract_prices_from_text(
    text: str,
    settings: Optional[ExtractionSettings] = None,
    builder: Optional[PatternBuilder] = None,
) -> List[PriceCandidate]:
    """Extract prices from bare text (text-content and contextual phrases)."""
    settings = ExtractionSettings.coerce(settings)
    if not text or not str(text).strip():
        return []
    caller_format = settings.format_descriptor()
    text = str(text)
    candidates = extract_from_text(text, caller_format, builder) + contextual_candidates(text, builder)
    return _finish(candidates, settings)


def extract_prices(
    node,
    settings: Optional[ExtractionSettings] = None,
    builder: Optional[PatternBuilder] = None,
) -> List[PriceCandidate]:
    """
    Extract every price from a node without any site-specific knowledge.

    Args:
        node: Element (or text node) to extract from
        settings: Caller settings; filterCurrency restricts the result to
            currencyCode, minConfidence drops weak candidates
        builder: PatternBuilder to use

    Returns:
        Deduplicated candidates, highest confidence first
    """
    settings = ExtractionSettings.coerce(settings)
    if is_text_node(node) or isinstance(node, str):
        return extract_prices_from_text(str(node), settings, builder)
    if not is_element(node):
        return []

    caller_format = settings.format_descriptor()
    depth = settings.max_depth + 1

    candidates: List[PriceCandidate] = []
    candidates.extend(extract_from_attributes(node, caller_format, builder))
    candidates.extend(extract_split_components(
        node, max_depth=depth, max_fragments=settings.max_fragments, builder=builder,
    ))
    candidates.extend(extract_nested_currency(node, max_depth=depth, builder=builder))
    candidates.extend(extract_contextual(node, builder))
    # Safety net, always attempted
    candidates.extend(extract_from_text_content(node, caller_format, builder))

    result = _finish(candidates, settings)
    logger.debug("universal_extraction_complete", element=node.name, prices=len(result))
    return result


def process_with_universal_extractor(
    node,
    callback: Callable[[PriceCandidate], object],
    settings: Optional[ExtractionSettings] = None,
    builder: Optional[PatternBuilder] = None,
) -> bool:
    """
    Run the universal extractor and hand each price to a callback.

    Returns:
        True if at least one price was found; False otherwise or on error
    """
    try:
        prices = extract_prices(node, settings, builder)
        for price in prices:
            callback(price)
        return bool(prices)
    except Exception as e:
        logger.warning("universal_extraction_failed", error=str(e), error_type=type(e).__name__)
        return False
