"""Shared helpers for the structural extraction strategies."""

import functools
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog

from ..formats import FormatDescriptor, render_price
from ..models import PriceCandidate, StrategyTag
from ..pattern_builder import PatternBuilder, scan_text_for_prices
from ..utils.html_utils import is_element

logger = structlog.get_logger(__name__, component="strategies")


def element_strategy(name: str):
    """
    Guard a structural strategy function.

    The wrapped function only sees element input; anything else (None,
    text, document roots) yields an empty list. Unexpected faults are
    logged with the strategy name and reported as "nothing found".
    """
    def decorator(func: Callable[..., List[PriceCandidate]]):
        @functools.wraps(func)
        def wrapper(node, *args, **kwargs) -> List[PriceCandidate]:
            if not is_element(node):
                return []
            try:
                return func(node, *args, **kwargs)
            except Exception as e:
                logger.warning(
                    "strategy_failed",
                    strategy=name,
                    element=getattr(node, "name", None),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return []
        wrapper.strategy_name = name
        return wrapper
    return decorator


def candidate_text(
    raw: str,
    value: str,
    currency: Optional[str],
    builder: Optional[PatternBuilder] = None,
) -> str:
    """
    Text to store on a candidate.

    The verbatim substring is kept when the plain matcher reads exactly the
    same price from it; otherwise the canonical rendering is used.
    """
    raw = (raw or "").strip()
    matches = scan_text_for_prices(raw, builder=builder)
    if len(matches) == 1:
        match = matches[0]
        if (
            match.start == 0
            and match.end == len(raw)
            and Decimal(match.value) == Decimal(value)
            and match.marker == currency
        ):
            return raw
    return render_price(value, currency)


def make_candidate(
    value: str,
    currency: Optional[str],
    raw: str,
    confidence: float,
    strategy: StrategyTag,
    source: Optional[str] = None,
    context: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    builder: Optional[PatternBuilder] = None,
) -> PriceCandidate:
    """Build a candidate whose text reproduces its own value."""
    return PriceCandidate(
        value=value,
        currency=currency,
        text=candidate_text(raw, value, currency, builder),
        confidence=round(min(1.0, max(0.0, confidence)), 4),
        strategy=strategy,
        source=source,
        context=context,
        metadata=dict(metadata or {}),
    )


def candidates_from_text(
    text: str,
    confidence: float,
    strategy: StrategyTag,
    source: Optional[str] = None,
    caller_format: Optional[FormatDescriptor] = None,
    builder: Optional[PatternBuilder] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> List[PriceCandidate]:
    """Run the plain matcher over a text and wrap every match as a candidate."""
    return [
        make_candidate(
            value=match.value,
            currency=match.marker,
            raw=match.text,
            confidence=confidence,
            strategy=strategy,
            source=source,
            metadata=metadata,
            builder=builder,
        )
        for match in scan_text_for_prices(text, caller_format, builder)
    ]


def dedupe_candidates(candidates: Iterable[PriceCandidate]) -> List[PriceCandidate]:
    """
    Merge candidates with the same normalized (value, currency).

    The highest-confidence instance of each price is kept, in the position
    where that price was first seen.
    """
    best: Dict[Any, PriceCandidate] = {}
    order: List[Any] = []
    for candidate in candidates:
        key = candidate.key
        current = best.get(key)
        if current is None:
            order.append(key)
            best[key] = candidate
        elif candidate.confidence > current.confidence:
            best[key] = candidate
    return [best[key] for key in order]


def sort_candidates(candidates: Iterable[PriceCandidate]) -> List[PriceCandidate]:
    """Sort by confidence, highest first (stable on ties)."""
    return sorted(candidates, key=lambda c: -c.confidence)
