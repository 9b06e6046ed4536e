"""
Attribute extraction.

Reads prices from machine-readable attributes: aria-label, data-price with
data-currency, other data-* attributes, microdata (itemprop="price"), and
visually hidden twins of visible prices (.a-offscreen and friends).
"""
from typing import List, Optional

from ..formats import FormatDescriptor, currency_code_for, find_currency_markers, is_currency_marker
from ..models import PriceCandidate, StrategyTag
from ..pattern_builder import PatternBuilder, is_plausible_amount
from ..text_patterns import normalize_price
from ..utils.html_utils import (
    HIDDEN_TWIN_CLASSES,
    PRICE_ITEMPROPS,
    class_list,
    is_hidden_twin,
    iter_descendants,
    node_text,
)
from ._base import candidates_from_text, dedupe_candidates, element_strategy, make_candidate

ARIA_LABEL_CONFIDENCE = 0.96
DATA_PRICE_CONFIDENCE = 0.94
HIDDEN_TWIN_CONFIDENCE = 0.93
MICRODATA_CONFIDENCE = 0.93
DATA_ATTRIBUTE_CONFIDENCE = 0.92

PRICE_VALUE_ATTRIBUTES = (
    "data-price",
    "data-price-amount",
    "data-amount",
    "data-value",
    "data-cost",
    "data-sale-price",
    "data-original-price",
)

CURRENCY_ATTRIBUTES = ("data-currency", "data-currency-code", "data-price-currency")


def _attr_text(value) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value) if value is not None else ""


def _currency_attribute(node) -> Optional[str]:
    for attr in CURRENCY_ATTRIBUTES:
        raw = _attr_text(node.get(attr)).strip()
        if not raw:
            continue
        if is_currency_marker(raw):
            return raw
        if is_currency_marker(raw.upper()):
            return raw.upper()
    return None


def _microdata_currency(node) -> Optional[str]:
    scope = node.parent if node.parent is not None else node
    element = scope.find(attrs={"itemprop": "priceCurrency"})
    if element is None:
        return None
    raw = _attr_text(element.get("content")) or node_text(element)
    raw = raw.strip().upper()
    return raw if is_currency_marker(raw) else None


def _hint(currency: str) -> str:
    # Machine-readable values are written with a dot decimal
    return "us" if currency_code_for(currency) else "auto"


@element_strategy("attribute")
def extract_from_attributes(
    node,
    caller_format: Optional[FormatDescriptor] = None,
    builder: Optional[PatternBuilder] = None,
) -> List[PriceCandidate]:
    """
    Extract prices from explicit attributes of a node.

    Args:
        node: Element to inspect
        caller_format: Format taken from caller settings, if any
        builder: PatternBuilder for the embedded-text matcher

    Returns:
        Candidates tagged "attribute", one per distinct price
    """
    candidates: List[PriceCandidate] = []

    aria_label = _attr_text(node.get("aria-label"))
    if aria_label:
        candidates += candidates_from_text(
            aria_label, ARIA_LABEL_CONFIDENCE, StrategyTag.ATTRIBUTE,
            source="aria-label", caller_format=caller_format, builder=builder,
        )

    currency = _currency_attribute(node)
    for attr in PRICE_VALUE_ATTRIBUTES:
        raw = _attr_text(node.get(attr)).strip()
        if not raw:
            continue
        confidence = DATA_PRICE_CONFIDENCE if attr == "data-price" else DATA_ATTRIBUTE_CONFIDENCE

        if find_currency_markers(raw):
            candidates += candidates_from_text(
                raw, confidence, StrategyTag.ATTRIBUTE,
                source=attr, caller_format=caller_format, builder=builder,
            )
            continue

        if not currency:
            continue
        value = normalize_price(raw, _hint(currency))
        if not is_plausible_amount(value):
            continue
        candidates.append(make_candidate(
            value=value,
            currency=currency,
            raw=f"{raw} {currency}",
            confidence=confidence,
            strategy=StrategyTag.ATTRIBUTE,
            source=attr,
            builder=builder,
        ))

    for attr, raw in node.attrs.items():
        if not attr.startswith("data-") or attr in PRICE_VALUE_ATTRIBUTES or attr in CURRENCY_ATTRIBUTES:
            continue
        candidates += candidates_from_text(
            _attr_text(raw), DATA_ATTRIBUTE_CONFIDENCE, StrategyTag.ATTRIBUTE,
            source=attr, caller_format=caller_format, builder=builder,
        )

    itemprop = _attr_text(node.get("itemprop")).lower()
    content = _attr_text(node.get("content")).strip()
    if itemprop in PRICE_ITEMPROPS and content:
        micro_currency = currency or _microdata_currency(node)
        value = normalize_price(content, "us")
        if micro_currency and is_plausible_amount(value):
            candidates.append(make_candidate(
                value=value,
                currency=micro_currency,
                raw=f"{content} {micro_currency}",
                confidence=MICRODATA_CONFIDENCE,
                strategy=StrategyTag.ATTRIBUTE,
                source="itemprop",
                builder=builder,
            ))

    twins = [node] + list(iter_descendants(node, max_depth=4, limit=50))
    for twin in twins:
        if not is_hidden_twin(twin):
            continue
        twin_class = next(c for c in class_list(twin) if c.lower() in HIDDEN_TWIN_CLASSES)
        candidates += candidates_from_text(
            node_text(twin), HIDDEN_TWIN_CONFIDENCE, StrategyTag.ATTRIBUTE,
            source=twin_class, caller_format=caller_format, builder=builder,
        )

    return dedupe_candidates(candidates)
