"""
Nested-currency extraction.

Finds a currency symbol that sits in its own element next to the amount,
as WooCommerce renders it:

    <bdi>6.26<span class="woocommerce-Price-currencySymbol">$</span></bdi>
"""
import re
from typing import List, Optional, Tuple

from ..formats import is_currency_marker
from ..models import PriceCandidate, StrategyTag
from ..pattern_builder import PatternBuilder, is_plausible_amount
from ..text_patterns import AMOUNT, normalize_for_currency
from ..utils.html_utils import clean_text, has_class, is_element, iter_descendants, node_text
from ._base import dedupe_candidates, element_strategy, make_candidate

WOOCOMMERCE_CONFIDENCE = 0.88
NESTED_CONFIDENCE = 0.85

WOOCOMMERCE_SYMBOL_CLASS = "woocommerce-Price-currencySymbol"

AMOUNT_ONLY = re.compile(AMOUNT)


def _sibling_text(element, forward: bool) -> Optional[str]:
    sibling = element.next_sibling if forward else element.previous_sibling
    while sibling is not None:
        text = node_text(sibling)
        if text:
            return text
        sibling = sibling.next_sibling if forward else sibling.previous_sibling
    return None


def _amount_near(marker_element, root) -> Optional[Tuple[str, bool]]:
    """
    Find the amount that belongs to a marker-only element.

    Returns (amount, symbol_first) or None.
    """
    marker = node_text(marker_element)
    parent = marker_element.parent

    if marker_element is not root and is_element(parent):
        parent_text = node_text(parent)
        position = parent_text.find(marker)
        remaining = clean_text(parent_text[:position] + " " + parent_text[position + len(marker):])
        if AMOUNT_ONLY.fullmatch(remaining):
            return remaining, position == 0

    for forward in (True, False):
        text = _sibling_text(marker_element, forward)
        if text and AMOUNT_ONLY.fullmatch(text):
            return text, forward

    if marker_element is not root and parent is not root and is_element(parent):
        for forward in (True, False):
            text = _sibling_text(parent, forward)
            if text and AMOUNT_ONLY.fullmatch(text):
                return text, forward

    return None


@element_strategy("nestedCurrency")
def extract_nested_currency(
    node,
    max_depth: int = 6,
    builder: Optional[PatternBuilder] = None,
) -> List[PriceCandidate]:
    """
    Pair marker-only elements with the amount next to them.

    The symbol is placed before or after the amount following DOM order.

    Args:
        node: Element whose subtree is scanned
        max_depth: Maximum subtree depth visited
        builder: PatternBuilder used to verify candidate text

    Returns:
        Candidates tagged "nestedCurrency"
    """
    candidates = []
    elements = [node] + list(iter_descendants(node, max_depth=max_depth, limit=100))

    for element in elements:
        marker = node_text(element)
        if not is_currency_marker(marker):
            continue

        found = _amount_near(element, node)
        if found is None:
            continue
        amount, symbol_first = found

        value = normalize_for_currency(amount, marker)
        if not is_plausible_amount(value):
            continue

        woocommerce = has_class(element, WOOCOMMERCE_SYMBOL_CLASS)
        candidates.append(make_candidate(
            value=value,
            currency=marker,
            raw=f"{marker}{amount}" if symbol_first else f"{amount}{marker}",
            confidence=WOOCOMMERCE_CONFIDENCE if woocommerce else NESTED_CONFIDENCE,
            strategy=StrategyTag.NESTED_CURRENCY,
            source="woocommerce" if woocommerce else "nested-symbol",
            metadata={"symbol_position": "before" if symbol_first else "after"},
            builder=builder,
        ))

    return dedupe_candidates(candidates)
