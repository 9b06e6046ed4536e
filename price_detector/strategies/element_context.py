"""
Element-context scoring.

Independent of candidate extraction: looks at a node, its ancestors and
siblings for price-container classes, price classes, data attributes and
aria labels, and turns the evidence into a [0, 1] confidence.
"""
import re
from typing import Optional

import structlog

from ..models import (
    AttributeSummary,
    ElementContext,
    Hierarchy,
    PriceIndicators,
    Semantics,
)
from ..utils.html_utils import class_string, is_element, iter_ancestors

logger = structlog.get_logger(__name__, component="element_context")

DEFAULT_MAX_DEPTH = 5

PRICE_CONTAINER_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r'price', r'cost', r'amount', r'currency', r'money', r'product-price',
        r'sale-price', r'current-price', r'pricing', r'checkout', r'cart', r'total',
    )
]

PRICE_CLASS_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r'price', r'cost', r'amount', r'currency', r'money',
        r'\bsale\b', r'\bcurrent\b', r'\boriginal\b', r'\bregular\b',
    )
]

PRICE_DATA_ATTRIBUTES = (
    'data-price',
    'data-amount',
    'data-value',
    'data-cost',
    'data-currency',
    'data-currency-code',
    'data-original-price',
)

# Checked in order; the first hit wins
SEMANTIC_CONTEXTS = [
    ('cart', re.compile(r'cart|basket|checkout', re.IGNORECASE)),
    ('shipping', re.compile(r'shipping|delivery|freight', re.IGNORECASE)),
    ('tax', re.compile(r'\btax\b|\bvat\b|\bgst\b', re.IGNORECASE)),
    ('comparison', re.compile(r'compare|\bvs\b|versus', re.IGNORECASE)),
    ('product', re.compile(r'product|item|listing', re.IGNORECASE)),
]

PRICE_TYPE_PATTERNS = [
    ('sale', re.compile(r'sale|discount|special|offer|deal', re.IGNORECASE)),
    ('original', re.compile(r'original|\bwas\b|regular|\blist\b|msrp|strike', re.IGNORECASE)),
    ('current', re.compile(r'current|\bnow\b|final|actual', re.IGNORECASE)),
    ('shipping', re.compile(r'shipping|delivery', re.IGNORECASE)),
    ('tax', re.compile(r'\btax\b|\bvat\b', re.IGNORECASE)),
]

CURRENCY_HINTS = [
    ('USD', re.compile(r'usd|dollar', re.IGNORECASE)),
    ('EUR', re.compile(r'eur|euro', re.IGNORECASE)),
    ('GBP', re.compile(r'gbp|pound', re.IGNORECASE)),
]

# Confidence weights
CONTAINER_WEIGHT = 0.45
CLASS_WEIGHT = 0.45
DATA_ATTRIBUTE_WEIGHT = 0.4
SEMANTIC_WEIGHT = 0.25
ARIA_WEIGHT = 0.3


def _identity(node) -> str:
    """Class and id of an element, for pattern checks."""
    element_id = node.get('id') or ''
    return f"{class_string(node)} {str(element_id).lower()}".strip()


def _has_price_data(node) -> bool:
    for attr in node.attrs:
        if attr in PRICE_DATA_ATTRIBUTES or (attr.startswith('data-') and 'price' in attr):
            return True
    return False


def _is_price_like(node) -> bool:
    return is_element(node) and (
        any(p.search(class_string(node)) for p in PRICE_CLASS_PATTERNS) or _has_price_data(node)
    )


def get_element_context(node, max_depth: int = DEFAULT_MAX_DEPTH) -> ElementContext:
    """
    Describe how price-like a node looks.

    Ancestors are visited up to max_depth levels; siblings are only counted.
    Nothing is cached, so the snapshot always reflects the current tree.

    Args:
        node: Element to describe
        max_depth: Maximum number of ancestor levels visited

    Returns:
        ElementContext (empty, confidence 0.0, for non-elements)
    """
    if not is_element(node):
        return ElementContext()

    try:
        indicators = PriceIndicators()
        hierarchy = Hierarchy()
        attributes = AttributeSummary()
        semantics = Semantics()

        for depth, ancestor in enumerate(iter_ancestors(node, max_depth), start=1):
            identity = _identity(ancestor)
            if not indicators.has_parent_container and any(p.search(identity) for p in PRICE_CONTAINER_PATTERNS):
                indicators.has_parent_container = True
                hierarchy.price_container = class_string(ancestor) or ancestor.name
                hierarchy.depth = depth
            if semantics.container_type is None:
                semantics.container_type = _classify(identity, SEMANTIC_CONTEXTS)

        own_identity = _identity(node)
        if semantics.container_type is None:
            semantics.container_type = _classify(own_identity, SEMANTIC_CONTEXTS)

        indicators.has_price_classes = any(p.search(class_string(node)) for p in PRICE_CLASS_PATTERNS)
        indicators.has_data_attributes = _has_price_data(node)

        for attr, value in node.attrs.items():
            value = " ".join(value) if isinstance(value, list) else str(value)
            if attr.startswith('data-'):
                attributes.data_attributes.append({'name': attr, 'value': value})
                if attr in PRICE_DATA_ATTRIBUTES or 'price' in attr:
                    attributes.price_related.append({'name': attr, 'value': value})
            elif attr == 'aria-label':
                attributes.aria_labels.append(value)

        if node.parent is not None:
            hierarchy.sibling_count = sum(
                1 for sibling in node.parent.find_all(True, recursive=False)
                if sibling is not node and _is_price_like(sibling)
            )

        parent_identity = _identity(node.parent) if is_element(node.parent) else ''
        semantics.price_type = _classify(f"{own_identity} {parent_identity}", PRICE_TYPE_PATTERNS)
        hint_source = " ".join([own_identity] + [a['value'] for a in attributes.data_attributes])
        semantics.currency_hint = _classify(hint_source, CURRENCY_HINTS)

        context = ElementContext(
            price_indicators=indicators,
            hierarchy=hierarchy,
            attributes=attributes,
            semantics=semantics,
        )
        context.confidence = calculate_confidence(context)
        return context

    except Exception as e:
        logger.warning("element_context_failed", element=getattr(node, "name", None), error=str(e))
        return ElementContext()


def _classify(text: str, patterns) -> Optional[str]:
    for label, pattern in patterns:
        if pattern.search(text):
            return label
    return None


def calculate_confidence(context: ElementContext) -> float:
    """
    Turn element-context evidence into a confidence score.

    Several corroborating signals reach 0.9 or more, a single weak signal
    lands around 0.5, and no signal stays at or below 0.3.
    """
    indicators = context.price_indicators
    score = 0.0

    if indicators.has_parent_container:
        score += CONTAINER_WEIGHT
    if indicators.has_price_classes:
        score += CLASS_WEIGHT
    if indicators.has_data_attributes:
        score += DATA_ATTRIBUTE_WEIGHT
    if context.semantics.container_type:
        score += SEMANTIC_WEIGHT
    if any(re.search(r'\d', label) for label in context.attributes.aria_labels):
        score += ARIA_WEIGHT

    # Bonus for corroborating indicators
    if indicators.count >= 3:
        score += 0.15
    elif indicators.count >= 2:
        score += 0.1
    elif indicators.count >= 1:
        score += 0.05

    if indicators.has_parent_container and context.hierarchy.depth <= 2:
        score += 0.1

    score += min(0.15, context.hierarchy.sibling_count * 0.075)

    return round(max(0.0, min(1.0, score)), 2)
