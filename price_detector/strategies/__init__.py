"""Structural extraction strategies operating on markup nodes."""

from ._base import dedupe_candidates, sort_candidates
from .attribute import extract_from_attributes
from .contextual import contextual_candidates, extract_contextual
from .dom_analyzer import analyze_element
from .element_context import calculate_confidence, get_element_context
from .nested_currency import extract_nested_currency
from .split_component import extract_split_components
from .text_content import extract_from_text, extract_from_text_content

__all__ = [
    "extract_from_attributes",
    "extract_split_components",
    "extract_nested_currency",
    "extract_contextual",
    "contextual_candidates",
    "extract_from_text_content",
    "extract_from_text",
    "get_element_context",
    "calculate_confidence",
    "analyze_element",
    "dedupe_candidates",
    "sort_candidates",
]
