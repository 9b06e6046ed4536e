"""
Plain text-content extraction.

Applies the plain matcher directly to text. On its own (bare text input) a
price that makes up the whole text is scored highly; prices embedded in
longer text score lower with the share of the text they cover. Run against
a node, text content is the safety net and always ranks below the other
structural strategies.
"""
from typing import List, Optional

from ..formats import FormatDescriptor
from ..models import PriceCandidate, StrategyTag
from ..pattern_builder import PatternBuilder, scan_text_for_prices, strip_annotated
from ..utils.html_utils import clean_text, node_text
from ._base import element_strategy, make_candidate

WHOLE_TEXT_CONFIDENCE = 0.99
PARTIAL_BASE_CONFIDENCE = 0.6
PARTIAL_MAX_CONFIDENCE = 0.72
NODE_CONFIDENCE = 0.6


def extract_from_text(
    text: str,
    caller_format: Optional[FormatDescriptor] = None,
    builder: Optional[PatternBuilder] = None,
) -> List[PriceCandidate]:
    """
    Extract every plain price from a text.

    Already-annotated prices are skipped.

    Args:
        text: Text to scan
        caller_format: Format taken from caller settings, if any
        builder: PatternBuilder to use

    Returns:
        Candidates tagged "textContent", left to right
    """
    text = clean_text(strip_annotated(text, caller_format, builder))
    if not text:
        return []

    candidates = []
    for match in scan_text_for_prices(text, caller_format, builder):
        if match.start == 0 and match.end == len(text):
            confidence = WHOLE_TEXT_CONFIDENCE
        else:
            coverage = (match.end - match.start) / len(text)
            confidence = min(PARTIAL_MAX_CONFIDENCE, PARTIAL_BASE_CONFIDENCE + 0.3 * coverage)

        candidates.append(make_candidate(
            value=match.value,
            currency=match.marker,
            raw=match.text,
            confidence=confidence,
            strategy=StrategyTag.TEXT_CONTENT,
            source="text",
            metadata={"position": match.start},
            builder=builder,
        ))
    return candidates


@element_strategy("textContent")
def extract_from_text_content(
    node,
    caller_format: Optional[FormatDescriptor] = None,
    builder: Optional[PatternBuilder] = None,
) -> List[PriceCandidate]:
    """Plain-matcher extraction over a node's text content."""
    return [
        candidate.with_confidence(NODE_CONFIDENCE)
        for candidate in extract_from_text(node_text(node), caller_format, builder)
    ]
