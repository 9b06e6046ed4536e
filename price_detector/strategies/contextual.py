"""Contextual-phrase extraction ("Under $20", "from $2.99", "$5 and up")."""

from typing import List, Optional

from ..models import PriceCandidate, StrategyTag
from ..pattern_builder import PatternBuilder
from ..text_patterns import match_contextual_phrases
from ..utils.html_utils import node_text
from ._base import element_strategy, make_candidate

# Library phrase scores are shifted down so contextual candidates stay
# below structural ones and above plain text content.
CONFIDENCE_OFFSET = 0.1


def contextual_candidates(text: str, builder: Optional[PatternBuilder] = None) -> List[PriceCandidate]:
    """
    Extract qualified prices from text, left to right.

    Args:
        text: Text to scan
        builder: PatternBuilder used to verify candidate text

    Returns:
        Candidates tagged "contextual" with their context phrase
    """
    return [
        make_candidate(
            value=match.value,
            currency=match.currency,
            raw=match.original,
            confidence=match.confidence - CONFIDENCE_OFFSET,
            strategy=StrategyTag.CONTEXTUAL,
            source=match.pattern,
            context=match.context,
            metadata={"phrase": match.original, "position": match.position},
            builder=builder,
        )
        for match in match_contextual_phrases(text)
    ]


@element_strategy("contextual")
def extract_contextual(node, builder: Optional[PatternBuilder] = None) -> List[PriceCandidate]:
    """Contextual-phrase extraction over a node's text content."""
    return contextual_candidates(node_text(node), builder)
