"""
Split-component assembly.

Rebuilds prices whose symbol, integer and fraction live in separate nodes:

    <div><font>449€</font><span><font>00</font></span></div>      -> 449.00 €
    <span class="a-price-symbol">$</span><span>8.</span><span>48</span> -> 8.48 $
"""
from typing import List, Optional

from ..models import PriceCandidate, StrategyTag
from ..pattern_builder import PatternBuilder
from ..text_patterns import reconstruct_from_fragments
from ..utils.html_utils import iter_text_fragments
from ._base import dedupe_candidates, element_strategy, make_candidate

SINGLE_WINDOW_CONFIDENCE = 0.9
MULTIPLE_WINDOW_CONFIDENCE = 0.8
ADJACENT_SYMBOL_BONUS = 0.03


@element_strategy("splitComponent")
def extract_split_components(
    node,
    max_depth: int = 6,
    max_fragments: int = 12,
    builder: Optional[PatternBuilder] = None,
) -> List[PriceCandidate]:
    """
    Assemble prices from leaf text fragments of a bounded subtree.

    Args:
        node: Element whose subtree is scanned
        max_depth: Maximum subtree depth visited
        max_fragments: Maximum number of text fragments collected
        builder: PatternBuilder used to verify candidate text

    Returns:
        Candidates tagged "splitComponent"
    """
    fragments = iter_text_fragments(node, max_depth=max_depth, limit=max_fragments)
    if len(fragments) < 2:
        return []

    reconstructions = reconstruct_from_fragments(fragments)
    unambiguous = len(reconstructions) == 1

    candidates = []
    for r in reconstructions:
        if unambiguous:
            confidence = SINGLE_WINDOW_CONFIDENCE
        else:
            confidence = MULTIPLE_WINDOW_CONFIDENCE + (ADJACENT_SYMBOL_BONUS if r.symbol_adjacent else 0.0)

        candidates.append(make_candidate(
            value=r.value,
            currency=r.currency,
            raw="".join(r.tokens),
            confidence=confidence,
            strategy=StrategyTag.SPLIT_COMPONENT,
            source="split-pattern",
            metadata={
                "rule": r.rule,
                "fragments": [fragments[i] for i in sorted(set(r.fragments))],
            },
            builder=builder,
        ))

    return dedupe_candidates(candidates)
