"""Price candidate model shared by every strategy."""

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..formats import currency_code_for


class StrategyTag(str, Enum):
    """Strategy that produced a candidate."""
    ATTRIBUTE = "attribute"
    SPLIT_COMPONENT = "splitComponent"
    NESTED_CURRENCY = "nestedCurrency"
    CONTEXTUAL = "contextual"
    TEXT_CONTENT = "textContent"
    SITE_SPECIFIC = "site-specific"
    PATTERN_MATCHING = "pattern-matching"


@dataclass(frozen=True)
class PriceCandidate:
    """
    One detected, scored price.

    Candidates are immutable: strategies create them once, the pipeline
    only filters, deduplicates and reorders them.
    """
    value: str
    currency: Optional[str]
    text: str
    confidence: float
    strategy: StrategyTag
    source: Optional[str] = None
    context: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        try:
            Decimal(self.value)
        except (InvalidOperation, TypeError, ValueError):
            raise ValueError(f"Candidate value is not a decimal number: {self.value!r}") from None
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Candidate confidence out of range: {self.confidence}")
        if not isinstance(self.strategy, StrategyTag):
            object.__setattr__(self, "strategy", StrategyTag(self.strategy))

    @property
    def decimal_value(self) -> Decimal:
        return Decimal(self.value)

    @property
    def currency_code(self) -> Optional[str]:
        return currency_code_for(self.currency)

    @property
    def key(self) -> Tuple[Decimal, Optional[str]]:
        """Normalized (value, currency) used for deduplication."""
        return (self.decimal_value, self.currency_code or self.currency)

    def with_confidence(self, confidence: float, **metadata) -> "PriceCandidate":
        """Return a copy with a new confidence (and extra metadata)."""
        merged = dict(self.metadata)
        merged.update(metadata)
        return replace(self, confidence=round(min(1.0, max(0.0, confidence)), 4), metadata=merged)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "value": self.value,
            "currency": self.currency,
            "text": self.text,
            "confidence": self.confidence,
            "strategy": self.strategy.value,
        }
        if self.source:
            result["source"] = self.source
        if self.context:
            result["context"] = self.context
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result

    def __repr__(self) -> str:
        return (
            f"PriceCandidate(value={self.value!r}, currency={self.currency!r}, "
            f"confidence={self.confidence}, strategy={self.strategy.value!r})"
        )
