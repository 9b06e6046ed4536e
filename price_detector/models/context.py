"""Data models describing how price-like a markup element looks."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PriceIndicators:
    has_parent_container: bool = False
    has_price_classes: bool = False
    has_data_attributes: bool = False

    @property
    def count(self) -> int:
        return sum([self.has_parent_container, self.has_price_classes, self.has_data_attributes])


@dataclass
class Hierarchy:
    price_container: Optional[str] = None
    depth: int = 0
    sibling_count: int = 0


@dataclass
class AttributeSummary:
    data_attributes: List[Dict[str, str]] = field(default_factory=list)
    price_related: List[Dict[str, str]] = field(default_factory=list)
    aria_labels: List[str] = field(default_factory=list)


@dataclass
class Semantics:
    container_type: Optional[str] = None
    price_type: Optional[str] = None
    currency_hint: Optional[str] = None


@dataclass
class ElementContext:
    """Read-only snapshot of a node's price-likelihood signals."""
    price_indicators: PriceIndicators = field(default_factory=PriceIndicators)
    hierarchy: Hierarchy = field(default_factory=Hierarchy)
    attributes: AttributeSummary = field(default_factory=AttributeSummary)
    semantics: Semantics = field(default_factory=Semantics)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "price_indicators": {
                "has_parent_container": self.price_indicators.has_parent_container,
                "has_price_classes": self.price_indicators.has_price_classes,
                "has_data_attributes": self.price_indicators.has_data_attributes,
            },
            "hierarchy": {
                "price_container": self.hierarchy.price_container,
                "depth": self.hierarchy.depth,
                "sibling_count": self.hierarchy.sibling_count,
            },
            "attributes": {
                "data_attributes": self.attributes.data_attributes,
                "price_related": self.attributes.price_related,
                "aria_labels": self.attributes.aria_labels,
            },
            "semantics": {
                "container_type": self.semantics.container_type,
                "price_type": self.semantics.price_type,
                "currency_hint": self.semantics.currency_hint,
            },
            "confidence": self.confidence,
        }
