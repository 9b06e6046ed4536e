"""
Extraction passes.

A pass wraps one or more strategies behind a uniform interface
(name, priority, can_handle, extract). The set of passes is closed; the
pipeline sorts them by priority once, when it is built.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import structlog
from bs4 import Tag

from .debug import DebugTrace
from .formats import FormatDescriptor
from .models import ExtractionSettings, PriceCandidate, StrategyTag
from .pattern_builder import PatternBuilder, is_plausible_amount
from .site_handlers import SiteHandlerRegistry
from .strategies import (
    contextual_candidates,
    dedupe_candidates,
    extract_from_attributes,
    extract_from_text,
    extract_nested_currency,
    extract_split_components,
)
from .strategies._base import candidates_from_text, make_candidate
from .strategies.text_content import NODE_CONFIDENCE
from .text_patterns import select_best_pattern, validate_pattern_match
from .universal import extract_prices
from .utils.html_utils import node_text

logger = structlog.get_logger(__name__, component="passes")

SITE_SPECIFIC_CONFIDENCE = 0.95
# Text-library matches rank below plain text content
PATTERN_LIBRARY_WEIGHT = 0.7


class PassName(str, Enum):
    SITE_SPECIFIC = "site-specific"
    ATTRIBUTE = "attribute-extraction"
    STRUCTURE = "structure-analysis"
    PATTERN_MATCHING = "pattern-matching"
    CONTEXTUAL = "contextual-patterns"
    DOM_ANALYZER = "dom-analyzer"


@dataclass
class ExtractionInput:
    """Classified pipeline input."""
    kind: str
    element: Optional[Tag] = None
    text: Optional[str] = None
    reason: Optional[str] = None

    @property
    def has_element(self) -> bool:
        return self.element is not None

    @property
    def has_text(self) -> bool:
        return bool(self.full_text)

    @property
    def full_text(self) -> str:
        if self.text is not None:
            return self.text
        return node_text(self.element)


@dataclass
class PassContext:
    """Per-invocation state shared by the passes."""
    settings: ExtractionSettings
    caller_format: FormatDescriptor
    builder: Optional[PatternBuilder] = None
    registry: Optional[SiteHandlerRegistry] = None
    trace: DebugTrace = field(default_factory=DebugTrace)

    @property
    def site(self) -> Optional[str]:
        if self.settings.site:
            return self.settings.site
        return self.registry.site if self.registry is not None else None


class ExtractionPass(ABC):
    """Base class for pipeline passes."""

    name: PassName
    priority: int
    tags: Tuple[StrategyTag, ...] = ()

    def can_handle(self, source: ExtractionInput, context: PassContext) -> bool:
        return source.has_element

    @abstractmethod
    async def extract(self, source: ExtractionInput, context: PassContext) -> List[PriceCandidate]:
        """Return the candidates this pass finds (may be empty)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name.value!r}, priority={self.priority})"


class SiteSpecificPass(ExtractionPass):
    """Ask the site handler for the current site, if any."""

    name = PassName.SITE_SPECIFIC
    priority = 10
    tags = (StrategyTag.SITE_SPECIFIC,)

    def can_handle(self, source, context) -> bool:
        return (
            source.has_element
            and context.registry is not None
            and context.registry.has_handler(context.site)
        )

    async def extract(self, source, context) -> List[PriceCandidate]:
        handler = context.registry.get_handler_for_site(context.site)
        units: List[str] = []
        processed = await context.registry.process_async(
            source.element, units.append, context.settings, site=context.site,
        )
        if not processed:
            return []
        logger.debug("site_handler_processed", handler=handler.name, units=len(units))

        candidates = []
        for unit in units:
            candidates.extend(candidates_from_text(
                unit,
                SITE_SPECIFIC_CONFIDENCE,
                StrategyTag.SITE_SPECIFIC,
                source=handler.name,
                caller_format=context.caller_format,
                builder=context.builder,
                metadata={"handler": handler.name},
            ))
        return dedupe_candidates(candidates)


class AttributePass(ExtractionPass):
    name = PassName.ATTRIBUTE
    priority = 20
    tags = (StrategyTag.ATTRIBUTE,)

    async def extract(self, source, context) -> List[PriceCandidate]:
        return extract_from_attributes(source.element, context.caller_format, context.builder)


class StructurePass(ExtractionPass):
    """Split-component and nested-currency assembly."""

    name = PassName.STRUCTURE
    priority = 30
    tags = (StrategyTag.SPLIT_COMPONENT, StrategyTag.NESTED_CURRENCY)

    async def extract(self, source, context) -> List[PriceCandidate]:
        settings = context.settings
        depth = settings.max_depth + 1
        return extract_split_components(
            source.element, max_depth=depth, max_fragments=settings.max_fragments, builder=context.builder,
        ) + extract_nested_currency(source.element, max_depth=depth, builder=context.builder)


class PatternMatchingPass(ExtractionPass):
    """
    Plain text-content extraction plus the text pattern library.

    Bare text is scored on its own; text that belongs to an element is capped
    at the node text-content confidence so structural evidence wins.
    """

    name = PassName.PATTERN_MATCHING
    priority = 40
    tags = (StrategyTag.TEXT_CONTENT, StrategyTag.PATTERN_MATCHING)

    def can_handle(self, source, context) -> bool:
        return source.has_text

    async def extract(self, source, context) -> List[PriceCandidate]:
        text = source.full_text
        candidates = extract_from_text(text, context.caller_format, context.builder)
        if source.has_element:
            candidates = [c.with_confidence(min(c.confidence, NODE_CONFIDENCE)) for c in candidates]

        best = select_best_pattern(text)
        if best is not None and validate_pattern_match(best, text) and is_plausible_amount(best.value):
            candidates.append(make_candidate(
                value=best.value,
                currency=best.currency,
                raw=best.original,
                confidence=best.confidence * PATTERN_LIBRARY_WEIGHT,
                strategy=StrategyTag.PATTERN_MATCHING,
                source=best.pattern,
                context=best.context,
                metadata={"pattern": best.pattern, "reconstructed": best.reconstructed},
                builder=context.builder,
            ))
        return candidates


class ContextualPass(ExtractionPass):
    name = PassName.CONTEXTUAL
    priority = 50
    tags = (StrategyTag.CONTEXTUAL,)

    def can_handle(self, source, context) -> bool:
        return source.has_text

    async def extract(self, source, context) -> List[PriceCandidate]:
        return contextual_candidates(source.full_text, context.builder)


class DomAnalyzerPass(ExtractionPass):
    """All structural strategies in one pass (single-pass mode)."""

    name = PassName.DOM_ANALYZER
    priority = 20
    tags = (
        StrategyTag.ATTRIBUTE,
        StrategyTag.SPLIT_COMPONENT,
        StrategyTag.NESTED_CURRENCY,
        StrategyTag.CONTEXTUAL,
        StrategyTag.TEXT_CONTENT,
    )

    async def extract(self, source, context) -> List[PriceCandidate]:
        settings = context.settings.model_copy(update={"filter_currency": False, "min_confidence": 0.0})
        return extract_prices(source.element, settings, context.builder)


def default_passes() -> List[ExtractionPass]:
    return [SiteSpecificPass(), AttributePass(), StructurePass(), PatternMatchingPass(), ContextualPass()]


def legacy_passes() -> List[ExtractionPass]:
    return [SiteSpecificPass(), DomAnalyzerPass(), PatternMatchingPass()]
