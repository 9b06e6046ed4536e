"""
Extraction pipeline.

Classifies the input, runs the passes in priority order and arbitrates
their candidates:

    input-classification -> site-specific -> attribute-extraction
    -> structure-analysis -> pattern-matching -> contextual-patterns
    -> result-arbitration

Example:
    >>> pipeline = create_pipeline()
    >>> result = await pipeline.extract('<span aria-label="$8.48"> $8.48 </span>')
    >>> result.best.value
    '8.48'
"""

import asyncio
import time
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Union

import structlog
from bs4 import BeautifulSoup, NavigableString, Tag

from .debug import DebugTrace, new_correlation_id
from .models import ExtractionResult, ExtractionSettings, PriceCandidate
from .pattern_builder import PatternBuilder, default_builder
from .passes import (
    ExtractionInput,
    ExtractionPass,
    PassContext,
    default_passes,
    legacy_passes,
)
from .site_handlers import SiteHandlerRegistry, create_default_registry
from .strategies import get_element_context
from .utils.html_utils import is_converted_node, looks_like_markup, parse_fragment

logger = structlog.get_logger(__name__, component="pipeline")

# Largest confidence bonus element context can add to a node's candidates
CONTEXT_BONUS = 0.03


def _classify_node(node) -> ExtractionInput:
    if getattr(node, "decomposed", False):
        return ExtractionInput(kind="invalid", reason="Node has been removed from its document")
    if is_converted_node(node):
        return ExtractionInput(kind="converted", reason="Node is already-converted output")
    if isinstance(node, NavigableString):
        return ExtractionInput(kind="text", text=str(node))
    return ExtractionInput(kind="node", element=node)


def classify_input(raw: Any) -> ExtractionInput:
    """
    Decide what kind of input the caller supplied.

    Accepts text, markup strings, BeautifulSoup elements and documents, text
    nodes, or a mapping with "element" and/or "text". Anything unusable is
    classified as "invalid" with a reason instead of raising.
    """
    if raw is None:
        return ExtractionInput(kind="invalid", reason="No input provided")
    if isinstance(raw, ExtractionInput):
        return raw

    if isinstance(raw, Mapping):
        element = raw.get("element", raw.get("node"))
        text = raw.get("text")
        if element is None:
            return classify_input(text)
        source = classify_input(element)
        if source.kind != "node" or text is None:
            return source
        return ExtractionInput(kind="combined", element=source.element, text=str(text))

    if isinstance(raw, BeautifulSoup):
        root = raw.body or raw.find(True)
        if root is None:
            return ExtractionInput(kind="invalid", reason="Document has no elements")
        return ExtractionInput(kind="node", element=root)

    if isinstance(raw, (Tag, NavigableString)):
        return _classify_node(raw)

    if isinstance(raw, str):
        if not raw.strip():
            return ExtractionInput(kind="invalid", reason="Empty text")
        if looks_like_markup(raw):
            element = parse_fragment(raw)
            if element is None:
                return ExtractionInput(kind="invalid", reason="Markup contains no elements")
            return _classify_node(element)
        return ExtractionInput(kind="text", text=raw)

    return ExtractionInput(kind="invalid", reason=f"Unsupported input type: {type(raw).__name__}")


class ExtractionPipeline:
    """
    Runs extraction passes against one input and arbitrates the results.

    Passes are sorted by priority once, at construction. The pipeline holds
    no per-call state; everything an invocation needs lives in its own
    PassContext and DebugTrace.
    """

    def __init__(
        self,
        passes: Optional[Sequence[ExtractionPass]] = None,
        registry: Optional[SiteHandlerRegistry] = None,
        builder: Optional[PatternBuilder] = None,
        single_passes: Optional[Sequence[ExtractionPass]] = None,
    ):
        self.passes: List[ExtractionPass] = sorted(
            passes if passes is not None else default_passes(), key=lambda p: p.priority
        )
        self.single_passes: List[ExtractionPass] = sorted(
            single_passes if single_passes is not None else legacy_passes(), key=lambda p: p.priority
        )
        self.registry = registry
        self.builder = builder or default_builder

    async def extract(self, raw_input: Any, settings: Any = None) -> ExtractionResult:
        """
        Extract prices from text, markup, or both.

        Args:
            raw_input: Text, markup string, bs4 element/document, or
                {"element": ..., "text": ...}
            settings: ExtractionSettings, a settings mapping, or None

        Returns:
            ExtractionResult with candidates sorted by confidence

        Raises:
            DelimiterError: If the settings name unrecognized separators
        """
        settings = ExtractionSettings.coerce(settings)
        # Caller defects surface before any pass runs
        caller_format = settings.format_descriptor()
        self.builder.for_format(caller_format)

        trace = DebugTrace(new_correlation_id(), enabled=settings.debug_mode)
        log = logger.bind(correlation_id=trace.correlation_id)

        source = classify_input(raw_input)
        trace.record("input-classification", f"Input classified as {source.kind}", {"kind": source.kind})
        result = ExtractionResult(correlation_id=trace.correlation_id, input_kind=source.kind)

        if source.kind == "invalid":
            result.errors.append(source.reason)
            return self._finish(result, trace, log)
        if source.kind == "converted":
            result.warnings.append(source.reason)
            return self._finish(result, trace, log)

        context = PassContext(
            settings=settings,
            caller_format=caller_format,
            builder=self.builder,
            registry=self.registry,
            trace=trace,
        )
        bonus, element_confidence = self._context_bonus(source, settings)

        collected = []
        passes = self.passes if settings.multi_pass_mode else self.single_passes
        for index, extraction_pass in enumerate(passes):
            name = extraction_pass.name.value
            reason = self._skip_reason(extraction_pass, source, context)
            if reason:
                result.passes_skipped.append(name)
                trace.record(name, "Pass skipped", {"reason": reason})
                continue

            started = time.perf_counter()
            try:
                found = await extraction_pass.extract(source, context)
            except Exception as e:
                log.warning("extraction_pass_failed", pass_name=name, error=str(e), error_type=type(e).__name__)
                result.errors.append(f"{name}: {e}")
                trace.record(name, "Pass failed", {"error": str(e)})
                continue

            if bonus:
                found = [
                    c.with_confidence(c.confidence + bonus, element_confidence=element_confidence)
                    for c in found
                ]
            collected.extend((index, seq, candidate) for seq, candidate in enumerate(found))
            result.passes_run.append(name)
            trace.record(
                name,
                "Pass completed",
                {"strategies": sorted({c.strategy.value for c in found})},
                duration_ms=round((time.perf_counter() - started) * 1000, 3),
                result_count=len(found),
            )

            if self._should_exit_early(found, settings):
                result.early_exit = True
                trace.record(name, "Early termination", {"threshold": settings.early_exit_confidence})
                break

        result.candidates = self._arbitrate(collected, settings)
        trace.record(
            "result-arbitration",
            "Candidates arbitrated",
            {"collected": len(collected), "min_confidence": settings.min_confidence},
            result_count=len(result.candidates),
        )
        return self._finish(result, trace, log)

    def extract_sync(self, raw_input: Any, settings: Any = None) -> ExtractionResult:
        """Synchronous wrapper for callers without an event loop."""
        return asyncio.run(self.extract(raw_input, settings))

    def _skip_reason(self, extraction_pass: ExtractionPass, source: ExtractionInput, context: PassContext) -> Optional[str]:
        settings = context.settings
        name = extraction_pass.name.value
        if settings.only_pass and name != settings.only_pass:
            return f"only {settings.only_pass} requested"
        if name in settings.exclude_passes:
            return "excluded by settings"
        if not extraction_pass.can_handle(source, context):
            return "not applicable to input"
        return None

    def _context_bonus(self, source: ExtractionInput, settings: ExtractionSettings):
        if not settings.context_scoring or not source.has_element:
            return 0.0, None
        element_context = get_element_context(source.element, settings.max_depth)
        return round(CONTEXT_BONUS * element_context.confidence, 4), element_context.confidence

    @staticmethod
    def _should_exit_early(found: List[PriceCandidate], settings: ExtractionSettings) -> bool:
        if settings.early_exit_confidence is None or settings.exhaustive or settings.return_multiple:
            return False
        return any(c.confidence >= settings.early_exit_confidence for c in found)

    @staticmethod
    def _arbitrate(collected, settings: ExtractionSettings) -> List[PriceCandidate]:
        """
        Filter, deduplicate and rank collected candidates.

        Candidates below min_confidence are dropped first. For each
        (value, currency) the highest-confidence instance survives (the
        earlier one on ties); survivors are ordered by confidence, then by
        pass order, then by position within the pass.
        """
        best = {}
        for index, seq, candidate in collected:
            if candidate.confidence < settings.min_confidence:
                continue
            current = best.get(candidate.key)
            if current is None or candidate.confidence > current[2].confidence:
                best[candidate.key] = (index, seq, candidate)

        ranked = sorted(best.values(), key=lambda entry: (-entry[2].confidence, entry[0], entry[1]))
        return [candidate for _, _, candidate in ranked]

    @staticmethod
    def _finish(result: ExtractionResult, trace: DebugTrace, log) -> ExtractionResult:
        result.duration_ms = trace.elapsed_ms
        result.trace = trace.entries
        best = result.best
        log.debug(
            "extraction_complete",
            input_kind=result.input_kind,
            candidates=len(result.candidates),
            best=f"{best.currency or ''}{best.value}" if best else None,
            passes_run=result.passes_run,
            errors=len(result.errors),
            duration_ms=result.duration_ms,
        )
        return result


def create_pipeline(
    strategies: Optional[Sequence[ExtractionPass]] = None,
    registry: Optional[SiteHandlerRegistry] = None,
    builder: Optional[PatternBuilder] = None,
    site: Optional[str] = None,
) -> ExtractionPipeline:
    """
    Build a pipeline.

    Args:
        strategies: Passes to run (defaults to the built-in set)
        registry: Site handler registry (defaults to a fresh registry with
            the built-in store handlers)
        builder: PatternBuilder (defaults to the shared builder)
        site: Current site for a default registry

    Returns:
        ExtractionPipeline
    """
    if registry is None:
        registry = create_default_registry(site=site)
    return ExtractionPipeline(passes=strategies, registry=registry, builder=builder)


async def extract_price(
    raw_input: Any,
    settings: Any = None,
    pipeline: Optional[ExtractionPipeline] = None,
) -> Union[Optional[PriceCandidate], List[PriceCandidate]]:
    """
    Extract the best price, or every price when returnMultiple is set.

    Returns:
        Best PriceCandidate (or None), or the ranked candidate list
    """
    settings = ExtractionSettings.coerce(settings)
    pipeline = pipeline or create_pipeline()
    result = await pipeline.extract(raw_input, settings)
    if settings.return_multiple:
        return result.candidates
    return result.best


def extract_price_sync(
    raw_input: Any,
    settings: Any = None,
    pipeline: Optional[ExtractionPipeline] = None,
) -> Union[Optional[PriceCandidate], List[PriceCandidate]]:
    """Synchronous version of extract_price()."""
    return asyncio.run(extract_price(raw_input, settings, pipeline))
