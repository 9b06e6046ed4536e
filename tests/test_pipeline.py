"""Tests for the multi-pass extraction pipeline."""
from decimal import Decimal

import pytest
from bs4 import BeautifulSoup

from price_detector.exceptions import DelimiterError
from price_detector.models import StrategyTag
from price_detector.passes import AttributePass, ExtractionPass, PassName
from price_detector.pipeline import (
    ExtractionPipeline,
    classify_input,
    create_pipeline,
    extract_price,
    extract_price_sync,
)

ARIA_HTML = '<span aria-label="$8.48" class="a-size-base"> $8.48 </span>'


class FailingPass(ExtractionPass):
    name = PassName.CONTEXTUAL
    priority = 5

    async def extract(self, source, context):
        raise RuntimeError("boom")


class TestClassifyInput:
    """Test input classification."""

    def test_text(self):
        assert classify_input("Under $20").kind == "text"

    def test_markup_string(self):
        source = classify_input('<span class="price">$8.48</span>')
        assert source.kind == "node"
        assert source.element.name == "span"

    def test_document_uses_body(self):
        soup = BeautifulSoup("<html><body><p>$5</p></body></html>", "html.parser")
        source = classify_input(soup)
        assert source.kind == "node"
        assert source.element.name == "body"

    def test_text_node(self, parse):
        assert classify_input(parse("<p>$5</p>").string).kind == "text"

    def test_combined(self, parse):
        source = classify_input({"element": parse("<p>$5</p>"), "text": "Under $20"})
        assert source.kind == "combined"
        assert source.full_text == "Under $20"

    def test_mapping_with_text_only(self):
        assert classify_input({"text": "$5"}).kind == "text"

    def test_converted_node(self, parse):
        node = parse('<div class="converted-price"><span>$8.48 (2h)</span></div>').span
        assert classify_input(node).kind == "converted"

    def test_removed_node(self, parse):
        root = parse("<div><span>$5</span></div>")
        span = root.span
        span.decompose()
        assert classify_input(span).kind == "invalid"

    @pytest.mark.parametrize("raw, reason", [
        (None, "No input provided"),
        ("", "Empty text"),
        ("   ", "Empty text"),
    ])
    def test_invalid(self, raw, reason):
        source = classify_input(raw)
        assert source.kind == "invalid"
        assert source.reason == reason

    def test_unsupported_type(self):
        source = classify_input(42)
        assert source.kind == "invalid"
        assert source.reason.startswith("Unsupported input type")


class TestScenarios:
    """End-to-end extraction on representative inputs."""

    @pytest.mark.asyncio
    async def test_aria_label(self, pipeline):
        result = await pipeline.extract(ARIA_HTML)
        assert result.input_kind == "node"
        assert result.best.value == "8.48"
        assert result.best.currency == "$"
        assert result.best.strategy is StrategyTag.ATTRIBUTE
        assert len(result.candidates) == 1

    @pytest.mark.asyncio
    async def test_split_price(self, pipeline, parse, split_price_html):
        result = await pipeline.extract(parse(split_price_html))
        assert result.best.value == "449.00"
        assert result.best.currency == "€"
        assert result.best.strategy is StrategyTag.SPLIT_COMPONENT
        assert result.best.text == "449,00 €"

    @pytest.mark.asyncio
    async def test_contextual_phrase(self, pipeline):
        result = await pipeline.extract("Under $20")
        assert result.best.value == "20"
        assert result.best.context == "under"
        assert result.best.strategy is StrategyTag.CONTEXTUAL
        assert len(result.candidates) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["€10.50", "Price: €10.50"])
    async def test_dot_decimal_euro_text(self, pipeline, text):
        result = await pipeline.extract(text)
        assert result.best.value == "10.50"
        assert result.best.currency == "€"
        assert "10" not in [c.value for c in result.candidates]

    @pytest.mark.asyncio
    async def test_large_number(self, pipeline):
        result = await pipeline.extract("$2,500,000")
        assert result.best.value == "2500000"
        assert result.best.confidence == 0.99
        assert result.best.strategy is StrategyTag.TEXT_CONTENT

    @pytest.mark.asyncio
    async def test_no_price(self, pipeline):
        result = await pipeline.extract("Hello world")
        assert result.candidates == []
        assert result.errors == []
        assert not result.success

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw, error", [(None, "No input provided"), ("", "Empty text")])
    async def test_invalid_input(self, pipeline, raw, error):
        result = await pipeline.extract(raw)
        assert result.candidates == []
        assert result.errors == [error]
        assert result.passes_run == []

    @pytest.mark.asyncio
    async def test_converted_node_warns(self, pipeline, parse):
        node = parse('<span class="converted-price">$8.48 (2h)</span>')
        result = await pipeline.extract(node)
        assert result.candidates == []
        assert result.warnings

    @pytest.mark.asyncio
    async def test_combined_input(self, pipeline, parse):
        result = await pipeline.extract({"element": parse(ARIA_HTML), "text": "Under $20"})
        assert result.input_kind == "combined"
        assert result.best.value == "8.48"
        assert "20" in [c.value for c in result.candidates]

    @pytest.mark.asyncio
    async def test_site_specific_handler(self, parse, split_price_html):
        pipeline = create_pipeline(site="www.cdiscount.com")
        result = await pipeline.extract(parse(split_price_html))
        assert result.best.value == "449.00"
        assert result.best.strategy is StrategyTag.SITE_SPECIFIC
        assert result.best.source == "cdiscount"
        assert "site-specific" in result.passes_run

    @pytest.mark.asyncio
    async def test_site_from_settings(self, pipeline, parse, split_price_html):
        result = await pipeline.extract(parse(split_price_html), {"site": "cdiscount.fr"})
        assert result.best.strategy is StrategyTag.SITE_SPECIFIC

    @pytest.mark.asyncio
    async def test_amazon_de_comma_decimal(self, parse):
        node = parse(
            '<span class="a-price"><span class="a-price-symbol">€</span>'
            '<span class="a-price-whole">8<span class="a-price-decimal">,</span></span>'
            '<span class="a-price-fraction">48</span></span>'
        )
        result = await create_pipeline(site="www.amazon.de").extract(node)
        assert result.best.value == "8.48"
        assert result.best.currency == "€"
        assert result.best.strategy is StrategyTag.SITE_SPECIFIC
        assert {c.value for c in result.candidates} == {"8.48"}

    @pytest.mark.asyncio
    async def test_ebay_de_data_price(self, parse):
        node = parse('<span class="display-price" data-price="10.50" data-currency="EUR">10,50 €</span>')
        result = await create_pipeline(site="www.ebay.de").extract(node, {"onlyPass": "site-specific"})
        [candidate] = result.candidates
        assert candidate.value == "10.50"
        assert candidate.currency == "EUR"
        assert candidate.source == "ebay"

    @pytest.mark.asyncio
    async def test_gearbest_euro_dot_decimal(self, parse):
        node = parse(
            '<span class="my-shop-price"><span class="currency">€</span>'
            '<span class="value">10.50</span></span>'
        )
        result = await create_pipeline(site="gearbest.com").extract(node)
        assert result.best.value == "10.50"
        assert result.best.strategy is StrategyTag.SITE_SPECIFIC
        assert "10" not in [c.value for c in result.candidates]

    @pytest.mark.asyncio
    async def test_site_specific_skipped_without_handler(self, pipeline):
        result = await pipeline.extract(ARIA_HTML)
        assert "site-specific" in result.passes_skipped


class TestRanking:
    """Test arbitration and confidence ordering."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [ARIA_HTML, "Under $20", "$2,500,000"])
    async def test_best_text_round_trips(self, pipeline, raw):
        best = (await pipeline.extract(raw)).best
        again = (await pipeline.extract(best.text)).best
        assert Decimal(again.value) == Decimal(best.value)
        assert again.currency_code == best.currency_code

    @pytest.mark.asyncio
    async def test_split_text_round_trips(self, pipeline, parse, split_price_html):
        best = (await pipeline.extract(parse(split_price_html))).best
        again = (await pipeline.extract(best.text)).best
        assert again.key == best.key

    @pytest.mark.asyncio
    async def test_sorted_by_confidence(self, pipeline):
        result = await pipeline.extract("Deals under $20 and gifts from $2.99 or $5")
        confidences = [c.confidence for c in result.candidates]
        assert confidences == sorted(confidences, reverse=True)
        assert len({c.key for c in result.candidates}) == len(result.candidates)

    @pytest.mark.asyncio
    async def test_min_confidence(self, pipeline):
        result = await pipeline.extract("Only $5 today", {"minConfidence": 0.9})
        assert result.candidates == []

    @pytest.mark.asyncio
    async def test_context_scoring(self, pipeline):
        plain = await pipeline.extract(ARIA_HTML, {"contextScoring": False})
        scored = await pipeline.extract(ARIA_HTML)
        assert plain.best.confidence == 0.96
        assert scored.best.confidence >= plain.best.confidence


class TestPassControl:
    """Test pass selection, early exit and failure isolation."""

    @pytest.mark.asyncio
    async def test_early_exit(self, pipeline):
        result = await pipeline.extract(ARIA_HTML, {"earlyExitConfidence": 0.9})
        assert result.early_exit
        assert result.passes_run == ["attribute-extraction"]

    @pytest.mark.asyncio
    async def test_exhaustive_disables_early_exit(self, pipeline):
        result = await pipeline.extract(ARIA_HTML, {"earlyExitConfidence": 0.9, "exhaustive": True})
        assert not result.early_exit
        assert "pattern-matching" in result.passes_run

    @pytest.mark.asyncio
    async def test_only_pass(self, pipeline):
        result = await pipeline.extract(ARIA_HTML, {"onlyPass": "attribute-extraction"})
        assert result.passes_run == ["attribute-extraction"]
        assert result.best.strategy is StrategyTag.ATTRIBUTE

    @pytest.mark.asyncio
    async def test_exclude_passes(self, pipeline):
        result = await pipeline.extract(ARIA_HTML, {"excludePasses": ["attribute-extraction"]})
        assert "attribute-extraction" in result.passes_skipped
        assert result.best.value == "8.48"
        assert result.best.strategy is not StrategyTag.ATTRIBUTE

    @pytest.mark.asyncio
    async def test_failing_pass_is_isolated(self, registry):
        pipeline = ExtractionPipeline(passes=[AttributePass(), FailingPass()], registry=registry)
        result = await pipeline.extract(ARIA_HTML)
        assert result.errors == ["contextual-patterns: boom"]
        assert result.best.value == "8.48"

    def test_passes_sorted_once(self):
        pipeline = ExtractionPipeline(passes=[AttributePass(), FailingPass()])
        assert [p.priority for p in pipeline.passes] == [5, 20]

    @pytest.mark.asyncio
    async def test_legacy_mode(self, pipeline):
        result = await pipeline.extract(ARIA_HTML, {"multiPassMode": False})
        assert "dom-analyzer" in result.passes_run
        assert "attribute-extraction" not in result.passes_run
        assert result.best.value == "8.48"

    @pytest.mark.asyncio
    async def test_delimiter_error_propagates(self, pipeline):
        with pytest.raises(DelimiterError):
            await pipeline.extract("$5", {"thousands": "bogus"})


class TestDebugTrace:
    """Test the per-call debug trace."""

    @pytest.mark.asyncio
    async def test_trace_shares_correlation_id(self, pipeline):
        result = await pipeline.extract(ARIA_HTML, {"debugMode": True})
        assert result.trace
        assert {entry.correlation_id for entry in result.trace} == {result.correlation_id}
        assert result.trace[0].phase == "input-classification"
        assert result.trace[-1].phase == "result-arbitration"

    @pytest.mark.asyncio
    async def test_correlation_ids_unique(self, pipeline):
        first = await pipeline.extract("$5", {"debugMode": True})
        second = await pipeline.extract("$5", {"debugMode": True})
        assert first.correlation_id != second.correlation_id

    @pytest.mark.asyncio
    async def test_trace_disabled_by_default(self, pipeline):
        assert (await pipeline.extract(ARIA_HTML)).trace == []

    @pytest.mark.asyncio
    async def test_debug_does_not_change_results(self, pipeline):
        plain = await pipeline.extract(ARIA_HTML)
        debug = await pipeline.extract(ARIA_HTML, {"debugMode": True})
        assert [c.to_dict() for c in plain.candidates] == [c.to_dict() for c in debug.candidates]

    @pytest.mark.asyncio
    async def test_to_dict(self, pipeline):
        data = (await pipeline.extract("Under $20", {"debugMode": True})).to_dict()
        assert data["input_kind"] == "text"
        assert data["candidates"][0]["value"] == "20"
        assert data["trace"][0]["correlation_id"] == data["correlation_id"]


class TestExtractPrice:
    @pytest.mark.asyncio
    async def test_best_only(self, pipeline):
        price = await extract_price("Under $20", pipeline=pipeline)
        assert price.value == "20"

    @pytest.mark.asyncio
    async def test_return_multiple(self, pipeline):
        prices = await extract_price(
            "Deals under $20 and gifts from $2.99", {"returnMultiple": True}, pipeline,
        )
        assert isinstance(prices, list)
        assert {"20", "2.99"} <= {p.value for p in prices}

    @pytest.mark.asyncio
    async def test_nothing_found(self, pipeline):
        assert await extract_price("Hello world", pipeline=pipeline) is None

    def test_sync(self, pipeline):
        assert extract_price_sync("$2,500,000", pipeline=pipeline).value == "2500000"

    def test_extract_sync(self, pipeline):
        assert pipeline.extract_sync(ARIA_HTML).best.value == "8.48"
