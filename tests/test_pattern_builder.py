"""Tests for price matcher construction and caching."""
import pytest

from price_detector.exceptions import DelimiterError
from price_detector.formats import resolve_format
from price_detector.pattern_builder import (
    PatternCache,
    is_plausible_amount,
    normalize_amount,
    scan_text_for_prices,
    strip_annotated,
)


class TestPatternCache:
    """Test cache-hit determinism and resets."""

    def test_identical_arguments_hit_cache(self, builder):
        first = builder.build_match_pattern("$", "USD", "commas", "dot")
        second = builder.build_match_pattern("$", "USD", "commas", "dot")
        assert first is second
        assert builder.builds == 1

    def test_plain_and_annotated_cached_separately(self, builder):
        plain = builder.build_match_pattern("$", "USD")
        annotated = builder.build_reverse_match_pattern("$", "USD")
        assert plain is not annotated
        assert len(builder.cache) == 2

    def test_rebuild_after_clear_behaves_identically(self, builder):
        text = "Now $1,299.99 and $5"
        before = [m.value for m in builder.build_match_pattern("$", "USD").finditer(text)]
        builder.cache.clear()
        assert len(builder.cache) == 0
        after = [m.value for m in builder.build_match_pattern("$", "USD").finditer(text)]
        assert before == after == ["1299.99", "5"]
        assert builder.builds == 2

    def test_make_key(self):
        assert PatternCache.make_key("plain", "$", "USD", "commas", "dot") == "plain:$|USD|commas|dot"


class TestMatchPattern:
    """Test the plain matcher."""

    def test_symbol_before_with_grouping(self, builder):
        match = builder.build_match_pattern("$", "USD", "commas", "dot").search("Now $1,299.99")
        assert match.value == "1299.99"
        assert match.marker == "$"
        assert match.text == "$1,299.99"

    def test_symbol_after_european(self, builder):
        pattern = builder.build_match_pattern("€", "EUR", "spacesAndDots", "comma")
        assert pattern.search("Prix 1.234,56 €").value == "1234.56"
        assert pattern.search("Prix 10,50€").value == "10.50"

    def test_code_before_and_after(self, builder):
        eu = builder.build_match_pattern("€", "EUR", "spacesAndDots", "comma")
        us = builder.build_match_pattern("$", "USD", "commas", "dot")
        assert eu.search("EUR 10").value == "10"
        assert us.search("149.99 USD").value == "149.99"

    def test_no_thousands(self, builder):
        pattern = builder.build_match_pattern("$", "USD", "none", "dot")
        assert pattern.search("$1299.50").value == "1299.50"

    def test_findall(self, builder):
        pattern = builder.build_match_pattern("$", "USD")
        assert [m.value for m in pattern.findall("$5, $10.25")] == ["5", "10.25"]

    @pytest.mark.parametrize("text", ["€10.50", "Price: €10.50", "10.50€"])
    def test_foreign_decimal_not_truncated_european(self, builder, text):
        pattern = builder.build_match_pattern("€", "EUR", "spacesAndDots", "comma")
        assert pattern.search(text) is None

    def test_foreign_decimal_not_truncated_us(self, builder):
        pattern = builder.build_match_pattern("$", "USD", "commas", "dot")
        assert pattern.search("$1.234,56") is None
        assert pattern.search("$5,50") is None

    def test_grouping_spaces(self, builder):
        pattern = builder.build_match_pattern("€", "EUR", "spacesAndDots", "comma")
        assert pattern.search("1 234,56 €").value == "1234.56"
        assert pattern.search("1\u00a0234,56 €").value == "1234.56"
        assert pattern.search("1\u202f234,56 €").value == "1234.56"

    @pytest.mark.parametrize("text", ["Buy 2\n100 €", "Buy 2\t100 €"])
    def test_line_breaks_do_not_join_numbers(self, builder, text):
        pattern = builder.build_match_pattern("€", "EUR", "spacesAndDots", "comma")
        assert pattern.search(text).value == "100"

    def test_unknown_thousands_token_raises(self, builder):
        with pytest.raises(DelimiterError, match="Not a recognized delimiter"):
            builder.build_match_pattern("$", "USD", "bogus", "dot")

    def test_unknown_decimal_token_raises(self, builder):
        with pytest.raises(DelimiterError, match="Not a recognized delimiter"):
            builder.build_match_pattern("$", "USD", "commas", "semicolon")


class TestReverseMatchPattern:
    """Test the matcher for already-annotated text."""

    def test_matches_annotated_price(self, builder):
        pattern = builder.build_reverse_match_pattern("$", "USD")
        assert pattern.search("$20 (2h 30m)") is not None

    def test_ignores_plain_price(self, builder):
        pattern = builder.build_reverse_match_pattern("$", "USD")
        assert pattern.search("$20") is None

    def test_strip_annotated(self, builder):
        text = strip_annotated("Was $20 (2h 30m) now $15", builder=builder)
        assert [m.value for m in scan_text_for_prices(text, builder=builder)] == ["15"]


class TestScanTextForPrices:
    """Test multi-currency scanning."""

    def test_mixed_currencies_left_to_right(self, builder):
        matches = scan_text_for_prices("$5 and 10,50 €", builder=builder)
        assert [(m.value, m.marker) for m in matches] == [("5", "$"), ("10.50", "€")]

    def test_caller_format_applies_to_own_currency(self, builder):
        caller = resolve_format("$", "USD")
        matches = scan_text_for_prices("Total: $2,500,000", caller, builder)
        assert [m.value for m in matches] == ["2500000"]

    def test_zero_amount_dropped(self, builder):
        assert scan_text_for_prices("$0.00", builder=builder) == []

    def test_no_currency(self, builder):
        assert scan_text_for_prices("Hello world 42", builder=builder) == []
        assert scan_text_for_prices("", builder=builder) == []


class TestAmountHelpers:
    def test_normalize_amount(self):
        assert normalize_amount("1.234,56", "spacesAndDots", "comma") == "1234.56"
        assert normalize_amount("1 234,56", "spacesAndDots", "comma") == "1234.56"
        assert normalize_amount("2,500,000", "commas", "dot") == "2500000"

    def test_is_plausible_amount(self):
        assert is_plausible_amount("8.48")
        assert not is_plausible_amount("0")
        assert not is_plausible_amount("1000000000")
        assert not is_plausible_amount(None)
        assert not is_plausible_amount("abc")
