"""Tests for currency format resolution."""
import pytest

from price_detector.exceptions import DelimiterError
from price_detector.formats import (
    FormatDescriptor,
    FormatResolver,
    canonical_amount,
    currency_code_for,
    find_currency_markers,
    infer_format,
    is_currency_marker,
    render_price,
    resolve_format,
)


class TestResolveFormat:
    """Test resolve_format() symbol/code resolution."""

    def test_euro_symbol(self):
        descriptor = resolve_format("€", None)
        assert descriptor.currency_code == "EUR"
        assert descriptor.thousands == "spacesAndDots"
        assert descriptor.decimal == "comma"
        assert descriptor.locale_id == "de-DE"

    def test_us_dollar(self):
        descriptor = resolve_format("$", "USD")
        assert descriptor.thousands == "commas"
        assert descriptor.decimal == "dot"
        assert descriptor.locale_id == "en-US"

    def test_symbol_wins_over_code(self):
        """'$' + 'EUR' resolves to the US format."""
        descriptor = resolve_format("$", "EUR")
        assert descriptor.decimal == "dot"
        assert descriptor.currency_code == "EUR"

    def test_code_only(self):
        descriptor = resolve_format(None, "JPY")
        assert descriptor.currency_symbol == "¥"
        assert descriptor.locale_id == "ja-JP"

    def test_unknown_falls_back_to_us(self):
        descriptor = resolve_format("XYZ", "ABC")
        assert descriptor.thousands == "commas"
        assert descriptor.decimal == "dot"

    def test_nothing_given(self):
        descriptor = resolve_format()
        assert descriptor.markers == ("$", "USD")


class TestInferFormat:
    """Test infer_format() on free text."""

    def test_infers_euro(self):
        assert infer_format("Prix : 12,50 €").currency_code == "EUR"

    def test_infers_from_code(self):
        assert infer_format("Total 100 SEK").decimal == "comma"

    def test_no_currency_is_none(self):
        assert infer_format("Hello world") is None
        assert infer_format("") is None


class TestFormatResolver:
    """Test the injectable resolver cache."""

    def test_injected_cache_is_used(self):
        cache = {}
        resolver = FormatResolver(cache)
        first = resolver.resolve("€")
        assert ("€", None) in cache
        assert resolver.resolve("€") is first

    def test_clear(self):
        resolver = FormatResolver()
        resolver.resolve("$", "USD")
        resolver.resolve("£", None)
        assert len(resolver) == 2
        resolver.clear()
        assert len(resolver) == 0


class TestFormatDescriptor:
    """Test descriptor validation."""

    def test_same_separator_rejected(self):
        with pytest.raises(DelimiterError, match="Not a recognized delimiter"):
            FormatDescriptor("$", "USD", thousands="commas", decimal="comma")

    def test_unknown_thousands_token(self):
        with pytest.raises(DelimiterError, match="Not a recognized delimiter for thousands"):
            FormatDescriptor("$", "USD", thousands="bogus")

    def test_unknown_decimal_token(self):
        with pytest.raises(DelimiterError, match="Not a recognized delimiter for decimals"):
            FormatDescriptor("$", "USD", decimal="semicolon")

    def test_delimiter_error_is_value_error(self):
        with pytest.raises(ValueError):
            FormatDescriptor("$", "USD", thousands="bogus")


class TestCurrencyMarkers:
    """Test marker lookup helpers."""

    def test_markers_in_order(self):
        assert find_currency_markers("$5 or 5 EUR or €3") == ["$", "EUR", "€"]

    def test_codes_need_word_boundaries(self):
        assert find_currency_markers("EUROPE") == []
        assert find_currency_markers("kroner") == []

    def test_longest_symbol_wins(self):
        assert find_currency_markers("US$12") == ["US$"]

    def test_is_currency_marker(self):
        assert is_currency_marker(" € ")
        assert is_currency_marker("USD")
        assert not is_currency_marker("12")
        assert not is_currency_marker(None)

    def test_currency_code_for(self):
        assert currency_code_for("$") == "USD"
        assert currency_code_for("usd") == "USD"
        assert currency_code_for("€") == "EUR"
        assert currency_code_for("kr") is None
        assert currency_code_for(None) is None


class TestRenderPrice:
    """Test canonical price rendering."""

    def test_euro(self):
        assert render_price("449.00", "€") == "449,00 €"

    def test_dollar(self):
        assert render_price("8.48", "$") == "$8.48"

    def test_code(self):
        assert render_price("149.99", "USD") == "149.99 USD"

    def test_no_currency(self):
        assert render_price("10", None) == "10"


class TestCanonicalAmount:
    def test_strips_leading_zeros(self):
        assert canonical_amount("007.50") == "7.50"
        assert canonical_amount("0") == "0"

    def test_rejects_non_numbers(self):
        assert canonical_amount("1,5") is None
        assert canonical_amount("abc") is None
        assert canonical_amount(None) is None
