"""
Price matcher construction.

Builds compiled matchers for plain price text ("$1,299.99", "10,50 €",
"EUR 10") and for text that has already been annotated with a trailing
time parenthetical ("$20 (2h 30m)"). Matchers are cached by their
(symbol, code, thousands, decimal) arguments.
"""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, List, Optional, Pattern

import structlog

from .formats import (
    ALL_CODES,
    ALL_SYMBOLS,
    FormatDescriptor,
    canonical_amount,
    decimal_char,
    find_currency_markers,
    format_for_marker,
    marker_regex,
    thousands_chars,
)

logger = structlog.get_logger(__name__, component="pattern_builder")

TIME_ANNOTATION_PATTERN = r'\s\(\d+h\s\d+m\)'

# Sanity bounds for a detected amount
MIN_AMOUNT = Decimal("0")
MAX_AMOUNT = Decimal("1000000000")


def build_thousands_string(token: str) -> str:
    """Regex fragment for a thousands separator token."""
    thousands_chars(token)
    if token == 'commas':
        return ','
    if token == 'spacesAndDots':
        return r'[ \u00a0\u202f.]'
    return ''


def build_decimal_string(token: str) -> str:
    """Regex fragment for a decimal separator token."""
    return re.escape(decimal_char(token))


def build_number_string(thousands: str, decimal: str) -> str:
    """Regex fragment for an amount: digits, optional grouping, optional fraction."""
    grouping = build_thousands_string(thousands)
    fraction = build_decimal_string(decimal)
    if grouping:
        return rf'\d+(?:{grouping}\d{{3}})*(?:{fraction}\d{{1,2}})?'
    return rf'\d+(?:{fraction}\d{{1,2}})?'


def normalize_amount(amount: str, thousands: str, decimal: str) -> Optional[str]:
    """
    Convert an amount written with the given separators to canonical form.

    Examples:
        >>> normalize_amount("1.234,56", "spacesAndDots", "comma")
        '1234.56'
        >>> normalize_amount("2,500,000", "commas", "dot")
        '2500000'
    """
    for char in thousands_chars(thousands):
        if char == ' ':
            amount = re.sub(r'\s', '', amount)
        else:
            amount = amount.replace(char, '')
    amount = amount.replace(decimal_char(decimal), '.')
    return canonical_amount(amount)


def is_plausible_amount(value: Optional[str]) -> bool:
    """True if value is a positive amount inside the sanity bounds."""
    if not value:
        return False
    try:
        amount = Decimal(value)
    except (InvalidOperation, ValueError):
        return False
    return MIN_AMOUNT < amount < MAX_AMOUNT


@dataclass(frozen=True)
class PatternMatch:
    """One price found by a PricePattern."""

    text: str
    marker: str
    amount: str
    value: Optional[str]
    start: int
    end: int


class PricePattern:
    """Compiled price matcher bound to one separator convention."""

    def __init__(self, regex: Pattern, thousands: str, decimal: str, annotated: bool = False):
        self.regex = regex
        self.thousands = thousands
        self.decimal = decimal
        self.annotated = annotated

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    def finditer(self, text: str) -> Iterator[PatternMatch]:
        for match in self.regex.finditer(text or ''):
            if match.group('sym_before') is not None:
                marker = match.group('sym_before')
                amount = match.group('num_before')
            else:
                marker = match.group('sym_after')
                amount = match.group('num_after')

            yield PatternMatch(
                text=match.group(0),
                marker=marker,
                amount=amount,
                value=normalize_amount(amount, self.thousands, self.decimal),
                start=match.start(),
                end=match.end(),
            )

    def findall(self, text: str) -> List[PatternMatch]:
        return list(self.finditer(text))

    def search(self, text: str) -> Optional[PatternMatch]:
        return next(self.finditer(text), None)

    def sub(self, replacement: str, text: str) -> str:
        return self.regex.sub(replacement, text or '')

    def __repr__(self) -> str:
        kind = "annotated" if self.annotated else "plain"
        return f"PricePattern({kind}, thousands={self.thousands!r}, decimal={self.decimal!r})"


class PatternCache:
    """Append-only map of built matchers, keyed by their build arguments."""

    def __init__(self):
        self._patterns: Dict[str, PricePattern] = {}

    @staticmethod
    def make_key(kind: str, symbol, code, thousands, decimal) -> str:
        return f"{kind}:" + "|".join(str(part) for part in (symbol, code, thousands, decimal))

    def get(self, key: str) -> Optional[PricePattern]:
        return self._patterns.get(key)

    def set(self, key: str, pattern: PricePattern) -> None:
        self._patterns.setdefault(key, pattern)

    def clear(self) -> None:
        self._patterns.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)


class PatternBuilder:
    """
    Build and cache price matchers.

    Example:
        >>> builder = PatternBuilder()
        >>> pattern = builder.build_match_pattern("$", "USD", "commas", "dot")
        >>> pattern.search("Now $1,299.99").value
        '1299.99'
    """

    def __init__(self, cache: Optional[PatternCache] = None):
        self.cache = cache if cache is not None else PatternCache()
        self.builds = 0

    def build_match_pattern(
        self,
        symbol: Optional[str],
        code: Optional[str],
        thousands: str = 'commas',
        decimal: str = 'dot',
    ) -> PricePattern:
        """
        Build (or fetch from cache) the plain matcher for a format.

        Args:
            symbol: Currency symbol, or None
            code: ISO currency code, or None
            thousands: Thousands token ('commas', 'spacesAndDots', 'none')
            decimal: Decimal token ('dot', 'comma')

        Returns:
            PricePattern accepting symbol/code before or after the amount

        Raises:
            DelimiterError: If a separator token is not recognized
        """
        return self._build('plain', symbol, code, thousands, decimal)

    def build_reverse_match_pattern(
        self,
        symbol: Optional[str],
        code: Optional[str],
        thousands: str = 'commas',
        decimal: str = 'dot',
    ) -> PricePattern:
        """Build the matcher for prices already annotated with a time parenthetical."""
        return self._build('annotated', symbol, code, thousands, decimal)

    def for_format(self, descriptor: FormatDescriptor, annotated: bool = False) -> PricePattern:
        build = self.build_reverse_match_pattern if annotated else self.build_match_pattern
        return build(
            descriptor.currency_symbol,
            descriptor.currency_code,
            descriptor.thousands,
            descriptor.decimal,
        )

    def _build(self, kind, symbol, code, thousands, decimal) -> PricePattern:
        key = PatternCache.make_key(kind, symbol, code, thousands, decimal)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        number = build_number_string(thousands, decimal)
        markers = [m for m in (symbol, code) if m] or (ALL_SYMBOLS + ALL_CODES)
        markers = sorted(set(markers), key=len, reverse=True)
        currency = '|'.join(marker_regex(m) for m in markers)

        before = rf'(?<!\d)(?P<sym_before>{currency})\s?(?P<num_before>{number})(?![.,]\d)(?!\d)'
        after = rf'(?<![\d.,])(?P<num_after>{number})(?![.,]\d)(?!\d)\s?(?P<sym_after>{currency})'
        source = rf'(?:{before}|{after})'
        if kind == 'annotated':
            source += TIME_ANNOTATION_PATTERN

        pattern = PricePattern(
            re.compile(source),
            thousands=thousands,
            decimal=decimal,
            annotated=(kind == 'annotated'),
        )
        self.cache.set(key, pattern)
        self.builds += 1
        logger.debug("pattern_built", key=key, cache_size=len(self.cache))
        return pattern


default_builder = PatternBuilder()


def build_match_pattern(symbol, code, thousands='commas', decimal='dot') -> PricePattern:
    """Build a plain matcher with the shared default builder."""
    return default_builder.build_match_pattern(symbol, code, thousands, decimal)


def build_reverse_match_pattern(symbol, code, thousands='commas', decimal='dot') -> PricePattern:
    """Build an annotated-text matcher with the shared default builder."""
    return default_builder.build_reverse_match_pattern(symbol, code, thousands, decimal)


def strip_annotated(
    text: str,
    caller_format: Optional[FormatDescriptor] = None,
    builder: Optional[PatternBuilder] = None,
) -> str:
    """Remove prices that already carry a time annotation."""
    if not text:
        return ''
    builder = builder or default_builder
    for marker in find_currency_markers(text):
        if caller_format is not None and marker in caller_format.markers:
            descriptor = caller_format
        else:
            descriptor = format_for_marker(marker)
        text = builder.for_format(descriptor, annotated=True).sub(' ', text)
    return text


def scan_text_for_prices(
    text: str,
    caller_format: Optional[FormatDescriptor] = None,
    builder: Optional[PatternBuilder] = None,
) -> List[PatternMatch]:
    """
    Find every price in a text.

    A matcher is built for each currency marker present in the text. The
    caller's separators apply to the caller's own currency; any other marker
    uses the format it resolves to.

    Args:
        text: Free text
        caller_format: Format taken from caller settings, if any
        builder: PatternBuilder to use (defaults to the shared builder)

    Returns:
        Non-overlapping matches, left to right
    """
    if not text:
        return []

    builder = builder or default_builder
    seen = set()
    found: List[PatternMatch] = []

    for marker in find_currency_markers(text):
        if caller_format is not None and marker in caller_format.markers:
            descriptor = caller_format
        else:
            descriptor = format_for_marker(marker)

        signature = (descriptor.markers, descriptor.thousands, descriptor.decimal)
        if signature in seen:
            continue
        seen.add(signature)

        pattern = builder.for_format(descriptor)
        found.extend(m for m in pattern.finditer(text) if is_plausible_amount(m.value))

    found.sort(key=lambda m: (m.start, -(m.end - m.start)))

    matches: List[PatternMatch] = []
    last_end = -1
    for match in found:
        if match.start >= last_end:
            matches.append(match)
            last_end = match.end
    return matches
