"""
Currency format resolution.

Maps a currency symbol/code pair to the separator conventions used to write
amounts in that currency, and infers a format from free text.
"""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .exceptions import DelimiterError


# Separator tokens and the characters they stand for
THOUSANDS_SEPARATORS: Dict[str, Tuple[str, ...]] = {
    'commas': (',',),
    'spacesAndDots': (' ', '.'),
    'none': (),
}

DECIMAL_SEPARATORS: Dict[str, str] = {
    'dot': '.',
    'comma': ',',
}

# Format groups: separator conventions shared by a set of currencies
CURRENCY_FORMATS = {
    'US': {
        'locale_id': 'en-US',
        'thousands': 'commas',
        'decimal': 'dot',
        'symbols': ['$', '£', '₹', 'US$', 'A$', 'C$'],
        'codes': ['USD', 'GBP', 'INR', 'CAD', 'AUD'],
        'symbols_before_amount': True,
    },
    'EU': {
        'locale_id': 'de-DE',
        'thousands': 'spacesAndDots',
        'decimal': 'comma',
        'symbols': ['€', 'Fr', 'kr', 'zł', '₽'],
        'codes': ['EUR', 'CHF', 'SEK', 'DKK', 'NOK', 'PLN', 'RUB'],
        'symbols_before_amount': False,
    },
    'JP': {
        'locale_id': 'ja-JP',
        'thousands': 'commas',
        'decimal': 'dot',
        'symbols': ['¥', '₩', '元', '￥', '円'],
        'codes': ['JPY', 'KRW', 'CNY'],
        'symbols_before_amount': True,
    },
}

DEFAULT_FORMAT_GROUP = 'US'

SYMBOL_TO_FORMAT = {
    symbol: group
    for group, fmt in CURRENCY_FORMATS.items()
    for symbol in fmt['symbols']
}

CODE_TO_FORMAT = {
    code: group
    for group, fmt in CURRENCY_FORMATS.items()
    for code in fmt['codes']
}

# Only symbols that name a single currency are listed
SYMBOL_TO_CODE = {
    '$': 'USD',
    'US$': 'USD',
    '£': 'GBP',
    '₹': 'INR',
    'A$': 'AUD',
    'C$': 'CAD',
    '€': 'EUR',
    'Fr': 'CHF',
    'zł': 'PLN',
    '₽': 'RUB',
    '¥': 'JPY',
    '￥': 'JPY',
    '円': 'JPY',
    '₩': 'KRW',
    '元': 'CNY',
}

CODE_TO_SYMBOL = {
    'USD': '$',
    'GBP': '£',
    'INR': '₹',
    'CAD': 'C$',
    'AUD': 'A$',
    'EUR': '€',
    'CHF': 'Fr',
    'SEK': 'kr',
    'DKK': 'kr',
    'NOK': 'kr',
    'PLN': 'zł',
    'RUB': '₽',
    'JPY': '¥',
    'KRW': '₩',
    'CNY': '元',
}

ALL_SYMBOLS = sorted(SYMBOL_TO_FORMAT, key=len, reverse=True)
ALL_CODES = sorted(CODE_TO_FORMAT)


def marker_regex(marker: str) -> str:
    """
    Regex fragment for a currency marker.

    Markers containing letters (ISO codes, "kr", "US$") only match on word
    boundaries so they are not found inside ordinary words.
    """
    escaped = re.escape(marker)
    if re.search(r'[A-Za-z]', marker):
        return rf'(?<![A-Za-z]){escaped}(?![A-Za-z])'
    return escaped


MARKER_PATTERN = re.compile(
    '|'.join(marker_regex(m) for m in sorted(ALL_SYMBOLS + ALL_CODES, key=len, reverse=True))
)


def thousands_chars(token: str) -> Tuple[str, ...]:
    """Return the characters a thousands token stands for."""
    try:
        return THOUSANDS_SEPARATORS[token]
    except (KeyError, TypeError):
        raise DelimiterError(f"Not a recognized delimiter for thousands: {token!r}") from None


def decimal_char(token: str) -> str:
    """Return the character a decimal token stands for."""
    try:
        return DECIMAL_SEPARATORS[token]
    except (KeyError, TypeError):
        raise DelimiterError(f"Not a recognized delimiter for decimals: {token!r}") from None


@dataclass(frozen=True)
class FormatDescriptor:
    """Separator conventions for writing amounts in one currency."""

    currency_symbol: Optional[str]
    currency_code: Optional[str]
    thousands: str = 'commas'
    decimal: str = 'dot'
    locale_id: str = 'en-US'
    symbols_before_amount: bool = True

    def __post_init__(self):
        decimal = decimal_char(self.decimal)
        if decimal in thousands_chars(self.thousands):
            raise DelimiterError(
                f"Not a recognized delimiter combination: thousands={self.thousands!r} "
                f"and decimal={self.decimal!r} share {decimal!r}"
            )

    @property
    def markers(self) -> Tuple[str, ...]:
        """Currency markers (symbol and code) this format matches."""
        return tuple(m for m in (self.currency_symbol, self.currency_code) if m)

    @property
    def cache_key(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.currency_symbol, self.currency_code)


class FormatResolver:
    """
    Resolve format descriptors for currency symbol/code pairs.

    Descriptors are cached by their (symbol, code) key. The cache can be
    injected so that callers and tests control its lifetime.
    """

    def __init__(self, cache: Optional[Dict[Tuple, FormatDescriptor]] = None):
        self._cache = {} if cache is None else cache

    def resolve(self, symbol: Optional[str] = None, code: Optional[str] = None) -> FormatDescriptor:
        """
        Resolve a format descriptor.

        The symbol wins when symbol and code belong to different format
        groups. Unknown pairs fall back to the US-style format.

        Args:
            symbol: Currency symbol (e.g., "€")
            code: ISO currency code (e.g., "EUR")

        Returns:
            FormatDescriptor for the pair
        """
        key = (symbol, code)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        group = SYMBOL_TO_FORMAT.get(symbol) or CODE_TO_FORMAT.get(code) or DEFAULT_FORMAT_GROUP
        fmt = CURRENCY_FORMATS[group]

        if symbol is None and code is None:
            symbol = fmt['symbols'][0]
            code = fmt['codes'][0]
        elif code is None:
            code = SYMBOL_TO_CODE.get(symbol)
        elif symbol is None:
            symbol = CODE_TO_SYMBOL.get(code)

        descriptor = FormatDescriptor(
            currency_symbol=symbol,
            currency_code=code,
            thousands=fmt['thousands'],
            decimal=fmt['decimal'],
            locale_id=fmt['locale_id'],
            symbols_before_amount=fmt['symbols_before_amount'],
        )
        self._cache[key] = descriptor
        return descriptor

    def infer(self, text: str) -> Optional[FormatDescriptor]:
        """
        Infer a format from free text.

        Returns None when the text carries no currency symbol or code at all.
        """
        markers = find_currency_markers(text)
        if not markers:
            return None

        marker = markers[0]
        if marker in CODE_TO_FORMAT:
            return self.resolve(None, marker)
        return self.resolve(marker, None)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


_default_resolver = FormatResolver()


def resolve_format(symbol: Optional[str] = None, code: Optional[str] = None) -> FormatDescriptor:
    """Resolve a format descriptor with the default resolver."""
    return _default_resolver.resolve(symbol, code)


def infer_format(text: str) -> Optional[FormatDescriptor]:
    """Infer a format descriptor from text with the default resolver."""
    return _default_resolver.infer(text)


def find_currency_markers(text: Optional[str]) -> List[str]:
    """
    Find currency symbols and codes in text.

    Args:
        text: Free text

    Returns:
        Distinct markers in order of first appearance
    """
    if not text:
        return []

    markers: List[str] = []
    for match in MARKER_PATTERN.finditer(str(text)):
        marker = match.group(0)
        if marker not in markers:
            markers.append(marker)
    return markers


def is_currency_marker(text: Optional[str]) -> bool:
    """True if the text is exactly one currency symbol or code."""
    if not text:
        return False
    text = text.strip()
    return text in SYMBOL_TO_FORMAT or text in CODE_TO_FORMAT


def currency_code_for(marker: Optional[str]) -> Optional[str]:
    """Map a currency symbol or code to its ISO code, if unambiguous."""
    if not marker:
        return None
    marker = marker.strip()
    if marker.upper() in CODE_TO_FORMAT:
        return marker.upper()
    return SYMBOL_TO_CODE.get(marker)


def format_for_marker(marker: str) -> FormatDescriptor:
    """Resolve the format for a single marker, symbol or code."""
    if marker in CODE_TO_FORMAT:
        return resolve_format(None, marker)
    return resolve_format(marker, None)


def render_price(value: str, currency: Optional[str]) -> str:
    """
    Render a canonical value the way its currency is usually written.

    Examples:
        >>> render_price("449.00", "€")
        '449,00 €'
        >>> render_price("8.48", "$")
        '$8.48'
        >>> render_price("149.99", "USD")
        '149.99 USD'
    """
    if not currency:
        return value

    descriptor = format_for_marker(currency)
    amount = value
    if descriptor.decimal == 'comma':
        amount = value.replace('.', ',')

    if currency in CODE_TO_FORMAT or not descriptor.symbols_before_amount:
        return f"{amount} {currency}"
    return f"{currency}{amount}"


def canonical_amount(raw: Optional[str]) -> Optional[str]:
    """
    Canonical form of a dot-decimal digit string.

    Leading zeros of the integer part are dropped; the fractional part is
    kept as written. Returns None if the string is not a plain number.
    """
    if raw is None:
        return None
    match = re.fullmatch(r'(\d+)(?:\.(\d+))?', str(raw).strip())
    if not match:
        return None
    integer = match.group(1).lstrip('0') or '0'
    if match.group(2) is None:
        return integer
    return f"{integer}.{match.group(2)}"
