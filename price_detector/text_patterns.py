"""
Text-only price patterns.

Pure-text strategies used when no markup tree is available, and as building
blocks for the structural strategies:

- space variations ("272.46 €", "€272", "$ 25")
- large numbers with thousands grouping ("$2,500,000", "1.234.567,89 €")
- contextual phrases ("Under $20", "from $2.99", "starting at €5")
- split-token reconstruction (["449€", "00"], ["$", "8.", "48"])
- basic symbol-before formats ("$19.99")

select_best_pattern() runs all of them and returns the single best match.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

import structlog

from .formats import (
    ALL_CODES,
    ALL_SYMBOLS,
    MARKER_PATTERN,
    FormatDescriptor,
    canonical_amount,
    format_for_marker,
    marker_regex,
)
from .pattern_builder import is_plausible_amount

logger = structlog.get_logger(__name__, component="text_patterns")

CURRENCY = '(?:' + '|'.join(
    marker_regex(m) for m in sorted(ALL_SYMBOLS + ALL_CODES, key=len, reverse=True)
) + ')'

# Non-breaking and narrow spaces count as spaces inside amounts
SPACE = '[ \u00a0\u202f]'

SIMPLE_AMOUNT = r'\d+(?:[.,]\d{1,2})?'
GROUPED_AMOUNT = rf'\d{{1,3}}(?:(?:,|\.|{SPACE})\d{{3}})+(?:[.,]\d{{1,2}})?'
AMOUNT = rf'(?:{GROUPED_AMOUNT}|{SIMPLE_AMOUNT})'

# Order used to break confidence ties deterministically
PATTERN_ORDER = [
    'contextual-under',
    'contextual-from',
    'contextual-starting-at',
    'cdiscount-split',
    'integer-symbol-fraction',
    'symbol-integer-fraction',
    'symbol-decimal',
    'comma-thousands',
    'dot-thousands',
    'space-thousands',
    'standard-format',
    'space-before-currency',
    'currency-space',
    'no-space-after-currency',
    'currency-no-space',
]

SPACE_VARIATIONS = [
    ('space-before-currency', re.compile(rf'(?<![\d.,])(?P<amount>{SIMPLE_AMOUNT})(?!\d){SPACE}+(?P<currency>{CURRENCY})'), 0.85),
    ('no-space-after-currency', re.compile(rf'(?<![\d.,])(?P<amount>{SIMPLE_AMOUNT})(?!\d)(?P<currency>{CURRENCY})'), 0.8),
    ('currency-space', re.compile(rf'(?<!\d)(?P<currency>{CURRENCY}){SPACE}+(?P<amount>{SIMPLE_AMOUNT})(?![\d.,]\d)(?!\d)'), 0.85),
    ('currency-no-space', re.compile(rf'(?<!\d)(?P<currency>{CURRENCY})(?P<amount>{SIMPLE_AMOUNT})(?![\d.,]\d)(?!\d)'), 0.75),
]

LARGE_NUMBERS = [
    ('comma-thousands', r'\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?', 'us', 0.9),
    ('dot-thousands', r'\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?', 'european', 0.85),
    ('space-thousands', rf'\d{{1,3}}(?:{SPACE}\d{{3}})+(?:,\d{{1,2}})?', 'french', 0.8),
]

# (context tag, phrase regex, phrase comes before the price, confidence)
CONTEXT_PHRASES = [
    ('under', r'under', True, 0.9),
    ('from', r'from', True, 0.9),
    ('starting-at', r'starting\s+(?:at|from)', True, 0.88),
    ('under', r'(?:and|&)\s+under', False, 0.85),
    ('from', r'(?:and|&)\s+up', False, 0.85),
]

PRICE_TOKEN = (
    rf'(?:(?P<cur1>{CURRENCY}){SPACE}?(?P<amt1>{AMOUNT})(?![\d.,]\d)(?!\d)'
    rf'|(?<![\d.,])(?P<amt2>{AMOUNT})(?!\d){SPACE}?(?P<cur2>{CURRENCY}))'
)

BASIC_PATTERNS = [
    ('standard-format', re.compile(rf'(?<!\d)(?P<currency>{CURRENCY})(?P<amount>\d+(?:\.\d{{2}})?)(?![\d.,])'), 0.85),
]

FRAGMENT_TOKEN = re.compile(rf'(?P<currency>{CURRENCY})|(?P<number>\d+(?:[.,]\d+)*[.,]?)|(?P<sep>[.,])')
INTEGER_PART = re.compile(r'\d+(?:[.,]\d{3})*[.,]?')
FRACTION_PART = re.compile(r'\d{2}')


@dataclass(frozen=True)
class TextMatch:
    """One price found in bare text."""
    value: str
    currency: Optional[str]
    confidence: float
    pattern: str
    original: str
    position: int = 0
    context: Optional[str] = None
    reconstructed: bool = False
    parts: Tuple[str, ...] = field(default=())

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "value": self.value,
            "currency": self.currency,
            "confidence": self.confidence,
            "pattern": self.pattern,
            "original": self.original,
            "position": self.position,
        }
        if self.context:
            result["context"] = self.context
        if self.reconstructed:
            result["reconstructed"] = True
            result["parts"] = list(self.parts)
        return result


@dataclass(frozen=True)
class Reconstruction:
    """A price rebuilt from a window of split tokens."""
    value: str
    currency: str
    rule: str
    tokens: Tuple[str, ...]
    fragments: Tuple[int, ...]
    symbol_adjacent: bool


def normalize_price(raw, format_hint: Union[str, FormatDescriptor, None] = 'auto') -> Optional[str]:
    """
    Convert a raw amount string into a canonical dot-decimal string.

    Currency markers and surrounding whitespace are ignored. Separator roles
    are decided by format_hint: 'us' (1,234.56), 'european' (1.234,56),
    'french' (1 234,56), a FormatDescriptor, or 'auto' which decides from the
    separators themselves.

    Args:
        raw: Raw amount such as "1.234,56" or "$2,500,000"
        format_hint: Separator convention to assume

    Returns:
        Canonical numeric string, or None for empty/non-numeric input

    Examples:
        >>> normalize_price("1.234,56", "european")
        '1234.56'
        >>> normalize_price("2,500,000")
        '2500000'
        >>> normalize_price("Hello") is None
        True
    """
    if raw is None:
        return None

    text = MARKER_PATTERN.sub('', str(raw))
    text = re.sub('[\u00a0\u202f\']', ' ', text).strip()
    if not text or not re.fullmatch(r'[\d.,\s]+', text) or not re.search(r'\d', text):
        return None

    if isinstance(format_hint, FormatDescriptor):
        format_hint = 'european' if format_hint.decimal == 'comma' else 'us'

    if format_hint == 'us':
        text = re.sub(r'[,\s]', '', text)
    elif format_hint in ('european', 'french'):
        text = re.sub(r'[.\s]', '', text).replace(',', '.')
    else:
        text = _normalize_auto(text)

    if text and text[0] == '.':
        text = '0' + text
    return canonical_amount(text)


def _normalize_auto(text: str) -> str:
    text = re.sub(r'\s+', '', text)
    has_comma = ',' in text
    has_dot = '.' in text

    if has_comma and has_dot:
        # Whichever separator comes last is the decimal separator
        if text.rfind(',') > text.rfind('.'):
            return text.replace('.', '').replace(',', '.')
        return text.replace(',', '')

    if has_comma:
        parts = text.split(',')
        if len(parts) == 2 and 1 <= len(parts[1]) <= 2:
            return text.replace(',', '.')
        return text.replace(',', '')

    if text.count('.') > 1:
        return text.replace('.', '')
    return text


def normalize_for_currency(amount: str, currency: Optional[str]) -> Optional[str]:
    """
    Normalize an amount found next to a currency marker.

    Grouped amounts ("1.234", "1,234") follow the currency's own separator
    convention; anything else is decided from the separators alone.
    """
    amount = amount or ''
    mixed = ',' in amount and '.' in amount
    if currency and not mixed and re.fullmatch(GROUPED_AMOUNT, amount):
        return normalize_price(amount, format_for_marker(currency))
    return normalize_price(amount)


def match_space_variations(text: str) -> List[TextMatch]:
    """Match symbol-before/after amounts with and without whitespace."""
    matches = []
    for name, regex, confidence in SPACE_VARIATIONS:
        for m in regex.finditer(text or ''):
            value = normalize_price(m.group('amount'))
            if not is_plausible_amount(value):
                continue
            matches.append(TextMatch(
                value=value,
                currency=m.group('currency'),
                confidence=confidence,
                pattern=name,
                original=m.group(0),
                position=m.start(),
            ))
    return matches


def match_large_numbers(text: str) -> List[TextMatch]:
    """
    Match amounts of 1000 or more written with thousands grouping.

    The grouping character decides the separator roles: comma groups imply
    a dot decimal, dot or space groups imply a comma decimal.
    """
    matches = []
    for name, amount, style, confidence in LARGE_NUMBERS:
        regex = re.compile(
            rf'(?:(?P<before>{CURRENCY}){SPACE}?)?(?<![\d.,])(?P<amount>{amount})(?![\d.,]\d)(?!\d)'
            rf'(?:{SPACE}?(?P<after>{CURRENCY}))?'
        )
        for m in regex.finditer(text or ''):
            currency = m.group('before') or m.group('after')
            if not currency:
                continue
            value = normalize_price(m.group('amount'), style)
            if not is_plausible_amount(value) or float(value) < 1000:
                continue
            matches.append(TextMatch(
                value=value,
                currency=currency,
                confidence=confidence,
                pattern=name,
                original=m.group(0).strip(),
                position=m.start(),
            ))
    return matches


def match_contextual_phrases(text: str) -> List[TextMatch]:
    """
    Match prices qualified by a phrase ("under $20", "from €5", "$5 and up").

    Phrases are case-insensitive. Results are ordered left to right.
    """
    matches = []
    for tag, phrase, before, confidence in CONTEXT_PHRASES:
        if before:
            source = rf'(?<![A-Za-z])(?i:{phrase}){SPACE}+{PRICE_TOKEN}'
        else:
            source = rf'{PRICE_TOKEN}{SPACE}+(?i:{phrase})(?![A-Za-z])'

        for m in re.finditer(source, text or ''):
            currency = m.group('cur1') or m.group('cur2')
            amount = m.group('amt1') or m.group('amt2')
            value = normalize_for_currency(amount, currency)
            if not is_plausible_amount(value):
                continue
            matches.append(TextMatch(
                value=value,
                currency=currency,
                confidence=confidence,
                pattern=f'contextual-{tag}',
                original=m.group(0),
                position=m.start(),
                context=tag,
            ))

    matches.sort(key=lambda match: match.position)
    return matches


def tokenize_fragments(fragments: Sequence[str]) -> List[Tuple[str, str, int]]:
    """
    Split text fragments into (kind, text, fragment_index) tokens.

    Kinds are 'currency' and 'number'. A lone separator is glued onto the
    number before it ("8" + "." becomes "8."); any other text is ignored.
    """
    tokens: List[Tuple[str, str, int]] = []
    for index, fragment in enumerate(fragments):
        for m in FRAGMENT_TOKEN.finditer(fragment or ''):
            if m.group('currency'):
                tokens.append(('currency', m.group('currency'), index))
            elif m.group('number'):
                tokens.append(('number', m.group('number'), index))
            elif tokens and tokens[-1][0] == 'number' and tokens[-1][1][-1] not in '.,':
                kind, number, number_index = tokens[-1]
                tokens[-1] = (kind, number + m.group('sep'), number_index)
    return tokens


def reconstruct_from_fragments(fragments: Sequence[str]) -> List[Reconstruction]:
    """
    Rebuild prices whose parts are spread over several text fragments.

    Windows of three tokens are tried before two-token windows, left to
    right; a window is only accepted when it spans at least two fragments.
    Accepted rules:

    - symbol + integer + fraction   ("$", "8.", "48")
    - integer + symbol + fraction   ("449", "€", "00")
    - symbol + combined decimal     ("$", "8.48")
    """
    tokens = tokenize_fragments(fragments)
    results: List[Reconstruction] = []
    i = 0
    while i < len(tokens):
        window = _match_window(tokens[i:i + 3])
        if window is None:
            window = _match_window(tokens[i:i + 2])
        if window is None:
            i += 1
            continue
        results.append(window[0])
        i += window[1]
    return results


def _match_window(window) -> Optional[Tuple[Reconstruction, int]]:
    if len(window) < 2 or len({t[2] for t in window}) < 2:
        return None

    kinds = tuple(t[0] for t in window)
    texts = tuple(t[1] for t in window)
    indices = tuple(t[2] for t in window)

    if len(window) == 3:
        if kinds == ('currency', 'number', 'number'):
            currency, integer, fraction = texts
            rule = 'symbol-integer-fraction'
            symbol_index, integer_index = indices[0], indices[1]
        elif kinds == ('number', 'currency', 'number'):
            integer, currency, fraction = texts
            rule = 'integer-symbol-fraction'
            symbol_index, integer_index = indices[1], indices[0]
        else:
            return None
        if not INTEGER_PART.fullmatch(integer) or not FRACTION_PART.fullmatch(fraction):
            return None
        digits = re.sub(r'\D', '', integer)
        value = canonical_amount(f"{digits}.{fraction}")
    elif kinds == ('currency', 'number'):
        currency, amount = texts
        rule = 'symbol-decimal'
        symbol_index, integer_index = indices
        value = normalize_price(amount.rstrip('.,'))
    else:
        return None

    if not is_plausible_amount(value):
        return None

    reconstruction = Reconstruction(
        value=value,
        currency=currency,
        rule=rule,
        tokens=texts,
        fragments=indices,
        symbol_adjacent=abs(symbol_index - integer_index) <= 1,
    )
    return reconstruction, len(window)


def match_split_components(parts: Union[str, Sequence[str]]) -> List[TextMatch]:
    """
    Reconstruct split prices from pre-tokenized fragments.

    A plain string is split on whitespace first ("449€ 00" becomes
    ["449€", "00"]).
    """
    if isinstance(parts, str):
        text = parts
        fragments = parts.split()
    else:
        fragments = [str(p) for p in parts if p is not None]
        text = ' '.join(fragments)

    reconstructions = reconstruct_from_fragments(fragments)
    ambiguity_penalty = 0.05 if len(reconstructions) > 1 else 0.0
    base = {
        'integer-symbol-fraction': 0.9,
        'symbol-integer-fraction': 0.85,
        'symbol-decimal': 0.8,
    }

    matches = []
    for r in reconstructions:
        # Cdiscount writes "449€ 00": integer and symbol glued together
        cdiscount = r.rule == 'integer-symbol-fraction' and r.fragments[0] == r.fragments[1]
        matches.append(TextMatch(
            value=r.value,
            currency=r.currency,
            confidence=round((0.95 if cdiscount else base[r.rule]) - ambiguity_penalty, 2),
            pattern='cdiscount-split' if cdiscount else r.rule,
            original=' '.join(fragments[min(r.fragments):max(r.fragments) + 1]),
            position=max(0, text.find(fragments[min(r.fragments)])),
            reconstructed=True,
            parts=r.tokens,
        ))
    return matches


def match_basic_patterns(text: str) -> List[TextMatch]:
    """Match the plain symbol-before format ("$19.99")."""
    matches = []
    for name, regex, confidence in BASIC_PATTERNS:
        for m in regex.finditer(text or ''):
            value = normalize_price(m.group('amount'), 'us')
            if not is_plausible_amount(value):
                continue
            matches.append(TextMatch(
                value=value,
                currency=m.group('currency'),
                confidence=confidence,
                pattern=name,
                original=m.group(0),
                position=m.start(),
            ))
    return matches


def find_all_patterns(text: str) -> List[TextMatch]:
    """Run every text pattern and return distinct matches."""
    if not text:
        return []

    found = (
        match_contextual_phrases(text)
        + match_split_components(text)
        + match_large_numbers(text)
        + match_basic_patterns(text)
        + match_space_variations(text)
    )

    seen = set()
    matches = []
    for match in found:
        key = (match.original, match.pattern)
        if key in seen:
            continue
        seen.add(key)
        matches.append(match)
    return matches


def select_best_pattern(text: str, context_hints: Optional[Dict] = None) -> Optional[TextMatch]:
    """
    Try every text pattern and return the single best match.

    Ties on confidence are broken by position, then by pattern order, so the
    same input always yields the same choice.

    Args:
        text: Text to search
        context_hints: Optional preferences: {"currency": "€"} favours that
            currency, {"context": "under"} favours that contextual phrase

    Returns:
        Best TextMatch or None
    """
    matches = find_all_patterns(text)
    if not matches:
        return None

    hints = context_hints or {}

    def score(match: TextMatch) -> float:
        bonus = 0.0
        if hints.get('currency') and match.currency == hints['currency']:
            bonus += 0.05
        if hints.get('context') and match.context == hints['context']:
            bonus += 0.05
        return min(1.0, match.confidence + bonus)

    ranked = sorted(
        matches,
        key=lambda m: (-score(m), m.position, PATTERN_ORDER.index(m.pattern), m.original),
    )
    best = ranked[0]
    logger.debug(
        "best_pattern_selected",
        pattern=best.pattern,
        value=best.value,
        currency=best.currency,
        candidates=len(matches),
    )
    return best


def validate_pattern_match(match: Optional[TextMatch], original_text: str) -> bool:
    """
    Check that a match is consistent with the text it came from.

    For reconstructed matches every part must occur in the text; otherwise
    the matched substring itself must.
    """
    if match is None or not original_text:
        return False
    if not is_plausible_amount(match.value):
        return False
    if match.reconstructed:
        return all(part in original_text for part in match.parts)
    return match.original in original_text
