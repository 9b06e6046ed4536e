"""Exception types raised by price_detector."""


class PriceDetectorError(Exception):
    """Base class for all price_detector errors."""


class DelimiterError(PriceDetectorError, ValueError):
    """Invalid thousands/decimal separator token (caller defect)."""


class HandlerRegistrationError(PriceDetectorError, ValueError):
    """A site handler is missing required attributes."""
