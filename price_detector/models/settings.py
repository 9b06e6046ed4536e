"""Caller settings for an extraction call."""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..formats import FormatDescriptor, resolve_format


class ExtractionSettings(BaseModel):
    """
    Options recognized by the extraction pipeline.

    Accepts the camelCase keys used by stored settings ("currencySymbol",
    "minConfidence", ...) as well as the snake_case attribute names.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    currency_symbol: Optional[str] = Field(default="$", alias="currencySymbol")
    currency_code: Optional[str] = Field(default="USD", alias="currencyCode")
    thousands: Optional[str] = None
    decimal: Optional[str] = None
    debug_mode: bool = Field(default=False, alias="debugMode")
    min_confidence: float = Field(default=0.0, ge=0.0, le=1.0, alias="minConfidence")
    multi_pass_mode: bool = Field(default=True, alias="multiPassMode")
    only_pass: Optional[str] = Field(default=None, alias="onlyPass")
    exhaustive: bool = False
    early_exit_confidence: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, alias="earlyExitConfidence"
    )
    return_multiple: bool = Field(default=False, alias="returnMultiple")
    allow_multiple_results: bool = Field(default=False, alias="allowMultipleResults")

    site: Optional[str] = None
    exclude_passes: List[str] = Field(default_factory=list, alias="excludePasses")
    max_depth: int = Field(default=5, ge=0, alias="maxDepth")
    max_fragments: int = Field(default=12, ge=2, alias="maxFragments")
    context_scoring: bool = Field(default=True, alias="contextScoring")
    filter_currency: bool = Field(default=False, alias="filterCurrency")

    @classmethod
    def coerce(cls, settings: Any = None) -> "ExtractionSettings":
        """Build settings from None, a mapping, or an existing instance."""
        if settings is None:
            return cls()
        if isinstance(settings, cls):
            return settings
        if isinstance(settings, Mapping):
            return cls.model_validate(dict(settings))
        raise TypeError(f"Unsupported settings type: {type(settings).__name__}")

    def format_descriptor(self) -> FormatDescriptor:
        """
        Format descriptor for the caller's own currency.

        Raises:
            DelimiterError: If thousands/decimal are not recognized tokens
        """
        base = resolve_format(self.currency_symbol, self.currency_code)
        return FormatDescriptor(
            currency_symbol=base.currency_symbol,
            currency_code=base.currency_code,
            thousands=self.thousands or base.thousands,
            decimal=self.decimal or base.decimal,
            locale_id=base.locale_id,
            symbols_before_amount=base.symbols_before_amount,
        )
