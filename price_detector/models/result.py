"""Result models for analyzer and pipeline calls."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .candidate import PriceCandidate


@dataclass(frozen=True)
class TraceEntry:
    """One structured debug-trace record."""
    correlation_id: str
    phase: str
    message: str
    timestamp: str
    context: Dict[str, Any] = field(default_factory=dict, hash=False)
    duration_ms: Optional[float] = None
    result_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "correlation_id": self.correlation_id,
            "phase": self.phase,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": dict(self.context),
        }
        if self.duration_ms is not None:
            result["duration_ms"] = self.duration_ms
        if self.result_count is not None:
            result["result_count"] = self.result_count
        return result


@dataclass
class AnalysisResult:
    """Output of the structural analyzer for one element."""
    prices: List[PriceCandidate] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def best(self) -> Optional[PriceCandidate]:
        return self.prices[0] if self.prices else None


@dataclass
class ExtractionResult:
    """Complete outcome of one pipeline invocation."""
    correlation_id: str
    input_kind: str
    candidates: List[PriceCandidate] = field(default_factory=list)
    passes_run: List[str] = field(default_factory=list)
    passes_skipped: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    early_exit: bool = False
    duration_ms: Optional[float] = None
    trace: List[TraceEntry] = field(default_factory=list)

    @property
    def best(self) -> Optional[PriceCandidate]:
        """Highest-confidence candidate, or None."""
        return self.candidates[0] if self.candidates else None

    @property
    def success(self) -> bool:
        """True if at least one price was found."""
        return bool(self.candidates)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "correlation_id": self.correlation_id,
            "input_kind": self.input_kind,
            "candidates": [c.to_dict() for c in self.candidates],
            "passes_run": self.passes_run,
            "passes_skipped": self.passes_skipped,
            "errors": self.errors,
            "warnings": self.warnings,
            "early_exit": self.early_exit,
            "duration_ms": self.duration_ms,
            "trace": [entry.to_dict() for entry in self.trace],
        }

    def __repr__(self) -> str:
        best = self.best
        price = f"{best.currency or ''}{best.value}" if best else None
        return (
            f"ExtractionResult(correlation_id={self.correlation_id!r}, "
            f"candidates={len(self.candidates)}, best={price!r}, errors={len(self.errors)})"
        )
