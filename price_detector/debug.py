"""Per-invocation debug trace."""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from .models import TraceEntry

logger = structlog.get_logger(__name__, component="debug_trace")


def new_correlation_id() -> str:
    return uuid.uuid4().hex


class DebugTrace:
    """
    Collects structured trace entries for one extraction call.

    Every entry carries the same correlation id. When disabled, record()
    is a no-op so tracing never influences extraction.
    """

    def __init__(self, correlation_id: Optional[str] = None, enabled: bool = False):
        self.correlation_id = correlation_id or new_correlation_id()
        self.enabled = enabled
        self._entries: List[TraceEntry] = []
        self._started = time.perf_counter()

    def record(
        self,
        phase: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
        result_count: Optional[int] = None,
    ) -> None:
        if not self.enabled:
            return
        entry = TraceEntry(
            correlation_id=self.correlation_id,
            phase=phase,
            message=message,
            timestamp=datetime.now(timezone.utc).isoformat(),
            context=dict(context or {}),
            duration_ms=duration_ms,
            result_count=result_count,
        )
        self._entries.append(entry)
        logger.debug(
            "extraction_trace",
            correlation_id=self.correlation_id,
            phase=phase,
            message=message,
            duration_ms=duration_ms,
            result_count=result_count,
            context=entry.context,
        )

    @property
    def entries(self) -> List[TraceEntry]:
        return list(self._entries)

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started) * 1000, 3)

    def __len__(self) -> int:
        return len(self._entries)
