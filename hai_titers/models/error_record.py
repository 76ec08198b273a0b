from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the fatal error log.

A run stops at the first error; the CLI records that single error as one
JSON line so an analyst can see which stage broke without re-running.
Fixed key set: timestamp, stage, error_type, message, source.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        stage: Pipeline stage that failed (config/fetch/locate/reshape/normalize/...)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable error message
        source: Source URL being analysed ("" when unknown, e.g. config errors)
    """
    timestamp: str  # ISO8601 UTC
    stage: str
    error_type: str  # UPPER_SNAKE
    message: str
    source: str

    @staticmethod
    def create(stage: str, error_type: str, message: str, source: str = "") -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            stage=stage,
            error_type=error_type,
            message=message,
            source=source,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
