from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .processing_result import RowError

"""Row error log entries.

One JSON object per line, always with exactly these keys:
timestamp, file, row, error_type, message. Roster-level problems (unreadable
file, no usable rows) use ``row=FILE_LEVEL_ROW``.
"""

__all__ = [
    "FILE_LEVEL_ROW",
    "ErrorRecord",
]

FILE_LEVEL_ROW = -1


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # ISO8601 UTC, 'Z' suffix
    file: str  # roster file name
    row: int  # 1-based; FILE_LEVEL_ROW when no row applies
    error_type: str  # INVALID_PERIOD, PARSE_ERROR, ...
    message: str

    @classmethod
    def create(cls, file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        return cls(timestamp=_utc_now(), file=file, row=row, error_type=error_type, message=message)

    @classmethod
    def from_row_error(cls, file: str, error: RowError) -> ErrorRecord:
        return cls.create(file, error.row, error.error_type, error.message)

    @classmethod
    def for_file(cls, file: str, error_type: str, message: str) -> ErrorRecord:
        return cls.create(file, FILE_LEVEL_ROW, error_type, message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
