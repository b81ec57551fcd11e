from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord
from ..models.processing_result import RowError

"""Rejected-row log for bulk runs.

Row errors are collected during a run and appended as JSON Lines to
``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC stamp). The file is only created
when there is something to write, so clean runs leave no log behind.
"""

__all__ = [
    "LOGS_DIR",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one run; single-threaded use."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir or LOGS_DIR
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        # 初回アクセス時にパス確定 (1 実行 1 ファイル)
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend_row_errors(self, file: str, errors: Iterable[RowError]) -> None:
        self._records.extend(ErrorRecord.from_row_error(file, e) for e in errors)

    def record_file_error(self, file: str, error_type: str, message: str) -> None:
        self._records.append(ErrorRecord.for_file(file, error_type, message))

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records and clear the buffer.

        Returns:
            the log path, or None when the buffer was empty
        """
        if not self._records:
            return None
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = "".join(r.to_json_line() + "\n" for r in self._records)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._records.clear()
        return path
