from __future__ import annotations

"""Error hierarchy for the headset QR generator.

- ValidationError: user input (manual form or a single CSV row) is invalid
- CsvParseError: the roster could not be tokenized
- EmptyInputError: nothing usable to process / export
- ExportFailure: the document builder failed while building a part
- ExportInProgressError: an export was requested while another one is running
"""

__all__ = [
    "HeadsetQrError",
    "ValidationError",
    "CsvParseError",
    "EmptyInputError",
    "ExportFailure",
    "ExportInProgressError",
]


class HeadsetQrError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(HeadsetQrError):
    """Raised when an identity field is missing or invalid."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class CsvParseError(HeadsetQrError):
    """Raised when the roster file cannot be tokenized into rows."""


class EmptyInputError(HeadsetQrError):
    """Raised when there are zero usable rows or zero items to export."""


class ExportFailure(HeadsetQrError):
    """Raised when building a PDF part fails."""


class ExportInProgressError(HeadsetQrError):
    """Raised when starting an export while another export is running."""
