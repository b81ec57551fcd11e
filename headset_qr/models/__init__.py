"""Domain models for the headset QR generator.

This package contains the dataclasses shared by the CSV pipeline, the
export orchestrator and the PDF builder.
"""

from .error_record import ErrorRecord
from .export_job import ExportJob, ExportPhase, ExportResult, ProgressEvent
from .identity import CanonicalRow, ExportItem, IdentityInput, MasterUsernameEntry
from .processing_result import BulkResult, RowError

__all__ = [
    # Row shapes
    "CanonicalRow",
    "MasterUsernameEntry",
    "IdentityInput",
    "ExportItem",
    # Processing models
    "BulkResult",
    "RowError",
    "ErrorRecord",
    # Export models
    "ExportJob",
    "ExportPhase",
    "ExportResult",
    "ProgressEvent",
]
