from __future__ import annotations

from dataclasses import dataclass

"""Identity domain models.

Row shapes flowing through the CSV pipeline:

    raw cells -> CanonicalRow -> IdentityInput -> ExportItem
    raw grid  -> MasterUsernameEntry ---------> ExportItem
"""

__all__ = [
    "CanonicalRow",
    "MasterUsernameEntry",
    "IdentityInput",
    "ExportItem",
]


@dataclass(frozen=True)
class CanonicalRow:
    """One roster row after field location/renaming, before validation.

    All fields are raw strings (trimmed) or None. No numeric coercion here.
    """
    group: str | None = None
    period: str | None = None
    headset: str | None = None
    prefix: str | None = None
    pad: str | None = None


@dataclass(frozen=True)
class MasterUsernameEntry:
    """One non-empty username cell of a master matrix sheet."""
    group_code: str
    username: str
    teacher: str = ""
    period: str = ""


@dataclass(frozen=True)
class IdentityInput:
    """Validated identity ready to be rendered.

    Invariants:
        username == f"{prefix}.{headset_number:0{headset_pad}d}"
        payload  == build_payload(username, group_code)
    """
    group_code: str  # 先頭ゼロ保持のため文字列
    period: int
    headset_number: int
    prefix: str
    headset_pad: int
    username: str
    payload: str


@dataclass(frozen=True)
class ExportItem:
    """Unit consumed by the export orchestrator and the PDF builder."""
    payload: str
    group_code: str
    username: str
    teacher: str | None = None
    period: str | None = None

    @classmethod
    def from_identity(cls, identity: IdentityInput) -> ExportItem:
        return cls(
            payload=identity.payload,
            group_code=identity.group_code,
            username=identity.username,
            period=str(identity.period),
        )
