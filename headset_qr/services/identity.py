from __future__ import annotations

import json
import math
import re
from typing import Any

from ..errors import ValidationError
from ..models.identity import IdentityInput

"""Identity builder: username / payload composition and field validation.

Username rule:
    username = {prefix}.{headset-number zero padded}
    prefix=a, headset=48, pad=3 -> a.048

Payload (wire format read by the headset login scanner, byte exact):
    {"version":"1.0","username":"a.048","groupcode":"0004"}
"""

__all__ = [
    "PAYLOAD_VERSION",
    "DEFAULT_HEADSET_PAD",
    "MAX_HEADSET_PAD",
    "only_digits",
    "pad_left",
    "build_username",
    "build_payload",
    "to_int",
    "validate_identity",
]

PAYLOAD_VERSION = "1.0"
DEFAULT_HEADSET_PAD = 3
MAX_HEADSET_PAD = 10

_NON_DIGITS = re.compile(r"\D+")


def only_digits(value: Any) -> str:
    """Strip every character that is not 0-9. None -> ''."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def pad_left(value: Any, length: int, char: str = "0") -> str:
    """Left-pad to ``length``; never truncates."""
    s = "" if value is None else str(value)
    if len(s) >= length:
        return s
    return char * (length - len(s)) + s


def build_username(prefix: Any, headset_number: Any, headset_pad: int) -> str:
    """Compose ``{prefix}.{padded digits}``.

    No validation is done here; callers validate ranges first.
    """
    clean_prefix = ("" if prefix is None else str(prefix)).strip()
    padded = pad_left(only_digits(headset_number), headset_pad, "0")
    return f"{clean_prefix}.{padded}"


def build_payload(username: Any, group_code: Any) -> str:
    """Build the compact JSON payload encoded into the QR code.

    Key order is fixed (version, username, groupcode) and both values are
    always strings so that group codes like "0004" keep their leading zeros.
    """
    payload = {
        "version": PAYLOAD_VERSION,
        "username": "" if username is None else str(username),
        "groupcode": "" if group_code is None else str(group_code),
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def to_int(value: Any) -> int | float:
    """Convert to a number and truncate toward zero.

    Returns ``math.nan`` when the value is missing, not numeric or not finite;
    NaN is rejected by validation.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return math.nan
        try:
            number = float(text)
        except ValueError:
            return math.nan
    if not math.isfinite(number):
        return math.nan
    return math.trunc(number)


def _is_positive_int(n: int | float) -> bool:
    return not (isinstance(n, float) and math.isnan(n)) and n >= 1


def _headset_to_int(value: Any) -> int | float:
    n = to_int(value)
    if isinstance(n, float) and math.isnan(n):
        # "h48" のような表記は数字部分のみ採用
        digits = only_digits(value)
        return int(digits) if digits else math.nan
    return n


def validate_identity(
    group: Any,
    period: Any,
    headset: Any,
    prefix: Any = None,
    pad: Any = None,
    *,
    default_prefix: str | None = None,
    default_pad: int = DEFAULT_HEADSET_PAD,
) -> IdentityInput:
    """Validate raw identity fields and build the render-ready identity.

    Blank ``prefix``/``pad`` fall back to the defaults (the manual form values
    in bulk mode).

    Raises:
        ValidationError: naming the first invalid field
    """
    group_code = ("" if group is None else str(group)).strip()
    if not group_code:
        raise ValidationError("group", "Group code is required.")

    period_n = to_int(period)
    if not _is_positive_int(period_n):
        raise ValidationError("period", f"Period must be a whole number >= 1 (got {period!r}).")

    headset_n = _headset_to_int(headset)
    if not _is_positive_int(headset_n):
        raise ValidationError("headset", f"Headset # must be a whole number >= 1 (got {headset!r}).")

    raw_prefix = "" if prefix is None else str(prefix).strip()
    clean_prefix = raw_prefix or (default_prefix or "").strip()
    if not clean_prefix:
        raise ValidationError("prefix", "Prefix is required.")

    raw_pad = "" if pad is None else str(pad).strip()
    pad_n = to_int(raw_pad) if raw_pad else default_pad
    if isinstance(pad_n, float) or not 0 <= pad_n <= MAX_HEADSET_PAD:
        raise ValidationError("pad", f"Headset pad must be between 0 and {MAX_HEADSET_PAD} (got {pad!r}).")

    headset_number = int(headset_n)
    username = build_username(clean_prefix, headset_number, pad_n)
    return IdentityInput(
        group_code=group_code,
        period=int(period_n),
        headset_number=headset_number,
        prefix=clean_prefix,
        headset_pad=pad_n,
        username=username,
        payload=build_payload(username, group_code),
    )
