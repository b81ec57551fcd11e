from __future__ import annotations

import io
from functools import lru_cache
from pathlib import Path

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q

"""QR renderer: payload string -> PNG bytes.

Output is deterministic for identical (payload, error correction, size,
border), so results are memoized; a large export re-uses images across
parts and re-runs.
"""

__all__ = [
    "ERROR_CORRECTION_LEVELS",
    "DEFAULT_ERROR_CORRECTION",
    "DEFAULT_SIZE_PX",
    "DEFAULT_BORDER",
    "render_qr_png",
    "write_qr_png",
]

ERROR_CORRECTION_LEVELS = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}
DEFAULT_ERROR_CORRECTION = "M"
DEFAULT_SIZE_PX = 512
DEFAULT_BORDER = 2


@lru_cache(maxsize=4096)
def render_qr_png(
    payload: str,
    error_correction: str = DEFAULT_ERROR_CORRECTION,
    size_px: int = DEFAULT_SIZE_PX,
    border: int = DEFAULT_BORDER,
) -> bytes:
    """Encode ``payload`` as a PNG of roughly ``size_px`` pixels square.

    The symbol version is chosen to fit the payload; the box size is the
    largest whole pixel count that keeps the image within ``size_px``.
    """
    level = ERROR_CORRECTION_LEVELS.get(error_correction.upper())
    if level is None:
        raise ValueError(f"unknown error correction level: {error_correction!r}")

    qr = qrcode.QRCode(version=None, error_correction=level, box_size=1, border=border)
    qr.add_data(payload)
    qr.make(fit=True)
    qr.box_size = max(1, size_px // (qr.modules_count + 2 * border))

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def write_qr_png(
    payload: str,
    path: Path,
    error_correction: str = DEFAULT_ERROR_CORRECTION,
    size_px: int = DEFAULT_SIZE_PX,
    border: int = DEFAULT_BORDER,
) -> Path:
    """Write a standalone QR image asset."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(render_qr_png(payload, error_correction, size_px, border))
    return path
