"""QR code generator for headset login payloads.

Builds ``{"version","username","groupcode"}`` JSON payloads from CSV rosters
or manual input and exports them as printable, grid-laid-out PDF sheets.
"""

__version__ = "1.0.0"
