"""QR image and PDF sheet rendering."""
