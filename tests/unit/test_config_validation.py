from __future__ import annotations

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from headset_qr.config.loader import ConfigError, _validate_config_schema

"""Unit tests for config schema validation error cases."""


def test_validate_config_schema_missing_schema_file():
    with patch("headset_qr.config.loader.SCHEMA_PATH", Path("/nonexistent/schema.json")):
        with pytest.raises(ConfigError) as e:
            _validate_config_schema({})
        assert "config schema not found" in str(e.value)


def test_validate_config_schema_invalid_json_schema():
    with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
        f.write("{ invalid json }")
        f.flush()
        temp_path = Path(f.name)

    try:
        with patch("headset_qr.config.loader.SCHEMA_PATH", temp_path):
            with pytest.raises(ConfigError) as e:
                _validate_config_schema({})
            assert "invalid schema file" in str(e.value)
    finally:
        temp_path.unlink()


def test_validate_config_schema_empty_config_is_valid():
    # every key is optional
    _validate_config_schema({})


def test_validate_config_schema_wrong_type():
    with pytest.raises(ConfigError) as e:
        _validate_config_schema({"title": 123})
    assert "config validation failed" in str(e.value)


def test_validate_config_schema_layout_additional_properties():
    with pytest.raises(ConfigError):
        _validate_config_schema({"layout": {"cols": 3, "columns": 3}})


def test_validate_config_schema_unknown_page_size():
    with pytest.raises(ConfigError):
        _validate_config_schema({"layout": {"page": "legal"}})


def test_validate_config_schema_qr_too_small():
    with pytest.raises(ConfigError):
        _validate_config_schema({"qr": {"size_px": 16}})


def test_validate_config_schema_zero_pages_per_pdf():
    with pytest.raises(ConfigError):
        _validate_config_schema({"export": {"max_pages_per_pdf": 0}})


def test_validate_config_schema_full_valid_config():
    valid_config = {
        "title": "Starborn Academy - QR Codes",
        "organization": "Starborn Academy",
        "output_directory": "./out",
        "defaults": {"prefix": None, "pad": 3},
        "export": {"max_pages_per_pdf": 10},
        "layout": {
            "cols": 3,
            "rows": 4,
            "page": "letter",
            "margin": 0.2,
            "gap": 0.1,
            "pad": 0.08,
            "dash_inset": 0.07,
            "crop_len": 0.1,
            "header_top_pad": 0.12,
            "header_block_h": 0.98,
            "line_width": 0.5,
        },
        "qr": {"error_correction": "H", "size_px": 512, "border": 2},
    }
    _validate_config_schema(valid_config)
