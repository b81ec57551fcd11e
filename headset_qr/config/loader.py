from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..render.pdf import DEFAULT_ORGANIZATION, LayoutConfig, QrOptions
from ..services.export import DEFAULT_MAX_PAGES_PER_PDF, DEFAULT_TITLE
from ..services.identity import DEFAULT_HEADSET_PAD

"""Config loader.

Responsibilities:
- Load YAML config (default: config/qr.yml)
- Validate against the packaged config_schema.json
- Apply defaults for every missing key
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "DefaultsConfig",
    "AppConfig",
    "default_config",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/qr.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DefaultsConfig:
    """Fallbacks for rows that omit prefix / pad (manual form values)."""
    prefix: str | None = None
    pad: int = DEFAULT_HEADSET_PAD


@dataclass(frozen=True)
class AppConfig:
    title: str = DEFAULT_TITLE
    organization: str = DEFAULT_ORGANIZATION
    output_directory: str = "./out"
    max_pages_per_pdf: int = DEFAULT_MAX_PAGES_PER_PDF
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    qr: QrOptions = field(default_factory=QrOptions)


def default_config() -> AppConfig:
    return AppConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    base = default_config()
    defaults_raw = data.get("defaults", {})
    return AppConfig(
        title=data.get("title", base.title),
        organization=data.get("organization", base.organization),
        output_directory=data.get("output_directory", base.output_directory),
        max_pages_per_pdf=data.get("export", {}).get("max_pages_per_pdf", base.max_pages_per_pdf),
        defaults=DefaultsConfig(
            prefix=defaults_raw.get("prefix"),
            pad=defaults_raw.get("pad", DEFAULT_HEADSET_PAD),
        ),
        layout=LayoutConfig(**data.get("layout", {})),  # キーはスキーマで検証済
        qr=QrOptions(**data.get("qr", {})),
    )
