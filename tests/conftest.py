# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from headset_qr.logging.init import reset_logging
from headset_qr.models.identity import ExportItem
from headset_qr.services.identity import build_payload


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """title: "Test School - QR Codes"
organization: "Test School"
output_directory: ./out
defaults:
  prefix: a
  pad: 3
export:
  max_pages_per_pdf: 2
layout:
  cols: 2
  rows: 2
qr:
  error_correction: M
  size_px: 128
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "qr.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(name: str, text: str) -> Path:
        path = temp_workdir / "data" / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture()
def make_items():
    def _make(n: int) -> list[ExportItem]:
        items = []
        for i in range(n):
            username = f"a.{i + 1:03d}"
            items.append(ExportItem(payload=build_payload(username, "0004"), group_code="0004", username=username))
        return items
    return _make
