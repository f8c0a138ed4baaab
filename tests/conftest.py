from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pr2course.course import Course

EMPTY_DATA = "m3`bbbbdd````````-1"
ZERO_CHECKSUM = "0" * 32


def make_record(data: str = EMPTY_DATA, **fields: str) -> str:
    """テスト用の保存形式レコード(チェックサムはダミー)を組み立てる。"""
    pairs = [f"{name}={value}" for name, value in fields.items()]
    pairs.append(f"data={data}")
    return "&".join(pairs) + ZERO_CHECKSUM


@pytest.fixture
def default_course() -> Course:
    return Course.default()


@pytest.fixture
def write_settings(tmp_path: Path):
    """dict を settings.yaml として書き出し、そのパスを返す関数。"""

    def _write(data: dict) -> Path:
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def record():
    """make_record をテストから使うための fixture。"""
    return make_record
