"""settings.yaml 読み込みのテスト。"""

from __future__ import annotations

from pathlib import Path

import pytest

from pr2course.config import DEFAULT_SETTINGS, load_settings
from pr2course.course import Course
from pr2course.models import Color


@pytest.mark.light
def test_load_settings_overrides(write_settings):
    """YAML の値で初期値とオプションが上書きされることを確認する。"""
    path = write_settings(
        {
            "defaults": {
                "background_color": "#102030",
                "gravity": 2,
                "items": [4, 4],
                "start_blocks": [[0, 0, 111]],
            },
            "codec": {"allow_legacy_formats": True},
        }
    )
    settings = load_settings(str(path))
    assert settings.defaults.background_color == 0x102030
    assert settings.defaults.gravity == 2.0
    assert settings.defaults.items == (4, 4)
    assert settings.defaults.max_time == 120
    assert settings.codec.allow_legacy_formats is True
    assert settings.codec.verify_checksum is False

    c = Course.default(settings)
    assert c.background_color == Color(0x10, 0x20, 0x30)
    assert c.blocks.get(0, 0) == [111]
    assert len(c.blocks) == 1


@pytest.mark.light
def test_load_settings_empty_file_uses_defaults(tmp_path):
    """空の YAML では既定値が使われることを確認する。"""
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(str(path)) == DEFAULT_SETTINGS


@pytest.mark.light
def test_repository_settings_file_matches_defaults():
    """同梱の settings.yaml が既定値と一致することを確認する。"""
    path = Path(__file__).resolve().parents[1] / "settings.yaml"
    assert load_settings(str(path)) == DEFAULT_SETTINGS


@pytest.mark.light
def test_load_settings_missing_file(tmp_path):
    """存在しないファイルは FileNotFoundError となることを確認する。"""
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "missing.yaml"))
