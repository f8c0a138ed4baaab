"""
設定ファイル(settings.yaml)の読み込み処理を提供するモジュール。

settings.yaml からコースの初期値や codec の動作オプションを読み込み、
アプリ内で扱いやすい dataclass に変換する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import yaml


_DEFAULT_START_BLOCKS: Tuple[Tuple[int, int, int], ...] = (
    (12390, 10050, 111),
    (12420, 10050, 112),
    (12450, 10050, 113),
    (12480, 10050, 114),
)


@dataclass(frozen=True)
class CourseDefaults:
    """
    新規コース作成時の初期値。

    Attributes:
        background_color: 背景色(0xRRGGBB)。
        background_image: 背景画像ID。-1 は背景画像なし。
        max_time: 制限時間(秒)。
        gravity: 重力。
        cowboy_chance: カウボーイ(ランダムハザード)の確率。
        game_mode: ゲームモード文字列。
        items: 選択アイテムID(順序保持・重複可)。
        start_blocks: 初期配置ブロック (x, y, type)。座標はピクセル単位。
    """

    background_color: int = 0xBBBBDD
    background_image: int = -1
    max_time: int = 120
    gravity: float = 1.0
    cowboy_chance: int = 5
    game_mode: str = "race"
    items: Tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8, 9)
    start_blocks: Tuple[Tuple[int, int, int], ...] = _DEFAULT_START_BLOCKS


@dataclass(frozen=True)
class CodecOptions:
    """
    codec の動作オプション。

    Attributes:
        allow_legacy_formats: True の場合、旧フォーマット(o/m1/m2)を空レイヤーとして受け入れる。
        strict_unescape: True の場合、不正な `#` エスケープを UnescapeError とする。
        verify_checksum: True の場合、parse 時に末尾チェックサムを検証する。
    """

    allow_legacy_formats: bool = False
    strict_unescape: bool = False
    verify_checksum: bool = False


@dataclass(frozen=True)
class Settings:
    """
    アプリケーション全体設定。

    Attributes:
        defaults: コース初期値。
        codec: codec オプション。
    """

    defaults: CourseDefaults = field(default_factory=CourseDefaults)
    codec: CodecOptions = field(default_factory=CodecOptions)


DEFAULT_SETTINGS = Settings()


def _parse_color(value) -> int:
    """"bbbbdd" / "#bbbbdd" / 整数 のいずれかを色の整数値に変換する。"""
    if isinstance(value, int):
        return value
    return int(str(value).strip().lstrip("#"), 16)


def load_settings(path: str) -> Settings:
    """
    settings.yaml を読み込み Settings に変換する。

    キーが存在しない項目は既定値を使用する。

    Args:
        path: settings.yaml のファイルパス。

    Returns:
        Settingsオブジェクト。

    Raises:
        FileNotFoundError: 設定ファイルが存在しない場合。
        yaml.YAMLError: YAMLのパースに失敗した場合。
        ValueError: 数値・色の変換に失敗した場合。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    base = CourseDefaults()
    defaults_data = data.get("defaults") or {}
    codec_data = data.get("codec") or {}

    start_blocks = defaults_data.get("start_blocks")
    if start_blocks is None:
        blocks = base.start_blocks
    else:
        blocks = tuple((int(b[0]), int(b[1]), int(b[2])) for b in start_blocks)

    return Settings(
        defaults=CourseDefaults(
            background_color=_parse_color(defaults_data.get("background_color", base.background_color)),
            background_image=int(defaults_data.get("background_image", base.background_image)),
            max_time=int(defaults_data.get("max_time", base.max_time)),
            gravity=float(defaults_data.get("gravity", base.gravity)),
            cowboy_chance=int(defaults_data.get("cowboy_chance", base.cowboy_chance)),
            game_mode=str(defaults_data.get("game_mode", base.game_mode)),
            items=tuple(int(i) for i in defaults_data.get("items", base.items)),
            start_blocks=blocks,
        ),
        codec=CodecOptions(
            allow_legacy_formats=bool(codec_data.get("allow_legacy_formats", False)),
            strict_unescape=bool(codec_data.get("strict_unescape", False)),
            verify_checksum=bool(codec_data.get("verify_checksum", False)),
        ),
    )
