"""
各オブジェクト種別の codec が共通で使う基本処理。

- 差分座標のカーソル管理
- 数値サブフィールドの変換(失敗時はフィールド名付きの例外)
- 自由テキストのエスケープ/アンエスケープ
- 色の 16進/10進 表現

コマンドは COMMAND_SEP で連結され、各コマンドのサブフィールドは FIELD_SEP で連結される。
"""

from __future__ import annotations

import re
from typing import Tuple

from pr2course.errors import MalformedNumberError, UnescapeError, UnsupportedFormatError
from pr2course.models import Color

COMMAND_SEP = ","
FIELD_SEP = ";"

CURRENT_FORMAT = "m3"
LEGACY_FORMATS = ("o", "m1", "m2")

_ESCAPES = {
    "`": "#96",
    ",": "#44",
    ";": "#59",
    "#": "#35",
}
_UNESCAPES = {v: k for k, v in _ESCAPES.items()}

_ESCAPE_RE = re.compile(r"[`,;#]")
_UNESCAPE_RE = re.compile(r"#(96|44|59|35)")
_DEC_RE = re.compile(r"[+-]?[0-9]+")
_HEX_RE = re.compile(r"[0-9A-Fa-f]+")


class Cursor:
    """
    差分座標の現在位置。

    (0, 0) から始まり、1フィールドのデコード/エンコード全体で持ち越す。
    """

    def __init__(self) -> None:
        self.x = 0
        self.y = 0

    def advance(self, dx: int, dy: int) -> Tuple[int, int]:
        """差分を加算し、加算後の絶対座標を返す。"""
        self.x += dx
        self.y += dy
        return self.x, self.y

    def delta_to(self, x: int, y: int) -> Tuple[int, int]:
        """絶対座標までの差分を返し、カーソルをその座標へ移動する。"""
        dx, dy = x - self.x, y - self.y
        self.x, self.y = x, y
        return dx, dy


def split_commands(data: str) -> list[str]:
    """フィールド文字列をコマンド列に分割する。空文字の場合は空リスト。"""
    if data == "":
        return []
    return data.split(COMMAND_SEP)


def parse_int(field: str, raw: str) -> int:
    """
    10進整数を変換する。

    Raises:
        MalformedNumberError: 整数として解釈できない場合。
    """
    if not _DEC_RE.fullmatch(raw):
        raise MalformedNumberError(field, raw)
    return int(raw, 10)


def parse_hex(field: str, raw: str) -> int:
    """
    16進整数(符号なし)を変換する。

    Raises:
        MalformedNumberError: 16進数として解釈できない場合。
    """
    if not _HEX_RE.fullmatch(raw):
        raise MalformedNumberError(field, raw)
    return int(raw, 16)


def parse_hex_color(field: str, raw: str) -> Color:
    """16進表記の 24bit RGB を Color に変換する。アルファは 255。"""
    return Color.from_int(parse_hex(field, raw))


def format_hex_color(color: Color) -> str:
    """Color を小文字16進(ゼロ埋めなし)で返す。"""
    return format(color.to_int(), "x")


def parse_dec_color(field: str, raw: str) -> Color:
    """10進表記の 24bit RGB を Color に変換する(テキストの色)。"""
    return Color.from_int(parse_int(field, raw))


def format_dec_color(color: Color) -> str:
    """Color を10進表記で返す(テキストの色)。"""
    return str(color.to_int())


def parse_percent(field: str, raw: str) -> float:
    """整数パーセントを拡大率(float)に変換する。"""
    return parse_int(field, raw) / 100


def format_percent(scale: float) -> str:
    """拡大率を整数パーセント表記で返す。"""
    return str(int(round(scale * 100)))


def escape_text(s: str) -> str:
    """
    自由テキストをエスケープする。

    "`" "," ";" "#" をそれぞれ "#96" "#44" "#59" "#35" に置換する。
    """
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], s)


def unescape_text(s: str, strict: bool = False) -> str:
    """
    escape_text の逆変換。左から順に、重ならないように置換する。

    Args:
        s: エスケープ済み文字列。
        strict: True の場合、既知のコードで始まらない "#" を不正とする。

    Raises:
        UnescapeError: strict で不正な "#" を含む場合。
    """
    if strict:
        stripped = _UNESCAPE_RE.sub("\0", s)
        if "#" in stripped:
            raise UnescapeError(f"invalid escape sequence in {s!r}")
    return _UNESCAPE_RE.sub(lambda m: _UNESCAPES[m.group(0)], s)


def is_decodable(format_tag: str, allow_legacy: bool = False) -> bool:
    """
    フォーマットタグを判定する。

    Returns:
        m3 の場合 True。旧フォーマットを許可している場合は False(空レイヤー扱い)。

    Raises:
        UnsupportedFormatError: 未知のタグ、または許可されていない旧フォーマットの場合。
    """
    if format_tag == CURRENT_FORMAT:
        return True
    if format_tag in LEGACY_FORMATS:
        if allow_legacy:
            return False
        raise UnsupportedFormatError(f"legacy format {format_tag!r} is not supported")
    raise UnsupportedFormatError(f"unknown format {format_tag!r}")
