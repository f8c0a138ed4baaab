"""
data フィールド(バッククォート区切りの集約レコード)の codec と認証ハッシュ。

位置フィールド:
    [format, backgroundColor, blocks, stamp1, stamp2, stamp3,
     line1, line2, line3, backgroundImage, stamp0, stamp00, line0, line00]

先頭10フィールドは必須、tier 0/00 の4フィールドは旧レコードでは省略されうる。
14フィールドに満たないレコードは tier 0/00 を持たないものとして扱い、空レイヤーとする。
エンコード時は常に14フィールドすべてを出力する。
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Callable, List, TypeVar

from pr2course.blocks import format_blocks, parse_blocks
from pr2course.config import DEFAULT_SETTINGS, CodecOptions
from pr2course.delta import (
    CURRENT_FORMAT,
    format_hex_color,
    parse_hex_color,
    parse_int,
)
from pr2course.errors import ParseError, TruncatedRecordError, with_field
from pr2course.layer import BlockLayer, LineLayer, StampLayer
from pr2course.lines import format_lines, parse_lines
from pr2course.models import Color
from pr2course.stamps import format_stamps, parse_stamps

RECORD_SEP = "`"
REQUIRED_FIELDS = 10
TOTAL_FIELDS = 14

HASH_SALT = "84ge5tnr"
PASS_SALT = "WGZSL3JWcUE9L3Q4YipZIQ=="

T = TypeVar("T")


@dataclass
class CourseData:
    """data フィールドをデコードした結果。"""

    background_color: Color = field(default_factory=lambda: Color.from_int(0xBBBBDD))
    background_image: int = -1
    blocks: BlockLayer = field(default_factory=BlockLayer)
    stamp00: StampLayer = field(default_factory=StampLayer)
    stamp0: StampLayer = field(default_factory=StampLayer)
    stamp1: StampLayer = field(default_factory=StampLayer)
    stamp2: StampLayer = field(default_factory=StampLayer)
    stamp3: StampLayer = field(default_factory=StampLayer)
    line00: LineLayer = field(default_factory=LineLayer)
    line0: LineLayer = field(default_factory=LineLayer)
    line1: LineLayer = field(default_factory=LineLayer)
    line2: LineLayer = field(default_factory=LineLayer)
    line3: LineLayer = field(default_factory=LineLayer)


def _decode_field(name: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except ParseError as e:
        raise with_field(name, e) from e


def parse_data(data: str, options: CodecOptions = DEFAULT_SETTINGS.codec) -> CourseData:
    """
    data フィールドをデコードする。

    いずれかのフィールドで失敗した場合は、フィールド名を付与した例外を送出する。
    結果は新しい CourseData として返すため、呼び出し側の状態は変更しない。

    Args:
        data: data フィールド文字列。
        options: codec オプション。

    Returns:
        CourseData。

    Raises:
        TruncatedRecordError: 必須フィールドが不足している場合。
        ParseError: 各フィールドのデコードに失敗した場合(派生クラス)。
    """
    split = data.split(RECORD_SEP)
    if len(split) < REQUIRED_FIELDS:
        raise TruncatedRecordError(
            f"data has {len(split)} fields, at least {REQUIRED_FIELDS} required"
        )

    fmt = split[0]
    legacy = options.allow_legacy_formats
    strict = options.strict_unescape

    def stamps(i: int) -> Callable[[], StampLayer]:
        return lambda: parse_stamps(fmt, split[i], legacy, strict)

    def lines(i: int) -> Callable[[], LineLayer]:
        return lambda: parse_lines(fmt, split[i], legacy)

    result = CourseData()
    result.background_color = _decode_field(
        "background color", lambda: parse_hex_color("background color", split[1])
    )
    result.blocks = _decode_field("blocks", lambda: parse_blocks(fmt, split[2], legacy))
    result.stamp1 = _decode_field("stamp1", stamps(3))
    result.stamp2 = _decode_field("stamp2", stamps(4))
    result.stamp3 = _decode_field("stamp3", stamps(5))
    result.line1 = _decode_field("line1", lines(6))
    result.line2 = _decode_field("line2", lines(7))
    result.line3 = _decode_field("line3", lines(8))

    if split[9] == "":
        result.background_image = -1
    else:
        result.background_image = _decode_field(
            "background image", lambda: parse_int("background image", split[9])
        )

    # tier 0/00 は4フィールド揃っている場合のみ。10〜13フィールドのレコードでは残りを無視する
    if len(split) >= TOTAL_FIELDS:
        result.stamp0 = _decode_field("stamp0", stamps(10))
        result.stamp00 = _decode_field("stamp00", stamps(11))
        result.line0 = _decode_field("line0", lines(12))
        result.line00 = _decode_field("line00", lines(13))
    return result


def format_data(d: CourseData) -> str:
    """CourseData を現行フォーマット(m3)の data フィールドへエンコードする。"""
    fields: List[str] = [
        CURRENT_FORMAT,
        format_hex_color(d.background_color),
        format_blocks(d.blocks),
        format_stamps(d.stamp1),
        format_stamps(d.stamp2),
        format_stamps(d.stamp3),
        format_lines(d.line1),
        format_lines(d.line2),
        format_lines(d.line3),
        str(d.background_image),
        format_stamps(d.stamp0),
        format_stamps(d.stamp00),
        format_lines(d.line0),
        format_lines(d.line00),
    ]
    return RECORD_SEP.join(fields)


def md5_hex(s: str) -> str:
    """文字列(UTF-8)の MD5 を16進文字列で返す。"""
    return hashlib.md5(s.encode("utf-8")).hexdigest()


def course_hash(title: str, username: str, data: str) -> str:
    """
    アップロード認証用のハッシュを計算する。

    MD5(title + lower(username) + data + HASH_SALT)
    """
    return md5_hex(title + username.lower() + data + HASH_SALT)


def password_hash(password: str) -> str:
    """
    パスワードハッシュを計算する。

    "*" のプレースホルダを除去した結果が空の場合は空文字を返す。
    """
    p = password.replace("*", "")
    if not p:
        return ""
    return md5_hex(p + PASS_SALT)
