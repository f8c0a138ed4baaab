"""
スタンプ・テキストレイヤーの codec。

m3 形式: "dx;dy[;kind[;...]]" をカンマで連結したもの。座標はピクセル単位の差分。

- kind 省略 / 数値: スタンプ。続く "scaleX;scaleY" は整数パーセント(省略時 100)。
- kind == "t": テキスト。"content;color;scaleX;scaleY" が続く。
  content は "#" エスケープ済み、color は10進の 24bit RGB。
"""

from __future__ import annotations

from typing import List, Union

from pr2course.delta import (
    COMMAND_SEP,
    FIELD_SEP,
    Cursor,
    escape_text,
    format_dec_color,
    format_percent,
    is_decodable,
    parse_dec_color,
    parse_int,
    parse_percent,
    split_commands,
    unescape_text,
)
from pr2course.errors import TruncatedRecordError
from pr2course.layer import StampLayer
from pr2course.models import Stamp, Text

TEXT_KIND = "t"


def _parse_text(split: List[str], strict_unescape: bool) -> Text:
    if len(split) < 7:
        raise TruncatedRecordError(f"text needs 7 fields, got {len(split)}")
    return Text(
        content=unescape_text(split[3], strict=strict_unescape),
        color=parse_dec_color("text color", split[4]),
        scale_x=parse_percent("scaleX", split[5]),
        scale_y=parse_percent("scaleY", split[6]),
    )


def _parse_stamp(split: List[str]) -> Stamp:
    kind = parse_int("stamp kind", split[2]) if len(split) > 2 else 0
    if len(split) > 3:
        if len(split) < 5:
            raise TruncatedRecordError("stamp scaleY is missing")
        return Stamp(
            kind=kind,
            scale_x=parse_percent("scaleX", split[3]),
            scale_y=parse_percent("scaleY", split[4]),
        )
    return Stamp(kind=kind)


def parse_stamps(
    format_tag: str,
    data: str,
    allow_legacy: bool = False,
    strict_unescape: bool = False,
) -> StampLayer:
    """
    スタンプフィールドをデコードする。

    Args:
        format_tag: フォーマットタグ。
        data: スタンプフィールド文字列。
        allow_legacy: 旧フォーマットを空レイヤーとして受け入れるか。
        strict_unescape: テキストの不正エスケープをエラーとするか。

    Returns:
        StampLayer。

    Raises:
        MalformedNumberError: 数値サブフィールドが不正な場合。
        TruncatedRecordError: 必須サブフィールドが不足している場合。
        UnsupportedFormatError: 対応していないフォーマットタグの場合。
    """
    layer = StampLayer()
    if not is_decodable(format_tag, allow_legacy):
        return layer

    cursor = Cursor()
    for command in split_commands(data):
        split = command.split(FIELD_SEP)
        if len(split) < 2:
            raise TruncatedRecordError(f"stamp y is missing in {command!r}")

        dx = parse_int("stamp x", split[0])
        dy = parse_int("stamp y", split[1])
        x, y = cursor.advance(dx, dy)

        obj: Union[Stamp, Text]
        if len(split) > 2 and split[2] == TEXT_KIND:
            obj = _parse_text(split, strict_unescape)
        else:
            obj = _parse_stamp(split)
        layer.push(x, y, obj)
    return layer


def _format_object(obj: Union[Stamp, Text]) -> str:
    if isinstance(obj, Text):
        fields = [
            TEXT_KIND,
            escape_text(obj.content),
            format_dec_color(obj.color),
            format_percent(obj.scale_x),
            format_percent(obj.scale_y),
        ]
        return FIELD_SEP + FIELD_SEP.join(fields)

    if obj.scale_x != 1.0 or obj.scale_y != 1.0:
        fields = [str(obj.kind), format_percent(obj.scale_x), format_percent(obj.scale_y)]
        return FIELD_SEP + FIELD_SEP.join(fields)
    if obj.kind != 0:
        return f"{FIELD_SEP}{obj.kind}"
    return ""


def format_stamps(layer: StampLayer) -> str:
    """
    StampLayer をエンコードする。

    座標の挿入順、スタックの下から順に出力する。
    既定値(kind 0・等倍)のスタンプは "dx;dy" のみとなる。
    """
    out: List[str] = []
    cursor = Cursor()
    for pos, stack in layer.items():
        for obj in stack:
            dx, dy = cursor.delta_to(pos.x, pos.y)
            out.append(f"{dx}{FIELD_SEP}{dy}{_format_object(obj)}")
    return COMMAND_SEP.join(out)
