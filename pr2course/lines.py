"""
手描き線レイヤーの codec。

m3 形式: 1文字の種別プレフィックスを持つコマンドをカンマで連結したもの。

- "c<hex>": 現在の線の色を設定
- "t<int>": 現在の線の太さを設定
- "m<mode>": 描画モードを設定("draw" 以外は消しゴム)
- "d<dx1>;<dy1>;<dx2>;<dy2>;...": ポリライン1本

色・太さ・モードはフィールド内で持ち越し、フィールドごとに既定値(黒・4・draw)へ戻る。
ポリラインの座標は (0, 0) から始まる差分で、"d" コマンドごとにカーソルを初期化する。
"""

from __future__ import annotations

from typing import List

from pr2course.delta import (
    COMMAND_SEP,
    FIELD_SEP,
    Cursor,
    format_hex_color,
    is_decodable,
    parse_hex_color,
    parse_int,
    split_commands,
)
from pr2course.errors import TruncatedRecordError
from pr2course.layer import LineLayer
from pr2course.models import BLACK, XY, Line

DRAW_MODE = "draw"
ERASE_MODE = "erase"
DEFAULT_THICKNESS = 4


def _parse_polyline(content: str) -> List[XY]:
    values = content.split(FIELD_SEP)
    if len(values) % 2 != 0:
        raise TruncatedRecordError(f"line has odd number of values: {len(values)}")

    cursor = Cursor()
    points: List[XY] = []
    for i in range(0, len(values), 2):
        dx = parse_int("line x", values[i])
        dy = parse_int("line y", values[i + 1])
        points.append(XY(*cursor.advance(dx, dy)))
    return points


def parse_lines(format_tag: str, data: str, allow_legacy: bool = False) -> LineLayer:
    """
    線フィールドをデコードする。

    各ポリラインは先頭点の座標をキーとして Layer に格納し、
    その時点の色・太さ・モードを保持する。未知の種別プレフィックスは無視する。

    Raises:
        MalformedNumberError: 色・太さ・座標が不正な場合。
        TruncatedRecordError: 空コマンド、または座標の個数が奇数の場合。
        UnsupportedFormatError: 対応していないフォーマットタグの場合。
    """
    art = LineLayer()
    if not is_decodable(format_tag, allow_legacy):
        return art

    mode = DRAW_MODE
    thickness = DEFAULT_THICKNESS
    color = BLACK
    for command in split_commands(data):
        if not command:
            raise TruncatedRecordError("empty line command")

        typ, content = command[0], command[1:]
        if typ == "c":
            color = parse_hex_color("line color", content)
        elif typ == "t":
            thickness = parse_int("line thickness", content)
        elif typ == "m":
            mode = content
        elif typ == "d":
            points = _parse_polyline(content)
            art.push(
                points[0].x,
                points[0].y,
                Line(
                    segments=tuple(points),
                    thickness=thickness,
                    color=color,
                    erase=mode != DRAW_MODE,
                ),
            )
    return art


def format_lines(layer: LineLayer) -> str:
    """
    LineLayer をエンコードする。

    色・太さ・モードは直前の状態と異なる場合のみコマンドを出力する。
    ポリラインは Layer のキーではなく segments から出力し、頂点の無い線は出力しない。
    """
    out: List[str] = []
    color = BLACK
    thickness = DEFAULT_THICKNESS
    erase = False
    for _, stack in layer.items():
        for line in stack:
            if not line.segments:
                continue
            if line.color.to_int() != color.to_int():
                color = line.color
                out.append("c" + format_hex_color(color))
            if line.thickness != thickness:
                thickness = line.thickness
                out.append(f"t{thickness}")
            if line.erase != erase:
                erase = line.erase
                out.append("m" + (ERASE_MODE if erase else DRAW_MODE))

            cursor = Cursor()
            values: List[str] = []
            for point in line.segments:
                dx, dy = cursor.delta_to(point.x, point.y)
                values.extend((str(dx), str(dy)))
            out.append("d" + FIELD_SEP.join(values))
    return COMMAND_SEP.join(out)
