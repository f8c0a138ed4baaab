"""
ブロックレイヤーの codec。

m3 形式: "dx[;dy[;type]]" をカンマで連結したもの。
座標はグリッド単位の差分で、Layer へ格納する時点で GRID_SIZE 倍してピクセル単位にする。
type を省略したコマンドは直前のタイルIDを引き継ぐ。
"""

from __future__ import annotations

from typing import List

from pr2course.delta import (
    COMMAND_SEP,
    FIELD_SEP,
    Cursor,
    is_decodable,
    parse_int,
    split_commands,
)
from pr2course.layer import BlockLayer

GRID_SIZE = 30


def parse_blocks(format_tag: str, data: str, allow_legacy: bool = False) -> BlockLayer:
    """
    ブロックフィールドをデコードする。

    Args:
        format_tag: フォーマットタグ。
        data: ブロックフィールド文字列。
        allow_legacy: 旧フォーマットを空レイヤーとして受け入れるか。

    Returns:
        BlockLayer。空文字の場合は空レイヤー。

    Raises:
        MalformedNumberError: dx/dy/t のいずれかが整数でない場合。
        UnsupportedFormatError: 対応していないフォーマットタグの場合。
    """
    blocks = BlockLayer()
    if not is_decodable(format_tag, allow_legacy):
        return blocks

    cursor = Cursor()
    cur_t = 0
    for command in split_commands(data):
        e = command.split(FIELD_SEP)
        dx = parse_int("block dx", e[0])
        dy = parse_int("block dy", e[1]) if len(e) > 1 else 0
        if len(e) > 2:
            cur_t = parse_int("block t", e[2])

        x, y = cursor.advance(dx, dy)
        blocks.push(x * GRID_SIZE, y * GRID_SIZE, cur_t)
    return blocks


def _grid_delta(pixels: int) -> int:
    # 0方向への切り捨て
    return int(pixels / GRID_SIZE)


def format_blocks(blocks: BlockLayer) -> str:
    """
    BlockLayer をエンコードする。

    座標の挿入順、スタックの下から順に "dx;dy[;type]" を出力する。
    type は直前と異なる場合のみ出力する。
    カーソルはピクセル座標で保持するため、GRID_SIZE の倍数でない座標は丸められる。
    """
    out: List[str] = []
    cursor = Cursor()
    cur_t = 0
    for pos, stack in blocks.items():
        for block in stack:
            dx, dy = cursor.delta_to(pos.x, pos.y)
            command = f"{_grid_delta(dx)}{FIELD_SEP}{_grid_delta(dy)}"
            if block != cur_t:
                cur_t = block
                command += f"{FIELD_SEP}{cur_t}"
            out.append(command)
    return COMMAND_SEP.join(out)
