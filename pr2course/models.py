"""
データモデル定義モジュール。

Layer に配置されるオブジェクト(ブロック・スタンプ・テキスト・線)と、
座標・色を表す値型を定義する。

ブロックはタイルID(int)そのものを配置するため、専用クラスは持たない。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Tuple


class XY(NamedTuple):
    """Layer のキーとなるピクセル単位の座標。"""

    x: int
    y: int


@dataclass(frozen=True)
class Color:
    """
    RGBA色。

    シリアライズ形式は 24bit RGB のみでアルファを持たないため、
    デコードした色のアルファは常に 255 とする。
    """

    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def from_int(cls, value: int) -> "Color":
        """0xRRGGBB 形式の整数から色を生成する。上位ビットは無視する。"""
        return cls(r=(value >> 16) & 0xFF, g=(value >> 8) & 0xFF, b=value & 0xFF)

    def to_int(self) -> int:
        """アルファを除いた 0xRRGGBB 形式の整数を返す。"""
        return (self.r << 16) | (self.g << 8) | self.b


BLACK = Color(0, 0, 0)


@dataclass(frozen=True)
class Stamp:
    """
    画像スタンプ。

    Attributes:
        kind: スタンプ画像ID。
        scale_x: X方向の拡大率(1.0 = 等倍)。
        scale_y: Y方向の拡大率。
    """

    kind: int = 0
    scale_x: float = 1.0
    scale_y: float = 1.0


@dataclass(frozen=True)
class Text:
    """
    テキストオブジェクト。スタンプレイヤーに配置される。

    Attributes:
        content: 表示文字列(エスケープ前の生文字列)。
        color: 文字色。
        scale_x: X方向の拡大率。
        scale_y: Y方向の拡大率。
    """

    content: str
    color: Color = BLACK
    scale_x: float = 1.0
    scale_y: float = 1.0


@dataclass(frozen=True)
class Line:
    """
    手描きの線(ポリライン)。

    segments の先頭点が Layer 上のキー座標となる。

    Attributes:
        segments: 頂点座標(ピクセル単位)。
        thickness: 線の太さ。
        color: 線の色。
        erase: True の場合は消しゴム線。
    """

    segments: Tuple[XY, ...] = field(default_factory=tuple)
    thickness: int = 4
    color: Color = BLACK
    erase: bool = False
