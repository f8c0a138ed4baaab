"""
座標インデックス付きの多重スタックコンテナ。

1つの Layer は座標(XY)ごとに配置オブジェクトのスタックを保持する。
スタックの挿入順がそのセル内の重なり順となる。

不変条件:
- スタックが空になった座標はキーごと削除する(空スタックは保持しない)
- 1つの Layer が保持するオブジェクトの種類は1種類のみ
"""

from __future__ import annotations

from typing import Dict, Generic, Iterator, List, Optional, Tuple, TypeVar, Union

from pr2course.errors import EmptyCellError
from pr2course.models import XY, Line, Stamp, Text

T = TypeVar("T")


class Layer(Generic[T]):
    """
    座標→スタックのマッピング。

    座標の列挙順は dict の挿入順に従う。キーを作成した最初の push の順に並び、
    pop で空になった座標に再度 push した場合は末尾に移動する。
    エンコード結果の並び順はこの順序で決まる。
    """

    _kinds: Tuple[type, ...] = (object,)

    def __init__(self) -> None:
        self._cells: Dict[XY, List[T]] = {}

    def get(self, x: int, y: int) -> Optional[List[T]]:
        """
        座標のスタック全体をコピーして返す。

        Returns:
            下から順に並んだオブジェクトのリスト。座標が存在しない場合は None。
        """
        stack = self._cells.get(XY(x, y))
        if stack is None:
            return None
        return list(stack)

    def peek(self, x: int, y: int) -> Optional[T]:
        """最後に push されたオブジェクトを返す。座標が存在しない場合は None。"""
        stack = self._cells.get(XY(x, y))
        if not stack:
            return None
        return stack[-1]

    def push(self, x: int, y: int, obj: T) -> None:
        """
        座標のスタックにオブジェクトを積む。座標が無ければ作成する。

        Raises:
            TypeError: この Layer が扱わない種類のオブジェクトの場合。
        """
        if not isinstance(obj, self._kinds):
            raise TypeError(f"{type(self).__name__} cannot hold {type(obj).__name__}")
        self._cells.setdefault(XY(x, y), []).append(obj)

    def pop(self, x: int, y: int) -> T:
        """
        座標のスタック最上段を取り除いて返す。空になった座標は削除する。

        Raises:
            EmptyCellError: 座標が存在しない場合。
        """
        pos = XY(x, y)
        stack = self._cells.get(pos)
        if stack is None:
            raise EmptyCellError(pos)

        obj = stack.pop()
        if not stack:
            del self._cells[pos]
        return obj

    def items(self) -> Iterator[Tuple[XY, Tuple[T, ...]]]:
        """(座標, スタック) を挿入順に列挙する。"""
        for pos, stack in self._cells.items():
            yield pos, tuple(stack)

    def count(self) -> int:
        """全座標に配置されたオブジェクトの総数を返す。"""
        return sum(len(s) for s in self._cells.values())

    def __iter__(self) -> Iterator[XY]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, pos: object) -> bool:
        return pos in self._cells

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._cells!r})"


class BlockLayer(Layer[int]):
    """ブロック(タイルID)のレイヤー。"""

    _kinds = (int,)


class StampLayer(Layer[Union[Stamp, Text]]):
    """スタンプ・テキストのレイヤー。"""

    _kinds = (Stamp, Text)


class LineLayer(Layer[Line]):
    """手描き線のレイヤー。"""

    _kinds = (Line,)
