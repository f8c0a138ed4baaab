"""
コース codec 固有の例外定義モジュール。

コースデータ(data フィールド・外側のクエリ文字列)のデコード処理や、
Layer 操作で発生する例外を分類して扱うために、基底例外および派生例外を定義する。
"""

from __future__ import annotations


class CourseError(Exception):
    """コース codec 全体の基底例外。"""


class ParseError(CourseError):
    """シリアライズ済みテキストのデコードに失敗した場合の例外。"""


class MalformedNumberError(ParseError):
    """
    数値サブフィールドが数値として解釈できない場合の例外。

    Attributes:
        field: 失敗したサブフィールド名(例: "block dx")。
        raw: 解釈できなかった元の文字列。
    """

    def __init__(self, field: str, raw: str, message: str | None = None) -> None:
        self.field = field
        self.raw = raw
        super().__init__(message or f"{field}: invalid number {raw!r}")


class TruncatedRecordError(ParseError):
    """必要な位置フィールド・サブフィールドが不足している場合の例外。"""


class InvalidChecksumLengthError(ParseError):
    """外側レコードがチェックサム長(32文字)より短い場合の例外。"""


class ChecksumMismatchError(ParseError):
    """末尾チェックサムが再計算した値と一致しない場合の例外。"""


class UnsupportedFormatError(ParseError):
    """未対応のフォーマットタグが指定された場合の例外。"""


class UnescapeError(ParseError):
    """厳格モードで不正な `#` エスケープを検出した場合の例外。"""


class EmptyCellError(CourseError, KeyError):
    """存在しない座標に対して pop を行った場合の例外。"""


def with_field(prefix: str, err: ParseError) -> ParseError:
    """
    例外クラスを保ったまま、メッセージ先頭にフィールド名を付与した例外を返す。

    Args:
        prefix: 付与するフィールド名(例: "stamp2")。
        err: 元の例外。

    Returns:
        同じクラスの新しい例外。呼び出し側で `raise ... from err` する。
    """
    message = f"{prefix}: {err}"
    if isinstance(err, MalformedNumberError):
        return MalformedNumberError(err.field, err.raw, message)
    return type(err)(message)
