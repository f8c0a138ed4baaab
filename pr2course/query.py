"""
外側レコード(クエリ文字列)の分割・結合と、メタ情報フィールドの変換。

レコード形式: "<name=value&...><32文字のチェックサム>"
値は URL エンコードされている。
"""

from __future__ import annotations

from typing import Dict, List, Tuple
from urllib.parse import quote_plus, unquote_plus

from pr2course.errors import InvalidChecksumLengthError

CHECKSUM_LEN = 32
LIST_SEP = "`"

_ITEM_ALIASES: Dict[str, int] = {
    "Laser Gun": 1,
    "Laser": 1,
    "Mine": 2,
    "Lightning": 3,
    "Teleport": 4,
    "Super Jump": 5,
    "Jet Pack": 6,
    "Speed Burst": 7,
    "Sword": 8,
    "Ice Wave": 9,
}
_ITEM_ALIASES.update({str(i): i for i in range(1, 10)})


def split_checksum(record: str) -> Tuple[str, str]:
    """
    レコードを (クエリ本体, チェックサム) に分割する。

    Raises:
        InvalidChecksumLengthError: レコードが32文字未満の場合。
    """
    if len(record) < CHECKSUM_LEN:
        raise InvalidChecksumLengthError(
            f"record is {len(record)} chars, checksum needs {CHECKSUM_LEN}"
        )
    return record[:-CHECKSUM_LEN], record[-CHECKSUM_LEN:]


def parse_query(query: str) -> Dict[str, str]:
    """
    "&" 区切りの name=value を辞書に変換する。値は URL デコードする。

    "=" を持たない項目は空文字の値とする。同名の項目は後勝ち。
    """
    m: Dict[str, str] = {}
    for pair in query.split("&"):
        name, _, value = pair.partition("=")
        m[name] = unquote_plus(value)
    return m


def format_query(query: Dict[str, str]) -> str:
    """辞書を挿入順に "&" 区切りの name=value へ変換する。値は URL エンコードする。"""
    return "&".join(f"{name}={quote_plus(value)}" for name, value in query.items())


def parse_bool(value: str) -> bool:
    """"0" 以外を True とする。"""
    return value != "0"


def format_bool(b: bool) -> str:
    return "1" if b else "0"


def parse_items(value: str) -> List[int]:
    """
    アイテム指定を ID のリストに変換する。

    数値 "1"〜"9" と旧形式のアイテム名を受け付け、未知のトークンは無視する。
    順序と重複は保持する。
    """
    return [_ITEM_ALIASES[s] for s in value.split(LIST_SEP) if s in _ITEM_ALIASES]


def format_items(items: List[int]) -> str:
    return LIST_SEP.join(str(i) for i in items)


def parse_credits(value: str) -> List[str]:
    if value == "":
        return []
    return value.split(LIST_SEP)


def format_credits(credits: List[str]) -> str:
    return LIST_SEP.join(credits)
