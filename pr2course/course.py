"""
コース(レベル)全体を表すモデルと、公開エントリポイント。

- parse(record): 保存形式のレコードから Course を生成する
- Course.serialize(user, token): 保存・表示用のクエリ文字列を生成する
- Course.upload(user, token): アップロード要求用のクエリ文字列を生成する
- Course.dump(user): parse が受け付ける保存形式(末尾チェックサム付き)を生成する

デコードは新しい Course を組み立ててから返すため、途中で失敗した場合に
部分的に更新された Course が呼び出し側へ渡ることはない。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from pr2course.config import DEFAULT_SETTINGS, CodecOptions, Settings
from pr2course.data_codec import (
    CourseData,
    course_hash,
    format_data,
    parse_data,
    password_hash,
)
from pr2course.delta import parse_int
from pr2course.errors import (
    ChecksumMismatchError,
    MalformedNumberError,
    ParseError,
    with_field,
)
from pr2course.layer import BlockLayer, LineLayer, StampLayer
from pr2course.models import Color
from pr2course.query import (
    format_bool,
    format_credits,
    format_items,
    format_query,
    parse_bool,
    parse_credits,
    parse_items,
    parse_query,
    split_checksum,
)


@dataclass
class Course:
    """
    コースのルート集約。

    blocks の他に、スタンプ・線レイヤーをそれぞれ tier 00/0/1/2/3 の5枚ずつ持つ。
    queries はシリアライズ時に出力内容を保持する一時的な name/value 表で、
    parse 時は元レコードの全項目(未知の項目を含む)を保持する。
    """

    live: bool = False
    has_pass: bool = False
    title: str = ""
    note: str = ""
    game_mode: str = ""
    credits: List[str] = field(default_factory=list)
    gravity: float = 0.0
    max_time: int = 0
    min_rank: int = 0
    song: int = 0
    cowboy_chance: int = 0
    items: List[int] = field(default_factory=list)
    background_color: Color = field(default_factory=lambda: Color(0, 0, 0))
    background_image: int = -1

    blocks: BlockLayer = field(default_factory=BlockLayer)
    line00: LineLayer = field(default_factory=LineLayer)
    line0: LineLayer = field(default_factory=LineLayer)
    line1: LineLayer = field(default_factory=LineLayer)
    line2: LineLayer = field(default_factory=LineLayer)
    line3: LineLayer = field(default_factory=LineLayer)
    stamp00: StampLayer = field(default_factory=StampLayer)
    stamp0: StampLayer = field(default_factory=StampLayer)
    stamp1: StampLayer = field(default_factory=StampLayer)
    stamp2: StampLayer = field(default_factory=StampLayer)
    stamp3: StampLayer = field(default_factory=StampLayer)

    password: str = ""
    queries: Dict[str, str] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def default(cls, settings: Settings = DEFAULT_SETTINGS) -> "Course":
        """
        レベルエディタの初期状態と同じコースを生成する。

        Args:
            settings: 初期値を含む設定。

        Returns:
            初期ブロック・既定の色・物理設定を持つ Course。
        """
        d = settings.defaults
        c = cls(
            game_mode=d.game_mode,
            gravity=d.gravity,
            max_time=d.max_time,
            cowboy_chance=d.cowboy_chance,
            items=list(d.items),
            background_color=Color.from_int(d.background_color),
            background_image=d.background_image,
        )
        for x, y, t in d.start_blocks:
            c.blocks.push(x, y, t)
        return c

    def to_data(self) -> CourseData:
        return CourseData(
            background_color=self.background_color,
            background_image=self.background_image,
            blocks=self.blocks,
            stamp00=self.stamp00,
            stamp0=self.stamp0,
            stamp1=self.stamp1,
            stamp2=self.stamp2,
            stamp3=self.stamp3,
            line00=self.line00,
            line0=self.line0,
            line1=self.line1,
            line2=self.line2,
            line3=self.line3,
        )

    def load_data(self, data: str, options: CodecOptions = DEFAULT_SETTINGS.codec) -> None:
        """
        data フィールドをデコードし、背景・全レイヤーを置き換える。

        すべてのフィールドのデコードに成功した場合のみ反映する。

        Raises:
            ParseError: デコードに失敗した場合(派生クラス)。
        """
        d = parse_data(data, options)
        self.background_color = d.background_color
        self.background_image = d.background_image
        self.blocks = d.blocks
        self.stamp00, self.stamp0 = d.stamp00, d.stamp0
        self.stamp1, self.stamp2, self.stamp3 = d.stamp1, d.stamp2, d.stamp3
        self.line00, self.line0 = d.line00, d.line0
        self.line1, self.line2, self.line3 = d.line1, d.line2, d.line3

    def format_data(self) -> str:
        """data フィールド文字列を返す。"""
        return format_data(self.to_data())

    def checksum(self, username: str, data: Optional[str] = None) -> str:
        """認証ハッシュ MD5(title + lower(username) + data + salt) を返す。"""
        if data is None:
            data = self.format_data()
        return course_hash(self.title, username, data)

    def password_hash(self) -> str:
        """"*" を除いたパスワードのハッシュ。パスワードが空の場合は空文字。"""
        return password_hash(self.password)

    def _gravity(self) -> str:
        return f"{self.gravity:.2f}"

    def serialize(self, username: str, token: str) -> str:
        """
        保存・表示用のクエリ文字列を生成する。

        出力した name/value は queries に保持する。レイヤー等の状態は変更しない。

        Args:
            username: ハッシュ計算に使うユーザー名(大文字小文字は区別しない)。
            token: 認証トークン。

        Returns:
            "&" 区切りのクエリ文字列。
        """
        q: Dict[str, str] = {}
        q["live"] = format_bool(self.live)
        q["hasPass"] = format_bool(self.has_pass)
        q["title"] = self.title
        q["note"] = self.note
        q["gameMode"] = self.game_mode
        q["credits"] = format_credits(self.credits)
        q["gravity"] = self._gravity()
        q["max_time"] = str(self.max_time)
        q["min_level"] = str(self.min_rank)
        q["song"] = str(self.song)
        q["cowboyChance"] = str(self.cowboy_chance)
        q["items"] = format_items(self.items)
        q["data"] = self.format_data()
        q["passHash"] = self.password_hash()
        q["hash"] = self.checksum(username, q["data"])
        q["token"] = token
        self.queries = q
        return format_query(q)

    def upload(self, username: str, token: str) -> str:
        """アップロード要求用のクエリ文字列を生成する。credits は含めない。"""
        data = self.format_data()
        q: Dict[str, str] = {
            "title": self.title,
            "note": self.note,
            "data": data,
            "live": format_bool(self.live),
            "min_level": str(self.min_rank),
            "song": str(self.song),
            "gravity": self._gravity(),
            "max_time": str(self.max_time),
            "items": format_items(self.items),
            "hash": self.checksum(username, data),
            "passHash": self.password_hash(),
            "hasPass": format_bool(self.has_pass),
            "gameMode": self.game_mode,
            "cowboyChance": str(self.cowboy_chance),
            "token": token,
        }
        return format_query(q)

    def dump(self, username: str) -> str:
        """
        parse が受け付ける保存形式のレコードを生成する。

        Returns:
            クエリ本体の末尾に32文字のチェックサムを連結した文字列。
        """
        data = self.format_data()
        q: Dict[str, str] = {
            "live": format_bool(self.live),
            "hasPass": format_bool(self.has_pass),
            "title": self.title,
            "note": self.note,
            "gameMode": self.game_mode,
            "credits": format_credits(self.credits),
            "gravity": self._gravity(),
            "max_time": str(self.max_time),
            "min_level": str(self.min_rank),
            "song": str(self.song),
            "cowboyChance": str(self.cowboy_chance),
            "items": format_items(self.items),
            "data": data,
        }
        return format_query(q) + self.checksum(username, data)


def _parse_song(value: str) -> int:
    if value in ("", "random"):
        return 0
    return parse_int("song", value)


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise MalformedNumberError(name, value) from e


def _apply(c: Course, name: str, value: str, options: CodecOptions) -> None:
    setters: Dict[str, Callable[[], None]] = {
        "live": lambda: setattr(c, "live", parse_bool(value)),
        "has_pass": lambda: setattr(c, "has_pass", parse_bool(value)),
        "hasPass": lambda: setattr(c, "has_pass", parse_bool(value)),
        "title": lambda: setattr(c, "title", value),
        "note": lambda: setattr(c, "note", value),
        "gameMode": lambda: setattr(c, "game_mode", value),
        "credits": lambda: setattr(c, "credits", parse_credits(value)),
        "gravity": lambda: setattr(c, "gravity", _parse_float(name, value)),
        "max_time": lambda: setattr(c, "max_time", parse_int(name, value)),
        "min_level": lambda: setattr(c, "min_rank", parse_int(name, value)),
        "song": lambda: setattr(c, "song", _parse_song(value)),
        "cowboyChance": lambda: setattr(c, "cowboy_chance", parse_int(name, value)),
        "items": lambda: setattr(c, "items", parse_items(value)),
        "data": lambda: c.load_data(value, options),
    }
    setter = setters.get(name)
    if setter is not None:
        setter()


def verify_checksum(queries: Dict[str, str], checksum: str, username: str) -> None:
    """
    末尾チェックサムを検証する。

    Raises:
        ChecksumMismatchError: 再計算したハッシュと一致しない場合。
    """
    expected = course_hash(queries.get("title", ""), username, queries.get("data", ""))
    if checksum.lower() != expected:
        raise ChecksumMismatchError(f"checksum mismatch: {checksum} != {expected}")


def parse(
    record: str,
    username: Optional[str] = None,
    verify: Optional[bool] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> Course:
    """
    保存形式のレコードから Course を生成する。

    Course.default() を起点に、レコードに含まれる項目だけを上書きする。
    未知の項目は queries にのみ保持する。

    Args:
        record: "<クエリ本体><32文字チェックサム>" 形式の文字列。
        username: チェックサム検証に使うユーザー名。
        verify: チェックサムを検証するか。None の場合は settings に従う。
        settings: 初期値・codec オプション。

    Returns:
        Course。

    Raises:
        InvalidChecksumLengthError: レコードが32文字未満の場合。
        ChecksumMismatchError: チェックサム検証に失敗した場合。
        ValueError: 検証が有効で username が指定されていない場合。
        ParseError: 各項目のデコードに失敗した場合(派生クラス)。
    """
    body, checksum = split_checksum(record)
    queries = parse_query(body)

    if verify is None:
        verify = settings.codec.verify_checksum
    if verify:
        if username is None:
            raise ValueError("username is required to verify the checksum")
        verify_checksum(queries, checksum, username)

    c = Course.default(settings)
    c.queries = dict(queries)
    for name, value in queries.items():
        try:
            _apply(c, name, value, settings.codec)
        except ParseError as e:
            raise with_field(name, e) from e
    return c
