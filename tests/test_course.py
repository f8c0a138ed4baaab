"""Course の parse / serialize / upload / dump のテスト。"""

from __future__ import annotations

from urllib.parse import parse_qsl

import pytest

from pr2course.course import Course, parse, verify_checksum
from pr2course.config import CodecOptions, Settings
from pr2course.data_codec import course_hash, password_hash
from pr2course.errors import (
    ChecksumMismatchError,
    InvalidChecksumLengthError,
    MalformedNumberError,
    UnsupportedFormatError,
)
from pr2course.models import XY, Color, Line, Stamp, Text


@pytest.mark.light
def test_parse_minimal_record(record):
    """最小レコードで背景色が設定され、全レイヤーが空となることを確認する。"""
    c = parse(record())
    assert c.background_color == Color(0xBB, 0xBB, 0xDD)
    assert c.background_image == -1
    assert len(c.blocks) == 0
    assert len(c.stamp1) == 0
    assert len(c.line1) == 0


@pytest.mark.light
def test_parse_metadata_fields(record):
    """メタ情報の各項目がデコードされ、未知の項目は queries に残ることを確認する。"""
    raw = record(
        live="1",
        has_pass="0",
        title="My+Level%21",
        note="a%26b",
        gameMode="deathmatch",
        credits="alice%60bob",
        gravity="1.5",
        max_time="60",
        min_level="20",
        song="random",
        cowboyChance="10",
        items="1%60Mine%60Sword%60bogus%601",
        rating="4.5",
    )
    c = parse(raw)
    assert c.live is True
    assert c.has_pass is False
    assert c.title == "My Level!"
    assert c.note == "a&b"
    assert c.game_mode == "deathmatch"
    assert c.credits == ["alice", "bob"]
    assert c.gravity == 1.5
    assert c.max_time == 60
    assert c.min_rank == 20
    assert c.song == 0
    assert c.cowboy_chance == 10
    assert c.items == [1, 2, 8, 1]
    assert c.queries["rating"] == "4.5"


@pytest.mark.light
def test_parse_keeps_defaults_for_missing_fields(record):
    """レコードに無い項目は初期値のままとなることを確認する。"""
    c = parse(record(title="x"))
    assert c.gravity == 1.0
    assert c.max_time == 120
    assert c.game_mode == "race"
    assert c.items == [1, 2, 3, 4, 5, 6, 7, 8, 9]


@pytest.mark.light
def test_parse_short_record():
    """32文字未満のレコードは InvalidChecksumLengthError となることを確認する。"""
    with pytest.raises(InvalidChecksumLengthError):
        parse("data=m3")


@pytest.mark.light
def test_parse_errors_name_the_field(record):
    """失敗した項目名がメッセージの先頭に付与されることを確認する。"""
    with pytest.raises(MalformedNumberError) as exc_info:
        parse(record(max_time="soon"))
    assert str(exc_info.value).startswith("max_time: ")

    with pytest.raises(MalformedNumberError) as exc_info:
        parse(record(data="m3`bbbbdd`1;q```````-1"))
    assert str(exc_info.value).startswith("data: blocks: ")
    assert exc_info.value.field == "block dy"

    with pytest.raises(UnsupportedFormatError):
        parse(record(data="m2`bbbbdd````````-1"))


@pytest.mark.light
def test_load_data_is_transactional(default_course):
    """data のデコードに失敗した場合、Course が変更されないことを確認する。"""
    before = Course.default()
    with pytest.raises(MalformedNumberError):
        default_course.load_data("m3`000000`1;1;1``````d1;x`-1")
    assert default_course == before


@pytest.mark.light
def test_serialize_fields_and_side_table(default_course):
    """serialize の出力項目とハッシュ、queries への保持を確認する。"""
    default_course.title = "abc"
    default_course.password = "pa**ss"
    query = default_course.serialize("OXY", "tok")
    pairs = dict(parse_qsl(query, keep_blank_values=True))

    data = default_course.format_data()
    assert pairs["data"] == data
    assert pairs["hash"] == course_hash("abc", "oxy", data)
    assert pairs["passHash"] == password_hash("pass")
    assert pairs["token"] == "tok"
    assert pairs["gravity"] == "1.00"
    assert pairs["items"] == "1`2`3`4`5`6`7`8`9"
    assert default_course.queries == pairs
    assert list(pairs)[:3] == ["live", "hasPass", "title"]


@pytest.mark.light
def test_serialize_does_not_change_layers(default_course):
    """serialize を行ってもレイヤーが変化しないことを確認する。"""
    before = Course.default()
    default_course.serialize("user", "token")
    assert default_course == before


@pytest.mark.light
def test_upload_has_reduced_field_set(default_course):
    """upload の出力には credits が含まれないことを確認する。"""
    default_course.credits = ["someone"]
    pairs = dict(parse_qsl(default_course.upload("user", "t"), keep_blank_values=True))
    assert "credits" not in pairs
    assert pairs["passHash"] == ""
    assert pairs["min_level"] == "0"
    assert pairs["hash"] == default_course.checksum("user")


@pytest.mark.light
def test_dump_then_parse_roundtrip(default_course):
    """dump した保存形式を parse すると同じ Course に戻ることを確認する。"""
    c = default_course
    c.live = True
    c.title = "Round & Trip = ok"
    c.note = "100% `fun`"
    c.credits = ["a", "b"]
    c.gravity = 1.25
    c.song = 7
    c.items = [3, 3, 9]
    c.background_color = Color(0x12, 0x34, 0x56)
    c.background_image = 2
    c.stamp2.push(40, 50, Text(content="hi; there", color=Color(0, 128, 0), scale_x=2.0, scale_y=1.0))
    c.stamp0.push(-10, 10, Stamp(kind=4))
    c.line3.push(0, 0, Line(segments=(XY(0, 0), XY(10, 10)), thickness=3))

    raw = c.dump("Player")
    parsed = parse(raw, username="player", verify=True)
    assert parsed == c


@pytest.mark.light
def test_checksum_verification(default_course):
    """チェックサム検証の成功・失敗を確認する。"""
    raw = default_course.dump("me")
    parse(raw, username="ME", verify=True)

    tampered = raw[:-32] + "f" * 32
    with pytest.raises(ChecksumMismatchError):
        parse(tampered, username="me", verify=True)
    parse(tampered)

    strict = Settings(codec=CodecOptions(verify_checksum=True))
    with pytest.raises(ValueError):
        parse(raw, settings=strict)
    with pytest.raises(ChecksumMismatchError):
        parse(raw, username="someone else", settings=strict)


@pytest.mark.light
def test_verify_checksum_function():
    """verify_checksum が title と data から計算することを確認する。"""
    queries = {"title": "abc", "data": "m3`x"}
    verify_checksum(queries, course_hash("abc", "u", "m3`x").upper(), "U")
    with pytest.raises(ChecksumMismatchError):
        verify_checksum(queries, course_hash("abd", "u", "m3`x"), "u")


@pytest.mark.light
def test_parse_record_with_eleven_data_fields(record):
    """data が11フィールドのレコードでも背景色のみ設定され、レイヤーが空となることを確認する。"""
    c = parse(record(data="m3`bbbbdd`````````-1"))
    assert c.background_color == Color(0xBB, 0xBB, 0xDD)
    assert c.background_image == -1
    for layer in (c.blocks, c.stamp0, c.stamp00, c.stamp1, c.line0, c.line00, c.line1):
        assert len(layer) == 0
