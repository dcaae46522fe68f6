"""Testes da classificação do corpo do sendBeacon e da extração do user_id."""

import pytest

from backend.request_body import FormBody, JsonBody, RawBody, classify_body, extract_user_id
from backend.sanitize import parse_user_id


def test_json_body():
    body = classify_body("application/json", b'{"user_id": 42}')
    assert body == JsonBody({"user_id": 42})
    assert extract_user_id(body) == 42


def test_blob_without_content_type_is_json():
    assert extract_user_id(classify_body("", b'{"user_id": "17"}')) == 17
    assert extract_user_id(classify_body("text/plain;charset=UTF-8", b'{"user_id": 17}')) == 17
    assert extract_user_id(classify_body("application/octet-stream", b'{"user_id": 3}')) == 3


def test_urlencoded_body():
    body = classify_body("application/x-www-form-urlencoded", b"user_id=8&x=1")
    assert isinstance(body, FormBody)
    assert body.fields == {"user_id": "8", "x": "1"}
    assert extract_user_id(body) == 8


def test_raw_fallback():
    body = classify_body("text/plain", b"user_id=12")
    assert isinstance(body, RawBody)
    assert extract_user_id(body) == 12
    assert extract_user_id(classify_body("application/json", b"not json")) is None
    assert extract_user_id(classify_body("", b"")) is None


def test_json_without_object():
    assert extract_user_id(JsonBody([1, 2])) is None
    assert extract_user_id(JsonBody({"user_id": -5})) is None


@pytest.mark.parametrize(
    "value,expected",
    [(5, 5), ("5", 5), (" 7 ", 7), (b"9", 9), (3.0, 3), (3.5, None), (0, None), (-1, None),
     (True, None), ("abc", None), ("", None), (None, None), ([1], None),
     ("²", None), ("٣", None), ("１２", None), ("-5", None), ("9" * 5000, None),
     (2**63 - 1, 2**63 - 1), (2**63, None), (10**20, None), ("9223372036854775808", None),
     (1e30, None), (float("inf"), None), (float("nan"), None)],
)
def test_parse_user_id(value, expected):
    assert parse_user_id(value) == expected
