import json
import sqlite3
from wsgiref.util import setup_testing_defaults

import pytest

from lachuoi.random_place import make_app, random_location, rows_to_json

_SCHEMA = (
    "CREATE TABLE cities15000 (alternatenames TEXT, asciiname TEXT, country TEXT, "
    "elevation INTEGER, fclass TEXT, latitude REAL, longitude REAL, moddate TEXT, "
    "name TEXT, population INTEGER, timezone TEXT)"
)


def _fill(connection, rows):
    connection.execute(_SCHEMA)
    connection.executemany(
        "INSERT INTO cities15000 VALUES (?,?,?,?,?,?,?,?,?,?,?)", rows
    )
    connection.commit()


_BIG = ("", "Bigtown", "KR", None, "P", 37.5, 127.0, "2024-01-01", "Bigtown", 900000, "Asia/Seoul")
_SMALL = ("", "Smallville", "US", 10, "P", 40.0, -90.0, "2024-01-01", "Smallville", 20000, "America/Chicago")


def _call(app):
    environ = {}
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body


def test_rows_to_json_pretty_layout():
    assert rows_to_json(["a"], [(1,)]) == '[\n  {\n    "a": 1\n  }\n]'


def test_rows_to_json_empty():
    assert rows_to_json(["a", "b"], []) == "[]"


def test_rows_to_json_blob_and_null_become_null():
    decoded = json.loads(rows_to_json(["data", "note", "x"], [(b"\x00\x01", None, 2.5)]))
    assert decoded == [{"data": None, "note": None, "x": 2.5}]


def test_rows_to_json_keys_sorted():
    text = rows_to_json(["zeta", "alpha"], [("z", "a")])
    assert text.index('"alpha"') < text.index('"zeta"')


def test_rows_to_json_keeps_unicode():
    text = rows_to_json(["name"], [("서울",)])
    assert "서울" in text


def test_random_location_respects_population():
    connection = sqlite3.connect(":memory:")
    _fill(connection, [_BIG, _SMALL])
    for _ in range(5):
        decoded = json.loads(random_location(connection))
        assert len(decoded) == 1
        assert decoded[0]["name"] == "Bigtown"
        assert decoded[0]["population"] >= 50000
        assert decoded[0]["latitude"] == 37.5
        assert decoded[0]["elevation"] is None


def test_random_location_custom_threshold():
    connection = sqlite3.connect(":memory:")
    _fill(connection, [_SMALL])
    assert json.loads(random_location(connection)) == []
    decoded = json.loads(random_location(connection, min_population=10000))
    assert decoded[0]["asciiname"] == "Smallville"


def test_random_location_missing_table():
    connection = sqlite3.connect(":memory:")
    with pytest.raises(sqlite3.OperationalError):
        random_location(connection)


def test_app_serves_json(tmp_path):
    db = tmp_path / "geoname.db"
    connection = sqlite3.connect(db)
    _fill(connection, [_BIG, _SMALL])
    connection.close()

    status, headers, body = _call(make_app(db))
    assert status == "200 OK"
    assert headers["content-type"] == "application/json"
    assert json.loads(body)[0]["country"] == "KR"


def test_app_missing_database_is_error(tmp_path):
    status, _, body = _call(make_app(tmp_path / "absent.db"))
    assert status.startswith("500")
    assert not (tmp_path / "absent.db").exists()
    assert body.startswith(b"database error")