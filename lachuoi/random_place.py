"""HTTP endpoint that picks a random populous city from a geonames database."""

from __future__ import annotations

import argparse
import json
import sqlite3
from collections.abc import Callable, Iterable, Sequence
from contextlib import closing
from pathlib import Path
from wsgiref.simple_server import make_server

DEFAULT_MIN_POPULATION = 50000

_QUERY = (
    "SELECT alternatenames, asciiname, country, elevation, fclass, latitude, "
    "longitude, moddate, name, population, timezone FROM cities15000 "
    "WHERE population >= ? ORDER BY RANDOM() LIMIT 1"
)


def _json_value(value: object) -> object:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return None
    return value


def rows_to_json(columns: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Render query rows as a pretty JSON array of objects keyed by column."""
    records = [
        {column: _json_value(value) for column, value in zip(columns, row)}
        for row in rows
    ]
    return json.dumps(records, indent=2, sort_keys=True, ensure_ascii=False)


def random_location(
    connection: sqlite3.Connection, min_population: int = DEFAULT_MIN_POPULATION
) -> str:
    """Pick one random city with at least min_population people, as JSON."""
    cursor = connection.execute(_QUERY, (min_population,))
    columns = [description[0] for description in cursor.description]
    return rows_to_json(columns, cursor.fetchall())


def _open_readonly(database_path: str | Path) -> sqlite3.Connection:
    uri = Path(database_path).resolve().as_uri() + "?mode=ro"
    return sqlite3.connect(uri, uri=True)


def make_app(database_path: str | Path) -> Callable:
    """Return a WSGI application serving random cities from database_path."""

    def app(environ: dict, start_response: Callable) -> list[bytes]:
        try:
            with closing(_open_readonly(database_path)) as connection:
                payload = random_location(connection).encode("utf-8")
        except sqlite3.Error as error:
            message = f"database error: {error}".encode("utf-8")
            start_response(
                "500 Internal Server Error",
                [("content-type", "text/plain"), ("content-length", str(len(message)))],
            )
            return [message]
        start_response(
            "200 OK",
            [("content-type", "application/json"), ("content-length", str(len(payload)))],
        )
        return [payload]

    return app


def main(argv: list[str] | None = None) -> int:
    """Serve random cities over HTTP."""
    parser = argparse.ArgumentParser(description="Serve a random city as JSON.")
    parser.add_argument("database", help="path to the geonames SQLite database")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    args = parser.parse_args(argv)

    with make_server(args.host, args.port, make_app(args.database)) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())