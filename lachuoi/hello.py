"""Small HTTP endpoints that answer every request with a fixed text body."""

from __future__ import annotations

import argparse
import json
from collections.abc import Callable, Iterable, Iterator
from wsgiref.simple_server import make_server
from wsgiref.util import request_uri

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]

_GREETING = "Hello World!"


def _header_items(environ: dict) -> Iterator[tuple[str, str]]:
    """Yield the request headers found in a WSGI environ as (name, value)."""
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            yield key[5:].replace("_", "-").lower(), value
        elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
            yield key.replace("_", "-").lower(), value


def _respond_text(start_response: Callable, body: str) -> list[bytes]:
    payload = body.encode("utf-8")
    start_response(
        "200 OK",
        [("content-type", "text/plain"), ("content-length", str(len(payload)))],
    )
    return [payload]


def _full_url(environ: dict) -> str:
    return environ.get("HTTP_SPIN_FULL_URL") or request_uri(environ)


def text_app(body: str) -> WSGIApp:
    """Return a WSGI application that logs each request and answers with body."""

    def app(environ: dict, start_response: Callable) -> list[bytes]:
        print(f"Handling request to {_full_url(environ)}")
        return _respond_text(start_response, body)

    return app


def ipconfig_app(environ: dict, start_response: Callable) -> list[bytes]:
    """Print the caller's request headers and method, then greet."""
    for name, value in _header_items(environ):
        print(f"{name}: {value}")
    print(json.dumps(environ.get("REQUEST_METHOD", "GET")))
    return _respond_text(start_response, _GREETING)


_APPS: dict[str, WSGIApp] = {
    "root": text_app(_GREETING),
    "image-upload": text_app(_GREETING),
    "request-catcher": text_app(_GREETING),
    "webfinger": text_app("webfinger"),
    "ipconfig": ipconfig_app,
}


def main(argv: list[str] | None = None) -> int:
    """Serve one of the fixed-text endpoints over HTTP."""
    parser = argparse.ArgumentParser(description="Serve a fixed-text HTTP endpoint.")
    parser.add_argument("app", choices=sorted(_APPS), help="endpoint to serve")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    args = parser.parse_args(argv)

    with make_server(args.host, args.port, _APPS[args.app]) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())