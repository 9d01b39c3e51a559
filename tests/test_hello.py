from wsgiref.util import setup_testing_defaults

import pytest

from lachuoi.hello import ipconfig_app, text_app


class _Recorder:
    """Collects what a WSGI app passes to start_response."""

    def __init__(self):
        self.status = None
        self.headers = {}

    def __call__(self, status, headers, exc_info=None):
        self.status = status
        self.headers = dict(headers)


def _environ(**extra):
    environ = {}
    setup_testing_defaults(environ)
    environ.update(extra)
    return environ


def _call(app, **extra):
    recorder = _Recorder()
    body = b"".join(app(_environ(**extra), recorder))
    return recorder.status, recorder.headers, body


@pytest.mark.parametrize("text", ["Hello World!", "webfinger"])
def test_text_app_returns_body(text):
    status, headers, body = _call(text_app(text))
    assert status == "200 OK"
    assert headers["content-type"] == "text/plain"
    assert body == text.encode()
    assert headers["content-length"] == str(len(body))


def test_text_app_logs_full_url_header(capsys):
    _call(text_app("Hello World!"), HTTP_SPIN_FULL_URL="http://localhost:3000/x")
    out = capsys.readouterr().out
    assert out.strip() == "Handling request to http://localhost:3000/x"


def test_text_app_logs_reconstructed_url(capsys):
    _call(text_app("webfinger"), PATH_INFO="/.well-known/webfinger")
    out = capsys.readouterr().out
    assert out.startswith("Handling request to http://")
    assert "/.well-known/webfinger" in out


def test_ipconfig_prints_headers_and_method(capsys):
    environ = _environ(
        REQUEST_METHOD="POST",
        HTTP_X_FORWARDED_FOR="192.0.2.1",
        HTTP_USER_AGENT="probe",
    )
    recorder = _Recorder()
    body = b"".join(ipconfig_app(environ, recorder))
    lines = capsys.readouterr().out.splitlines()
    assert recorder.status == "200 OK"
    assert body == b"Hello World!"
    assert "x-forwarded-for: 192.0.2.1" in lines
    assert "user-agent: probe" in lines
    assert lines[-1] == '"POST"'


def test_ipconfig_includes_content_type(capsys):
    environ = _environ(CONTENT_TYPE="application/json")
    recorder = _Recorder()
    body = b"".join(ipconfig_app(environ, recorder))
    lines = capsys.readouterr().out.splitlines()
    assert body == b"Hello World!"
    assert "content-type: application/json" in lines