"""Fixed-text WSGI endpoints, a random city picker, a place-posting bot and an RSS relay."""

__version__ = "0.1.0"