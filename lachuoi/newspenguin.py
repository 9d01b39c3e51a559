"""Post new items from an RSS feed to a Mastodon account."""

from __future__ import annotations

import argparse
import os
import sqlite3
import xml.etree.ElementTree as ET
from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import requests

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DB_KEY_LAST_BUILD = "newspenguin-rss.last_build_date"
_REQUEST_TIMEOUT = 30


def parse_timestamp(text: str) -> datetime:
    """Parse a feed timestamp of the form 'YYYY-MM-DD HH:MM:SS'."""
    try:
        return datetime.strptime(text.strip(), TIMESTAMP_FORMAT)
    except ValueError as error:
        raise ValueError(f"Failed to parse date: {text!r}") from error


@dataclass
class FeedItem:
    """One item of an RSS channel."""

    title: str | None = None
    description: str | None = None
    link: str | None = None
    pub_date: str | None = None


@dataclass
class Channel:
    """An RSS channel: its build date and its items, in feed order."""

    last_build_date: str | None = None
    items: list[FeedItem] = field(default_factory=list)


def _text(element: ET.Element, tag: str) -> str | None:
    value = element.findtext(tag)
    return None if value is None else value.strip()


def parse_feed(text: str | bytes) -> Channel:
    """Parse an RSS 2.0 document into a Channel."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as error:
        raise ValueError(f"invalid RSS document: {error}") from error
    channel = root if root.tag == "channel" else root.find("channel")
    if channel is None:
        raise ValueError("RSS document has no channel")
    items = [
        FeedItem(
            title=_text(item, "title"),
            description=_text(item, "description"),
            link=_text(item, "link"),
            pub_date=_text(item, "pubDate"),
        )
        for item in channel.iter("item")
    ]
    return Channel(last_build_date=_text(channel, "lastBuildDate"), items=items)


class BuildDateStore:
    """Keeps the last seen build date in a key-value table of a SQLite database."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        with closing(sqlite3.connect(self.path)) as connection, connection:
            connection.execute(
                "CREATE TABLE IF NOT EXISTS kv_store (key TEXT PRIMARY KEY, value TEXT)"
            )

    def get(self) -> datetime | None:
        """Return the recorded build date, or None if none is recorded."""
        with closing(sqlite3.connect(self.path)) as connection:
            row = connection.execute(
                "SELECT value FROM kv_store WHERE key = ?", (DB_KEY_LAST_BUILD,)
            ).fetchone()
        if row is None or not isinstance(row[0], str):
            return None
        return parse_timestamp(row[0])

    def set(self, value: datetime) -> None:
        """Record value as the last seen build date."""
        text = value.strftime(TIMESTAMP_FORMAT)
        with closing(sqlite3.connect(self.path)) as connection, connection:
            cursor = connection.execute(
                "UPDATE kv_store SET value = ? WHERE key = ?", (text, DB_KEY_LAST_BUILD)
            )
            if cursor.rowcount == 0:
                connection.execute(
                    "INSERT INTO kv_store (key, value) VALUES (?, ?)",
                    (DB_KEY_LAST_BUILD, text),
                )


def new_items(channel: Channel, since: datetime) -> list[FeedItem]:
    """Return the items published after since, oldest first."""
    fresh = []
    for item in channel.items:
        if item.pub_date is None:
            raise ValueError("feed item has no publication date")
        if since < parse_timestamp(item.pub_date):
            fresh.append(item)
    fresh.reverse()
    return fresh


def format_status(item: FeedItem) -> str:
    """Compose the status text for a feed item."""
    missing = [
        name
        for name in ("title", "description", "link", "pub_date")
        if getattr(item, name) is None
    ]
    if missing:
        raise ValueError(f"feed item lacks {', '.join(missing)}")
    return f"{item.title}:\n{item.description}\n{item.link}\n({item.pub_date})"


def post_items(
    session: requests.Session, api_uri: str, token: str, items: list[FeedItem]
) -> list[requests.Response]:
    """Publish each item as a public status; return the server's answers."""
    if not items:
        print("Newspenguin RSS - Nothing to publish")
        return []
    url = f"{api_uri}/api/v1/statuses"
    answers = []
    for item in items:
        form_body = f"status={format_status(item)}&visibility=public"
        response = session.post(
            url,
            data=form_body.encode("utf-8"),
            headers={"AUTHORIZATION": f"Bearer {token}"},
            timeout=_REQUEST_TIMEOUT,
        )
        if response.status_code == 200:
            print(f"Rss published: [{item.title}]")
        answers.append(response)
    return answers


def run(
    session: requests.Session,
    store: BuildDateStore,
    rss_uri: str,
    api_uri: str,
    token: str,
) -> list[FeedItem]:
    """Fetch the feed, post what is new since the last run, and record the build date."""
    print("Newspenguin RSS starting")
    response = session.get(rss_uri, timeout=_REQUEST_TIMEOUT)
    if response.status_code != 200:
        print("NOT 200")
    channel = parse_feed(response.content)
    if channel.last_build_date is None:
        raise ValueError("feed has no last build date")
    feed_build_date = parse_timestamp(channel.last_build_date)

    recorded = store.get()
    if recorded is None:
        store.set(feed_build_date)
        return []

    posted: list[FeedItem] = []
    if feed_build_date > recorded:
        posted = new_items(channel, recorded)
        post_items(session, api_uri, token, posted)
    store.set(feed_build_date)

    print("Newspenguin RSS finished")
    return posted


def main(argv: list[str] | None = None) -> int:
    """Post new feed items to Mastodon once."""
    parser = argparse.ArgumentParser(description="Post new RSS items to Mastodon.")
    parser.add_argument("--database", default=os.environ.get("LACHUOI_DB", "lachuoi.db"))
    parser.add_argument("--rss-uri", default=os.environ.get("RSS_URI"))
    parser.add_argument("--mstd-api-uri", default=os.environ.get("MSTD_API_URI"))
    parser.add_argument("--mstd-access-token", default=os.environ.get("MSTD_ACCESS_TOKEN"))
    args = parser.parse_args(argv)

    for option in ("rss_uri", "mstd_api_uri", "mstd_access_token"):
        if not getattr(args, option):
            parser.error(f"--{option.replace('_', '-')} is required")

    store = BuildDateStore(args.database)
    with requests.Session() as session:
        run(session, store, args.rss_uri, args.mstd_api_uri, args.mstd_access_token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())