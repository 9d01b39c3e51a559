# lachuoi

A handful of small HTTP services and one-shot jobs:

- `lachuoi.hello` – WSGI endpoints that answer every request with a fixed
  plain-text body. `text_app(body)` builds one that prints the requested URL
  and answers with `body`; `ipconfig_app` prints the request headers and
  method and answers `Hello World!`.
- `lachuoi.random_place` – a WSGI endpoint that returns one random city with
  a population of at least 50,000 from a `cities15000` table in a SQLite
  database, as a pretty-printed JSON array.
- `lachuoi.places` and `lachuoi.place_bot` – a bot that picks a random city,
  searches the Google Places API around it for a place rated at least 3 by
  at least 100 reviewers (skipping hotels, lodges, lodging, gas stations,
  convenience stores, supermarkets and night clubs), fetches up to four
  photos, asks an image-description service for a description of each,
  uploads the photos to Mastodon and posts a status with the name, address,
  a star rating, a map link and hashtags.
- `lachuoi.newspenguin` – reads an RSS feed, keeps the feed's last build date
  in a `kv_store` table of a SQLite database, and posts every item published
  after the recorded date to Mastodon, oldest first. On the first run it
  only records the date.

## Installation

```
pip install .
```

Tests:

```
pip install ".[test]"
pytest
```

## Commands

```
lachuoi-hello {image-upload,ipconfig,request-catcher,root,webfinger} [--host HOST] [--port PORT]
```

Serves one fixed-text endpoint. `webfinger` answers `webfinger`; the others
answer `Hello World!`. Defaults: host `127.0.0.1`, port `3000`.

```
lachuoi-random-place DATABASE [--host HOST] [--port PORT]
```

Serves a random city from the SQLite database at `DATABASE`, opened read-only
for each request, on every path. A database error gives a 500 answer.
Defaults: host `127.0.0.1`, port `3000`.

```
lachuoi-place-bot [--kind {restaurant,cafe}] [--google-api-key KEY]
                  [--mstd-api-uri URI] [--mstd-access-token TOKEN]
                  [--random-place-uri URI] [--description-uri URI]
```

Posts one random place and exits. `--kind cafe` searches for cafés with the
keyword `coffee` and tags `#coffee #cafe`; the default `restaurant` tags
`#restaurant`. The key, Mastodon base URI and token may instead come from
`GOOGLE_LOCATION_API_KEY`, `MSTD_API_URI` and `MSTD_ACCESS_TOKEN`. The random
city comes from `--random-place-uri` (default
`http://localhost:3000/random_place`, which `lachuoi-random-place` answers
when run on port 3000); photo descriptions come from `--description-uri`
(default `http://localhost:3000/image/description`). If no acceptable place
is found near a city, the bot waits 2.5 seconds and tries another city.

```
lachuoi-newspenguin [--database PATH] [--rss-uri URI]
                    [--mstd-api-uri URI] [--mstd-access-token TOKEN]
```

Runs the feed relay once. Options may come from `LACHUOI_DB` (default
`lachuoi.db`), `RSS_URI`, `MSTD_API_URI` and `MSTD_ACCESS_TOKEN`. Feed dates
must have the form `YYYY-MM-DD HH:MM:SS`.

Both bots run once and exit; start them from a scheduler such as cron.

Example:

```
lachuoi-place-bot --kind cafe --google-api-key placeholder \
    --mstd-api-uri https://mastodon.example.com --mstd-access-token token
```

## Library use

```python
from lachuoi.places import extract_filename, rating_stars

rating_stars(4.5)                                   # "★★★★☆"
extract_filename('attachment; filename="a.jpg"')    # "a.jpg"
```

```python
import sqlite3
from lachuoi.random_place import random_location

with sqlite3.connect("geoname.db") as connection:
    print(random_location(connection, 50000))
```

```python
from lachuoi.newspenguin import new_items, parse_feed, parse_timestamp

channel = parse_feed(rss_text)
for item in new_items(channel, parse_timestamp("2024-01-01 00:00:00")):
    print(item.title)
```

`lachuoi.places` also offers `parse_geopoints`, `filter_places`,
`choose_place`, `build_multipart_body`, `random_boundary`, `fetch_until_200`
and `format_status`; `lachuoi.place_bot` offers `BotConfig` and `PlaceBot`,
whose steps (`random_place`, `near_by_search`, `get_place_details`,
`get_images`, `get_image_descriptions`, `upload_media`, `post_message`) can be
called one at a time; `lachuoi.newspenguin` offers `BuildDateStore`,
`format_status`, `post_items` and `run`.

## What is not included

- No image-description service: the place bot only calls one at
  `--description-uri`, which must be provided separately.
- No GeoNames data: `lachuoi-random-place` needs an existing SQLite database
  with a `cities15000` table.
- The `hello` endpoints do nothing beyond answering with fixed text; in
  particular `webfinger` and `image-upload` do not implement WebFinger lookups
  or uploads.