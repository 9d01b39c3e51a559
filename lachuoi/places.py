"""Helpers for picking a random nearby place and describing it in a status post."""

from __future__ import annotations

import json
import math
import random
import string
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

import requests

MAX_HTTP_REDIRECTION = 5
CAFE_HASHTAGS = "#coffee #cafe"
RESTAURANT_HASHTAGS = "#restaurant"
MIN_RATING = 3.0
MIN_USER_RATINGS = 100.0

EXCLUDED_TYPES = frozenset(
    {
        "hotel",
        "lodge",
        "lodging",
        "gas_station",
        "convenience_store",
        "grocery_or_supermarket",
        "night_club",
    }
)

_BOUNDARY_PREFIX = "-" * 24
_BOUNDARY_ALPHABET = string.ascii_letters + string.digits
_BOUNDARY_LENGTH = 32
_REQUEST_TIMEOUT = 30


@dataclass
class Geopoint:
    """A point on the map returned by the random-place service."""

    lat: float
    lng: float
    country: str
    population: int | None = None


@dataclass
class Photo:
    """A photo of a place, filled in step by step as it is fetched and posted."""

    reference: str = ""
    content_disposition: str | None = None
    content_length: int | None = None
    content_type: str | None = None
    data: bytes = b""
    owner: str | None = None
    description: str | None = None
    mstd_mediaid: int | None = None


@dataclass
class Place:
    """A place picked from a nearby search, with its photos."""

    name: str = ""
    lat: float = 0.0
    lng: float = 0.0
    place_id: str = ""
    address: str = ""
    rating: float = 0.0
    photos: list[Photo] = field(default_factory=list)


def _as_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _require_number(obj: Mapping, key: str) -> float:
    number = _as_number(obj.get(key))
    if number is None:
        raise ValueError(f"expected a number in {key!r}")
    return number


def _require_str(obj: Mapping, key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise ValueError(f"expected a string in {key!r}")
    return value


def _require_mapping(obj: Mapping, key: str) -> Mapping:
    value = obj.get(key)
    if not isinstance(value, Mapping):
        raise ValueError(f"expected an object in {key!r}")
    return value


def _geopoint(item: object) -> Geopoint:
    if not isinstance(item, Mapping):
        raise ValueError("each location must be a JSON object")
    if "population" not in item:
        raise ValueError("expected a 'population' field")
    population = item["population"]
    if isinstance(population, bool) or not isinstance(population, int):
        population = None
    return Geopoint(
        lat=_require_number(item, "latitude"),
        lng=_require_number(item, "longitude"),
        country=_require_str(item, "country"),
        population=population,
    )


def parse_geopoints(payload: str | bytes) -> list[Geopoint]:
    """Parse the random-place service's JSON answer into geopoints."""
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError("expected a JSON array of locations")
    return [_geopoint(item) for item in data]


def is_excluded(result: Mapping) -> bool:
    """Tell whether a search result is of a type that should never be posted."""
    types = result.get("types")
    if not isinstance(types, list):
        raise ValueError("place result has no 'types' array")
    return any(isinstance(kind, str) and kind in EXCLUDED_TYPES for kind in types)


def filter_places(results: Iterable[Mapping]) -> list[Mapping]:
    """Keep well rated, often reviewed results that are not of an excluded type."""
    kept = []
    for result in results:
        if is_excluded(result):
            continue
        rating = _as_number(result.get("rating")) or 0.0
        reviews = _as_number(result.get("user_ratings_total")) or 0.0
        if rating >= MIN_RATING and reviews >= MIN_USER_RATINGS:
            kept.append(result)
    return kept


def choose_place(
    results: Iterable[Mapping], rng: random.Random | None = None
) -> Place | None:
    """Pick one acceptable search result at random, or None if there is none."""
    candidates = filter_places(results)
    if not candidates:
        return None
    chosen = (rng or random.Random()).choice(candidates)
    location = _require_mapping(_require_mapping(chosen, "geometry"), "location")
    return Place(
        name=_require_str(chosen, "name"),
        lat=_require_number(location, "lat"),
        lng=_require_number(location, "lng"),
        place_id=_require_str(chosen, "place_id"),
        rating=_require_number(chosen, "rating"),
    )


def extract_filename(header: str) -> str | None:
    """Return the filename given in a Content-Disposition header, if any."""
    for part in header.split(";"):
        if part.lstrip().startswith("filename="):
            return part.strip()[len("filename="):].strip('"')
    return None


def random_boundary(rng: random.Random | None = None) -> str:
    """Make a multipart boundary: 24 dashes followed by 32 random alphanumerics."""
    source = rng or random.SystemRandom()
    suffix = "".join(source.choice(_BOUNDARY_ALPHABET) for _ in range(_BOUNDARY_LENGTH))
    return _BOUNDARY_PREFIX + suffix


def build_multipart_body(photo: Photo, boundary: str) -> bytes:
    """Encode a photo and its description as a multipart/form-data body."""
    if photo.content_disposition is None:
        raise ValueError("photo has no content disposition")
    if photo.content_type is None:
        raise ValueError("photo has no content type")
    file_name = extract_filename(photo.content_disposition)
    if file_name is None:
        raise ValueError("content disposition names no filename")

    parts = [
        f"--{boundary}\r\n".encode(),
        (
            'Content-Disposition: form-data; name="file"; '
            f'filename="{file_name}"\r\n'
        ).encode(),
        f"Content-Type: {photo.content_type}\r\n\r\n".encode(),
        bytes(photo.data),
        f"\r\n--{boundary}\r\n".encode(),
        b'Content-Disposition: form-data; name="description";\r\n\r\n',
        (photo.description or "").encode(),
        f"\r\n--{boundary}--\r\n".encode(),
    ]
    return b"".join(parts)


def rating_stars(rating: float) -> str:
    """Draw a rating as filled stars, plus a hollow one for any fraction."""
    if not math.isfinite(rating):
        return ""
    minor = math.fmod(rating, 1.0)
    major = max(0, int(rating - minor))
    stars = "★" * major
    if minor > 0.0:
        stars += "☆"
    return stars


def fetch_until_200(
    session: requests.Session, uri: str, max_redirects: int = MAX_HTTP_REDIRECTION
) -> requests.Response:
    """GET uri, following 302 redirects by hand until a 200 or 404 arrives."""
    for _ in range(max_redirects):
        response = session.get(uri, allow_redirects=False, timeout=_REQUEST_TIMEOUT)
        status = response.status_code
        if status == 302:
            location = response.headers.get("location")
            if location is None:
                raise RuntimeError("302 response without 'Location' header")
            uri = location
        elif status in (200, 404):
            return response
        else:
            raise RuntimeError(f"Unexpected status code: {status}")
    raise RuntimeError(f"Too many redirects (exceeded {max_redirects})")


def _format_float(value: float) -> str:
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_status(place: Place, hashtags: str = CAFE_HASHTAGS) -> str:
    """Compose the status text announcing a place."""
    return (
        f"{place.name}\n"
        f"{place.address}\n"
        f"{rating_stars(place.rating)}\n"
        "https://www.google.com/maps/search/?api=1"
        f"&query={_format_float(place.lat)},{_format_float(place.lng)}"
        f"&query_place_id={place.place_id}\n"
        f"{hashtags}"
    )