"""A bot that posts a random well-rated place, with photos, to a Mastodon account."""

from __future__ import annotations

import argparse
import json
import os
import random
import time
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

import requests

from lachuoi.places import (
    CAFE_HASHTAGS,
    RESTAURANT_HASHTAGS,
    Geopoint,
    Photo,
    Place,
    build_multipart_body,
    choose_place,
    fetch_until_200,
    format_status,
    parse_geopoints,
    random_boundary,
)

_MAPS_API = "https://maps.googleapis.com/maps/api/place"
_SEARCH_RADIUS = 100000
_MAX_PHOTOS = 4
_PHOTO_MAX_WIDTH = 1080
_REQUEST_TIMEOUT = 30


def _coordinate(value: float) -> str:
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _json_object(response: requests.Response) -> Mapping:
    data = json.loads(response.content)
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object in the response")
    return data


@dataclass
class BotConfig:
    """Endpoints, credentials and search settings for a PlaceBot."""

    google_api_key: str
    mstd_api_uri: str
    mstd_access_token: str
    random_place_uri: str = "http://localhost:3000/random_place"
    description_uri: str = "http://localhost:3000/image/description"
    place_type: str = "restaurant"
    keyword: str | None = None
    hashtags: str = RESTAURANT_HASHTAGS
    retry_delay: float = 2.5


class PlaceBot:
    """Finds a random place near a random city and posts it with its photos."""

    def __init__(self, config: BotConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()
        self.rng = random.Random()

    @property
    def _auth(self) -> str:
        return f"Bearer {self.config.mstd_access_token}"

    def random_place(self) -> list[Geopoint]:
        """Ask the random-place service for a random city."""
        response = self.session.get(
            self.config.random_place_uri, timeout=_REQUEST_TIMEOUT
        )
        return parse_geopoints(response.content)

    def near_by_search(self, geopoint: Geopoint) -> Place | None:
        """Search around a geopoint and pick an acceptable place, if any."""
        url = (
            f"{_MAPS_API}/nearbysearch/json"
            f"?location={_coordinate(geopoint.lat)}%2C{_coordinate(geopoint.lng)}"
            f"&radius={_SEARCH_RADIUS}&type={self.config.place_type}"
        )
        if self.config.keyword:
            url += f"&keyword={self.config.keyword}"
        url += f"&key={self.config.google_api_key}"
        data = _json_object(self.session.get(url, timeout=_REQUEST_TIMEOUT))
        results = data.get("results")
        if not isinstance(results, list):
            raise ValueError("nearby search answer has no 'results' array")
        return choose_place(results, self.rng)

    def get_place_details(self, place: Place) -> Place:
        """Fill in the place's address and up to four photo references."""
        url = (
            f"{_MAPS_API}/details/json?place_id={place.place_id}"
            f"&fields=photos,formatted_address&key={self.config.google_api_key}"
        )
        data = _json_object(self.session.get(url, timeout=_REQUEST_TIMEOUT))
        result = data.get("result")
        if not isinstance(result, Mapping):
            raise ValueError("details answer has no 'result' object")
        address = result.get("formatted_address")
        if not isinstance(address, str):
            raise ValueError("details answer has no formatted address")
        place.address = address

        photos = result.get("photos")
        for entry in photos[:_MAX_PHOTOS] if isinstance(photos, list) else []:
            reference = entry.get("photo_reference") if isinstance(entry, Mapping) else None
            if reference is None:
                continue
            if not isinstance(reference, str):
                raise ValueError("photo reference is not a string")
            place.photos.append(Photo(reference=reference))
        return place

    def get_images(self, place: Place) -> Place:
        """Download every photo of the place."""
        for photo in place.photos:
            url = (
                f"{_MAPS_API}/photo?maxwidth={_PHOTO_MAX_WIDTH}"
                f"&photoreference={photo.reference}&key={self.config.google_api_key}"
            )
            response = fetch_until_200(self.session, url)
            headers = response.headers
            for name in ("content-length", "content-type", "content-disposition"):
                if name not in headers:
                    raise ValueError(f"photo response has no {name!r} header")
            photo.content_length = int(headers["content-length"])
            photo.content_type = headers["content-type"]
            photo.content_disposition = headers["content-disposition"]
            photo.data = response.content
        return place

    def _post_multipart(
        self, url: str, photo: Photo, extra_headers: Mapping[str, str]
    ) -> requests.Response:
        boundary = random_boundary(self.rng)
        body = build_multipart_body(photo, boundary)
        headers = {
            "Content-Type": f"multipart/form-data; boundary={boundary}",
            "Content-Length": str(len(body)),
            **extra_headers,
        }
        return self.session.post(
            url, data=body, headers=headers, timeout=_REQUEST_TIMEOUT
        )

    def get_image_descriptions(self, place: Place) -> Place:
        """Ask the description service to describe every photo."""
        for photo in place.photos:
            response = self._post_multipart(self.config.description_uri, photo, {})
            description = _json_object(response).get("description")
            if not isinstance(description, str):
                raise ValueError("description answer has no 'description' string")
            photo.description = description
        return place

    def upload_media(self, place: Place) -> Place:
        """Upload every photo to Mastodon and record the media ids."""
        url = f"{self.config.mstd_api_uri}/api/v2/media"
        headers = {"AUTHORIZATION": self._auth, "Accept": "*/*"}
        for photo in place.photos:
            response = self._post_multipart(url, photo, headers)
            if response.status_code != 200:
                print(response.status_code)
                print(repr(response.text))
            media_id = _json_object(response).get("id")
            if not isinstance(media_id, str):
                raise ValueError("media answer has no 'id' string")
            photo.mstd_mediaid = int(media_id)
        return place

    def post_message(self, place: Place) -> requests.Response:
        """Upload the photos, then publish a status about the place."""
        self.upload_media(place)
        media_ids = []
        for photo in place.photos:
            if photo.mstd_mediaid is None:
                raise ValueError("photo was not uploaded")
            media_ids.append(photo.mstd_mediaid)

        body = json.dumps(
            {
                "status": format_status(place, self.config.hashtags),
                "visibility": "public",
                "language": "eng",
                "media_ids": media_ids,
            },
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "AUTHORIZATION": self._auth,
            "Content-Length": str(len(body)),
        }
        return self.session.post(
            f"{self.config.mstd_api_uri}/api/v1/statuses",
            data=body,
            headers=headers,
            timeout=_REQUEST_TIMEOUT,
        )

    def run(self) -> Place:
        """Find a place, retrying random cities until one has a candidate, and post it."""
        while True:
            locations = self.random_place()
            if not locations:
                raise ValueError("random-place service returned no locations")
            place = self.near_by_search(locations[0])
            if place is not None:
                break
            time.sleep(self.config.retry_delay)
        self.get_place_details(place)
        self.get_images(place)
        self.get_image_descriptions(place)
        self.post_message(place)
        print("------")
        return place


def main(argv: list[str] | None = None) -> int:
    """Post one random place to Mastodon."""
    parser = argparse.ArgumentParser(description="Post a random place to Mastodon.")
    parser.add_argument("--kind", choices=("restaurant", "cafe"), default="restaurant")
    parser.add_argument(
        "--google-api-key", default=os.environ.get("GOOGLE_LOCATION_API_KEY")
    )
    parser.add_argument("--mstd-api-uri", default=os.environ.get("MSTD_API_URI"))
    parser.add_argument(
        "--mstd-access-token", default=os.environ.get("MSTD_ACCESS_TOKEN")
    )
    parser.add_argument("--random-place-uri", default=BotConfig.random_place_uri)
    parser.add_argument("--description-uri", default=BotConfig.description_uri)
    args = parser.parse_args(argv)

    for option in ("google_api_key", "mstd_api_uri", "mstd_access_token"):
        if not getattr(args, option):
            parser.error(f"--{option.replace('_', '-')} is required")

    if args.kind == "cafe":
        search = {"place_type": "cafe", "keyword": "coffee", "hashtags": CAFE_HASHTAGS}
    else:
        search = {"place_type": "restaurant", "hashtags": RESTAURANT_HASHTAGS}

    config = BotConfig(
        google_api_key=args.google_api_key,
        mstd_api_uri=args.mstd_api_uri,
        mstd_access_token=args.mstd_access_token,
        random_place_uri=args.random_place_uri,
        description_uri=args.description_uri,
        **search,
    )
    with requests.Session() as session:
        PlaceBot(config, session).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())