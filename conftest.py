"""Shared fixtures: canned NASA payloads and a scripted upstream client."""

import pytest

from cielo_abierto.data.errors import TransportError
from cielo_abierto.utils.config import Config


def rover_photo(photo_id, camera, sol=1000, img_src=None, rover="Curiosity"):
    """A Mars Rover Photos API record."""
    return {
        "id": photo_id,
        "sol": sol,
        "camera": {
            "id": 20,
            "name": camera,
            "rover_id": 5,
            "full_name": f"{camera} camera",
        },
        "img_src": img_src or f"http://mars.jpl.nasa.gov/msl-raw-images/{photo_id}.JPG",
        "earth_date": "2015-05-30",
        "rover": {
            "id": 5,
            "name": rover,
            "landing_date": "2012-08-06",
            "launch_date": "2011-11-26",
            "status": "active",
        },
    }


def raw_image(image_id, instrument, sol=1217, full_res=None):
    """A mission raw-image feed record."""
    full_res = full_res or (
        f"https://mars.nasa.gov/mars2020-raw-images/pub/ods/surface/sol/0{sol}/"
        f"ids/edr/browse/ncam/{image_id}.png"
    )
    return {
        "imageid": image_id,
        "sol": sol,
        "camera": {"instrument": instrument, "filter_name": "UNK"},
        "image_files": {"full_res": full_res},
        "date_taken_utc": "2024-07-21T10:32:11.000",
        "sample_type": "Full",
    }


def library_item(nasa_id, title="Curiosity Self-Portrait"):
    """A NASA Image and Video Library search item."""
    return {
        "href": f"https://images-assets.nasa.gov/image/{nasa_id}/collection.json",
        "data": [
            {
                "nasa_id": nasa_id,
                "title": title,
                "date_created": "2012-08-07T00:00:00Z",
                "media_type": "image",
            }
        ],
        "links": [
            {
                "href": f"http://images-assets.nasa.gov/image/{nasa_id}/{nasa_id}~thumb.jpg",
                "rel": "preview",
                "render": "image",
            }
        ],
    }


def manifest_payload(max_sol, photos=None):
    return {
        "photo_manifest": {
            "name": "Curiosity",
            "landing_date": "2012-08-06",
            "max_sol": max_sol,
            "max_date": "2024-02-19",
            "total_photos": 695670,
            "photos": photos or [],
        }
    }


class FakeUpstreamClient:
    """
    Stand-in for UpstreamClient with scripted answers.

    Each answer is a payload, an exception instance to raise, or a callable
    taking the call's keyword arguments and returning either.
    """

    def __init__(
        self,
        rover_photos=None,
        latest=None,
        manifest=None,
        raw_images=None,
        library=None,
    ):
        self.rover_photos = rover_photos if rover_photos is not None else {"photos": []}
        self.latest = latest if latest is not None else {"latest_photos": []}
        self.manifest = manifest if manifest is not None else TransportError("manifest down")
        self.raw_images = raw_images if raw_images is not None else {"images": []}
        self.library = library if library is not None else {"collection": {"items": []}}
        self.calls = []
        self.closed = False

    def _answer(self, name, answer, kwargs):
        self.calls.append((name, kwargs))
        if callable(answer):
            answer = answer(**kwargs)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def query_rover_photos(self, rover, sol=None, earth_date=None, camera=None, page=None):
        return self._answer(
            "query_rover_photos",
            self.rover_photos,
            dict(rover=rover, sol=sol, earth_date=earth_date, camera=camera, page=page),
        )

    def latest_rover_photos(self, rover):
        return self._answer("latest_rover_photos", self.latest, dict(rover=rover))

    def get_rover_manifest(self, rover):
        return self._answer("get_rover_manifest", self.manifest, dict(rover=rover))

    def query_raw_images(self, category, sol=None, camera=None, page=None, num=25):
        return self._answer(
            "query_raw_images",
            self.raw_images,
            dict(category=category, sol=sol, camera=camera, page=page),
        )

    def search_image_library(self, query, media_type="image", page=None):
        return self._answer(
            "search_image_library",
            self.library,
            dict(query=query, media_type=media_type, page=page),
        )

    def call_names(self):
        return [name for name, _ in self.calls]

    def photo_sols(self):
        """Sols of every sol-based photo query, in order."""
        return [
            kwargs["sol"]
            for name, kwargs in self.calls
            if name in ("query_rover_photos", "query_raw_images") and kwargs.get("sol") is not None
        ]

    def close(self):
        self.closed = True


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Configuration isolated from the developer's .env and environment."""
    for name in (
        "NASA_API_KEY",
        "MARS_PHOTO_LIMIT",
        "MARS_FALLBACK_SOL",
        "NASA_MAX_RETRIES",
        "NASA_REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    return Config(env_file=tmp_path / ".env")
