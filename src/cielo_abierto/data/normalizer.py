"""
Normalization of upstream photo records.

Three upstream schemas feed the Mars photo tool:

* Mars Rover Photos API records (``photos`` / ``latest_photos``)
* Mission raw-image feed records (``images``)
* NASA Image and Video Library items (``collection.items``)

Each has its own mapping function into the canonical :class:`Photo`. The
caller says which upstream produced the records via :class:`RecordSource`;
records are never classified by inspecting their shape.
"""

import logging
import zlib
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from cielo_abierto.data.rovers import CAMERA_FULL_NAMES, get_rover_spec

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

# URL substrings marking preview thumbnails rather than photographs
THUMBNAIL_MARKERS = ("_thm", "~thumb")

# Raw-feed image sizes, best first
RAW_IMAGE_SIZES = ("large", "full_res", "medium", "small")

LIBRARY_CAMERA = "NASA_IMAGE_LIBRARY"


class RecordSource(str, Enum):
    """Upstream schema a raw record came from."""

    ROVER_PHOTOS = "rover_photos"
    RAW_IMAGES = "raw_images"
    IMAGE_LIBRARY = "image_library"


@dataclass(frozen=True)
class Camera:
    id: int = 0
    name: str = UNKNOWN
    full_name: str = UNKNOWN
    rover_id: int = 0


@dataclass(frozen=True)
class RoverInfo:
    id: int = 0
    name: str = UNKNOWN
    landing_date: str = UNKNOWN
    launch_date: str = UNKNOWN
    status: str = UNKNOWN


@dataclass(frozen=True)
class Photo:
    """Canonical Mars photo handed back to the conversation layer."""

    id: int
    sol: int
    camera: Camera
    img_src: str
    earth_date: str = UNKNOWN
    rover: RoverInfo = field(default_factory=RoverInfo)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the nested dictionary shape of the Mars Photos API."""
        return asdict(self)


def _as_int(value: Any) -> int:
    """Coerce to int, 0 when missing or malformed."""
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0


def _as_str(value: Any) -> str:
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _date_part(value: Any) -> str:
    """ISO date from a date or timestamp string."""
    text = _as_str(value)
    if text == UNKNOWN:
        return text
    return text.split("T")[0][:10]


def secure_url(url: Any) -> str:
    """Rewrite ``http://`` to ``https://``; empty string for missing URLs."""
    if not isinstance(url, str):
        return ""
    url = url.strip()
    if url.lower().startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def is_thumbnail(url: str) -> bool:
    lowered = url.lower()
    return any(marker in lowered for marker in THUMBNAIL_MARKERS)


def derive_id(key: str) -> int:
    """Stable integer id for records that carry none."""
    return zlib.crc32(key.encode("utf-8")) if key else 0


def _catalogue_rover(rover) -> RoverInfo:
    spec = get_rover_spec(rover)
    return RoverInfo(
        id=spec.rover_id,
        name=spec.name,
        landing_date=spec.landing_date,
        launch_date=spec.launch_date,
        status=spec.status,
    )


def normalize_rover_photo(record: Dict[str, Any], rover=None) -> Photo:
    """
    Map a Mars Rover Photos API record.

    Parameters
    ----------
    record : dict
        Element of ``photos`` or ``latest_photos``
    rover : str or Rover, optional
        Unused; the record carries its own rover descriptor

    Returns
    -------
    Photo
    """
    camera = _as_dict(record.get("camera"))
    rover_data = _as_dict(record.get("rover"))

    camera_name = _as_str(camera.get("name")).upper()
    full_name = _as_str(camera.get("full_name") or CAMERA_FULL_NAMES.get(camera_name))

    return Photo(
        id=_as_int(record.get("id")),
        sol=_as_int(record.get("sol")),
        camera=Camera(
            id=_as_int(camera.get("id")),
            name=camera_name,
            full_name=full_name,
            rover_id=_as_int(camera.get("rover_id")),
        ),
        img_src=secure_url(record.get("img_src")),
        earth_date=_date_part(record.get("earth_date")),
        rover=RoverInfo(
            id=_as_int(rover_data.get("id")),
            name=_as_str(rover_data.get("name")),
            landing_date=_as_str(rover_data.get("landing_date")),
            launch_date=_as_str(rover_data.get("launch_date")),
            status=_as_str(rover_data.get("status")),
        ),
    )


def _raw_image_url(record: Dict[str, Any]) -> str:
    files = _as_dict(record.get("image_files"))
    for size in RAW_IMAGE_SIZES:
        if files.get(size):
            return secure_url(files[size])
    # MSL-style feed records carry a flat URL
    return secure_url(record.get("url") or record.get("https_url"))


def normalize_raw_image(record: Dict[str, Any], rover) -> Photo:
    """
    Map a mission raw-image feed record.

    The feed has no rover descriptor, so it is taken from the rover
    catalogue.
    """
    camera = _as_dict(record.get("camera"))
    spec = get_rover_spec(rover)
    img_src = _raw_image_url(record)

    camera_name = _as_str(camera.get("instrument") or record.get("instrument")).upper()
    full_name = _as_str(
        camera.get("full_name") or CAMERA_FULL_NAMES.get(camera_name) or camera_name
    )

    photo_id = _as_int(record.get("id"))
    if not photo_id:
        photo_id = derive_id(_as_str(record.get("imageid")) + img_src)

    return Photo(
        id=photo_id,
        sol=_as_int(record.get("sol")),
        camera=Camera(
            id=0,
            name=camera_name,
            full_name=full_name,
            rover_id=spec.rover_id,
        ),
        img_src=img_src,
        earth_date=_date_part(
            record.get("date_taken_utc") or record.get("earth_date")
        ),
        rover=_catalogue_rover(rover),
    )


def _library_image_url(record: Dict[str, Any]) -> str:
    links = record.get("links")
    if not isinstance(links, list):
        return ""
    for link in links:
        link = _as_dict(link)
        href = link.get("href")
        if isinstance(href, str) and href and link.get("render", "image") == "image":
            # Preview links point at the thumbnail rendition
            return secure_url(href.replace("~thumb.", "~medium."))
    return ""


def normalize_library_item(record: Dict[str, Any], rover) -> Photo:
    """
    Map a NASA Image and Video Library search item.

    Library items are not tied to a sol or an instrument: sol is 0 and the
    camera is reported as the library itself, titled with the item title.
    """
    data = record.get("data")
    meta = _as_dict(data[0]) if isinstance(data, list) and data else {}
    img_src = _library_image_url(record)

    return Photo(
        id=derive_id(_as_str(meta.get("nasa_id")) + img_src),
        sol=0,
        camera=Camera(
            id=0,
            name=LIBRARY_CAMERA,
            full_name=_as_str(meta.get("title")),
            rover_id=get_rover_spec(rover).rover_id,
        ),
        img_src=img_src,
        earth_date=_date_part(meta.get("date_created")),
        rover=_catalogue_rover(rover),
    )


NORMALIZERS: Dict[RecordSource, Callable[[Dict[str, Any], Any], Photo]] = {
    RecordSource.ROVER_PHOTOS: normalize_rover_photo,
    RecordSource.RAW_IMAGES: normalize_raw_image,
    RecordSource.IMAGE_LIBRARY: normalize_library_item,
}


def normalize_records(
    records: Optional[Iterable[Any]],
    source: RecordSource,
    rover,
) -> List[Photo]:
    """
    Normalize a batch of upstream records.

    Parameters
    ----------
    records : iterable of dict
        Raw records from one upstream response
    source : RecordSource
        Upstream that produced the records
    rover : str or Rover
        Rover the request was for

    Returns
    -------
    list of Photo
        Photos with a secure URL, thumbnails removed
    """
    source = RecordSource(source)
    normalize = NORMALIZERS[source]
    if not isinstance(records, (list, tuple)):
        return []

    photos = []
    skipped = 0
    for record in records:
        if not isinstance(record, dict):
            skipped += 1
            continue
        photo = normalize(record, rover)
        if not photo.img_src or is_thumbnail(photo.img_src):
            skipped += 1
            continue
        photos.append(photo)

    if skipped:
        logger.debug(f"Dropped {skipped} {source.value} records without a usable image")
    return photos
