"""
Resilient Mars rover photo retrieval.

Photos are looked up through a fixed cascade of sources, stopping at the
first one that yields at least one usable photo:

1. direct query for the requested sol or Earth date
2. latest photos (only when no sol or date was requested)
3. the newest sol listed in the rover's mission manifest
4. a fixed, well-populated fallback sol
5. a keyword search of the NASA Image and Video Library

Each step is a fallback for the one before it, so they run one at a time.
Steps 1-4 report upstream failures as a :class:`StrategyResult` instead of
raising; only a failure of the final library search propagates.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from cielo_abierto.data.errors import UpstreamError
from cielo_abierto.data.manifest import ManifestResolver
from cielo_abierto.data.normalizer import Photo, RecordSource, normalize_records
from cielo_abierto.data.rovers import (
    ROVERS,
    Rover,
    parse_rover,
    prefer_landscape,
    validate_camera,
)
from cielo_abierto.data.upstream_client import UpstreamClient
from cielo_abierto.utils.config import get_config

logger = logging.getLogger(__name__)

DEFAULT_PHOTO_LIMIT = 4
DEFAULT_FALLBACK_SOL = 1000


class Strategy(str, Enum):
    DIRECT = "direct"
    LATEST = "latest"
    MANIFEST = "manifest"
    FALLBACK = "fallback"
    LIBRARY = "library"


class Outcome(Enum):
    FOUND = "found"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class PhotoRequest:
    """
    One Mars photo lookup.

    ``camera`` must already be validated against the rover; see
    :func:`~cielo_abierto.data.rovers.validate_camera`.
    """

    rover: Rover
    sol: Optional[int] = None
    earth_date: Optional[str] = None
    camera: Optional[str] = None
    page: Optional[int] = None

    @property
    def has_time_index(self) -> bool:
        return self.sol is not None or self.earth_date is not None


@dataclass
class StrategyResult:
    """What one step of the cascade produced."""

    strategy: Strategy
    outcome: Outcome
    photos: List[Photo] = field(default_factory=list)
    error: Optional[UpstreamError] = None

    @classmethod
    def from_photos(cls, strategy: Strategy, photos: List[Photo]) -> "StrategyResult":
        outcome = Outcome.FOUND if photos else Outcome.EMPTY
        return cls(strategy=strategy, outcome=outcome, photos=photos)

    @classmethod
    def failed(cls, strategy: Strategy, error: Optional[UpstreamError] = None) -> "StrategyResult":
        return cls(strategy=strategy, outcome=Outcome.FAILED, error=error)


def _records(payload: Any, key: str) -> Any:
    return payload.get(key) if isinstance(payload, dict) else None


class MarsPhotoRetriever:
    """
    Run the photo source cascade for a :class:`PhotoRequest`.

    Parameters
    ----------
    client : UpstreamClient
        Client for every upstream call
    manifest_resolver : ManifestResolver, optional
        Defaults to a resolver over ``client``
    limit : int
        Maximum number of photos returned
    fallback_sol : int
        Sol queried when neither the request nor the manifest produced photos

    Examples
    --------
    >>> retriever = MarsPhotoRetriever(UpstreamClient())
    >>> photos = retriever.retrieve(PhotoRequest(Rover.CURIOSITY, sol=1000))
    """

    def __init__(
        self,
        client,
        manifest_resolver: Optional[ManifestResolver] = None,
        limit: int = DEFAULT_PHOTO_LIMIT,
        fallback_sol: int = DEFAULT_FALLBACK_SOL,
    ):
        self.client = client
        self.manifest_resolver = manifest_resolver or ManifestResolver(client)
        self.limit = limit
        self.fallback_sol = fallback_sol

    def retrieve(self, request: PhotoRequest) -> List[Photo]:
        """
        Find photos for a request.

        Returns
        -------
        list of Photo
            At most ``limit`` photos, landscape cameras preferred. Empty when
            every source came back empty.

        Raises
        ------
        UpstreamError
            If every rover source came back empty and the library search
            failed
        """
        attempted_sols: Set[int] = set()
        first = self._direct if request.has_time_index else self._latest
        cascade = [first, self._from_manifest, self._fallback, self._search_library]

        for step in cascade:
            result = step(request, attempted_sols)
            if result.outcome is Outcome.FOUND:
                logger.info(
                    f"{request.rover.value}: {result.strategy.value} found "
                    f"{len(result.photos)} photos"
                )
                return prefer_landscape(result.photos)[: self.limit]

            if result.outcome is Outcome.FAILED:
                logger.warning(
                    f"{request.rover.value}: {result.strategy.value} failed"
                    + (f" ({result.error})" if result.error else "")
                    + ", trying next source"
                )
            else:
                logger.info(
                    f"{request.rover.value}: {result.strategy.value} returned no photos, "
                    "trying next source"
                )

        logger.info(f"{request.rover.value}: no photos found in any source")
        return []

    def _query_primary(
        self,
        request: PhotoRequest,
        attempted_sols: Set[int],
        sol: Optional[int] = None,
        earth_date: Optional[str] = None,
    ) -> List[Photo]:
        """
        Query the rover's primary photo source.

        Rovers with a mission raw-image feed use it for sol queries, and the
        sol wins over an Earth date there. Everything else goes to the Mars
        Rover Photos API, where the Earth date wins over the sol.
        """
        rover = request.rover
        spec = ROVERS[rover]

        if spec.raw_feed_category and sol is not None:
            attempted_sols.add(sol)
            payload = self.client.query_raw_images(
                spec.raw_feed_category,
                sol=sol,
                camera=request.camera,
                page=request.page,
            )
            photos = normalize_records(
                _records(payload, "images"), RecordSource.RAW_IMAGES, rover
            )
            return self._only_camera(photos, request.camera)

        if earth_date is None:
            attempted_sols.add(sol)
        payload = self.client.query_rover_photos(
            rover.value,
            sol=sol,
            earth_date=earth_date,
            camera=request.camera,
            page=request.page,
        )
        return normalize_records(
            _records(payload, "photos"), RecordSource.ROVER_PHOTOS, rover
        )

    @staticmethod
    def _only_camera(photos: List[Photo], camera: Optional[str]) -> List[Photo]:
        if not camera:
            return photos
        return [p for p in photos if p.camera.name == camera]

    def _direct(self, request: PhotoRequest, attempted_sols: Set[int]) -> StrategyResult:
        try:
            photos = self._query_primary(
                request, attempted_sols, sol=request.sol, earth_date=request.earth_date
            )
        except UpstreamError as e:
            return StrategyResult.failed(Strategy.DIRECT, e)
        return StrategyResult.from_photos(Strategy.DIRECT, photos)

    def _latest(self, request: PhotoRequest, attempted_sols: Set[int]) -> StrategyResult:
        rover = request.rover
        spec = ROVERS[rover]
        try:
            if spec.raw_feed_category:
                payload = self.client.query_raw_images(
                    spec.raw_feed_category, camera=request.camera, page=request.page
                )
                photos = normalize_records(
                    _records(payload, "images"), RecordSource.RAW_IMAGES, rover
                )
            else:
                payload = self.client.latest_rover_photos(rover.value)
                photos = normalize_records(
                    _records(payload, "latest_photos"), RecordSource.ROVER_PHOTOS, rover
                )
        except UpstreamError as e:
            return StrategyResult.failed(Strategy.LATEST, e)

        return StrategyResult.from_photos(
            Strategy.LATEST, self._only_camera(photos, request.camera)
        )

    def _query_sol(
        self,
        strategy: Strategy,
        request: PhotoRequest,
        attempted_sols: Set[int],
        sol: int,
    ) -> StrategyResult:
        if sol in attempted_sols:
            logger.debug(f"{request.rover.value}: sol {sol} already queried")
            return StrategyResult.from_photos(strategy, [])
        try:
            photos = self._query_primary(request, attempted_sols, sol=sol)
        except UpstreamError as e:
            return StrategyResult.failed(strategy, e)
        return StrategyResult.from_photos(strategy, photos)

    def _from_manifest(self, request: PhotoRequest, attempted_sols: Set[int]) -> StrategyResult:
        manifest = self.manifest_resolver.resolve(request.rover)
        if manifest is None:
            return StrategyResult.failed(Strategy.MANIFEST)

        sol = manifest.latest_sol_with(request.camera)
        return self._query_sol(Strategy.MANIFEST, request, attempted_sols, sol)

    def _fallback(self, request: PhotoRequest, attempted_sols: Set[int]) -> StrategyResult:
        return self._query_sol(Strategy.FALLBACK, request, attempted_sols, self.fallback_sol)

    def _search_library(self, request: PhotoRequest, attempted_sols: Set[int]) -> StrategyResult:
        query = f"mars {request.rover.value} rover"
        payload = self.client.search_image_library(query, media_type="image")
        collection = _records(payload, "collection")
        photos = normalize_records(
            _records(collection, "items"), RecordSource.IMAGE_LIBRARY, request.rover
        )
        return StrategyResult.from_photos(Strategy.LIBRARY, photos)


def _coerce_sol(sol: Any) -> Optional[int]:
    if sol is None or sol == "":
        return None
    try:
        if isinstance(sol, bool) or not float(sol).is_integer():
            raise ValueError(sol)
        value = int(float(sol))
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Ignoring malformed sol {sol!r}")
        return None
    if value < 0:
        logger.warning(f"Ignoring negative sol {value}")
        return None
    return value


def _coerce_page(page: Any) -> Optional[int]:
    try:
        value = int(page)
    except (TypeError, ValueError, OverflowError):
        return None
    return value if value >= 1 else None


def _coerce_earth_date(earth_date: Any) -> Optional[str]:
    if not earth_date:
        return None
    try:
        return datetime.strptime(str(earth_date).strip(), "%Y-%m-%d").date().isoformat()
    except ValueError:
        logger.warning(f"Ignoring malformed earth_date {earth_date!r} (expected YYYY-MM-DD)")
        return None


def get_mars_rover_photos(
    rover: str = "curiosity",
    sol: Optional[int] = None,
    earth_date: Optional[str] = None,
    camera: Optional[str] = None,
    page: Optional[int] = None,
    client=None,
    config=None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Get Mars rover photos for the conversation layer.

    Never raises: a total failure is reported as an empty photo list so the
    assistant can say nothing was found.

    Parameters
    ----------
    rover : str
        "curiosity", "opportunity", "spirit" or "perseverance"
    sol : int, optional
        Martian sol
    earth_date : str, optional
        Earth date in YYYY-MM-DD format
    camera : str, optional
        Camera filter, dropped if not valid for the rover
    page : int, optional
        Upstream result page
    client : UpstreamClient, optional
        Client to use. If None, one is built from ``config``.
    config : Config, optional
        Defaults to the global configuration

    Returns
    -------
    dict
        ``{"photos": [...]}`` with photos as dictionaries

    Examples
    --------
    >>> result = get_mars_rover_photos("curiosity", sol=1000, camera="NAVCAM")
    >>> print(f"Found {len(result['photos'])} photos")
    """
    try:
        rover_id = parse_rover(rover)
    except ValueError as e:
        logger.warning(str(e))
        return {"photos": []}

    if config is None:
        config = get_config()

    request = PhotoRequest(
        rover=rover_id,
        sol=_coerce_sol(sol),
        earth_date=_coerce_earth_date(earth_date),
        camera=validate_camera(rover_id, camera),
        page=_coerce_page(page),
    )

    owns_client = client is None
    if owns_client:
        client = UpstreamClient(config.upstream_settings())

    retriever = MarsPhotoRetriever(
        client,
        limit=config.mars_photo_limit,
        fallback_sol=config.mars_fallback_sol,
    )

    try:
        photos = retriever.retrieve(request)
    except UpstreamError as e:
        logger.error(f"Mars photo lookup for {rover_id.value} failed: {e}")
        photos = []
    finally:
        if owns_client:
            client.close()

    return {"photos": [photo.to_dict() for photo in photos]}
