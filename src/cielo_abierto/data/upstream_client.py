"""
NASA open-data API client.

This module provides the single HTTP boundary used to reach the Mars Rover
Photos API, the mission raw-image feed and the NASA Image and Video Library.
"""

import time
import logging
from typing import Dict, Optional, Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cielo_abierto.data.errors import FormatError, TransportError, UpstreamError
from cielo_abierto.utils.config import UpstreamSettings

logger = logging.getLogger(__name__)


class UpstreamClient:
    """
    Client for NASA's public data APIs.

    Every call is one GET that returns parsed JSON or raises a typed
    :class:`~cielo_abierto.data.errors.UpstreamError`. The client holds no
    state between calls besides the HTTP session.
    """

    RAW_IMAGES_PAGE_SIZE = 25

    def __init__(
        self,
        settings: Optional[UpstreamSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize upstream client.

        Parameters
        ----------
        settings : UpstreamSettings, optional
            Endpoints, credential and timeouts. Defaults to DEMO_KEY against
            the public NASA hosts.
        session : requests.Session, optional
            Pre-built session (tests inject fakes here)
        """
        self.settings = settings or UpstreamSettings()

        if session is None:
            session = requests.Session()
            if self.settings.max_retries > 0:
                retry_strategy = Retry(
                    total=self.settings.max_retries,
                    backoff_factor=self.settings.backoff_factor,
                    status_forcelist=[500, 502, 503, 504],
                    allowed_methods=["HEAD", "GET", "OPTIONS"],
                )
                adapter = HTTPAdapter(max_retries=retry_strategy)
                session.mount("http://", adapter)
                session.mount("https://", adapter)
        self.session = session

        logger.info(f"Initialized upstream client with API key: {self.settings.masked_key}")

    def _mask(self, text: str) -> str:
        if self.settings.api_key:
            return text.replace(self.settings.api_key, "***")
        return text

    def fetch(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        open_access: bool = False,
    ) -> Dict[str, Any]:
        """
        GET a JSON document from an upstream endpoint.

        Parameters
        ----------
        url : str
            Endpoint URL
        params : dict, optional
            Query parameters
        open_access : bool
            Whether the endpoint is unauthenticated (no api_key attached)

        Returns
        -------
        dict
            Parsed JSON body

        Raises
        ------
        TransportError
            If no response was received
        UpstreamError
            If the response status is not 2xx
        FormatError
            If the response is not JSON
        """
        params = dict(params or {})
        if not open_access and "api_key" not in params:
            params["api_key"] = self.settings.api_key

        headers = {"User-Agent": self.settings.user_agent}

        start = time.perf_counter()
        try:
            response = self.session.get(
                url, params=params, headers=headers, timeout=self.settings.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {self._mask(str(e))}")
            raise TransportError(f"Request to {url} failed: {self._mask(str(e))}") from e
        duration_ms = (time.perf_counter() - start) * 1000

        logger.info(
            f"GET {self._mask(response.url or url)} -> {response.status_code} "
            f"in {duration_ms:.0f}ms "
            f"(rate limit {response.headers.get('X-RateLimit-Remaining')}"
            f"/{response.headers.get('X-RateLimit-Limit')})"
        )

        if not 200 <= response.status_code < 300:
            body = response.text[:500]
            logger.error(f"HTTP error {response.status_code}: {body}")
            raise UpstreamError(
                f"NASA API error ({response.status_code}) for {url}",
                status=response.status_code,
                body=body,
            )

        content_type = response.headers.get("Content-Type", "")
        if content_type and "json" not in content_type.lower():
            body = response.text[:200]
            logger.error(f"Received {content_type} instead of JSON: {body}")
            raise FormatError(
                f"{url} returned {content_type} instead of JSON. "
                "Possible rate limit or gateway error.",
                status=response.status_code,
                body=body,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FormatError(
                f"{url} returned malformed JSON: {e}",
                status=response.status_code,
                body=response.text[:200],
            ) from e

    def query_rover_photos(
        self,
        rover: str,
        sol: Optional[int] = None,
        earth_date: Optional[str] = None,
        camera: Optional[str] = None,
        page: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Query Mars Photos API for rover images.

        Parameters
        ----------
        rover : str
            Rover name (e.g. "curiosity")
        sol : int, optional
            Martian sol (day)
        earth_date : str, optional
            Earth date in YYYY-MM-DD format. Takes priority over sol.
        camera : str, optional
            Camera name (e.g., "NAVCAM", "MAST")
        page : int, optional
            Page number for pagination (25 photos per page)

        Returns
        -------
        dict
            JSON response with a "photos" list

        Examples
        --------
        >>> client = UpstreamClient()
        >>> photos = client.query_rover_photos("curiosity", sol=1000, camera="NAVCAM")
        >>> print(f"Found {len(photos['photos'])} images")
        """
        if sol is None and earth_date is None:
            raise ValueError("Must provide either sol or earth_date")

        url = f"{self.settings.mars_photos_api}/rovers/{rover}/photos"

        params: Dict[str, Any] = {}
        if earth_date is not None:
            params["earth_date"] = earth_date
        else:
            params["sol"] = sol

        if camera:
            params["camera"] = camera
        if page is not None:
            params["page"] = page

        return self.fetch(url, params=params)

    def latest_rover_photos(self, rover: str) -> Dict[str, Any]:
        """
        Get the most recent photo batch for a rover.

        Returns
        -------
        dict
            JSON response with a "latest_photos" list
        """
        url = f"{self.settings.mars_photos_api}/rovers/{rover}/latest_photos"
        return self.fetch(url)

    def get_rover_manifest(self, rover: str) -> Dict[str, Any]:
        """
        Get rover mission manifest (available sols, cameras, etc.).

        Parameters
        ----------
        rover : str
            Rover name

        Returns
        -------
        dict
            Mission manifest data under "photo_manifest"
        """
        url = f"{self.settings.mars_photos_api}/manifests/{rover}"
        return self.fetch(url)

    def query_raw_images(
        self,
        category: str,
        sol: Optional[int] = None,
        camera: Optional[str] = None,
        page: Optional[int] = None,
        num: int = RAW_IMAGES_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """
        Query a mission's raw-image feed.

        Parameters
        ----------
        category : str
            Feed category (e.g. "mars2020")
        sol : int, optional
            Martian sol. If None, the newest images are returned.
        camera : str, optional
            Camera instrument (e.g. "NAVCAM_LEFT")
        page : int, optional
            One-based page number, converted to the feed's zero-based pages
        num : int
            Images per page

        Returns
        -------
        dict
            JSON response with an "images" list
        """
        params: Dict[str, Any] = {
            "feed": "raw_images",
            "category": category,
            "feedtype": "json",
            "num": num,
            "page": max((page or 1) - 1, 0),
            "order": "sol desc",
        }
        if sol is not None:
            params["sol"] = sol
        if camera:
            params["search"] = camera

        return self.fetch(self.settings.raw_images_api, params=params, open_access=True)

    def search_image_library(
        self,
        query: str,
        media_type: str = "image",
        page: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Keyword search against the NASA Image and Video Library.

        Parameters
        ----------
        query : str
            Free text search
        media_type : str
            "image", "video" or "audio"
        page : int, optional
            One-based result page

        Returns
        -------
        dict
            JSON response with "collection" -> "items"
        """
        params: Dict[str, Any] = {"q": query, "media_type": media_type}
        if page is not None:
            params["page"] = page

        url = f"{self.settings.image_library_api}/search"
        return self.fetch(url, params=params, open_access=True)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
