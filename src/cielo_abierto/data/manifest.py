"""
Rover mission manifests.

A manifest tells how far a rover's imagery extends (newest sol and date) and
which cameras were active on each sol. It is only used to find "latest" when
the caller gave no sol, so a missing manifest is never fatal.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from cielo_abierto.data.errors import UpstreamError
from cielo_abierto.data.rovers import parse_rover

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolSummary:
    sol: int
    earth_date: str
    total_photos: int
    cameras: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Manifest:
    """Per-rover summary of available imagery."""

    rover: str
    max_sol: int
    max_date: str
    landing_date: str = "Unknown"
    total_photos: int = 0
    sols: Tuple[SolSummary, ...] = field(default_factory=tuple)

    def latest_sol_with(self, camera: Optional[str]) -> int:
        """
        Newest sol carrying photos from a camera.

        Parameters
        ----------
        camera : str, optional
            Camera name. If None, returns max_sol.

        Returns
        -------
        int
            Matching sol, or max_sol when the breakdown has no match
        """
        if camera:
            matching = [s.sol for s in self.sols if camera in s.cameras]
            if matching:
                return max(matching)
        return self.max_sol


def _to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _parse_sols(entries: Any) -> List[SolSummary]:
    sols = []
    if not isinstance(entries, list):
        return sols
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        sol = _to_int(entry.get("sol"))
        if sol is None:
            continue
        cameras = entry.get("cameras")
        if not isinstance(cameras, list):
            cameras = []
        sols.append(
            SolSummary(
                sol=sol,
                earth_date=str(entry.get("earth_date") or "Unknown"),
                total_photos=_to_int(entry.get("total_photos"), default=0),
                cameras=tuple(str(c).upper() for c in cameras),
            )
        )
    return sols


def parse_manifest(payload: Dict[str, Any], rover) -> Optional[Manifest]:
    """
    Build a :class:`Manifest` from a ``/manifests/{rover}`` response.

    Parameters
    ----------
    payload : dict
        Parsed JSON response
    rover : str or Rover
        Rover the manifest was requested for

    Returns
    -------
    Manifest or None
        None if the payload has no usable max_sol
    """
    data = payload.get("photo_manifest") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return None

    max_sol = _to_int(data.get("max_sol"))
    if max_sol is None:
        return None

    return Manifest(
        rover=parse_rover(rover).value,
        max_sol=max_sol,
        max_date=str(data.get("max_date") or "Unknown"),
        landing_date=str(data.get("landing_date") or "Unknown"),
        total_photos=_to_int(data.get("total_photos"), default=0),
        sols=tuple(_parse_sols(data.get("photos"))),
    )


class ManifestResolver:
    """
    Fetch rover manifests through an upstream client.

    Parameters
    ----------
    client : UpstreamClient
        Client used for the ``/manifests`` call
    """

    def __init__(self, client):
        self.client = client

    def resolve(self, rover) -> Optional[Manifest]:
        """
        Fetch and parse a rover's manifest.

        Returns
        -------
        Manifest or None
            None if the manifest could not be fetched or parsed
        """
        rover = parse_rover(rover)
        try:
            payload = self.client.get_rover_manifest(rover.value)
        except UpstreamError as e:
            logger.warning(f"Manifest for {rover.value} unavailable: {e}")
            return None

        manifest = parse_manifest(payload, rover)
        if manifest is None:
            logger.warning(f"Manifest for {rover.value} has no max_sol")
        else:
            logger.info(
                f"Manifest for {rover.value}: max_sol={manifest.max_sol}, "
                f"max_date={manifest.max_date}"
            )
        return manifest
