"""
Mars rover catalogue, camera validation and display preferences.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence

logger = logging.getLogger(__name__)


class Rover(str, Enum):
    """Rovers served by the Mars photo tool."""

    CURIOSITY = "curiosity"
    OPPORTUNITY = "opportunity"
    SPIRIT = "spirit"
    PERSEVERANCE = "perseverance"


@dataclass(frozen=True)
class RoverSpec:
    """Static mission facts for one rover."""

    name: str
    rover_id: int
    landing_date: str
    launch_date: str
    status: str
    cameras: FrozenSet[str]
    raw_feed_category: Optional[str] = None


ROVERS: Dict[Rover, RoverSpec] = {
    Rover.CURIOSITY: RoverSpec(
        name="Curiosity",
        rover_id=5,
        landing_date="2012-08-06",
        launch_date="2011-11-26",
        status="active",
        cameras=frozenset({
            "FHAZ", "RHAZ", "MAST", "CHEMCAM", "MAHLI", "MARDI", "NAVCAM",
        }),
    ),
    Rover.OPPORTUNITY: RoverSpec(
        name="Opportunity",
        rover_id=6,
        landing_date="2004-01-25",
        launch_date="2003-07-07",
        status="complete",
        cameras=frozenset({"FHAZ", "RHAZ", "NAVCAM", "PANCAM", "MINITES"}),
    ),
    Rover.SPIRIT: RoverSpec(
        name="Spirit",
        rover_id=7,
        landing_date="2004-01-04",
        launch_date="2003-06-10",
        status="complete",
        cameras=frozenset({"FHAZ", "RHAZ", "NAVCAM", "PANCAM", "MINITES"}),
    ),
    Rover.PERSEVERANCE: RoverSpec(
        name="Perseverance",
        rover_id=8,
        landing_date="2021-02-18",
        launch_date="2020-07-30",
        status="active",
        cameras=frozenset({
            "EDL_RUCAM", "EDL_RDCAM", "EDL_DDCAM", "EDL_PUCAM1", "EDL_PUCAM2",
            "NAVCAM_LEFT", "NAVCAM_RIGHT", "MCZ_LEFT", "MCZ_RIGHT",
            "FRONT_HAZCAM_LEFT_A", "FRONT_HAZCAM_RIGHT_A",
            "REAR_HAZCAM_LEFT", "REAR_HAZCAM_RIGHT",
            "SKYCAM", "SHERLOC_WATSON",
        }),
        raw_feed_category="mars2020",
    ),
}

# Human readable camera names, used when an upstream record only carries
# the instrument code.
CAMERA_FULL_NAMES: Dict[str, str] = {
    "FHAZ": "Front Hazard Avoidance Camera",
    "RHAZ": "Rear Hazard Avoidance Camera",
    "MAST": "Mast Camera",
    "CHEMCAM": "Chemistry and Camera Complex",
    "MAHLI": "Mars Hand Lens Imager",
    "MARDI": "Mars Descent Imager",
    "NAVCAM": "Navigation Camera",
    "PANCAM": "Panoramic Camera",
    "MINITES": "Miniature Thermal Emission Spectrometer (Mini-TES)",
    "EDL_RUCAM": "Rover Up-Look Camera",
    "EDL_RDCAM": "Rover Down-Look Camera",
    "EDL_DDCAM": "Descent Stage Down-Look Camera",
    "EDL_PUCAM1": "Parachute Up-Look Camera A",
    "EDL_PUCAM2": "Parachute Up-Look Camera B",
    "NAVCAM_LEFT": "Navigation Camera - Left",
    "NAVCAM_RIGHT": "Navigation Camera - Right",
    "MCZ_LEFT": "Mast Camera Zoom - Left",
    "MCZ_RIGHT": "Mast Camera Zoom - Right",
    "FRONT_HAZCAM_LEFT_A": "Front Hazard Avoidance Camera - Left",
    "FRONT_HAZCAM_RIGHT_A": "Front Hazard Avoidance Camera - Right",
    "REAR_HAZCAM_LEFT": "Rear Hazard Avoidance Camera - Left",
    "REAR_HAZCAM_RIGHT": "Rear Hazard Avoidance Camera - Right",
    "SKYCAM": "MEDA Skycam",
    "SHERLOC_WATSON": "SHERLOC WATSON Camera",
}

# Wide-field navigation, mast and panoramic cameras
LANDSCAPE_CAMERAS: FrozenSet[str] = frozenset({
    "NAVCAM", "MAST", "PANCAM",
    "NAVCAM_LEFT", "NAVCAM_RIGHT", "MCZ_LEFT", "MCZ_RIGHT",
})


def parse_rover(name) -> Rover:
    """
    Resolve a rover name to a :class:`Rover`.

    Parameters
    ----------
    name : str or Rover
        Rover name, case-insensitive

    Returns
    -------
    Rover

    Raises
    ------
    ValueError
        If the name is not a known rover
    """
    if isinstance(name, Rover):
        return name
    try:
        return Rover(str(name).strip().lower())
    except ValueError:
        valid = ", ".join(r.value for r in Rover)
        raise ValueError(f"Unknown rover '{name}'. Available rovers: {valid}")


def get_rover_spec(rover) -> RoverSpec:
    return ROVERS[parse_rover(rover)]


def validate_camera(rover, camera: Optional[str]) -> Optional[str]:
    """
    Check a camera filter against the rover's instruments.

    An invalid filter is dropped rather than failing the request.

    Parameters
    ----------
    rover : str or Rover
        Rover the filter applies to
    camera : str, optional
        Requested camera name

    Returns
    -------
    str or None
        Canonical camera name, or None when no usable filter was given
    """
    if camera is None or not str(camera).strip():
        return None

    spec = get_rover_spec(rover)
    name = str(camera).strip().upper()
    if name in spec.cameras:
        return name

    logger.warning(
        f"Camera '{camera}' is not valid for {spec.name} "
        f"(valid: {', '.join(sorted(spec.cameras))}); ignoring camera filter"
    )
    return None


def prefer_landscape(photos: Sequence) -> List:
    """
    Keep landscape-camera photos when there are any.

    Parameters
    ----------
    photos : sequence of Photo
        Normalized photos

    Returns
    -------
    list of Photo
        Photos from LANDSCAPE_CAMERAS if at least one exists, otherwise the
        input unchanged
    """
    landscape = [p for p in photos if p.camera.name in LANDSCAPE_CAMERAS]
    return landscape if landscape else list(photos)
