"""
Tool definitions for LLM function calling.

Each tool schema defines what the model can call and what parameters it
needs. Tools are executed by :func:`execute_tool` based on model decisions.
"""

import logging
from typing import Any, Callable, Dict, Optional

from cielo_abierto.data.mars_photos import get_mars_rover_photos
from cielo_abierto.data.rovers import ROVERS, Rover

logger = logging.getLogger(__name__)


def _camera_help() -> str:
    return "; ".join(
        f"{ROVERS[r].name}: {', '.join(sorted(ROVERS[r].cameras))}" for r in Rover
    )


MARS_PHOTOS_TOOL = {
    "name": "get_mars_photos",
    "description": """Get photos from Mars rovers (Curiosity, Opportunity, Spirit, Perseverance).
Use this when the user wants to see the Martian surface or a rover's pictures.

Leave sol and earth_date empty for the most recent photos. To show the
landscape, prefer NAVCAM, MAST, PANCAM, NAVCAM_LEFT/RIGHT or MCZ_LEFT/RIGHT.
Returns {"photos": [...]}; an empty list means nothing was found.""",
    "parameters": {
        "type": "object",
        "properties": {
            "rover": {
                "type": "string",
                "enum": [r.value for r in Rover],
                "description": "Rover name (default: curiosity)",
            },
            "sol": {
                "type": "integer",
                "description": "Martian sol (day since landing) to fetch photos from",
            },
            "earth_date": {
                "type": "string",
                "description": "Earth date (YYYY-MM-DD) to fetch photos from",
            },
            "camera": {
                "type": "string",
                "description": f"Camera abbreviation. Valid cameras per rover: {_camera_help()}",
            },
            "page": {
                "type": "integer",
                "description": "Page of upstream results (default 1)",
            },
        },
        "required": [],
    },
}

TOOLS = [MARS_PHOTOS_TOOL]

_EXECUTORS: Dict[str, Callable[..., Dict[str, Any]]] = {
    "get_mars_photos": get_mars_rover_photos,
}


def execute_tool(
    name: str,
    arguments: Optional[Dict[str, Any]] = None,
    **context,
) -> Dict[str, Any]:
    """
    Run a tool the model asked for.

    Parameters
    ----------
    name : str
        Tool name from TOOLS
    arguments : dict, optional
        Arguments chosen by the model. Keys not in the tool schema are
        ignored.
    **context
        Extra keyword arguments for the executor (e.g. ``client``, ``config``)

    Returns
    -------
    dict
        Tool result, or ``{"error": ...}`` for unknown tools
    """
    executor = _EXECUTORS.get(name)
    if executor is None:
        logger.warning(f"Model requested unknown tool '{name}'")
        return {"error": f"Unknown tool: {name}"}

    schema = next(t for t in TOOLS if t["name"] == name)
    allowed = schema["parameters"]["properties"]
    kwargs = {k: v for k, v in (arguments or {}).items() if k in allowed and v is not None}

    logger.info(f"Executing tool {name} with {kwargs}")
    return executor(**kwargs, **context)
