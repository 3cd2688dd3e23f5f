#!/usr/bin/env python3
"""
Fetch Mars rover photos through the resilient retrieval cascade.

This script provides a command-line interface to the same lookup the
conversational assistant uses.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cielo_abierto.data.errors import UpstreamError
from cielo_abierto.data.mars_photos import MarsPhotoRetriever, PhotoRequest
from cielo_abierto.data.rovers import Rover, parse_rover, validate_camera
from cielo_abierto.data.upstream_client import UpstreamClient
from cielo_abierto.utils.config import get_config


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Fetch Mars rover photos from NASA open data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Latest Curiosity photos
  python get_mars_photos.py --rover curiosity

  # Perseverance navigation camera on sol 1217
  python get_mars_photos.py --rover perseverance --sol 1217 --camera NAVCAM_LEFT

  # Opportunity photos for an Earth date
  python get_mars_photos.py --rover opportunity --earth-date 2010-03-15
        """,
    )

    parser.add_argument(
        "--rover",
        type=str,
        choices=[r.value for r in Rover],
        default="curiosity",
        help="Rover to fetch photos from (default: curiosity)",
    )
    parser.add_argument("--sol", type=int, help="Martian sol")
    parser.add_argument("--earth-date", type=str, help="Earth date (YYYY-MM-DD)")
    parser.add_argument("--camera", type=str, help="Camera filter (e.g. NAVCAM)")
    parser.add_argument("--page", type=int, help="Upstream result page")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum photos to print (default: MARS_PHOTO_LIMIT or 4)",
    )
    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="NASA API key (default: NASA_API_KEY from .env)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    config = get_config()
    rover = parse_rover(args.rover)
    request = PhotoRequest(
        rover=rover,
        sol=args.sol,
        earth_date=args.earth_date,
        camera=validate_camera(rover, args.camera),
        page=args.page,
    )

    with UpstreamClient(config.upstream_settings(api_key=args.api_key)) as client:
        retriever = MarsPhotoRetriever(
            client,
            limit=args.limit or config.mars_photo_limit,
            fallback_sol=config.mars_fallback_sol,
        )
        try:
            photos = retriever.retrieve(request)
        except UpstreamError as e:
            logger.error(f"Photo lookup failed: {e}")
            sys.exit(1)

    logger.info(f"Found {len(photos)} photos for {rover.value}")
    print(json.dumps({"photos": [p.to_dict() for p in photos]}, indent=2))


if __name__ == "__main__":
    main()
