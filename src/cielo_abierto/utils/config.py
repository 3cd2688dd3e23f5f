"""
Configuration and environment variable management.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEMO_KEY = "DEMO_KEY"


@dataclass(frozen=True)
class UpstreamSettings:
    """
    Everything the upstream client needs to reach NASA's open-data APIs.

    Built once at the application boundary and handed to
    :class:`~cielo_abierto.data.upstream_client.UpstreamClient`, so request
    code never reads the process environment itself.
    """

    api_key: str = DEMO_KEY
    mars_photos_api: str = "https://api.nasa.gov/mars-photos/api/v1"
    raw_images_api: str = "https://mars.nasa.gov/rss/api/"
    image_library_api: str = "https://images-api.nasa.gov"
    user_agent: str = "CieloAbierto/1.0"
    timeout: float = 30.0
    max_retries: int = 0
    backoff_factor: float = 1.0

    @property
    def masked_key(self) -> str:
        """API key safe to write to logs."""
        if self.api_key == DEMO_KEY:
            return DEMO_KEY
        return f"{self.api_key[:5]}..."


class Config:
    """
    Configuration manager for Cielo Abierto.

    Loads environment variables from .env file and provides
    convenient access to configuration values.
    """

    def __init__(self, env_file: Optional[Path] = None):
        """
        Initialize configuration.

        Parameters
        ----------
        env_file : Path, optional
            Path to .env file. If None, searches for .env in project root.
        """
        if env_file is None:
            # Search for .env in current directory and parent directories
            current = Path.cwd()
            for parent in [current] + list(current.parents):
                env_path = parent / ".env"
                if env_path.exists():
                    env_file = env_path
                    break

        if env_file and Path(env_file).exists():
            load_dotenv(env_file)
            logger.info(f"Loaded environment from {env_file}")
        else:
            logger.warning("No .env file found - using environment variables only")

    # NASA API Configuration
    @property
    def nasa_api_key(self) -> str:
        """Get NASA API key from environment."""
        key = os.getenv("NASA_API_KEY", "")
        if not key or key == "your_nasa_api_key_here":
            raise ValueError(
                "NASA_API_KEY not set! "
                "Please add your API key to the .env file or set the environment variable. "
                "Get a free key at: https://api.nasa.gov/"
            )
        return key

    @property
    def mars_photos_api_url(self) -> str:
        """Get Mars Rover Photos API URL."""
        return os.getenv(
            "MARS_PHOTOS_API_URL",
            "https://api.nasa.gov/mars-photos/api/v1"
        )

    @property
    def raw_images_api_url(self) -> str:
        """Get mission raw-image feed URL."""
        return os.getenv("RAW_IMAGES_API_URL", "https://mars.nasa.gov/rss/api/")

    @property
    def image_library_api_url(self) -> str:
        """Get NASA Image and Video Library URL."""
        return os.getenv("IMAGE_LIBRARY_API_URL", "https://images-api.nasa.gov")

    @property
    def user_agent(self) -> str:
        return os.getenv("NASA_USER_AGENT", "CieloAbierto/1.0")

    # Request Settings
    @property
    def request_timeout(self) -> float:
        """Per-request timeout in seconds."""
        return float(os.getenv("NASA_REQUEST_TIMEOUT", "30"))

    @property
    def max_retries(self) -> int:
        """Transport retries mounted on the HTTP session (0 disables)."""
        return int(os.getenv("NASA_MAX_RETRIES", "0"))

    # Mars photo retrieval
    @property
    def mars_photo_limit(self) -> int:
        """Maximum number of photos handed back to the conversation."""
        return max(1, int(os.getenv("MARS_PHOTO_LIMIT", "4")))

    @property
    def mars_fallback_sol(self) -> int:
        """Known-good sol queried when every other lookup came back empty."""
        return int(os.getenv("MARS_FALLBACK_SOL", "1000"))

    def upstream_settings(self, api_key: Optional[str] = None) -> UpstreamSettings:
        """
        Build the settings value handed to the upstream client.

        Parameters
        ----------
        api_key : str, optional
            Explicit key. If None, reads NASA_API_KEY and falls back to
            DEMO_KEY when it is not configured.

        Returns
        -------
        UpstreamSettings
            Immutable client settings
        """
        if api_key is None:
            try:
                api_key = self.nasa_api_key
            except ValueError:
                logger.warning(
                    "NASA_API_KEY not configured, using DEMO_KEY "
                    "(rate limited to 30 requests/hour)"
                )
                api_key = DEMO_KEY

        return UpstreamSettings(
            api_key=api_key,
            mars_photos_api=self.mars_photos_api_url,
            raw_images_api=self.raw_images_api_url,
            image_library_api=self.image_library_api_url,
            user_agent=self.user_agent,
            timeout=self.request_timeout,
            max_retries=self.max_retries,
        )


# Global configuration instance
_config = None


def get_config(reload: bool = False) -> Config:
    """
    Get global configuration instance.

    Parameters
    ----------
    reload : bool
        Whether to reload configuration from .env file

    Returns
    -------
    Config
        Global configuration instance
    """
    global _config
    if _config is None or reload:
        _config = Config()
    return _config
