"""
Configuration settings for the Geomark application.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from geomark.models.tools import ToolConfig


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        enable_draw: Whether the plain drawing tools (circle, marker, rectangle) are offered
        enable_measure: Whether the measuring tools (polyline, polygon) are offered
        geodesic_circle_area: Measure circles on the ellipsoid instead of with pi * r^2
        geocoder_base_url: Base URL of the Nominatim-compatible geocoding service
        geocoder_user_agent: User-Agent sent to the geocoder (required by Nominatim policy)
        geocoder_timeout: Geocoder request timeout in seconds
        geocoder_max_retries: Retries on transient geocoder failures
        geocoder_result_limit: Maximum number of candidates requested per search
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="GEOMARK_",
    )

    # Draw toolbar
    enable_draw: bool = True
    enable_measure: bool = True
    geodesic_circle_area: bool = False

    # Geocoding
    geocoder_base_url: str = "https://nominatim.openstreetmap.org"
    geocoder_user_agent: str = "geomark/0.1"
    geocoder_timeout: float = 10.0
    geocoder_max_retries: int = 2
    geocoder_result_limit: int = 10

    # Logging
    log_level: Optional[str] = None
    log_file: Optional[Path] = None
    json_logs: bool = False

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    def tool_config(self) -> ToolConfig:
        """Build the immutable draw-tool configuration from the toggles."""
        return ToolConfig.from_toggles(
            enable_draw=self.enable_draw,
            enable_measure=self.enable_measure,
            geodesic_circle_area=self.geodesic_circle_area,
        )


# Global settings instance
settings = Settings()
