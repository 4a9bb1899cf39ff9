"""Settings for geocoding, routing and route optimization, read from ``DR_*`` variables."""

from pathlib import Path
from typing import Annotated, Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

PACKAGE_DATA_ROOT = Path(__file__).resolve().parent / "data"


class Settings(BaseSettings):
    """Provider endpoints, optimizer constants and throttle intervals."""

    model_config = SettingsConfigDict(
        env_prefix="DR_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    geodata_file: Path = Field(
        default=PACKAGE_DATA_ROOT / "geodata.json",
        description="Gazetteer, target region and region centroid tables.",
    )

    # Geocoding providers
    nominatim_base_url: Optional[str] = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL of the Nominatim search service. Empty disables the provider.",
    )
    photon_base_url: Optional[str] = Field(
        default="https://photon.komoot.io",
        description="Base URL of the Photon search service. Empty disables the provider.",
    )
    geocoding_user_agent: str = "DeliveryRouteOptimizer/1.0 (ops@delivery-routing.local)"
    geocoding_timeout_seconds: float = Field(default=15.0, gt=0.0)
    nominatim_result_limit: int = Field(default=5, ge=1)
    photon_result_limit: int = Field(default=3, ge=1)
    geocode_cache_max_entries: Optional[int] = Field(
        default=None,
        ge=1,
        description="LRU bound for the geocode cache. None keeps every entry for the process lifetime.",
    )

    # Routing providers
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="OSRM server root, e.g. http://localhost:5000. Empty disables the provider.",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile segment of the route URL.",
    )
    osrm_max_retries: int = Field(default=0, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    openrouteservice_base_url: Optional[str] = Field(default="https://api.openrouteservice.org")
    openrouteservice_profile: str = "driving-car"
    openrouteservice_api_key: Optional[str] = Field(
        default=None,
        description="OpenRouteService API key. The provider is skipped when unset.",
    )
    routing_timeout_seconds: float = Field(default=10.0, gt=0.0)

    # Optimizer
    road_factor: float = Field(default=1.3, ge=1.0, description="Straight-line to road distance multiplier.")
    average_speed_kmh: float = Field(default=30.0, gt=0.0)
    fallback_interpolation_points: int = Field(default=5, ge=0)
    road_candidate_window: int = Field(default=3, ge=0)
    two_opt_max_passes: int = Field(default=10, ge=0)

    # Throttling (minimum seconds between calls)
    geocode_interval_seconds: float = Field(default=0.2, ge=0.0)
    nominatim_variant_interval_seconds: float = Field(default=0.3, ge=0.0)
    road_probe_interval_seconds: float = Field(default=0.1, ge=0.0)

    landmark_keywords: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(),
        description="Extra 'query:result' landmark pairs added to the target region's scoring table.",
    )

    @field_validator("geodata_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("nominatim_base_url", "photon_base_url", "osrm_base_url", "openrouteservice_base_url", mode="before")
    @classmethod
    def _blank_url_is_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip().rstrip("/")
        return text or None

    @field_validator("landmark_keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: Any) -> tuple[str, ...]:
        """Accept a sequence, a JSON array string or a comma-separated string."""
        if value is None:
            return ()
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                try:
                    value = json.loads(text)
                except json.JSONDecodeError as exc:
                    raise ValueError(f"Invalid keyword list: {exc}") from exc
            else:
                value = text.split(",")
        return tuple(item for item in (str(raw).strip() for raw in value) if item)


settings = Settings()
