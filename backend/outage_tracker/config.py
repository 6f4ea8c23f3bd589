from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings

from outage_tracker.errors import ConfigurationError


@dataclass(frozen=True)
class ReconcileConfig:
    """Explicit configuration handed to the reconciliation engine."""
    service_areas: frozenset[str]
    geocode_api_key: str
    jurisdiction: str


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Database
    database_url: str = Field(default="sqlite:///./outages.db")

    # Service area: comma-separated county names, e.g. "Forsyth,Guilford"
    service_area: str = Field(default="")
    jurisdiction: str = Field(default="DEC")

    # Outage map provider
    outage_map_config_url: str = Field(default="https://outagemap.duke-energy.com/config/config.prod.json")
    outage_map_api_base: str = Field(default="https://prod.apigee.duke-energy.app/outage-maps/v1")

    # Reverse geocoder (geocode.maps.co)
    geocode_url: str = Field(default="https://geocode.maps.co/reverse")
    geocode_api_key: str = Field(default="")
    geocode_min_interval_seconds: float = Field(default=1.0)

    # HTTP
    http_timeout_seconds: float = Field(default=15.0)
    http_retries: int = Field(default=2)  # connect retries, handled by the httpx transport

    # Scheduler (minutes)
    poll_interval_minutes: int = Field(default=10)
    scheduler_enabled: bool = Field(default=False)

    log_level: str = Field(default="INFO")

    @property
    def service_area_set(self) -> frozenset[str]:
        return frozenset(a.strip() for a in self.service_area.split(",") if a.strip())

    def reconcile_config(self) -> ReconcileConfig:
        areas = self.service_area_set
        if not areas:
            raise ConfigurationError("SERVICE_AREA is empty; set at least one county name")
        if not self.jurisdiction.strip():
            raise ConfigurationError("JURISDICTION is empty")
        if not self.geocode_api_key:
            raise ConfigurationError("GEOCODE_API_KEY is not set")
        return ReconcileConfig(
            service_areas=areas,
            geocode_api_key=self.geocode_api_key,
            jurisdiction=self.jurisdiction.strip(),
        )


settings = Settings()
