from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .constants import (
    ANALYTICS_BUCKETED_PERIODS,
    ANALYTICS_REPORT_TYPES,
    ANALYTICS_TIME_PERIODS,
    DATE_FORMAT,
    DEFAULT_OBJECT_FIELD,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PULL_FREQUENCY_MINUTES,
    HUBSPOT_BASE_URL,
    READ_MAX_ATTEMPTS,
    WRITE_BUDGET_S,
)
from .errors import ConfigurationError
from .profiles import EndpointProfile, ProfileTable, build_profile_table

_FILTER_RE = re.compile(r"^\w+$")


def _parse_date(value: str) -> datetime:
    return datetime.strptime(value, DATE_FORMAT)


class HubSpotConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    object_type: str

    api_key: Optional[str] = None
    access_token: Optional[str] = None
    # Token service coordinates; the token itself is fetched by auth.OAuthTokenRefresher.
    oauth_service_url: Optional[str] = None
    oauth_provider: Optional[str] = None
    oauth_credential_id: Optional[str] = None

    api_base_url: str = Field(default=HUBSPOT_BASE_URL)

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    filters: Optional[str] = None
    report_type: Optional[str] = None
    time_period: Optional[str] = None

    pull_frequency_minutes: int = Field(default=DEFAULT_PULL_FREQUENCY_MINUTES, ge=1, le=24 * 60)
    # None: use the profile's default page size.
    page_size: Optional[int] = Field(default=None, ge=1, le=DEFAULT_PAGE_SIZE * 10)
    read_max_attempts: int = Field(default=READ_MAX_ATTEMPTS, ge=1, le=20)
    write_budget_seconds: float = Field(default=WRITE_BUDGET_S, gt=0, le=600)
    request_timeout_s: Optional[float] = Field(default=None, gt=0)

    object_field: str = Field(default=DEFAULT_OBJECT_FIELD, min_length=1)

    @field_validator("object_type")
    @classmethod
    def _known_object_type(cls, v: str) -> str:
        build_profile_table().lookup(v)
        return v

    @field_validator("api_base_url")
    @classmethod
    def _strip_base_url(cls, v: str) -> str:
        v = (v or "").strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"api_base_url must be an http(s) URL, got '{v}'")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def _yyyymmdd(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        try:
            _parse_date(v)
        except ValueError:
            raise ValueError(f"Invalid date '{v}'. Use YYYYMMDD date format.") from None
        return v

    @field_validator("filters")
    @classmethod
    def _one_word_filters(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        for f in v.split(","):
            if not _FILTER_RE.match(f.strip()):
                raise ValueError(f"Filter '{f}' is not a valid filter. Filter must be one word without special symbols")
        return v

    @model_validator(mode="after")
    def _check_credentials(self) -> "HubSpotConfig":
        has_oauth = bool(self.oauth_provider and self.oauth_credential_id)
        if not (self.api_key or self.access_token or has_oauth):
            raise ValueError("HubSpot config needs api_key, access_token or oauth_provider + oauth_credential_id")
        return self

    @model_validator(mode="after")
    def _check_report(self) -> "HubSpotConfig":
        if not self.profile().requires_report:
            return self

        if self.report_type not in ANALYTICS_REPORT_TYPES:
            raise ValueError(f"Report Type '{self.report_type}' is not valid.")
        if self.time_period not in ANALYTICS_TIME_PERIODS:
            raise ValueError(
                f"Time period '{self.time_period}' is not valid. Select one of: {', '.join(ANALYTICS_TIME_PERIODS)}"
            )
        if self.report_type == "totals" and self.time_period in ANALYTICS_BUCKETED_PERIODS:
            raise ValueError(
                f"Time period '{self.time_period}' is not valid for 'totals'. Use summarized Time Periods for totals."
            )
        if self.time_period in ANALYTICS_BUCKETED_PERIODS and not self.filter_list:
            raise ValueError(
                "When using daily, weekly, or monthly for the time_period, you must include at least one filter."
            )

        if not self.start_date:
            raise ValueError(f"Start Date not defined for {self.object_type} object selected. Use YYYYMMDD date format.")
        if not self.end_date:
            raise ValueError(f"End Date not defined for {self.object_type} object selected. Use YYYYMMDD date format.")
        if _parse_date(self.start_date) > _parse_date(self.end_date):
            raise ValueError("startDate must be earlier than endDate.")
        return self

    @property
    def filter_list(self) -> List[str]:
        if not self.filters:
            return []
        return [f.strip() for f in self.filters.split(",")]

    @property
    def uses_oauth_service(self) -> bool:
        return not self.access_token and bool(self.oauth_provider and self.oauth_credential_id)

    def profile(self, profiles: Optional[ProfileTable] = None) -> EndpointProfile:
        return (profiles or build_profile_table()).lookup(self.object_type)

    def page_size_for(self, profile: EndpointProfile) -> int:
        return self.page_size or profile.default_page_size

    def read_url(self, profile: EndpointProfile) -> str:
        return self.api_base_url + profile.read_path(report_type=self.report_type, time_period=self.time_period)

    def write_url(self, profile: EndpointProfile) -> str:
        if profile.write_path is None:
            raise ConfigurationError(f"Object type '{profile.object_type}' does not support writes")
        return self.api_base_url + profile.write_path

    def validate_for_write(self, profiles: Optional[ProfileTable] = None) -> EndpointProfile:
        table = profiles or build_profile_table()
        profile = table.lookup(self.object_type)
        if not profile.supports_write:
            raise ConfigurationError(
                f"Object type '{self.object_type}' cannot be written. Writable types: {', '.join(table.writable())}"
            )
        return profile


def load_config(data: Optional[Dict[str, Any]]) -> HubSpotConfig:
    """
    Parse/validate connector config from a plain dict (creds + settings).

    Raises ConfigurationError with every pydantic failure in the message.
    """
    try:
        return HubSpotConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid HubSpot config: {e}") from e
