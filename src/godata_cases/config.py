"""Pipeline configuration: platform credentials, column bindings and polling limits."""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for config loading. Run: pip install godata-cases"
    ) from e
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from godata_cases.exceptions import ConfigurationError

# Environment variables that override credentials from the config file
ENV_URL = "GODATA_URL"
ENV_USERNAME = "GODATA_USERNAME"
ENV_PASSWORD = "GODATA_PASSWORD"


class FieldCombination(str, Enum):
    """Columns used to decide whether a lab result already has a case."""

    NAMES_DOB = "names & dob"
    NAMES_AGE = "names & age"


class MatchMethod(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"


class DateOrder(str, Enum):
    """Order of year, month and day in source date strings."""

    YMD = "ymd"
    DMY = "dmy"
    MDY = "mdy"


class ColumnMapping(BaseModel):
    """Source column name for each field role."""

    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str
    reference_date: str = Field(
        ...,
        description="Specimen collection date; sent as a provisional onset date",
    )
    date_of_birth: Optional[str] = None
    age_years: Optional[str] = None

    def bound_columns(self, combination: FieldCombination) -> dict[str, str]:
        """
        Return role -> source column for the chosen field combination.
        Exactly one of date_of_birth / age_years must be set, matching the combination.
        """
        if self.date_of_birth and self.age_years:
            raise ConfigurationError(
                "Both date_of_birth and age_years columns are set. "
                "Supply only the one matching the field combination."
            )
        if combination is FieldCombination.NAMES_DOB and not self.date_of_birth:
            raise ConfigurationError(
                "The name of the column containing dates of birth is missing. "
                "Set columns.date_of_birth to create cases by names & dob."
            )
        if combination is FieldCombination.NAMES_AGE and not self.age_years:
            raise ConfigurationError(
                "The name of the column containing age in years is missing. "
                "Set columns.age_years to create cases by names & age."
            )

        roles = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "reference_date": self.reference_date,
        }
        if combination is FieldCombination.NAMES_DOB:
            roles["date_of_birth"] = self.date_of_birth
        else:
            roles["age_years"] = self.age_years
        return roles


class PipelineConfig(BaseModel):
    """Immutable settings threaded through every pipeline component."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Base URL of the Go.Data instance")
    username: str = Field(..., description="Login email address")
    password: SecretStr
    outbreak: str = Field(default="active", description="'active' or an outbreak ID")

    combination: FieldCombination = FieldCombination.NAMES_DOB
    method: MatchMethod = MatchMethod.EXACT
    columns: ColumnMapping
    date_order: DateOrder = DateOrder.YMD
    epiwindow: int = Field(default=30, ge=0, description="Days between lab and case dates")

    poll_interval: float = Field(default=2.0, ge=0)
    poll_timeout: Optional[float] = Field(
        default=600.0,
        gt=0,
        description="Seconds to wait for an export job; None waits forever",
    )
    http_timeout: float = Field(default=60.0, gt=0)

    def bound_columns(self) -> dict[str, str]:
        """Role -> source column, validated against the field combination."""
        return self.columns.bound_columns(self.combination)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "PipelineConfig":
        """
        Build config from a dict. Supports nested (platform/matching/columns/polling)
        or flat structure; credentials from the environment take precedence.
        """
        platform = data.get("platform", {}) or {}
        matching = data.get("matching", {}) or {}
        polling = data.get("polling", {}) or {}

        def _get(key: str, nested: dict, default=None):
            return nested.get(key, data.get(key, default))

        flat: dict[str, Any] = {
            "url": os.environ.get(ENV_URL) or _get("url", platform),
            "username": os.environ.get(ENV_USERNAME) or _get("username", platform),
            "password": os.environ.get(ENV_PASSWORD) or _get("password", platform),
            "outbreak": _get("outbreak", platform, "active"),
            "columns": data.get("columns") or {},
        }
        for key in ("combination", "method", "date_order", "epiwindow"):
            value = _get(key, matching)
            if value is not None:
                flat[key] = value
        interval = polling.get("interval", data.get("poll_interval"))
        if interval is not None:
            flat["poll_interval"] = interval
        # An explicit null timeout means wait forever
        if "timeout" in polling:
            flat["poll_timeout"] = polling["timeout"]
        elif "poll_timeout" in data:
            flat["poll_timeout"] = data["poll_timeout"]
        http_timeout = _get("http_timeout", platform)
        if http_timeout is not None:
            flat["http_timeout"] = http_timeout

        try:
            return cls.model_validate(flat)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PipelineConfig":
        """Load config from YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {path}")
        return cls.from_mapping(data)
