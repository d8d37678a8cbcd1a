"""
Configuration data models for grocersync.

These models define the structure of .grocersync.json and
~/.config/grocersync/config.json files, with validation and type safety
via Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiConfig(BaseModel):
    """
    Connection to the platform's sync API.

    The access token is only read here; issuing and refreshing it is the
    host application's job.
    """
    base_url: Optional[str] = Field(
        default=None,
        description="API base URL (e.g. https://api.example.com)"
    )
    access_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent with sync requests"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="HTTP request timeout"
    )
    probe_timeout_seconds: float = Field(
        default=3.0,
        gt=0.0,
        description="Connectivity probe timeout"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        """Normalize the base URL."""
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None


class RetryPolicyConfig(BaseModel):
    """
    Bounded retry for network calls.

    Worst-case blocking per call is the sum of the backoff delays.
    """
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts per network call, including the first"
    )
    base_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds to wait before the first retry"
    )
    multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Backoff multiplier per retry"
    )


class SyncScheduleConfig(BaseModel):
    """Background sync scheduling."""
    foreground_interval_seconds: float = Field(
        default=15.0,
        gt=0.0,
        description="Seconds between syncs while the app is in the foreground"
    )
    background_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Seconds between syncs while the app is in the background"
    )
    max_run_attempts: int = Field(
        default=3,
        ge=0,
        description="Failed runs retried per cycle before giving up"
    )
    parallel_entities: bool = Field(
        default=False,
        description="Reconcile cart, orders and profile concurrently"
    )


class StateConfig(BaseModel):
    """Where cached entity snapshots live."""
    state_dir: str = Field(
        default=".grocersync/state",
        description="Directory for cached snapshots (relative to the project)"
    )


class GrocerSyncConfig(BaseModel):
    """
    Top-level grocersync configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = GrocerSyncConfig(
        ...     api=ApiConfig(base_url="https://api.example.com"),
        ...     retry=RetryPolicyConfig(max_attempts=5),
        ... )
        >>> config.retry.max_attempts
        5
    """
    api: ApiConfig = Field(
        default_factory=ApiConfig,
        description="Sync API connection"
    )
    retry: RetryPolicyConfig = Field(
        default_factory=RetryPolicyConfig,
        description="Network retry policy"
    )
    sync: SyncScheduleConfig = Field(
        default_factory=SyncScheduleConfig,
        description="Background sync scheduling"
    )
    state: StateConfig = Field(
        default_factory=StateConfig,
        description="Local snapshot storage"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,  # Validate on field assignment
    )
