"""Configuration management for the load generator.

Two layers of configuration exist:

- ``LoadGenSettings`` collects process defaults from the environment (or a
  ``.env`` file) using ``pydantic-settings``. Every variable carries the
  ``LOADGEN_`` prefix, e.g. ``LOADGEN_TARGET_PORT=9000``.
- ``LoadConfig`` is the immutable, validated description of one run. It is
  built once from CLI arguments layered over the settings and is shared
  read-only by every client thread.

Usage
- ``settings = LoadGenSettings()``
- ``config = build_load_config(settings, client_count=2, request_count=5, rate=10)``
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .payload import DEFAULT_PAYLOAD_HEX


DEFAULT_TARGET_HOST = "localhost"
DEFAULT_TARGET_PORT = 8006
DEFAULT_DRAIN_SECONDS = 10.0


class LoadGenSettings(BaseSettings):
    """Process-wide defaults read from the environment.

    Notes
    - CLI flags always win over these values.
    - Add new knobs here rather than reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOADGEN_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Target
    target_host: str = Field(default=DEFAULT_TARGET_HOST)
    target_port: int = Field(default=DEFAULT_TARGET_PORT, ge=1, le=65535)

    # Session lifecycle
    drain_seconds: float = Field(default=DEFAULT_DRAIN_SECONDS, ge=0)

    # Payload
    payload_hex: str = Field(default=DEFAULT_PAYLOAD_HEX)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # Observability
    metrics_port: Optional[int] = Field(default=None, ge=1, le=65535)


class LoadConfig(BaseModel):
    """Immutable parameters of a single load run.

    Parameters
    - client_count: Number of independent client sessions
    - request_count: Messages each session sends before draining
    - rate: Messages per second per session; used as a divisor so must be > 0
    - target_host / target_port: Endpoint every session connects to
    - drain_seconds: Idle hold after the last send before closing
    """

    model_config = ConfigDict(frozen=True)

    client_count: int = Field(default=1, ge=1)
    request_count: int = Field(ge=0)
    rate: int = Field(gt=0)
    target_host: str = Field(default=DEFAULT_TARGET_HOST, min_length=1)
    target_port: int = Field(default=DEFAULT_TARGET_PORT, ge=1, le=65535)
    drain_seconds: float = Field(default=DEFAULT_DRAIN_SECONDS, ge=0)

    @property
    def period_ns(self) -> int:
        """Tick period in nanoseconds."""
        return 1_000_000_000 // self.rate

    @property
    def target(self) -> str:
        return f"{self.target_host}:{self.target_port}"


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors()
    )


def load_settings(**overrides: Any) -> LoadGenSettings:
    """Read ``LoadGenSettings`` from the environment.

    Invalid ``LOADGEN_*`` values are re-raised as ``ConfigurationError`` so
    entry points can report them on one line.
    """
    try:
        return LoadGenSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid LOADGEN_ settings: {_describe(e)}") from e


def build_load_config(settings: Optional[LoadGenSettings] = None, **overrides: Any) -> LoadConfig:
    """Build a ``LoadConfig`` from settings plus explicit overrides.

    ``None`` overrides are ignored so optional CLI flags fall through to the
    settings. Validation failures are re-raised as ``ConfigurationError``.
    """
    if settings is None:
        settings = load_settings()

    values: Dict[str, Any] = {
        "target_host": settings.target_host,
        "target_port": settings.target_port,
        "drain_seconds": settings.drain_seconds,
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return LoadConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid load configuration: {_describe(e)}") from e
