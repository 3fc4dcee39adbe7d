import pathlib
import os
import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from moviedetail.version import __version__ as app_version
from pydantic import Field
from pydantic import model_validator

# --------------------------------------------------------------
# Root logging configuration
# --------------------------------------------------------------
# Honour a LOG_LEVEL environment variable (default INFO) so that running e.g.
#   $ export LOG_LEVEL=DEBUG
# surfaces debug-level log lines (gateway payloads, stale-result drops) from
# all project modules.  Set up before the rest of the package is imported so
# it governs all subsequent logger instances.

_root_log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

# Only configure the root logger if it hasn't been configured yet (to avoid
# clobbering test-specific logging setups).
if not logging.getLogger().hasHandlers():  # pragma: no cover
    logging.basicConfig(
        level=_root_log_level, format="%(levelname)s:%(name)s:%(message)s"
    )
else:
    logging.getLogger().setLevel(_root_log_level)

# Resolve the .env file relative to this module so loading it does not depend
# on the current working directory.
_project_root = pathlib.Path(__file__).parent.parent.parent
_ENV_FILE = _project_root / ".env"
logging.debug(f"Looking for .env file at {_ENV_FILE}")
if not _ENV_FILE.is_file():
    _ENV_FILE = ".env"


class Settings(BaseSettings):
    # Pydantic-settings model. Populates settings from .env file and environment
    # variables.  See: https://docs.pydantic.dev/latest/concepts/pydantic_settings/

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Movie Detail Service"
    API_V1_STR: str = "/api/v1"

    # ------------------------------------------------------------------
    # Remote data gateway
    # ------------------------------------------------------------------

    MOVIE_API_BASE_URL: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the movie backend (movies, comments, ratings, youtube-comments).",
    )

    MOVIE_API_TIMEOUT: float = Field(
        default=5.0,
        description="Timeout (seconds) for outbound movie backend HTTP requests.",
        ge=0.5,
    )

    # "http" talks to MOVIE_API_BASE_URL, "memory" uses the in-process gateway
    GATEWAY_BACKEND: str = Field(default="http")

    # ------------------------------------------------------------------
    # Detail view behaviour
    # ------------------------------------------------------------------

    USER_COMMENTS_PAGE_SIZE: int = Field(default=6, ge=1)
    EXTERNAL_COMMENTS_PAGE_SIZE: int = Field(default=8, ge=1)

    RATING_MIN: int = 1
    RATING_MAX: int = 10

    # Upper bound on concurrently open view sessions held by the HTTP adapter
    MAX_VIEW_SESSIONS: int = Field(default=1000, ge=1)

    # Used for share links when the request URL should not be exposed
    PUBLIC_BASE_URL: str | None = Field(default=None)
    SHARE_SITE_NAME: str = "Movie Detail"

    # CORS – provide comma-separated string in env ("*" for all)
    CORS_ALLOW_ORIGINS: str = "*"

    @property
    def parsed_cors_origins(self) -> list[str]:  # noqa: D401
        raw = self.CORS_ALLOW_ORIGINS
        if raw.strip() == "*":
            return ["*"]
        origins = []
        for o in raw.split(","):
            o_strip = o.strip()
            if not o_strip:
                continue
            # "http://localhost:3000/" and "http://localhost:3000" must match
            origins.append(o_strip.rstrip("/"))
        return origins

    # Application build version (surfaced in OpenAPI docs)
    APP_VERSION: str = app_version

    ENVIRONMENT: str = Field(default="dev")

    # ------------------------------------------------------------------
    # Pydantic hook: coerce boolean env vars that may carry inline
    # descriptors (e.g. "false   # local only") coming from env files.
    # ------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def _sanitize_bool_tokens(cls, data):  # type: ignore[return-value]
        for key in (
            "OBSERVABILITY_ENABLED",
            "OTEL_TRACES_ENABLED",
            "OTEL_METRICS_ENABLED",
            "LOKI_ENABLED",
        ):
            if key in data and isinstance(data[key], str):
                raw = data[key]
                # Split at first whitespace or '#'
                token = raw.split("#", 1)[0].strip().split()[0]
                data[key] = token
        return data

    # ------------------------------------------------------------------
    # Observability / Telemetry
    # ------------------------------------------------------------------

    OBSERVABILITY_ENABLED: bool = Field(
        default=True,
        description="Globally enable/disable all extra observability (metrics/traces/log shipping).",
    )

    # --- OpenTelemetry ---------------------------------------------------

    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = Field(
        default=None,
        description="Base OTLP endpoint, e.g. http://otelcol:4317.  If unset OTLP export is disabled.",
    )

    OTEL_TRACES_ENABLED: bool = True

    # The Prometheus scrape endpoint stays active regardless of this flag.
    OTEL_METRICS_ENABLED: bool = False

    # "grpc" (default) or "http"
    OTEL_EXPORTER_OTLP_PROTOCOL: str = Field(default="grpc")

    # Comma-separated key=value list, e.g. "token=abcd123,env=dev".
    OTEL_EXPORTER_OTLP_HEADERS: str | None = Field(default=None)

    OTEL_TRACES_SAMPLER_RATIO: float = Field(default=1.0, ge=0.0, le=1.0)

    # --- Centralised logging (Loki) --------------------------------------

    LOKI_ENABLED: bool = Field(
        default=False, description="Enable structured log shipping to Loki."
    )
    LOKI_ENDPOINT: str | None = Field(
        default=None,
        description="Loki push API endpoint, e.g. http://loki:3100/loki/api/v1/push.",
    )

    # Comma-separated key=value pairs attached to Loki log streams.
    LOKI_EXTRA_LABELS: str | None = Field(default=None)


settings = Settings()
