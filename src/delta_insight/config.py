"""Configuration loading and management for Delta Insight.

Configuration sources are merged in priority order:
    1. Defaults (defined in ServiceConfig)
    2. Global config (~/.delta-insight.toml)
    3. Project config (./delta-insight.toml)
    4. Explicit config file
    5. Environment variables (DELTA_* prefix)
    6. Overrides (passed as kwargs, typically CLI flags)

Example:
    >>> config = load_config(port=9000)
    >>> config.port
    9000
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration for the comparison service, its API and its AI collaborators.

    Attributes:
        Storage:
            database_path: SQLite file holding projects, analyses and comparisons
            persistence_retries: Retries for a locked database before giving up

        LLM endpoint (analyzer and explainer):
            llm_api_base: OpenAI-compatible base URL (None = SDK default)
            llm_api_key: API key for the endpoint
            llm_model: Model name sent with every request
            llm_timeout_seconds: Per-request timeout
            llm_max_retries: Attempts per call before reporting failure
            llm_retry_delay: Base delay for exponential backoff between attempts

        Input limits:
            max_source_chars: Longest source text accepted for analysis

        Aggregation defaults:
            trend_days: Days covered by the issue trend
            top_issues_limit: Default length of the top-issues list
            activity_limit: Default length of the activity feed
            max_trend_days: Longest trend a caller may request
            max_list_limit: Longest top-issues or activity list a caller may request

        Server:
            host, port: Bind address for ``delta-insight serve``
            verbosity: Logging verbosity level
    """

    # Storage
    database_path: str = ".delta-insight/review.db"
    persistence_retries: int = 3

    # LLM endpoint
    llm_api_base: Optional[str] = None
    llm_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: int = 60
    llm_max_retries: int = 3
    llm_retry_delay: float = 1.0

    # Input limits
    max_source_chars: int = 200_000

    # Aggregation defaults
    trend_days: int = 7
    top_issues_limit: int = 10
    activity_limit: int = 10
    max_trend_days: int = 365
    max_list_limit: int = 100

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.database_path:
            raise InvalidConfigError("database_path", self.database_path, "must not be empty")
        if self.persistence_retries < 0:
            raise InvalidConfigError(
                "persistence_retries", self.persistence_retries, "must be non-negative"
            )

        if self.llm_timeout_seconds < 1:
            raise InvalidConfigError(
                "llm_timeout_seconds", self.llm_timeout_seconds, "must be at least 1"
            )
        if self.llm_max_retries < 1:
            raise InvalidConfigError("llm_max_retries", self.llm_max_retries, "must be at least 1")
        if self.llm_retry_delay < 0:
            raise InvalidConfigError("llm_retry_delay", self.llm_retry_delay, "must be non-negative")

        if self.max_source_chars < 1:
            raise InvalidConfigError("max_source_chars", self.max_source_chars, "must be at least 1")

        if self.trend_days < 1:
            raise InvalidConfigError("trend_days", self.trend_days, "must be at least 1")
        if self.top_issues_limit < 1:
            raise InvalidConfigError("top_issues_limit", self.top_issues_limit, "must be at least 1")
        if self.activity_limit < 1:
            raise InvalidConfigError("activity_limit", self.activity_limit, "must be at least 1")
        if self.trend_days > self.max_trend_days:
            raise InvalidConfigError("trend_days", self.trend_days, "must not exceed max_trend_days")
        if max(self.top_issues_limit, self.activity_limit) > self.max_list_limit:
            raise InvalidConfigError(
                "max_list_limit", self.max_list_limit, "must cover top_issues_limit and activity_limit"
            )

        if not 1 <= self.port <= 65535:
            raise InvalidConfigError("port", self.port, "must be between 1 and 65535")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet/normal/verbose")


def load_config(config_file: Optional[Path] = None, **overrides) -> ServiceConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep lower-priority values.

    Returns:
        Validated ServiceConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".delta-insight.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "delta-insight.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ServiceConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from DELTA_* environment variables.

    Every ``ServiceConfig`` field maps to ``DELTA_<FIELD_NAME>``, e.g.
    ``DELTA_DATABASE_PATH`` or ``DELTA_LLM_API_KEY``.
    """
    type_hints = get_type_hints(ServiceConfig)

    result: dict[str, Any] = {}

    for field_name in ServiceConfig.__dataclass_fields__:
        env_key = f"DELTA_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file and return the parsed dict.

    Only the ``[delta-insight]`` table is read when present; otherwise the
    top-level keys are used.
    """
    import tomllib

    with open(path, "rb") as f:
        data = tomllib.load(f)
    section = data.get("delta-insight")
    return dict(section) if isinstance(section, dict) else data
