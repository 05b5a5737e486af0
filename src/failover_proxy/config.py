"""Configuration module for the failover proxy.

This module provides the ProxyConfig class: the master token for the webhook
event path, the weighted primary origins, the fallback origin, and the
settings of the idempotency store, logging and the upstream HTTP client.

The configuration is immutable and is passed explicitly to the dispatcher
and the ASGI app, so handlers never read ambient global state.

Example:
    Basic usage::

        >>> config = ProxyConfig(
        ...     master_token="s3cret",
        ...     primary_origins=[
        ...         {"url": "https://a.internal", "weight": 1},
        ...         {"url": "https://b.internal", "weight": 2},
        ...     ],
        ...     fallback_origin="https://fallback.internal",
        ... )
        >>> config.event_path
        '/discord/event'

    Loading from environment:

        >>> import os
        >>> os.environ['EDGE_MASTER_TOKEN'] = 's3cret'
        >>> os.environ['EDGE_PRIMARY_ORIGINS'] = '[{"url": "https://a.internal", "weight": 1}]'
        >>> os.environ['EDGE_FALLBACK_ORIGIN'] = 'https://fallback.internal'
        >>> config = ProxyConfig.from_env()
"""

import json
import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from failover_proxy.exceptions import ConfigurationError
from failover_proxy.models import Origin, validate_origin_url

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ProxyConfig(BaseModel):
    """Configuration for the failover proxy.

    Attributes:
        master_token: Exact value the Authorization header must carry on the
            webhook event path.
        primary_origins: Weighted origins eligible for normal routing. Must be
            non-empty and must not repeat a URL. A JSON array string is
            accepted (from environment variables).
        fallback_origin: Base URL tried once after every primary failed.
        event_path: Path of the webhook event endpoint. Only POST requests to
            this path are authorized and deduplicated.
        idempotency_ttl_seconds: How long a recorded body counts as seen.
            Must be between 1 and 604800 (7 days). Default is 300.
        atomic_dedup: Use the store's conditional write (set-if-absent)
            instead of a separate lookup and write. Closes the window in
            which two concurrent identical deliveries are both accepted.
        storage_adapter: Backend for idempotency records: "memory" or "redis".
        redis_url: Connection URL for the Redis storage adapter.
        redis_key_prefix: Prefix prepended to idempotency keys in Redis.
        cleanup_interval_seconds: Interval of the expired-record sweep for the
            in-memory store (1-3600).
        upstream_timeout_seconds: Timeout applied to each forwarding attempt.
            None disables it.
        log_level: Log level for structured logging.
        json_logs: Emit JSON logs (True) or console logs (False).
        metrics_port: Port for the Prometheus metrics endpoint, or None.

    Note:
        This class is immutable (frozen=True). Build a new instance to change
        settings.
    """

    master_token: str = Field(
        ...,
        min_length=1,
        description="Authorization header value required on the event path",
    )
    primary_origins: tuple[Origin, ...] = Field(
        ...,
        description="Weighted primary origins",
    )
    fallback_origin: str = Field(
        ...,
        description="Base URL of the fallback origin",
    )
    event_path: str = Field(
        default="/discord/event",
        description="Path of the idempotent webhook event endpoint",
    )
    idempotency_ttl_seconds: int = Field(
        default=300,
        description="Time-to-live in seconds for idempotency records (1-604800)",
    )
    atomic_dedup: bool = Field(
        default=False,
        description="Use an atomic set-if-absent write for deduplication",
    )
    storage_adapter: Literal["memory", "redis"] = Field(
        default="memory",
        description="Type of storage backend for idempotency records",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for Redis storage adapter",
    )
    redis_key_prefix: str = Field(
        default="edge:event:",
        description="Prefix for idempotency keys stored in Redis",
    )
    cleanup_interval_seconds: int = Field(
        default=60,
        description="Interval in seconds between in-memory cleanup sweeps (1-3600)",
    )
    upstream_timeout_seconds: float | None = Field(
        default=30.0,
        description="Timeout in seconds for each forwarding attempt (None disables)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for structured logging",
    )
    json_logs: bool = Field(
        default=True,
        description="Emit JSON logs instead of console output",
    )
    metrics_port: int | None = Field(
        default=None,
        description="Port for the Prometheus metrics endpoint (None disables)",
    )

    model_config = {"frozen": True}

    @field_validator("primary_origins", mode="before")
    @classmethod
    def validate_primary_origins(cls, v: Any) -> Any:
        """Parse and validate the primary origin list.

        Accepts a list of origins or mappings, or a JSON array string.

        Raises:
            ValueError: If the list is empty or repeats a URL.

        Example:
            >>> config = ProxyConfig(
            ...     master_token="t",
            ...     primary_origins='[{"url": "https://a.internal", "weight": 3}]',
            ...     fallback_origin="https://c.internal",
            ... )
            >>> config.primary_origins[0].weight
            3.0
        """
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"primary_origins is not valid JSON: {e}") from e

        if not isinstance(v, (list, tuple)):
            raise ValueError("primary_origins must be a list of origins or a JSON array")

        if not v:
            raise ValueError("primary_origins must contain at least one origin")

        urls = [o.get("url") if isinstance(o, dict) else getattr(o, "url", None) for o in v]
        duplicates = sorted({url for url in urls if url is not None and urls.count(url) > 1})
        if duplicates:
            raise ValueError(f"Duplicate primary origin URLs: {', '.join(duplicates)}")

        return tuple(v)

    @field_validator("fallback_origin")
    @classmethod
    def validate_fallback_origin(cls, v: str) -> str:
        """Validate that the fallback origin is an absolute http(s) URL."""
        return validate_origin_url(v)

    @field_validator("event_path")
    @classmethod
    def validate_event_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"event_path must start with '/', got {v!r}")
        return v

    @field_validator("idempotency_ttl_seconds")
    @classmethod
    def validate_idempotency_ttl_seconds(cls, v: int) -> int:
        """Validate TTL is within acceptable range.

        Raises:
            ValueError: If TTL is not between 1 and 604800 (7 days).
        """
        if not (1 <= v <= 604800):
            raise ValueError(
                f"idempotency_ttl_seconds must be between 1 and 604800 (7 days), got {v}"
            )
        return v

    @field_validator("cleanup_interval_seconds")
    @classmethod
    def validate_cleanup_interval_seconds(cls, v: int) -> int:
        if not (1 <= v <= 3600):
            raise ValueError(f"cleanup_interval_seconds must be between 1 and 3600, got {v}")
        return v

    @field_validator("upstream_timeout_seconds")
    @classmethod
    def validate_upstream_timeout_seconds(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError(f"upstream_timeout_seconds must be > 0 or None, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level to upper case and check it is known.

        Example:
            >>> ProxyConfig(
            ...     master_token="t",
            ...     primary_origins=[{"url": "https://a.internal"}],
            ...     fallback_origin="https://c.internal",
            ...     log_level="debug",
            ... ).log_level
            'DEBUG'
        """
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {v}. "
                f"Valid levels are: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return level

    @classmethod
    def from_env(cls, prefix: str = "EDGE_") -> "ProxyConfig":
        """Create configuration from environment variables.

        Variable names are upper-case field names with the prefix, for
        example ``EDGE_MASTER_TOKEN`` or ``EDGE_PRIMARY_ORIGINS`` (a JSON
        array of ``{"url": ..., "weight": ...}`` objects).

        Args:
            prefix: Prefix for environment variable names. Default is "EDGE_".

        Returns:
            ProxyConfig instance populated from environment variables.

        Raises:
            ConfigurationError: If a numeric or boolean variable cannot be parsed.
            ValidationError: If a parsed value is invalid or a required
                variable is missing.

        Note:
            Missing optional variables fall back to the defaults defined in
            the model.
        """
        config_dict: dict[str, Any] = {}

        # Map of field names to their types for proper conversion
        field_types: dict[str, Any] = {
            "master_token": str,
            "primary_origins": str,
            "fallback_origin": str,
            "event_path": str,
            "idempotency_ttl_seconds": int,
            "atomic_dedup": bool,
            "storage_adapter": str,
            "redis_url": str,
            "redis_key_prefix": str,
            "cleanup_interval_seconds": int,
            "upstream_timeout_seconds": float,
            "log_level": str,
            "json_logs": bool,
            "metrics_port": int,
        }

        for field_name, field_type in field_types.items():
            env_var = f"{prefix}{field_name.upper()}"
            env_value = os.environ.get(env_var)

            if env_value is None:
                continue

            if field_type is str:
                config_dict[field_name] = env_value
            elif field_type is bool:
                config_dict[field_name] = _parse_bool(env_var, env_value)
            elif env_value.strip().lower() in ("", "none") and field_name in (
                "upstream_timeout_seconds",
                "metrics_port",
            ):
                config_dict[field_name] = None
            else:
                try:
                    config_dict[field_name] = field_type(env_value)
                except ValueError as e:
                    raise ConfigurationError(
                        f"{env_var} must be a {field_type.__name__}, got {env_value!r}",
                        variable=env_var,
                    ) from e

        return cls(**config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "ProxyConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If the dictionary contains invalid values.
        """
        return cls(**config_dict)


def _parse_bool(env_var: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{env_var} must be a boolean, got {value!r}", variable=env_var)
