# === NAVMAP v1 ===
# {
#   "module": "RestKit.settings",
#   "purpose": "Client configuration backed by pydantic-settings with optional YAML files",
#   "sections": [
#     {"id": "client-settings", "name": "ClientSettings", "anchor": "class-clientsettings", "kind": "class"},
#     {"id": "load-raw-yaml", "name": "load_raw_yaml", "anchor": "function-load-raw-yaml", "kind": "function"},
#     {"id": "load-settings", "name": "load_settings", "anchor": "function-load-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Client configuration.

``ClientSettings`` collects every tunable a :class:`~RestKit.client.Client`
reads at construction time.  Values come from three layers, highest
precedence first:

1. keyword overrides passed to :func:`load_settings`
2. ``RESTKIT_*`` environment variables
3. an optional YAML file

Example:
    >>> settings = load_settings(timeout=5, mode="http")
    >>> settings.max_redirects
    10
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .network.policy import (
    DEFAULT_USER_AGENT,
    HTTP_TIMEOUT,
    MAX_REDIRECT_HOPS,
    MULTIPART_METHODS,
    PAYLOAD_METHODS,
)

__all__ = ["ClientSettings", "load_raw_yaml", "load_settings"]

_VALID_MODES = {"rest", "http"}
_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ClientSettings(BaseSettings):
    """Settings consumed by :meth:`RestKit.client.Client.from_settings`."""

    host_url: str = Field(default="", description="Base URL joined to relative request paths")
    timeout: Optional[float] = Field(
        default=HTTP_TIMEOUT,
        gt=0.0,
        description="Whole-request timeout in seconds; None disables it",
    )
    debug: bool = Field(default=False, description="Log request and response blocks")
    set_content_length: bool = Field(
        default=False, description="Always send Content-Length for requests with a body"
    )
    mode: str = Field(default="rest", description="Client mode: 'rest' or 'http'")
    max_redirects: int = Field(
        default=MAX_REDIRECT_HOPS,
        ge=0,
        description="Redirect hops allowed in 'http' mode",
    )
    verify_tls: bool = Field(default=True, description="Verify server certificates")
    proxy: Optional[str] = Field(default=None, description="Proxy URL for every request")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="Default User-Agent value")
    log_level: str = Field(default="INFO", description="Level for the RestKit logger")
    payload_methods: Tuple[str, ...] = Field(
        default=tuple(sorted(PAYLOAD_METHODS)),
        description="Verbs that carry a request body",
    )
    multipart_methods: Tuple[str, ...] = Field(
        default=tuple(sorted(MULTIPART_METHODS)),
        description="Verbs that may carry multipart attachments",
    )

    model_config = SettingsConfigDict(env_prefix="RESTKIT_", case_sensitive=False, extra="ignore")

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: Any) -> str:
        """Normalize and validate the client mode."""
        lowered = str(v).strip().lower()
        if lowered not in _VALID_MODES:
            raise ValueError(f"mode must be one of {sorted(_VALID_MODES)}, got '{v}'")
        return lowered

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> str:
        """Normalize and validate logging level."""
        upper = str(v).strip().upper()
        if upper not in _VALID_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_VALID_LEVELS)}, got '{v}'")
        return upper

    @field_validator("payload_methods", "multipart_methods", mode="before")
    @classmethod
    def normalize_methods(cls, v: Any) -> Tuple[str, ...]:
        """Accept comma-separated strings or sequences and upper-case each verb."""
        if isinstance(v, str):
            items = v.split(",")
        else:
            items = list(v)
        return tuple(str(item).strip().upper() for item in items if str(item).strip())

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return logging.getLevelName(self.log_level)


def load_raw_yaml(config_path: Union[str, Path]) -> Mapping[str, object]:
    """Read a YAML settings file and return its top-level mapping."""

    path = Path(config_path).expanduser()
    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Settings file '{path}' contains invalid YAML") from exc
    except OSError as exc:
        raise ConfigurationError(f"Settings file '{path}' could not be read: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("Settings file must contain a mapping at the root")
    return data


def load_settings(path: Optional[Union[str, Path]] = None, **overrides: Any) -> ClientSettings:
    """Build :class:`ClientSettings` from a YAML file, the environment, and overrides.

    Args:
        path: Optional YAML file whose keys mirror the ``ClientSettings`` fields.
        **overrides: Field values that beat both the environment and the file.

    Returns:
        ClientSettings: Validated settings.

    Raises:
        ConfigurationError: If the file is unreadable or any value fails validation.
    """

    file_values: Dict[str, Any] = {}
    if path is not None:
        file_values = {str(key).lower(): value for key, value in load_raw_yaml(path).items()}

    try:
        from_env = ClientSettings()
        env_values = from_env.model_dump(include=from_env.model_fields_set)
        merged: Dict[str, Any] = {**file_values, **env_values, **overrides}
        return ClientSettings(**merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid client settings: {exc}") from exc
