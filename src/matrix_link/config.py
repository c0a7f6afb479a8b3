"""Configuration model and the two ways of loading it.

A run reads its Config either from the first existing YAML file among a list of
candidate paths or from environment variables. The two sources are never mixed.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import CONFIG_ENV_VARS
from .errors import ConfigNotFound, ConfigParseError
from .logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = get_logger(__name__)


class Config(BaseModel):
    """Credentials and target room for one run."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    username: str = Field(min_length=1, description="Matrix user localpart or full user ID")
    password: str = Field(min_length=1, repr=False, description="Password for the Matrix account")
    server_url: str = Field(
        min_length=1,
        validation_alias=AliasChoices("server_url", "host"),
        description="Base URL of the homeserver, e.g. https://matrix.example.org",
    )
    room_name: str = Field(min_length=1, description="Room alias or ID to join and post into")

    @field_validator("username", "room_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, server_url: str) -> str:
        """Require an http(s) URL and drop trailing slashes."""
        normalized = server_url.strip().rstrip("/")
        if not normalized.startswith(("http://", "https://")):
            msg = "server_url must start with http:// or https://"
            raise ValueError(msg)
        return normalized


def _format_validation_errors(exc: ValidationError) -> str:
    """Render pydantic errors as `field: message` pairs."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "<root>"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def load_config(paths: Iterable[str | Path]) -> Config:
    """Load Config from the first path that exists.

    Args:
        paths: Candidate locations in priority order

    Returns:
        The validated configuration

    Raises:
        ConfigNotFound: None of the paths exists
        ConfigParseError: The first existing file cannot be turned into a Config

    """
    candidates = [Path(path) for path in paths]
    for path in candidates:
        if not path.exists():
            continue

        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Could not read configuration file {path}: {exc}"
            raise ConfigParseError(msg) from exc
        except yaml.YAMLError as exc:
            msg = f"Invalid YAML in configuration file {path}: {exc}"
            raise ConfigParseError(msg) from exc

        if not isinstance(data, dict):
            msg = f"Configuration file {path} must contain a mapping of settings"
            raise ConfigParseError(msg)

        try:
            config = Config.model_validate(data)
        except ValidationError as exc:
            msg = f"Invalid configuration in {path}: {_format_validation_errors(exc)}"
            raise ConfigParseError(msg) from exc

        logger.info("Loaded configuration", path=str(path), server_url=config.server_url, room=config.room_name)
        return config

    searched = ", ".join(str(path) for path in candidates) or "<none>"
    msg = f"No configuration file was found (searched: {searched})"
    raise ConfigNotFound(msg)


def _read_env(environ: Mapping[str, str], name: str) -> str | None:
    """Look a variable up by its exact name, then upper-cased."""
    value = environ.get(name)
    if value is None:
        value = environ.get(name.upper())
    if value is None or not value.strip():
        return None
    return value


def load_config_from_env(environ: Mapping[str, str] | None = None) -> Config:
    """Load Config from the ``matrix_*`` environment variables.

    When ``environ`` is omitted the process environment is used, after loading
    a ``.env`` file from the working directory (existing variables win).
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True), override=False)
        environ = os.environ

    values = {field: _read_env(environ, var) for field, var in CONFIG_ENV_VARS.items()}
    present = {field: value for field, value in values.items() if value is not None}

    if not present:
        names = ", ".join(CONFIG_ENV_VARS.values())
        msg = f"No configuration found in the environment (expected: {names})"
        raise ConfigNotFound(msg)

    missing = [CONFIG_ENV_VARS[field] for field, value in values.items() if value is None]
    if missing:
        msg = f"Missing environment variables: {', '.join(missing)}"
        raise ConfigParseError(msg)

    try:
        config = Config.model_validate(present)
    except ValidationError as exc:
        msg = f"Invalid configuration in environment: {_format_validation_errors(exc)}"
        raise ConfigParseError(msg) from exc

    logger.info("Loaded configuration from environment", server_url=config.server_url, room=config.room_name)
    return config
