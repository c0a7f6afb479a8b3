"""Shared constants for the matrix_link package.

This module does not import anything from the internal codebase.
"""

import os
from pathlib import Path

# Matrix client-server API prefix used by every request
CLIENT_API_PREFIX = "/_matrix/client/r0"
LOGIN_TYPE_PASSWORD = "m.login.password"  # noqa: S105
MESSAGE_EVENT_TYPE = "m.room.message"
TEXT_MSGTYPE = "m.text"

# Config file discovery: an explicit path wins, otherwise the first existing file
_CONFIG_PATH_ENV = os.getenv("MATRIX_LINK_CONFIG")
_CONFIG_SEARCH_PATHS = [
    Path("/etc/matrix_link/config.yaml"),
    Path("config.yaml"),
]

# Environment variable names for env-based configuration
ENV_USERNAME = "matrix_username"
ENV_PASSWORD = "matrix_password"  # noqa: S105
ENV_HOST = "matrix_host"
ENV_ROOM_NAME = "matrix_room_name"
CONFIG_ENV_VARS: dict[str, str] = {
    "username": ENV_USERNAME,
    "password": ENV_PASSWORD,
    "server_url": ENV_HOST,
    "room_name": ENV_ROOM_NAME,
}

# HTTP
DEFAULT_TIMEOUT = 10.0
MATRIX_SSL_VERIFY = os.getenv("MATRIX_SSL_VERIFY", "true").lower() not in {"0", "false", "no", "off"}


def config_search_locations(explicit: str | Path | None = None) -> list[Path]:
    """Return the config file candidates in the order they are probed.

    An explicit path (argument or ``MATRIX_LINK_CONFIG``) replaces the default
    search list entirely.
    """
    chosen = explicit if explicit is not None else _CONFIG_PATH_ENV
    if chosen:
        return [Path(chosen).expanduser()]
    return [path.expanduser() for path in _CONFIG_SEARCH_PATHS]
