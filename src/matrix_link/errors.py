"""Exceptions raised by matrix_link.

Configuration and usage errors stop the run before any request is made.
Protocol errors describe the outcome of one HTTP call against the homeserver.
"""

from __future__ import annotations

__all__ = [
    "AuthenticationFailed",
    "ConfigError",
    "ConfigNotFound",
    "ConfigParseError",
    "DeserializeError",
    "LogoutFailed",
    "MatrixLinkError",
    "ProtocolError",
    "RoomJoinFailed",
    "SendFailed",
    "ServerError",
    "TransportError",
    "UsageError",
]


class MatrixLinkError(Exception):
    """Base class for every error raised by matrix_link."""


class UsageError(MatrixLinkError):
    """The command was invoked with missing or invalid arguments."""


class ConfigError(MatrixLinkError):
    """Configuration could not be resolved."""


class ConfigNotFound(ConfigError):  # noqa: N818
    """No configuration source exists."""


class ConfigParseError(ConfigError):
    """A configuration source exists but does not hold a valid Config."""


class ProtocolError(MatrixLinkError):
    """A homeserver call did not succeed."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        status_code: int | None = None,
        errcode: str | None = None,
        server_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.errcode = errcode
        self.server_message = server_message

    def __str__(self) -> str:
        """Include the Matrix error envelope when the server sent one."""
        text = super().__str__()
        if self.errcode and self.server_message:
            return f"{text} ({self.errcode}: {self.server_message})"
        if self.errcode or self.server_message:
            return f"{text} ({self.errcode or self.server_message})"
        return text


class AuthenticationFailed(ProtocolError):  # noqa: N818
    """Login was rejected with a 4xx status."""


class RoomJoinFailed(ProtocolError):  # noqa: N818
    """Joining the room was rejected with a 4xx status."""


class SendFailed(ProtocolError):  # noqa: N818
    """Sending the message was rejected with a 4xx status."""


class LogoutFailed(ProtocolError):  # noqa: N818
    """Logout was rejected with a 4xx status."""


class ServerError(ProtocolError):
    """The homeserver answered with a 5xx status."""


class TransportError(ProtocolError):
    """The request never produced a usable HTTP status."""


class DeserializeError(ProtocolError):
    """A 2xx response body did not match the expected schema."""
