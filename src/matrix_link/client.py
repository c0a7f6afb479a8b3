"""Synchronous Matrix client-server API calls used by a single run.

Every call is a POST under ``/_matrix/client/r0``. The response is first
classified by status class and only a 2xx body is decoded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field, ValidationError

from .constants import CLIENT_API_PREFIX, LOGIN_TYPE_PASSWORD, MESSAGE_EVENT_TYPE, TEXT_MSGTYPE
from .errors import (
    AuthenticationFailed,
    DeserializeError,
    LogoutFailed,
    ProtocolError,
    RoomJoinFailed,
    SendFailed,
    ServerError,
    TransportError,
)
from .logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Session:
    """Result of a successful login."""

    access_token: str = field(repr=False)
    user_id: str | None = None
    device_id: str | None = None
    home_server: str | None = None


@dataclass(frozen=True)
class RoomHandle:
    """A joined room."""

    room_id: str


@dataclass(frozen=True)
class MessageReceipt:
    """A sent message."""

    event_id: str | None = None


# Tagged outcome of one HTTP call, keyed on the status class.


@dataclass(frozen=True)
class Success:
    """2xx response."""

    response: httpx.Response


@dataclass(frozen=True)
class ClientFailure:
    """4xx response."""

    status_code: int
    response: httpx.Response


@dataclass(frozen=True)
class ServerFailure:
    """5xx response."""

    status_code: int
    response: httpx.Response


@dataclass(frozen=True)
class TransportFailure:
    """No response, or a status outside 2xx/4xx/5xx."""

    cause: str
    status_code: int | None = None


HttpOutcome = Success | ClientFailure | ServerFailure | TransportFailure


class _LoginResponse(BaseModel):
    access_token: str = Field(min_length=1)
    user_id: str | None = None
    device_id: str | None = None
    home_server: str | None = None


class _JoinResponse(BaseModel):
    room_id: str = Field(min_length=1)


class _SendResponse(BaseModel):
    event_id: str | None = None


def classify_response(response: httpx.Response) -> HttpOutcome:
    """Map a response onto its status class."""
    status = response.status_code
    if 200 <= status < 300:  # noqa: PLR2004
        return Success(response)
    if 400 <= status < 500:  # noqa: PLR2004
        return ClientFailure(status, response)
    if 500 <= status < 600:  # noqa: PLR2004
        return ServerFailure(status, response)
    return TransportFailure(f"unexpected HTTP status {status}", status_code=status)


def build_login_body(username: str, password: str) -> dict[str, str]:
    """Return the JSON body of a password login."""
    return {"type": LOGIN_TYPE_PASSWORD, "user": username, "password": password}


def build_message_body(text: str) -> dict[str, str]:
    """Return the content of a plain-text room message."""
    return {"msgtype": TEXT_MSGTYPE, "body": text}


def _path_segment(value: str) -> str:
    """Percent-encode a value for use as one URL path segment."""
    return quote(value, safe="")


def _matrix_error(response: httpx.Response) -> tuple[str | None, str | None]:
    """Extract ``errcode`` and ``error`` from a Matrix error body, if present."""
    try:
        body = response.json()
    except ValueError:
        return None, None
    if not isinstance(body, dict):
        return None, None
    errcode = body.get("errcode")
    error = body.get("error")
    return (
        errcode if isinstance(errcode, str) else None,
        error if isinstance(error, str) else None,
    )


def _decode(response: httpx.Response, model: type[_ModelT], operation: str) -> _ModelT:
    """Decode a 2xx body into ``model`` or raise DeserializeError."""
    try:
        data = response.json()
    except ValueError as exc:
        msg = f"{operation}: response body is not valid JSON"
        raise DeserializeError(msg, operation=operation, status_code=response.status_code) from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        msg = f"{operation}: unexpected response body"
        raise DeserializeError(msg, operation=operation, status_code=response.status_code) from exc


class MatrixSessionClient:
    """The four calls of a run, bound to one HTTP client handle.

    The object holds no session state; the access token is passed into each
    call explicitly.
    """

    def __init__(self, http_client: httpx.Client) -> None:
        self.http_client = http_client

    def _post(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,  # noqa: ANN401
    ) -> HttpOutcome:
        try:
            response = self.http_client.post(url, params=params, json=json)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return TransportFailure(f"{type(exc).__name__}: {exc}")
        return classify_response(response)

    @staticmethod
    def _expect_success(
        outcome: HttpOutcome,
        *,
        operation: str,
        client_error: type[ProtocolError],
    ) -> httpx.Response:
        """Return the response of a 2xx outcome, raise the matching error otherwise."""
        if isinstance(outcome, Success):
            return outcome.response

        if isinstance(outcome, ClientFailure):
            errcode, error = _matrix_error(outcome.response)
            msg = f"{operation} rejected with HTTP {outcome.status_code}"
            raise client_error(
                msg,
                operation=operation,
                status_code=outcome.status_code,
                errcode=errcode,
                server_message=error,
            )

        if isinstance(outcome, ServerFailure):
            errcode, error = _matrix_error(outcome.response)
            msg = f"{operation} failed with server error HTTP {outcome.status_code}"
            raise ServerError(
                msg,
                operation=operation,
                status_code=outcome.status_code,
                errcode=errcode,
                server_message=error,
            )

        msg = f"{operation} request failed: {outcome.cause}"
        raise TransportError(msg, operation=operation, status_code=outcome.status_code)

    def login(self, server_url: str, username: str, password: str) -> Session:
        """Log in with a password and return the new session.

        Raises:
            AuthenticationFailed: The server rejected the credentials (4xx)
            ServerError: The server failed (5xx)
            TransportError: No usable response was received
            DeserializeError: The 2xx body lacked an access token

        """
        url = f"{server_url}{CLIENT_API_PREFIX}/login"
        outcome = self._post(url, json=build_login_body(username, password))
        response = self._expect_success(outcome, operation="login", client_error=AuthenticationFailed)
        data = _decode(response, _LoginResponse, "login")
        logger.debug("Successfully logged in", user_id=data.user_id, device_id=data.device_id)
        return Session(
            access_token=data.access_token,
            user_id=data.user_id,
            device_id=data.device_id,
            home_server=data.home_server,
        )

    def join_room(self, server_url: str, room_name: str, access_token: str) -> RoomHandle:
        """Join a room by alias or ID and return its room ID."""
        url = f"{server_url}{CLIENT_API_PREFIX}/join/{_path_segment(room_name)}"
        outcome = self._post(url, params={"access_token": access_token})
        response = self._expect_success(outcome, operation="join_room", client_error=RoomJoinFailed)
        data = _decode(response, _JoinResponse, "join_room")
        logger.info("Joined room", room=room_name, room_id=data.room_id)
        return RoomHandle(room_id=data.room_id)

    def send_message(self, server_url: str, room_id: str, access_token: str, text: str) -> MessageReceipt:
        """Post a plain-text message into a joined room."""
        url = f"{server_url}{CLIENT_API_PREFIX}/rooms/{_path_segment(room_id)}/send/{MESSAGE_EVENT_TYPE}"
        outcome = self._post(url, params={"access_token": access_token}, json=build_message_body(text))
        response = self._expect_success(outcome, operation="send_message", client_error=SendFailed)
        # event_id is informational; an odd body after a 2xx still means the message went out
        try:
            data = _decode(response, _SendResponse, "send_message")
        except DeserializeError:
            logger.debug("Send response had no usable body", room_id=room_id)
            return MessageReceipt()
        logger.info("Message sent successfully", room_id=room_id, event_id=data.event_id)
        return MessageReceipt(event_id=data.event_id)

    def logout(self, server_url: str, access_token: str) -> None:
        """Invalidate the access token."""
        url = f"{server_url}{CLIENT_API_PREFIX}/logout"
        outcome = self._post(url, params={"access_token": access_token})
        self._expect_success(outcome, operation="logout", client_error=LogoutFailed)
        logger.debug("Successfully logged out")
