"""Drive one login → join → send → logout run and decide its exit code."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import ProtocolError, UsageError
from .logging_config import get_logger

if TYPE_CHECKING:
    from .client import MatrixSessionClient, MessageReceipt, RoomHandle, Session
    from .config import Config

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


@dataclass
class WorkflowResult:
    """What a run got done."""

    exit_code: int = EXIT_FAILURE
    session: Session | None = None
    room: RoomHandle | None = None
    receipt: MessageReceipt | None = None
    logged_out: bool = False
    error: ProtocolError | None = None

    @property
    def sent(self) -> bool:
        """Whether the message reached the server."""
        return self.receipt is not None


def run_workflow(config: Config, message: str, client: MatrixSessionClient) -> WorkflowResult:
    """Send ``message`` to the configured room.

    Login and join failures abort the run. Once logged in, logout is attempted
    on every path; a logout failure is reported but never turns a sent message
    into a failed run.
    """
    if not message:
        msg = "message must not be empty"
        raise UsageError(msg)

    result = WorkflowResult()

    try:
        result.session = client.login(config.server_url, config.username, config.password)
    except ProtocolError as exc:
        logger.error("Unable to login", server_url=config.server_url, error=str(exc))  # noqa: TRY400
        result.error = exc
        return result

    access_token = result.session.access_token
    try:
        result.room = client.join_room(config.server_url, config.room_name, access_token)
        result.receipt = client.send_message(config.server_url, result.room.room_id, access_token, message)
    except ProtocolError as exc:
        stage = "send message" if result.room is not None else "join room"
        logger.error(f"Unable to {stage}", room=config.room_name, error=str(exc))  # noqa: TRY400
        result.error = exc
    finally:
        result.logged_out = _logout(client, config, access_token)

    result.exit_code = EXIT_OK if result.sent else EXIT_FAILURE
    return result


def _logout(client: MatrixSessionClient, config: Config, access_token: str) -> bool:
    """Best-effort logout; failures are logged and reported as ``False``."""
    try:
        client.logout(config.server_url, access_token)
    except ProtocolError as exc:
        logger.warning("Failed to logout", error=str(exc), status_code=exc.status_code)
        return False
    return True
