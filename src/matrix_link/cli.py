"""matrix-link CLI - send one message to a Matrix room."""

from __future__ import annotations

from pathlib import Path

import httpx
import typer
from rich.console import Console

from . import __version__
from .client import MatrixSessionClient
from .config import Config, load_config, load_config_from_env
from .constants import DEFAULT_TIMEOUT, MATRIX_SSL_VERIFY, config_search_locations
from .errors import ConfigError, UsageError
from .logging_config import get_logger, setup_logging
from .workflow import EXIT_FAILURE, EXIT_USAGE, run_workflow

_HELP = """\
Log in to a Matrix homeserver, post MESSAGE to the configured room and log out.

Settings are read from the first existing config file
([cyan]/etc/matrix_link/config.yaml[/cyan], then [cyan]./config.yaml[/cyan]),
or from [cyan]matrix_*[/cyan] environment variables with [bold]--from-env[/bold].\
"""

app = typer.Typer(
    help=_HELP,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
console = Console(stderr=True)
logger = get_logger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"matrix-link version: [bold]{__version__}[/bold]")
        raise typer.Exit


def _validate_log_level(value: str) -> str:
    level = value.upper()
    if level not in _LOG_LEVELS:
        msg = f"must be one of {', '.join(_LOG_LEVELS)}"
        raise typer.BadParameter(msg)
    return level


def _build_http_client(timeout: float, verify: bool) -> httpx.Client:
    """Create the HTTP client handle used for the whole run."""
    return httpx.Client(timeout=timeout, verify=verify)


def _load_config(config_path: Path | None, from_env: bool) -> Config:
    # The two sources are exclusive: --from-env never looks at config files
    if from_env:
        return load_config_from_env()
    return load_config(config_search_locations(config_path))


@app.command()
def send(
    message: str = typer.Argument(..., help="The message to be sent", show_default=False),
    config_path: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Read settings from this file instead of searching the default locations",
        envvar="MATRIX_LINK_CONFIG",
    ),
    from_env: bool = typer.Option(
        False,
        "--from-env",
        help="Read settings from matrix_username, matrix_password, matrix_host and matrix_room_name",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        case_sensitive=False,
        envvar="LOG_LEVEL",
        callback=_validate_log_level,
    ),
    log_file: Path | None = typer.Option(  # noqa: B008
        None,
        "--log-file",
        help="Also append log output to this file",
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT,
        "--timeout",
        min=0.1,
        help="HTTP timeout in seconds",
    ),
    verify: bool = typer.Option(
        MATRIX_SSL_VERIFY,
        "--verify/--no-verify",
        help="Verify the homeserver TLS certificate",
    ),
    version: bool = typer.Option(  # noqa: ARG001
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Send MESSAGE to the configured Matrix room."""
    setup_logging(level=log_level, log_file=log_file)

    try:
        config = _load_config(config_path, from_env)
    except ConfigError as exc:
        logger.error("Unable to load configuration", error=str(exc))  # noqa: TRY400
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(EXIT_FAILURE) from None

    if not verify:
        logger.warning("TLS certificate verification is disabled")

    with _build_http_client(timeout, verify) as http_client:
        try:
            result = run_workflow(config, message, MatrixSessionClient(http_client))
        except UsageError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(EXIT_USAGE) from None

    if result.error is not None:
        console.print(f"[red]Error:[/red] {result.error}")
    raise typer.Exit(result.exit_code)


def main() -> None:
    """Console script entry point."""
    app()
