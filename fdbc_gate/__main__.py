"""CLI entry point for selecting and probing the FoundationDB API version."""

from __future__ import annotations

import json
import logging
import platform
from typing import Any

import click

from .binding import initialize
from .config import MIN_API_VERSION, AppConfig
from .exceptions import ConfigError, GateError, NativeLinkageError
from .gate import get_default_gate, load_library_from_env

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOGGER = logging.getLogger("fdbc_gate")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()), format=LOG_FORMAT, datefmt=LOG_DATEFMT
    )


def _echo_json(payload: dict[str, Any], *, indent: int | None = 2) -> None:
    click.echo(json.dumps(payload, ensure_ascii=False, indent=indent))


def _load_config() -> AppConfig:
    try:
        return AppConfig.from_env()
    except ConfigError as exc:
        raise click.BadParameter(exc.message) from exc


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set the logging verbosity.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """Command-line interface for fdbc_gate."""

    _configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level


@cli.command()
@click.argument("version", type=int, required=False)
@click.option("--compact", is_flag=True, help="Emit JSON in a single line.")
def select(version: int | None, compact: bool) -> None:
    """Select VERSION (default: FDBC_API_VERSION or 600) and report the outcome."""

    config = _load_config()
    try:
        selected = initialize(version, config=config, gate=get_default_gate())
    except NativeLinkageError as exc:
        exc.log_error(LOGGER)
        _echo_json({"status": "error", "error_code": exc.error_code, "message": exc.message}, indent=None if compact else 2)
        raise SystemExit(2) from exc
    except GateError as exc:
        exc.log_error(LOGGER)
        _echo_json({"status": "error", "error_code": exc.error_code, "message": exc.message}, indent=None if compact else 2)
        raise SystemExit(1) from exc

    _echo_json({"status": "selected", "api_version": selected}, indent=None if compact else 2)


@cli.command("max-version")
def max_version() -> None:
    """Print the newest API version the installed C library supports."""

    try:
        library = load_library_from_env()
    except NativeLinkageError as exc:
        exc.log_error(LOGGER)
        raise SystemExit(2) from exc
    click.echo(str(library.get_max_api_version()))


@cli.command()
@click.option("--native/--no-native", default=False, show_default=True, help="Also load the C library.")
def health(native: bool) -> None:
    """Report configuration and, optionally, whether libfdb_c is usable."""

    config = _load_config()
    gate = get_default_gate()
    checks: dict[str, Any] = {
        "python": platform.python_version(),
        "config": {
            "api_version": config.version.api_version,
            "header_version": config.version.header_version,
            "library_path": config.library.path,
        },
        "gate": {"selected": gate.selected_version},
    }
    status = "pass"
    if native:
        try:
            library = load_library_from_env()
            max_supported = library.get_max_api_version()
        except NativeLinkageError as exc:
            checks["native"] = {"ok": False, "error": exc.message}
            status = "degraded"
        else:
            ok = MIN_API_VERSION <= config.version.api_version <= max_supported
            checks["native"] = {"ok": ok, "max_api_version": max_supported}
            if not ok:
                status = "degraded"

    _echo_json({"status": status, "checks": checks})


if __name__ == "__main__":
    cli()
