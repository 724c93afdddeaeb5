"""Main CLI application.

Click commands for powerplatform-mcp: serve, mcp, tools.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

import click

from powerplatform_mcp import __version__
from powerplatform_mcp.config.loader import load_config
from powerplatform_mcp.core.errors import ConfigError, PowerPlatformMcpError

if TYPE_CHECKING:
    from powerplatform_mcp.config.schema import LoggingConfig, PowerPlatformMcpConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> PowerPlatformMcpConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def _setup_logging(config: LoggingConfig) -> None:
    """Configure root logging.

    Always logs to stderr; stdout carries the MCP stdio stream.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    logging.basicConfig(
        level=config.level.upper(),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="powerplatform-mcp")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """powerplatform-mcp - Dataverse read tools over MCP and HTTP."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── serve ────────────────────────────────────────────────────────


@cli.command()
@click.option("--host", default=None, help="Bind address (default from config).")
@click.option("--port", type=int, default=None, help="Port (default from config or $PORT).")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the HTTP invoke API."""
    import uvicorn

    from powerplatform_mcp.api.app import create_app

    config = _load_config(ctx.obj["config_path"])
    _setup_logging(config.logging)

    missing = config.powerplatform.missing_fields()
    if missing:
        _error("Missing Power Platform settings: " + ", ".join(missing))

    effective_host = host or config.server.host
    effective_port = port or config.server.port

    app = create_app(config)
    click.echo(
        f"Dataverse MCP HTTP server running at "
        f"http://{effective_host}:{effective_port}/invoke",
        err=True,
    )
    uvicorn.run(app, host=effective_host, port=effective_port, log_config=None)


# ── mcp ─────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def mcp(ctx: click.Context) -> None:
    """Start the MCP server on stdio."""
    from powerplatform_mcp.mcp.server import run_server

    config = _load_config(ctx.obj["config_path"])
    _setup_logging(config.logging)
    try:
        asyncio.run(run_server(config))
    except PowerPlatformMcpError as e:
        _error(str(e))


# ── tools ───────────────────────────────────────────────────────


@cli.command()
def tools() -> None:
    """List the available tools and their parameters."""
    from powerplatform_mcp.cli.display import show_tools
    from powerplatform_mcp.tools import POWERPLATFORM_TOOLS

    show_tools(POWERPLATFORM_TOOLS)


def main() -> None:
    cli()
