"""
Main entry point for the VEX document MCP server.

This module provides the command-line interface for the MCP server,
handling startup, configuration, and integration with MCP hosts.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
import structlog

from . import __version__
from .config.settings import load_config
from .server import VexDocMCPServer
from .utils.logging import setup_logging


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set logging level",
)
@click.option(
    "--default-author",
    help="Author recorded on documents when a request names none",
)
@click.option(
    "--stdio/--no-stdio",
    default=True,
    help="Use stdio transport (default)",
)
@click.version_option(version=__version__)
def main(
    config: Optional[Path] = None,
    log_level: Optional[str] = None,
    default_author: Optional[str] = None,
    stdio: bool = True,
) -> None:
    """
    VEX Document MCP Server - OpenVEX authoring for MCP hosts.

    Exposes create_vex_statement and merge_vex_documents over the Model
    Context Protocol on stdin/stdout.
    """
    logger = structlog.get_logger()
    try:
        config_data = load_config(config_path=config)

        if log_level:
            config_data.server.log_level = log_level.upper()
        if default_author:
            config_data.vex.default_author = default_author

        setup_logging(config_data.server.log_level)
        logger = structlog.get_logger()

        logger.info(
            "Starting VEX document MCP server",
            version=__version__,
            config_file=str(config) if config else "default",
            log_level=config_data.server.log_level,
        )

        if not stdio:
            logger.error("Only stdio transport is currently supported")
            sys.exit(1)

        server = VexDocMCPServer(config_data)
        asyncio.run(server.run_stdio())

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)
    except Exception as e:
        logger.error("Server startup failed", error=str(e), exc_info=True)
        sys.exit(1)


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    help="Path to save configuration file",
)
def init_config(config: Optional[Path] = None) -> None:
    """Initialize a configuration file with default settings."""
    from .config.settings import create_default_config

    config_path = config or Path("config.json")

    if config_path.exists():
        click.echo(f"Configuration file already exists: {config_path}")
        if not click.confirm("Overwrite?"):
            return

    try:
        create_default_config(config_path)
    except OSError as e:
        click.echo(f"Failed to create configuration file: {e}", err=True)
        sys.exit(1)

    click.echo(f"Created configuration file: {config_path}")
    click.echo("\nNext steps:")
    click.echo("1. Optionally set a default author:")
    click.echo("   export VEXDOC_MCP_DEFAULT_AUTHOR='security@example.com'")
    click.echo("2. Add to your MCP host:")
    click.echo(f"   claude mcp add vexdoc -- vexdoc-mcp-server --config {config_path}")


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """VEX Document MCP Server CLI."""
    pass


cli.add_command(main, name="serve")
cli.add_command(init_config, name="init")


if __name__ == "__main__":
    main()
