"""
Main CLI entry point for specpipe
"""

import logging

import click

from .. import __version__
from ..core.config import Config
from ..core.observability import setup_logfire
from .assertions import export_assertions_command
from .render import passes_command, render_command


# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    specpipe - cross-referencing post-processor for technical specifications

    Resolves concept, IDL and citation links, builds references and a table
    of contents, and extracts normative assertions.
    """
    setup_logfire()


# Register commands
cli.add_command(render_command)
cli.add_command(passes_command)
cli.add_command(export_assertions_command)


if __name__ == '__main__':
    cli()
