"""
Render CLI Commands

Render a spec document through the postprocessing pipeline.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from ..core.config import load_postprocess_options, load_respec_config
from ..core.exceptions import UnsupportedFormatError
from ..core.models import PostprocessOptions
from ..pipelines.postprocess import SpecRenderer

logger = logging.getLogger(__name__)


def base_url_for(path: Path) -> str:
    """``file://`` URL of the directory holding ``path``, with a trailing slash."""
    return path.resolve().parent.as_uri() + "/"


@click.command(name="render")
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--out", "out_path", type=click.Path(dir_okay=False, path_type=Path), help="Write HTML here instead of stdout")
@click.option("--options", "options_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML postprocess options")
@click.option("--respec", "respec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="ReSpec respecConfig (JSON or YAML) applied over the options")
@click.option("--base-url", help="Base URL for data-include paths (default: the input's directory)")
def render_command(
    input_path: Path,
    out_path: Optional[Path],
    options_path: Optional[Path],
    respec_path: Optional[Path],
    base_url: Optional[str],
):
    """
    Render INPUT and print or write the processed HTML.

    Example:
        specpipe render spec/ujse/1/index.spec.html --out build/index.html
    """
    options = load_postprocess_options(options_path) if options_path else PostprocessOptions()
    markdown_options = None
    metadata = None
    if respec_path:
        spec_config = load_respec_config(respec_path, options)
        options, markdown_options, metadata = spec_config.postprocess, spec_config.markdown, spec_config.metadata
    renderer = SpecRenderer(
        options=options,
        base_url=base_url or base_url_for(input_path),
        markdown_options=markdown_options,
    )

    try:
        result = asyncio.run(renderer.render_html(input_path.read_text(encoding="utf-8"), metadata=metadata))
    except UnsupportedFormatError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    for warning in result.warnings:
        click.echo(f"⚠️  {warning}", err=True)

    if out_path:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.html, encoding="utf-8")
        click.echo(f"✅ Wrote {out_path} ({len(result.warnings)} warnings)")
    else:
        click.echo(result.html)


@click.command(name="passes")
def passes_command():
    """List the postprocessing passes in execution order."""
    click.echo(json.dumps(SpecRenderer().describe_passes(), indent=2))
