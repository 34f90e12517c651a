"""
Assertion Export CLI

Extracts normative assertions from a spec and writes them as JSON.

Exit codes:
    0: assertions written
    1: input missing or not given
    2: --strict and at least one block has several normative keywords
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click

from ..core.config import Config
from ..core.models import AssertionsOptions, PostprocessOptions
from ..pipelines.postprocess import DocumentConfig, OutputArea, SpecRenderer
from ..utils.html_tree import SoupTreeParser
from .render import base_url_for

logger = logging.getLogger(__name__)

MULTIPLE_KEYWORDS_MARKER = "Multiple normative keywords"


async def extract_assertions(html: str, spec: Optional[str], version: Optional[str], base_url: str) -> tuple:
    """Run only the assertions pass; returns (items, warnings)."""
    options = PostprocessOptions(assertions=AssertionsOptions(spec=spec, version=version))
    renderer = SpecRenderer(options=options, base_url=base_url)

    container = SoupTreeParser().parse(html)
    sections = container.find_all(recursive=False)
    result = await renderer.render_document(
        DocumentConfig(sections=sections),
        areas=[OutputArea.ASSERTIONS],
    )
    return result.assertions or [], result.warnings


def infer_spec_and_version(input_path: Path) -> tuple:
    """``<spec-dir>/<spec>/<version>/index.spec.html`` -> (spec, version)."""
    parts = [p for p in input_path.parts if p not in ("", "/")]
    if len(parts) >= 3:
        return parts[-3], parts[-2]
    return None, None


@click.command(name="export-assertions")
@click.option("--input", "input_path", type=click.Path(dir_okay=False, path_type=Path), help="Spec source file")
@click.option("--spec", help="Spec short name (e.g. ujse)")
@click.option("--version", "version", help="Spec version (e.g. 1)")
@click.option("--spec-dir", type=click.Path(file_okay=False, path_type=Path), help="Directory holding <spec>/<version>/index.spec.html")
@click.option("--base", help="Published URL the assertion anchors are relative to")
@click.option("--out", "out_path", default="assertions.json", show_default=True, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--strict", is_flag=True, help="Exit 2 when a block has more than one normative keyword")
def export_assertions_command(
    input_path: Optional[Path],
    spec: Optional[str],
    version: Optional[str],
    spec_dir: Optional[Path],
    base: Optional[str],
    out_path: Path,
    strict: bool,
):
    """
    Export normative assertions as JSON.

    Example:
        specpipe export-assertions --spec ujse --version 1 --strict
    """
    if input_path is None:
        if not spec or not version:
            click.echo("❌ Either --input or both --spec and --version are required.", err=True)
            sys.exit(1)
        input_path = (spec_dir or Path(Config.SPEC_DIR)) / spec / version / "index.spec.html"

    if not input_path.is_file():
        click.echo(f"❌ Input not found: {input_path}", err=True)
        sys.exit(1)

    if not spec or not version:
        inferred_spec, inferred_version = infer_spec_and_version(input_path)
        spec = spec or inferred_spec
        version = version or inferred_version

    items, warnings = asyncio.run(extract_assertions(
        input_path.read_text(encoding="utf-8"),
        spec,
        version,
        base_url_for(input_path),
    ))

    if not base and spec and version:
        base = Config.assertions_base(spec, version)
    exported: List[dict] = [
        {
            "id": item.id,
            "url": f"{base}#{item.anchor_id}" if base else f"#{item.anchor_id}",
            "type": item.type,
            "snippet": item.snippet,
        }
        for item in items
    ]
    out_path.write_text(json.dumps(exported, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    multiple = [w for w in warnings if MULTIPLE_KEYWORDS_MARKER in w]
    if multiple:
        click.echo(f"Found {len(multiple)} blocks with multiple normative keywords:", err=True)
        for warning in multiple:
            click.echo(f" - {warning}", err=True)
        if strict:
            sys.exit(2)

    logger.info(f"Exported {len(exported)} assertions for {spec or '?'} {version or '?'}")
    click.echo(f"Wrote {len(exported)} assertions to {out_path}")
