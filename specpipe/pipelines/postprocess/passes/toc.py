"""Table of contents pass."""

from typing import ClassVar, List

from bs4 import Tag

from ....core.models import TocItem
from ....renderers.toc_renderer import TocRenderer
from ....utils.html_tree import find_by_id, heading_anchor_id, set_inner_html, text_content
from ...metadata import PassMetadata
from ..state import OutputArea, PipelineContext, TocOutput
from .base import BasePass, PassResult


def collect_toc_items(root: Tag) -> List[TocItem]:
    """Outline of ``h2``/``h3`` headings; headings without an id get one."""
    items: List[TocItem] = []
    for heading in root.find_all(["h2", "h3"]):
        if heading.find_parent(id="toc") is not None:
            continue
        text = text_content(heading).strip()
        if not text:
            continue
        depth = 2 if heading.name == "h3" else 1
        items.append(TocItem(id=heading_anchor_id(heading), text=text, depth=depth))
    return items


class TocPass(BasePass):
    area: ClassVar[OutputArea] = OutputArea.TOC
    metadata: ClassVar[PassMetadata] = PassMetadata(
        writes=["toc"],
        selectors=["h2, h3", "#toc"],
    )

    async def execute(self, ctx: PipelineContext) -> PassResult:
        if not ctx.options.toc.enabled:
            return PassResult(data=TocOutput())

        items = collect_toc_items(self.root)
        html = TocRenderer(self.root).render(items)

        mount = find_by_id(self.root, "toc")
        if mount is not None and html:
            set_inner_html(mount, html)
        return PassResult(data=TocOutput(items=items, html=html))
