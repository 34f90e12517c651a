"""Table of contents markup."""

from typing import List

from bs4 import Tag

from ..core.models import TocItem
from ..utils.html_tree import create_element


class TocRenderer:
    def __init__(self, context: Tag):
        self.context = context

    def render(self, items: List[TocItem]) -> str:
        """Render items as a flat ``<ol role="list">``; empty string when there are none."""
        if not items:
            return ""

        ol = create_element(self.context, "ol", role="list")
        for item in items:
            li = create_element(self.context, "li", **{"data-depth": str(item.depth)})
            li.append(create_element(self.context, "a", item.text, href=f"#{item.id}"))
            ol.append(li)
        return str(ol)
