"""
Renders the bibliography section from classified citations.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import Tag

from ..core.models import BiblioEntry
from ..utils.html_tree import create_element


@dataclass
class ReferenceRecord:
    id: str
    entry: Optional[BiblioEntry] = None


@dataclass
class ReferencesData:
    normative: List[ReferenceRecord] = field(default_factory=list)
    informative: List[ReferenceRecord] = field(default_factory=list)


def id_for_ref(ref_id: str) -> str:
    """Anchor id of a bibliography entry."""
    return f"bib-{ref_id.lower()}"


class ReferencesRenderer:
    """Builds ``<section id="references">`` with normative and informative lists."""

    def __init__(self, context: Tag):
        self.context = context

    def _el(self, name: str, text: Optional[str] = None, **attrs: str) -> Tag:
        return create_element(self.context, name, text, **attrs)

    def format_entry(self, li: Tag, ref_id: str, entry: BiblioEntry) -> None:
        li.append(self._el("span", f"[{ref_id}]", **{"class": "ref-id"}))
        li.append(" ")
        title = entry.title or ref_id
        if entry.href:
            li.append(self._el("a", title, href=entry.href))
        else:
            li.append(self._el("span", title, **{"class": "ref-title"}))

        meta = [value for value in (entry.publisher, entry.status, entry.date) if value]
        if meta:
            li.append(" ")
            li.append(self._el("span", f" — {', '.join(meta)}", **{"class": "ref-meta"}))

    def format_missing(self, li: Tag, ref_id: str) -> None:
        li["data-spec"] = ref_id
        li.append(self._el("span", f"[{ref_id}]", **{"class": "ref-id"}))
        li.append(" ")
        li.append(self._el("span", "— unresolved reference", **{"class": "ref-missing"}))

    def render_list(self, section_id: str, title: str, records: List[ReferenceRecord]) -> Tag:
        section = self._el("section", id=section_id)
        section.append(self._el("h3", title))
        ul = self._el("ul")
        for record in sorted(records, key=lambda r: r.id):
            li = self._el("li", id=id_for_ref(record.id))
            if record.entry is not None:
                self.format_entry(li, record.id, record.entry)
            else:
                self.format_missing(li, record.id)
            ul.append(li)
        section.append(ul)
        return section

    def render(self, data: ReferencesData, mount: Optional[Tag] = None) -> Tag:
        """
        Fill ``mount`` (or a new section) with the reference lists.

        Any existing content of ``mount`` is replaced.
        """
        section = mount if mount is not None else self._el("section")
        section["id"] = "references"
        section.clear()
        section.append(self._el("h2", "References"))
        section.append(self.render_list("normative-references", "Normative references", data.normative))
        section.append(self.render_list("informative-references", "Informative references", data.informative))
        return section
