"""Diagnostics pass: duplicate ids and placeholder links that never resolved."""

from typing import ClassVar, List, Set

from ....utils.html_tree import is_suppressed, text_content
from ...metadata import PassMetadata
from ..state import DiagnosticsReport, OutputArea, PipelineContext
from .base import BasePass, PassResult

PLACEHOLDER_ATTRS = ("data-xref", "data-idl", "data-spec")


class DiagnosticsPass(BasePass):
    area: ClassVar[OutputArea] = OutputArea.DIAGNOSTICS
    metadata: ClassVar[PassMetadata] = PassMetadata(
        reads=["xref", "idl", "references"],
        writes=["diagnostics"],
        selectors=["[id]", "a"],
    )

    async def execute(self, ctx: PipelineContext) -> PassResult:
        report = DiagnosticsReport()
        if not ctx.options.diagnostics.ids_and_links:
            return PassResult(data=report)

        suppress_class = ctx.suppress_class
        warnings: List[str] = []

        seen: Set[str] = set()
        reported: Set[str] = set()
        for element in self.root.find_all(id=True):
            element_id = element.get("id")
            if not element_id:
                continue
            if element_id not in seen:
                seen.add(element_id)
                continue
            if element_id in reported or is_suppressed(element, suppress_class):
                continue
            reported.add(element_id)
            report.duplicate_ids.append(element_id)
            warnings.append(f'Duplicate id: "{element_id}"')

        for anchor in self.root.find_all("a"):
            if anchor.get("href") or not any(anchor.has_attr(a) for a in PLACEHOLDER_ATTRS):
                continue
            if is_suppressed(anchor, suppress_class):
                continue
            label = next(
                (anchor.get(a) for a in PLACEHOLDER_ATTRS if anchor.get(a)),
                text_content(anchor),
            ).strip()
            report.unresolved_placeholders.append(label)
            warnings.append(f'Unresolved link placeholder: "{label}"')

        return PassResult(data=report, warnings=warnings)
