"""
Bibliography pass: collect citations, render the References section and
point every citation at its entry.
"""

import logging
from typing import ClassVar, List, Set

from ....renderers.references_renderer import (
    ReferenceRecord,
    ReferencesData,
    ReferencesRenderer,
    id_for_ref,
)
from ....utils.html_tree import find_by_id
from ...metadata import PassMetadata
from ..state import OutputArea, PipelineContext, ReferencesOutput
from .base import BasePass, PassResult

logger = logging.getLogger(__name__)


class ReferencesPass(BasePass):
    """Build normative and informative reference lists from ``a[data-spec]``."""

    area: ClassVar[OutputArea] = OutputArea.REFERENCES
    metadata: ClassVar[PassMetadata] = PassMetadata(
        writes=["references"],
        selectors=["a[data-spec]", "#references"],
    )

    async def execute(self, ctx: PipelineContext) -> PassResult:
        citations = self.root.find_all("a", attrs={"data-spec": True})
        if not citations:
            return PassResult(data=ReferencesOutput())

        normative: Set[str] = set()
        informative: Set[str] = set()
        for anchor in citations:
            ref_id = anchor.get("data-spec") or ""
            if not ref_id:
                continue
            if (anchor.get("data-normative") or "false") == "true":
                normative.add(ref_id)
            else:
                informative.add(ref_id)
            anchor["href"] = f"#{id_for_ref(ref_id)}"
        # A normative citation anywhere makes the reference normative
        informative -= normative

        entries = ctx.options.biblio.entries
        warnings: List[str] = []
        for ref_id in sorted(normative | informative):
            if ref_id not in entries:
                warnings.append(f'Unresolved reference: "{ref_id}"')

        data = ReferencesData(
            normative=[ReferenceRecord(id=i, entry=entries.get(i)) for i in sorted(normative)],
            informative=[ReferenceRecord(id=i, entry=entries.get(i)) for i in sorted(informative)],
        )

        mount = find_by_id(self.root, "references")
        section = ReferencesRenderer(self.root).render(data, mount)
        if mount is None:
            self.root.append(section)

        logger.info(f"References: {len(data.normative)} normative, {len(data.informative)} informative")
        return PassResult(
            data=ReferencesOutput(
                normative=data.normative,
                informative=data.informative,
                html=str(section),
            ),
            warnings=warnings,
        )
