"""Boilerplate pass: conformance, security and privacy sections."""

import logging
from typing import ClassVar, List, Optional

from bs4 import Tag

from ....core.models import BoilerplateSectionOption
from ....renderers.boilerplate_renderer import BoilerplateRenderer, BoilerplateSectionDescriptor
from ....utils.html_tree import find_by_id
from ...metadata import PassMetadata
from ..state import BoilerplateOutput, OutputArea, PipelineContext
from .base import BasePass, PassResult

logger = logging.getLogger(__name__)

GENERATED_ATTR = "data-boilerplate"

BOILERPLATE_SECTIONS = (
    ("conformance", "Conformance"),
    ("security", "Security"),
    ("privacy", "Privacy"),
)


class BoilerplatePass(BasePass):
    """Insert the enabled standard sections at the configured mount point."""

    area: ClassVar[OutputArea] = OutputArea.BOILERPLATE
    metadata: ClassVar[PassMetadata] = PassMetadata(
        writes=["boilerplate"],
        selectors=["#references", "#toc"],
    )

    def descriptors(self, ctx: PipelineContext) -> List[BoilerplateSectionDescriptor]:
        options = ctx.options.boilerplate
        found = []
        for key, default_title in BOILERPLATE_SECTIONS:
            value = getattr(options, key)
            if not value:
                continue
            cfg = value if isinstance(value, BoilerplateSectionOption) else BoilerplateSectionOption()
            section_id = cfg.id or key
            if find_by_id(self.root, section_id) is not None:
                logger.debug(f"Section #{section_id} already present, not generating it")
                continue
            found.append(BoilerplateSectionDescriptor(
                id=section_id,
                title=cfg.title or default_title,
                content=cfg.content,
            ))
        return found

    def mount(self, sections: List[Tag], mode: str) -> None:
        anchor: Optional[Tag] = None
        if mode == "before-references":
            anchor = find_by_id(self.root, "references")
            if anchor is not None:
                for section in sections:
                    anchor.insert_before(section)
                return
        elif mode == "after-toc":
            anchor = find_by_id(self.root, "toc")
            if anchor is not None:
                for section in sections:
                    anchor.insert_after(section)
                    anchor = section
                return

        for section in sections:
            self.root.append(section)

    async def execute(self, ctx: PipelineContext) -> PassResult:
        if ctx.options.boilerplate is None:
            return PassResult(data=BoilerplateOutput())

        # Sections generated by an earlier run over the same tree are rebuilt
        for previous in self.root.find_all("section", attrs={GENERATED_ATTR: True}):
            previous.decompose()

        descriptors = self.descriptors(ctx)
        sections = BoilerplateRenderer(self.root).render(descriptors)
        for descriptor, section in zip(descriptors, sections):
            section[GENERATED_ATTR] = descriptor.id
        self.mount(sections, ctx.options.boilerplate.mount)

        return PassResult(data=BoilerplateOutput(
            sections=descriptors,
            html="".join(str(section) for section in sections),
        ))
