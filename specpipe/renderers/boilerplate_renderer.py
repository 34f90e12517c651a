"""Standard conformance, security and privacy sections."""

from dataclasses import dataclass
from typing import List, Optional

from bs4 import Tag

from ..utils.html_tree import create_element


@dataclass
class BoilerplateSectionDescriptor:
    id: str
    title: str
    content: Optional[str] = None


class BoilerplateRenderer:
    def __init__(self, context: Tag):
        self.context = context

    def render_section(self, descriptor: BoilerplateSectionDescriptor) -> Tag:
        section = create_element(self.context, "section", id=descriptor.id)
        section.append(create_element(self.context, "h2", descriptor.title))
        if descriptor.content:
            section.append(create_element(self.context, "p", descriptor.content))
        return section

    def render(self, descriptors: List[BoilerplateSectionDescriptor]) -> List[Tag]:
        return [self.render_section(d) for d in descriptors]
