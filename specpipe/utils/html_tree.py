"""
HTML tree boundary.

Passes operate on BeautifulSoup ``Tag`` objects. Parsing and serialization
sit behind ``HtmlTreeParser`` so callers can swap the parser; everything else
in this module is an element-level helper (selector ancestry, text content,
document-wide id lookup).
"""

import logging
from typing import Optional, Protocol

from bs4 import BeautifulSoup, Tag

from .text import slugify

logger = logging.getLogger(__name__)

HEADING_TAGS = ('h2', 'h3', 'h4', 'h5', 'h6')


class HtmlTreeParser(Protocol):
    """Parse markup into a container element and serialize it back."""

    def parse(self, markup: str) -> Tag:
        ...

    def serialize(self, element: Tag) -> str:
        ...


class SoupTreeParser:
    """Default parser backed by BeautifulSoup's html.parser builder."""

    def __init__(self, features: str = "html.parser"):
        self.features = features

    def parse(self, markup: str) -> Tag:
        """Return a ``<div>`` container holding the parsed markup."""
        container = new_container(self.features)
        fragment = BeautifulSoup(markup or "", self.features)
        for child in list(fragment.contents):
            container.append(child.extract())
        return container

    def serialize(self, element: Tag) -> str:
        return element.decode_contents()


def new_container(features: str = "html.parser") -> Tag:
    """Create an empty ``<div>`` attached to a fresh document."""
    soup = BeautifulSoup("", features)
    container = soup.new_tag("div")
    soup.append(container)
    return container


def document_of(element: Tag) -> Tag:
    """Topmost ancestor of ``element`` (the document when attached)."""
    node = element
    while node.parent is not None:
        node = node.parent
    return node


def create_element(context: Tag, name: str, text: Optional[str] = None, **attrs: str) -> Tag:
    """Create a tag owned by the same document as ``context``."""
    doc = document_of(context)
    factory = doc if isinstance(doc, BeautifulSoup) else BeautifulSoup("", "html.parser")
    tag = factory.new_tag(name, attrs=attrs)
    if text is not None:
        tag.string = text
    return tag


def find_by_id(context: Tag, element_id: str) -> Optional[Tag]:
    """Document-wide lookup of an element by id."""
    doc = document_of(context)
    # A detached subtree has no document node above it
    if not isinstance(doc, BeautifulSoup) and doc.get("id") == element_id:
        return doc
    return doc.find(attrs={"id": element_id})


def unique_id(context: Tag, base: str, start: int = 2) -> str:
    """Return ``base`` or ``base-N`` (N counting from ``start``) unused in the document."""
    candidate = base
    i = start
    while find_by_id(context, candidate) is not None:
        candidate = f"{base}-{i}"
        i += 1
    return candidate


def closest(element: Tag, selector: str) -> Optional[Tag]:
    """Nearest ancestor-or-self matching a CSS selector."""
    return element.css.closest(selector)


def is_suppressed(element: Tag, suppress_class: str) -> bool:
    return closest(element, f".{suppress_class}") is not None


def text_content(element: Tag) -> str:
    return element.get_text()


def class_list(element: Tag) -> list:
    value = element.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def set_inner_html(element: Tag, markup: str) -> None:
    """Replace the children of ``element`` with parsed ``markup``."""
    element.clear()
    fragment = BeautifulSoup(markup or "", "html.parser")
    for child in list(fragment.contents):
        element.append(child.extract())


def inner_html(element: Tag) -> str:
    return element.decode_contents()


def render_error(element: Tag, message: str) -> None:
    """Show an inline error marker in place of the element's content."""
    element.clear()
    marker = create_element(element, "p", message, **{"class": "error"})
    element.append(marker)


def heading_anchor_id(heading: Tag) -> str:
    """
    Id a heading should be linked through, assigning one if needed.

    A heading that opens a ``<section id>`` links to the section. Otherwise
    its own id is used; headings without one receive a unique slug.
    """
    section = heading.find_parent("section")
    if section is not None and section.get("id"):
        first_heading = section.find(["h1", *HEADING_TAGS])
        if first_heading is heading:
            return section["id"]

    if heading.get("id"):
        return heading["id"]

    base = slugify(text_content(heading)) or "heading"
    new_id = unique_id(heading, base)
    heading["id"] = new_id
    logger.debug(f"Assigned heading id: {new_id}")
    return new_id
