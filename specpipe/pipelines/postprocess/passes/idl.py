"""
IDL indexing pass.

Finds interface-definition blocks, anchors every definition and member with
a hidden link target, and resolves ``a[data-idl]`` references against the
resulting index.
"""

import logging
import re
from typing import ClassVar, Dict, Iterator, List

from bs4 import Tag

from ....core.exceptions import IdlParseError
from ....core.models import IdlTarget
from ....services.idl_parser import collect_targets, parse_idl
from ....utils.html_tree import class_list, create_element, is_suppressed, text_content, unique_id
from ....utils.text import normalize_term
from ...metadata import PassMetadata
from ..state import IdlIndex, OutputArea, PipelineContext
from .base import BasePass, PassResult

logger = logging.getLogger(__name__)

_IDL_CLASS_RE = re.compile(r'\b(idl|language-idl)\b')
_IDL_START_RE = re.compile(r'^\s*(interface|dictionary|enum|namespace|callback|typedef)\b')

ANCHORS_CLASS = "idl-anchors"


def idl_source(pre: Tag) -> str:
    code = pre.find("code")
    return text_content(code if code is not None else pre)


def find_idl_blocks(root: Tag) -> Iterator[Tag]:
    """``<pre>`` elements that look like interface definitions."""
    for pre in root.find_all("pre"):
        text = idl_source(pre)
        looks_idl = (
            _IDL_CLASS_RE.search(" ".join(class_list(pre)).lower()) is not None
            or _IDL_START_RE.match(text) is not None
        )
        if looks_idl and text.strip():
            yield pre


def insert_anchors_before(pre: Tag, targets: List[IdlTarget]) -> List[IdlTarget]:
    """
    Insert a hidden wrapper of link targets before ``pre``.

    Returns the targets with the ids actually assigned.
    """
    if not targets:
        return []
    wrapper = create_element(pre, "div", **{"class": ANCHORS_CLASS, "hidden": ""})
    pre.insert_before(wrapper)

    placed = []
    for target in targets:
        anchor_id = unique_id(pre, target.id)
        wrapper.append(create_element(pre, "a", target.text, id=anchor_id))
        placed.append(target.model_copy(update={"id": anchor_id}))
    return placed


def idl_reference_key(term: str) -> str:
    """``Name`` or ``Interface.member`` as an index key."""
    if "." in term:
        iface, member = term.split(".", 1)
        return f"{normalize_term(iface)}.{normalize_term(member)}"
    return normalize_term(term)


class IdlPass(BasePass):
    """Index IDL blocks and link ``{{ Name }}`` references."""

    area: ClassVar[OutputArea] = OutputArea.IDL
    metadata: ClassVar[PassMetadata] = PassMetadata(
        writes=["idl"],
        selectors=["pre", "a[data-idl]"],
    )

    def build_index(self, warnings: List[str]) -> IdlIndex:
        result = IdlIndex()
        for number, pre in enumerate(find_idl_blocks(self.root), start=1):
            try:
                targets = collect_targets(parse_idl(idl_source(pre)))
            except IdlParseError as e:
                logger.debug(f"IDL block {number} failed to parse: {e}")
                warnings.append(f"IDL parse error in block {number}: {e}")
                continue

            for target in insert_anchors_before(pre, targets):
                result.targets.append(target)
                result.index.setdefault(target.key, f"#{target.id}")
        return result

    def resolve_links(self, index: Dict[str, str], suppress_class: str, warnings: List[str]) -> None:
        for anchor in self.root.find_all("a", attrs={"data-idl": True}):
            if is_suppressed(anchor, suppress_class):
                continue
            term = (anchor.get("data-idl") or "").strip()
            href = index.get(idl_reference_key(term))
            if href:
                anchor["href"] = href
            else:
                warnings.append(f'Unresolved IDL link: "{term}"')

    async def execute(self, ctx: PipelineContext) -> PassResult:
        if not ctx.options.idl.enable:
            return PassResult(data=IdlIndex())

        # Anchors from an earlier run over the same tree are rebuilt
        for stale in self.root.find_all("div", class_=ANCHORS_CLASS):
            stale.decompose()

        warnings: List[str] = []
        result = self.build_index(warnings)
        self.resolve_links(result.index, ctx.suppress_class, warnings)
        logger.info(f"Indexed {len(result.targets)} IDL targets")
        return PassResult(data=result, warnings=warnings)
