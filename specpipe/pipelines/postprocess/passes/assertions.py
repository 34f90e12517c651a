"""
Normative assertion extraction.

Blocks containing ``<em class="rfc2119">`` keywords become numbered
assertions (``SPEC-1-001``) with a stable anchor in the document.
"""

import logging
import re
from typing import ClassVar, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import Tag

from ....core.models import AssertionItem, NormativeType
from ....utils.html_tree import closest, text_content, unique_id
from ....utils.text import collapse_whitespace, truncate
from ...metadata import PassMetadata
from ..state import AssertionsOutput, OutputArea, PipelineContext
from .base import BasePass, PassResult

logger = logging.getLogger(__name__)

BLOCK_SELECTOR = "p, li, dd, dt, td, th, blockquote"
BLOCK_TAGS = ("p", "li", "dd", "dt", "td", "th", "blockquote")

# Longest keyword first so "MUST NOT" is not read as "MUST"
NORMATIVE_KEYWORDS: Tuple[NormativeType, ...] = ("MUST NOT", "MUST", "SHOULD", "MAY")

_MAJOR_RE = re.compile(r'^(\d+)')


def spec_and_version_from_url(base_url: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Read ``.../<spec>/<version>/`` from the end of a URL path."""
    if not base_url:
        return None, None
    parts = [p for p in urlparse(base_url).path.split("/") if p]
    if len(parts) >= 2:
        return parts[-2], parts[-1]
    return None, None


def assertion_id(spec: str, major: str, seq: int) -> str:
    return f"{spec}-{major}-{seq:03d}"


def keyword_type(marker: Tag) -> Optional[NormativeType]:
    text = collapse_whitespace(text_content(marker)).upper()
    for keyword in NORMATIVE_KEYWORDS:
        if text == keyword:
            return keyword
    return None


def block_snippet(block: Tag) -> str:
    return truncate(collapse_whitespace(text_content(block)), 200)


class AssertionsPass(BasePass):
    """Number normative blocks and anchor them."""

    area: ClassVar[OutputArea] = OutputArea.ASSERTIONS
    metadata: ClassVar[PassMetadata] = PassMetadata(
        writes=["assertions"],
        selectors=["em.rfc2119", BLOCK_SELECTOR],
    )

    def resolve_prefix(self, ctx: PipelineContext) -> Tuple[str, str]:
        options = ctx.options.assertions
        base_url = ctx.config.base_url if ctx.config else None
        url_spec, url_version = spec_and_version_from_url(base_url)

        spec = str(options.spec or url_spec or "SPEC").upper()
        version = str(options.version if options.version is not None else (url_version or "0"))
        match = _MAJOR_RE.match(version)
        return spec, match.group(1) if match else "0"

    def group_markers(self) -> Dict[int, Tuple[Tag, List[NormativeType]]]:
        """Keyword lists per block, keyed by block identity."""
        groups: Dict[int, Tuple[Tag, List[NormativeType]]] = {}
        for marker in self.root.select("em.rfc2119"):
            block = closest(marker, BLOCK_SELECTOR)
            if block is None:
                continue
            keyword = keyword_type(marker)
            if keyword is None:
                continue
            groups.setdefault(id(block), (block, []))[1].append(keyword)
        return groups

    async def execute(self, ctx: PipelineContext) -> PassResult:
        groups = self.group_markers()
        if not groups:
            return PassResult(data=AssertionsOutput())

        spec, major = self.resolve_prefix(ctx)
        output = AssertionsOutput()
        warnings: List[str] = []

        ordered = [b for b in self.root.find_all(BLOCK_TAGS) if id(b) in groups]
        for seq, block in enumerate(ordered, start=1):
            keywords = groups[id(block)][1]
            snippet = block_snippet(block)
            if len(keywords) > 1:
                output.multi_keyword_blocks += 1
                warnings.append(
                    f'Multiple normative keywords ({", ".join(keywords)}) in block: "{snippet}"'
                )

            standard_id = assertion_id(spec, major, seq)
            anchor_id = block.get("id")
            if not anchor_id:
                anchor_id = unique_id(block, standard_id, start=1)
                block["id"] = anchor_id
            block["data-assertion-id"] = standard_id

            output.items.append(AssertionItem(
                id=standard_id,
                anchor_id=anchor_id,
                type=keywords[0],
                snippet=snippet,
            ))

        logger.info(f"Extracted {len(output.items)} assertions ({spec}-{major})")
        return PassResult(data=output, warnings=warnings)
