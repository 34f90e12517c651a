"""
Concept cross-reference pass.

``a[data-xref]`` anchors are linked to local ``<dfn>``/heading targets first;
the rest are looked up in batches through the configured external resolvers
and disambiguated by the ``data-cite`` scope they sit in.
"""

import logging
import re
from typing import ClassVar, Dict, List, Optional, Tuple

from bs4 import Tag

from ....core.models import XrefOptions
from ....services.xref.local_map import build_local_map
from ....services.xref.resolve import UnresolvedEntry, bucket_key, choose_result, resolve_queries
from ....utils.html_tree import class_list
from ....utils.text import normalize_term
from ...metadata import PassMetadata
from ..state import OutputArea, PipelineContext, XrefReport
from .base import BasePass, PassResult

logger = logging.getLogger(__name__)

_CITE_SPLIT_RE = re.compile(r'[\s,]+')

ScopedAnchor = Tuple[Tag, Optional[List[str]]]


def parse_cite_scope(value: str) -> List[str]:
    return [spec for spec in _CITE_SPLIT_RE.split(value.strip()) if spec]


def _inherited_state(root: Tag, suppress_class: str) -> Tuple[Optional[List[str]], bool]:
    """Scope and suppression coming from above ``root``."""
    scope = None
    suppressed = False
    for ancestor in root.parents:
        if not isinstance(ancestor, Tag):
            continue
        if scope is None and ancestor.get("data-cite"):
            scope = parse_cite_scope(ancestor["data-cite"])
        if suppress_class in class_list(ancestor):
            suppressed = True
    return scope, suppressed


def collect_xref_anchors(root: Tag, suppress_class: str) -> List[ScopedAnchor]:
    """
    Visit the tree once, in document order, returning each unsuppressed
    ``a[data-xref]`` with the nearest enclosing ``data-cite`` scope.
    """
    found: List[ScopedAnchor] = []
    scope, suppressed = _inherited_state(root, suppress_class)
    stack = [(root, scope, suppressed)]

    while stack:
        element, scope, suppressed = stack.pop()
        if element.get("data-cite"):
            scope = parse_cite_scope(element["data-cite"])
        suppressed = suppressed or suppress_class in class_list(element)

        if element.name == "a" and element.has_attr("data-xref") and not suppressed:
            found.append((element, scope))

        children = [child for child in element.children if isinstance(child, Tag)]
        for child in reversed(children):
            stack.append((child, scope, suppressed))

    return found


def default_priority(resolver_configs: List[XrefOptions]) -> List[str]:
    return [spec for cfg in resolver_configs for spec in (cfg.specs or [])]


class XrefPass(BasePass):
    """Link concept references locally, then through external resolvers."""

    area: ClassVar[OutputArea] = OutputArea.XREF
    metadata: ClassVar[PassMetadata] = PassMetadata(
        writes=["xref"],
        selectors=["dfn", "h2, h3, h4, h5, h6", "a[data-xref]", "[data-cite]"],
        services=["xref.resolve_batch"],
    )

    def link_locally(
        self,
        anchors: List[ScopedAnchor],
        report: XrefReport,
    ) -> Dict[str, UnresolvedEntry]:
        local_map = build_local_map(self.root)
        unresolved: Dict[str, UnresolvedEntry] = {}

        for anchor, scope in anchors:
            term = anchor.get("data-xref") or ""
            key = normalize_term(term)
            hit = local_map.get(key)
            if hit is not None:
                anchor["href"] = hit.href
                report.local_hits += 1
                continue

            entry = unresolved.setdefault(bucket_key(key, scope), UnresolvedEntry(term=term, scope=scope))
            entry.anchors.append(anchor)

        return unresolved

    def apply_results(
        self,
        unresolved: Dict[str, UnresolvedEntry],
        priority: List[str],
        report: XrefReport,
    ) -> List[str]:
        warnings: List[str] = []
        for entry in unresolved.values():
            preferred = entry.scope if entry.scope else priority
            chosen, ambiguous = choose_result(entry.results, preferred)

            if chosen is not None:
                for anchor in entry.anchors:
                    anchor["href"] = chosen.href
                    if chosen.cite:
                        anchor["data-cite"] = chosen.cite
                report.external_hits += len(entry.anchors)
            elif ambiguous:
                report.ambiguous.append(entry.term)
                warnings.append(f'Ambiguous xref: "{entry.term}"')
            else:
                report.unresolved.append(entry.term)
                warnings.append(f'No matching xref: "{entry.term}"')
        return warnings

    async def execute(self, ctx: PipelineContext) -> PassResult:
        report = XrefReport()
        resolver_configs = list(ctx.options.xref)

        anchors = collect_xref_anchors(self.root, ctx.suppress_class)
        unresolved = self.link_locally(anchors, report)

        warnings = await resolve_queries(resolver_configs, unresolved)
        warnings.extend(self.apply_results(unresolved, default_priority(resolver_configs), report))

        logger.info(
            f"Xref: {report.local_hits} local, {report.external_hits} external, "
            f"{len(report.ambiguous)} ambiguous, {len(report.unresolved)} unresolved"
        )
        return PassResult(data=report, warnings=warnings)
