"""
Batched external lookup and disambiguation for unresolved terms.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from bs4 import Tag

from ...core.models import XrefOptions, XrefQuery, XrefResult

logger = logging.getLogger(__name__)


@dataclass
class UnresolvedEntry:
    """Anchors sharing one (term, cite scope) bucket."""
    term: str
    anchors: List[Tag] = field(default_factory=list)
    scope: Optional[List[str]] = None
    results: List[XrefResult] = field(default_factory=list)


def bucket_key(term_key: str, scope: Optional[List[str]]) -> str:
    return f"{term_key}|{','.join(scope or [])}"


def query_specs(entry: UnresolvedEntry, resolver_specs: Optional[List[str]]) -> Optional[List[str]]:
    """
    Specs a resolver should be asked about for this bucket.

    Returns an empty list when the bucket's scope and the resolver's specs do
    not overlap; the resolver is skipped for the bucket in that case.
    """
    if entry.scope:
        if resolver_specs is None:
            return list(entry.scope)
        return [spec for spec in entry.scope if spec in resolver_specs]
    return resolver_specs


async def resolve_queries(
    resolver_configs: List[XrefOptions],
    unresolved: Dict[str, UnresolvedEntry],
) -> List[str]:
    """
    Query each resolver once with every bucket it can answer.

    Hits are appended to ``entry.results`` in resolver order. Returns the
    warnings for resolvers that failed.
    """
    warnings: List[str] = []

    for cfg in resolver_configs:
        queries: List[XrefQuery] = []
        by_id: Dict[str, UnresolvedEntry] = {}

        for key, entry in unresolved.items():
            specs = query_specs(entry, cfg.specs)
            if specs is not None and len(specs) == 0:
                continue
            query_id = f"{key}|{len(queries)}"
            queries.append(XrefQuery(id=query_id, term=entry.term, specs=specs or None))
            by_id[query_id] = entry

        if not queries:
            continue

        try:
            response = await cfg.resolver.resolve_batch(queries)
        except Exception as e:
            logger.warning(f"Xref resolver {type(cfg.resolver).__name__} failed: {e}")
            warnings.append(f"Xref resolver failed: {e}")
            continue

        for query_id, hits in response.items():
            entry = by_id.get(query_id)
            if entry is not None:
                entry.results.extend(hits)

    return warnings


def choose_result(
    hits: List[XrefResult],
    preferred: List[str],
) -> Tuple[Optional[XrefResult], bool]:
    """
    Pick one hit using the preferred spec order.

    Returns ``(chosen, ambiguous)``. Both are falsy when there is no match.
    """
    if not hits:
        return None, False

    if not preferred:
        if len(hits) == 1:
            return hits[0], False
        return None, True

    claimed = set()
    for spec in preferred:
        matches = [i for i, hit in enumerate(hits) if hit.cite == spec]
        claimed.update(matches)
        if len(matches) == 1:
            return hits[matches[0]], False
        if len(matches) > 1:
            return None, True

    leftovers = [hit for i, hit in enumerate(hits) if i not in claimed]
    if len(leftovers) == 1:
        return leftovers[0], False
    if len(leftovers) > 1:
        return None, True
    return None, False
