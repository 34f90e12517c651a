"""
External cross-reference resolvers.

A resolver answers a batch of ``XrefQuery`` objects with candidate
``XrefResult`` lists keyed by query id. Failures are raised; the xref pass
turns them into warnings and carries on with the next resolver.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ...core.config import Config
from ...core.models import XrefQuery, XrefResult

logger = logging.getLogger(__name__)


class XrefResolver(Protocol):
    async def resolve_batch(self, queries: List[XrefQuery]) -> Dict[str, List[XrefResult]]:
        ...


def _query_key(query: XrefQuery) -> str:
    return query.id or query.term


def _map_item(item: dict) -> Optional[XrefResult]:
    href = item.get("uri") or item.get("url") or item.get("href")
    if not href:
        return None
    return XrefResult(
        href=href,
        text=item.get("title") or item.get("term") or item.get("text"),
        cite=item.get("spec") or item.get("shortname"),
    )


class RespecXrefResolver:
    """
    Resolver backed by a respec-style xref endpoint.

    Queries are grouped by their (sorted) spec list and each group is sent as
    one ``GET <endpoint>?terms=...&cite=...`` request. The response maps
    lower-cased terms to lists of ``{uri|url|href, title|term|text,
    spec|shortname}`` items.
    """

    def __init__(
        self,
        endpoint: str = Config.XREF_ENDPOINT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self._client = client

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=2, max=8),
        reraise=True,
    )
    async def _fetch(self, client: httpx.AsyncClient, params: List[tuple]) -> dict:
        response = await client.get(self.endpoint, params=params)
        response.raise_for_status()
        return response.json()

    async def resolve_batch(self, queries: List[XrefQuery]) -> Dict[str, List[XrefResult]]:
        groups: Dict[str, List[XrefQuery]] = {}
        for query in queries:
            spec_key = ",".join(sorted(query.specs or []))
            groups.setdefault(spec_key, []).append(query)

        results: Dict[str, List[XrefResult]] = {}
        client = self._client or httpx.AsyncClient(timeout=Config.HTTP_TIMEOUT)
        try:
            for spec_key, group in groups.items():
                params = [("terms", q.term) for q in group]
                if spec_key:
                    params.append(("cite", spec_key))

                logger.debug(f"Querying {self.endpoint} for {len(group)} terms (cite={spec_key or '-'})")
                data = await self._fetch(client, params)

                for query in group:
                    items = data.get(query.term.lower()) or []
                    results[_query_key(query)] = [
                        mapped for mapped in (_map_item(item) for item in items) if mapped
                    ]
        finally:
            if self._client is None:
                await client.aclose()

        return results


class StaticXrefResolver:
    """Answers queries from an in-memory ``{term: [XrefResult, ...]}`` table."""

    def __init__(self, table: Dict[str, Iterable[XrefResult]]):
        self.table = {term.lower(): list(hits) for term, hits in table.items()}
        self.calls: List[List[XrefQuery]] = []

    async def resolve_batch(self, queries: List[XrefQuery]) -> Dict[str, List[XrefResult]]:
        self.calls.append(list(queries))
        results: Dict[str, List[XrefResult]] = {}
        for query in queries:
            hits = self.table.get(query.term.lower(), [])
            if query.specs:
                hits = [hit for hit in hits if hit.cite in query.specs]
            results[_query_key(query)] = list(hits)
        return results
