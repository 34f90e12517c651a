"""Cross-reference resolution: the local term index and external resolvers."""

from .local_map import build_local_map
from .resolve import UnresolvedEntry, choose_result, resolve_queries
from .resolver import RespecXrefResolver, StaticXrefResolver, XrefResolver

__all__ = [
    "RespecXrefResolver",
    "StaticXrefResolver",
    "UnresolvedEntry",
    "XrefResolver",
    "build_local_map",
    "choose_result",
    "resolve_queries",
]
