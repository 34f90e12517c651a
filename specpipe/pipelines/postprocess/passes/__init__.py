"""
Postprocessing passes, in execution order.
"""

from typing import Iterable, List, Optional

from bs4 import Tag

from ..state import OutputArea
from .assertions import AssertionsPass
from .base import BasePass, PassResult
from .boilerplate import BoilerplatePass
from .diagnostics import DiagnosticsPass
from .idl import IdlPass
from .references import ReferencesPass
from .toc import TocPass
from .xref import XrefPass

PASS_CLASSES = (
    IdlPass,
    XrefPass,
    ReferencesPass,
    BoilerplatePass,
    TocPass,
    DiagnosticsPass,
    AssertionsPass,
)


def create_passes(root: Tag, areas: Optional[Iterable[OutputArea]] = None) -> List[BasePass]:
    """Instantiate the passes for ``areas`` (all when None) over ``root``."""
    wanted = None if areas is None else {OutputArea(a) for a in areas}
    return [cls(root) for cls in PASS_CLASSES if wanted is None or cls.area in wanted]


__all__ = [
    "AssertionsPass",
    "BasePass",
    "BoilerplatePass",
    "DiagnosticsPass",
    "IdlPass",
    "PASS_CLASSES",
    "PassResult",
    "ReferencesPass",
    "TocPass",
    "XrefPass",
    "create_passes",
]
