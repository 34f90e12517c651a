"""
Incremental scheduling.

Maps document config fields to the output areas that depend on them, and
decides which areas are stale for a run given the caller's session.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Set, Tuple

from bs4 import Tag

from .state import DocumentConfig, OutputArea, PASS_AREAS, PipelineSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldMapping:
    fields: Tuple[str, ...]
    outputs: Tuple[OutputArea, ...]


CONFIG_TO_OUTPUT_MAP: Tuple[FieldMapping, ...] = (
    FieldMapping(
        fields=("sections",),
        outputs=(
            OutputArea.IDL,
            OutputArea.XREF,
            OutputArea.REFERENCES,
            OutputArea.BOILERPLATE,
            OutputArea.TOC,
            OutputArea.DIAGNOSTICS,
            OutputArea.ASSERTIONS,
        ),
    ),
    FieldMapping(
        fields=("header", "sotd", "pubrules", "legal"),
        outputs=(OutputArea.BOILERPLATE,),
    ),
)


def field_changed(old: Any, new: Any) -> bool:
    """
    Compare one config field between snapshots.

    Lists are equal when they are the same list, or have the same length and
    the same objects at every index. Tree elements compare by identity.
    """
    if isinstance(old, list) and isinstance(new, list):
        if old is new:
            return False
        if len(old) != len(new):
            return True
        return any(a is not b for a, b in zip(old, new))
    if isinstance(old, Tag) or isinstance(new, Tag):
        return old is not new
    return old != new


def changed_output_areas(
    previous: Optional[DocumentConfig],
    current: DocumentConfig,
) -> List[OutputArea]:
    """Output areas whose inputs differ between two snapshots, in mapping order."""
    areas: List[OutputArea] = []

    def add(outputs: Iterable[OutputArea]) -> None:
        for area in outputs:
            if area not in areas:
                areas.append(area)

    for mapping in CONFIG_TO_OUTPUT_MAP:
        if previous is None or any(
            field_changed(getattr(previous, name), getattr(current, name))
            for name in mapping.fields
        ):
            add(mapping.outputs)
    return areas


def stale_areas(
    session: Optional[PipelineSession],
    config: DocumentConfig,
    requested: Optional[Iterable[OutputArea]] = None,
) -> List[OutputArea]:
    """
    Requested areas that must run: those whose inputs changed plus those the
    previous run never completed. Returned in pass order.
    """
    requested_set: Set[OutputArea] = {OutputArea(a) for a in (requested or PASS_AREAS)}
    snapshot = session.snapshot if session else None
    completed = session.completed if session else frozenset()

    changed = set(changed_output_areas(snapshot, config))
    stale = requested_set & (changed | (requested_set - completed))

    ordered = [area for area in PASS_AREAS if area in stale]
    logger.debug(
        f"Scheduling {[a.value for a in ordered]} "
        f"(changed={sorted(a.value for a in changed)})"
    )
    return ordered
