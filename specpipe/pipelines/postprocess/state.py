"""
Run state for the postprocessing pipeline.

``PipelineOutputs`` has one typed slot per output area; each slot may be
written once per run. ``PipelineSession`` is the token a caller keeps between
runs so the next run can skip areas whose inputs did not change.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from bs4 import Tag

from ...core.config import Config
from ...core.exceptions import OutputAlreadyWrittenError
from ...core.models import AssertionItem, IdlTarget, PostprocessOptions, ProcessingStats, TocItem
from ...renderers.boilerplate_renderer import BoilerplateSectionDescriptor
from ...renderers.references_renderer import ReferenceRecord


class OutputArea(str, Enum):
    IDL = "idl"
    XREF = "xref"
    REFERENCES = "references"
    BOILERPLATE = "boilerplate"
    TOC = "toc"
    DIAGNOSTICS = "diagnostics"
    ASSERTIONS = "assertions"
    METADATA = "metadata"
    PUBRULES = "pubrules"
    LEGAL = "legal"


# Areas produced by passes, in execution order
PASS_AREAS = (
    OutputArea.IDL,
    OutputArea.XREF,
    OutputArea.REFERENCES,
    OutputArea.BOILERPLATE,
    OutputArea.TOC,
    OutputArea.DIAGNOSTICS,
    OutputArea.ASSERTIONS,
)


# ============================================================================
# Per-area outputs
# ============================================================================

@dataclass
class IdlIndex:
    targets: List[IdlTarget] = field(default_factory=list)
    index: Dict[str, str] = field(default_factory=dict)


@dataclass
class XrefReport:
    local_hits: int = 0
    external_hits: int = 0
    ambiguous: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)


@dataclass
class ReferencesOutput:
    normative: List[ReferenceRecord] = field(default_factory=list)
    informative: List[ReferenceRecord] = field(default_factory=list)
    html: str = ""


@dataclass
class BoilerplateOutput:
    sections: List[BoilerplateSectionDescriptor] = field(default_factory=list)
    html: str = ""


@dataclass
class TocOutput:
    items: List[TocItem] = field(default_factory=list)
    html: str = ""


@dataclass
class DiagnosticsReport:
    duplicate_ids: List[str] = field(default_factory=list)
    unresolved_placeholders: List[str] = field(default_factory=list)


@dataclass
class AssertionsOutput:
    items: List[AssertionItem] = field(default_factory=list)
    multi_keyword_blocks: int = 0


@dataclass
class PipelineOutputs:
    """Typed output slots, each written at most once per run."""

    idl: Optional[IdlIndex] = None
    xref: Optional[XrefReport] = None
    references: Optional[ReferencesOutput] = None
    boilerplate: Optional[BoilerplateOutput] = None
    toc: Optional[TocOutput] = None
    diagnostics: Optional[DiagnosticsReport] = None
    assertions: Optional[AssertionsOutput] = None
    metadata: Optional[Dict[str, Any]] = None
    pubrules: Optional[str] = None
    legal: Optional[str] = None
    _written: set = field(default_factory=set, repr=False, compare=False)

    def write(self, area: OutputArea, value: Any) -> None:
        area = OutputArea(area)
        if area in self._written:
            raise OutputAlreadyWrittenError(f"Output area already written: {area.value}")
        self._written.add(area)
        setattr(self, area.value, value)

    def get(self, area: OutputArea) -> Any:
        return getattr(self, OutputArea(area).value)

    @property
    def written(self) -> FrozenSet[OutputArea]:
        return frozenset(self._written)

    def carry_forward(self, previous: "PipelineOutputs", areas) -> None:
        """Copy ``areas`` from a previous run without counting them as written."""
        for area in areas:
            area = OutputArea(area)
            if area not in self._written:
                setattr(self, area.value, previous.get(area))

    def to_dict(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if not f.name.startswith("_") and getattr(self, f.name) is not None
        }


# ============================================================================
# Inputs
# ============================================================================

PostProcessHook = Callable[[Tag, PipelineOutputs], Any]


@dataclass
class DocumentConfig:
    """
    Snapshot of a document's inputs.

    Fields named in the scheduler's field map are compared between runs:
    lists by identity then element-wise identity, tree elements by identity,
    everything else by equality.
    """

    sections: List[Tag] = field(default_factory=list)
    header: Optional[Tag] = None
    sotd: Optional[Tag] = None
    pubrules: Optional[Tag] = None
    legal: Optional[Tag] = None
    metadata: Optional[Dict[str, Any]] = None
    post_process: List[PostProcessHook] = field(default_factory=list)
    base_url: Optional[str] = None


@dataclass
class PipelineContext:
    """Shared state for one pipeline run."""

    options: PostprocessOptions
    config: Optional[DocumentConfig] = None
    outputs: PipelineOutputs = field(default_factory=PipelineOutputs)
    warnings: List[str] = field(default_factory=list)
    completed: List[OutputArea] = field(default_factory=list)

    @property
    def suppress_class(self) -> str:
        return self.options.diagnostics.suppress_class or Config.DEFAULT_SUPPRESS_CLASS


# ============================================================================
# Session and result
# ============================================================================

@dataclass(frozen=True)
class PipelineSession:
    """
    Caller-held record of the previous run.

    ``snapshot`` is the config the run saw, ``completed`` the areas whose
    outputs in ``outputs`` are current for that snapshot, and ``tree`` the
    working tree those outputs were produced on.
    """

    snapshot: Optional[DocumentConfig] = None
    completed: FrozenSet[OutputArea] = frozenset()
    outputs: PipelineOutputs = field(default_factory=PipelineOutputs)
    tree: Optional[Tag] = None


@dataclass
class RenderResult:
    sections: List[Tag]
    warnings: List[str]
    stats: ProcessingStats
    outputs: PipelineOutputs
    session: PipelineSession
    header: Optional[Tag] = None
    sotd: Optional[Tag] = None
    pubrules: Optional[Tag] = None
    legal: Optional[Tag] = None
    metadata: Optional[Dict[str, Any]] = None
    toc: Optional[str] = None
    boilerplate: Optional[BoilerplateOutput] = None
    references: Optional[ReferencesOutput] = None
    assertions: Optional[List[AssertionItem]] = None
