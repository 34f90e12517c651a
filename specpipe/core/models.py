"""
Core Models

Pydantic models for the values exchanged between postprocessing passes,
external resolvers and callers.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

NormativeType = Literal["MUST", "MUST NOT", "SHOULD", "MAY"]


# ============================================================================
# Cross-references
# ============================================================================

class LocalTarget(BaseModel):
    """A term defined in the current document."""

    href: str
    text: str
    source: Literal["dfn", "heading"]


class XrefQuery(BaseModel):
    """A single term lookup sent to an external resolver."""

    id: Optional[str] = None
    term: str
    specs: Optional[List[str]] = None


class XrefResult(BaseModel):
    """A candidate destination returned by an external resolver."""

    href: str
    text: Optional[str] = None
    cite: Optional[str] = None


# ============================================================================
# IDL, bibliography, assertions, outline
# ============================================================================

class IdlTarget(BaseModel):
    """An anchor generated for an IDL definition or member."""

    id: str
    key: str
    text: str


class BiblioEntry(BaseModel):
    """Caller-supplied bibliography record."""

    id: str
    title: Optional[str] = None
    href: Optional[str] = None
    publisher: Optional[str] = None
    date: Optional[str] = None
    status: Optional[str] = None


class AssertionItem(BaseModel):
    """A normative requirement extracted from the document."""

    id: str
    anchor_id: str
    type: NormativeType
    snippet: str


class TocItem(BaseModel):
    """One entry of the heading outline."""

    id: str
    text: str
    depth: int


class ProcessingStats(BaseModel):
    """Counters collected while assembling the document."""

    elements_processed: int = 0
    files_included: int = 0
    markdown_blocks: int = 0
    processing_time: float = 0.0


# ============================================================================
# Options
# ============================================================================

class XrefOptions(BaseModel):
    """An external resolver and the specs it may answer for."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    specs: Optional[List[str]] = None
    resolver: Any


class BiblioOptions(BaseModel):
    entries: Dict[str, BiblioEntry] = {}


class IdlOptions(BaseModel):
    enable: bool = True


class TocOptions(BaseModel):
    enabled: bool = True


class DiagnosticsOptions(BaseModel):
    suppress_class: Optional[str] = None
    ids_and_links: bool = True


class BoilerplateSectionOption(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None


class BoilerplateOptions(BaseModel):
    conformance: Union[bool, BoilerplateSectionOption] = False
    security: Union[bool, BoilerplateSectionOption] = False
    privacy: Union[bool, BoilerplateSectionOption] = False
    mount: Literal["end", "before-references", "after-toc"] = "end"


class AssertionsOptions(BaseModel):
    spec: Optional[str] = None
    version: Optional[Union[str, int, float]] = None


class MarkdownOptions(BaseModel):
    """Options for the markdown collaborator.

    ``extensions`` holds extra markdown-it plugins: either the plugin callable
    or a ``(plugin, options)`` pair. ``mermaid`` turns ``mermaid`` fences into
    diagram containers; a dict is passed along as the diagram config.
    """

    gfm: bool = True
    breaks: bool = True
    smartypants: bool = True
    header_ids: bool = True
    mermaid: Union[bool, Dict[str, Any]] = False
    extensions: List[Any] = Field(default_factory=list)


class PostprocessOptions(BaseModel):
    """Per-area options for a postprocessing run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    xref: List[XrefOptions] = Field(default_factory=list)
    biblio: BiblioOptions = Field(default_factory=BiblioOptions)
    idl: IdlOptions = Field(default_factory=IdlOptions)
    toc: TocOptions = Field(default_factory=TocOptions)
    diagnostics: DiagnosticsOptions = Field(default_factory=DiagnosticsOptions)
    boilerplate: Optional[BoilerplateOptions] = None
    assertions: AssertionsOptions = Field(default_factory=AssertionsOptions)


class SpecConfig(BaseModel):
    """Document metadata plus the options a render needs.

    ``extra`` keeps configuration keys that nothing here understands.
    """

    metadata: Dict[str, Any] = Field(default_factory=dict)
    postprocess: PostprocessOptions = Field(default_factory=PostprocessOptions)
    markdown: MarkdownOptions = Field(default_factory=MarkdownOptions)
    extra: Dict[str, Any] = Field(default_factory=dict)
