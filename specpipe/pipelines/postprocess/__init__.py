"""
Postprocessing pipeline.

Turns an assembled spec document into a cross-referenced one by running the
idl, xref, references, boilerplate, toc, diagnostics and assertions passes.
"""

from .orchestrator import DocumentBuilder, HtmlRenderResult, SpecRenderer
from .runner import PipelineResult, Postprocessor
from .scheduler import CONFIG_TO_OUTPUT_MAP, changed_output_areas, stale_areas
from .state import (
    PASS_AREAS,
    DocumentConfig,
    OutputArea,
    PipelineContext,
    PipelineOutputs,
    PipelineSession,
    RenderResult,
)

__all__ = [
    "CONFIG_TO_OUTPUT_MAP",
    "DocumentBuilder",
    "DocumentConfig",
    "HtmlRenderResult",
    "OutputArea",
    "PASS_AREAS",
    "PipelineContext",
    "PipelineOutputs",
    "PipelineResult",
    "PipelineSession",
    "Postprocessor",
    "RenderResult",
    "SpecRenderer",
    "changed_output_areas",
    "stale_areas",
]
