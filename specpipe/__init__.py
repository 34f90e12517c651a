"""
specpipe - cross-referencing post-processor for technical specifications.
"""

__version__ = "0.1.0"

from .core.models import PostprocessOptions
from .pipelines.postprocess import (
    DocumentConfig,
    OutputArea,
    PipelineSession,
    RenderResult,
    SpecRenderer,
)

__all__ = [
    "DocumentConfig",
    "OutputArea",
    "PipelineSession",
    "PostprocessOptions",
    "RenderResult",
    "SpecRenderer",
]
