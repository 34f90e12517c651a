"""
Pass runner.

Executes passes in order over one shared context. A pass returning False
stops the run; an exception propagates to the caller with the context's
outputs and completed areas left as they were.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ...core.models import PostprocessOptions
from ...core.observability import get_logfire
from ..metadata import describe_passes
from .state import DocumentConfig, OutputArea, PipelineContext, PipelineOutputs

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    outputs: PipelineOutputs
    warnings: List[str]
    completed: List[OutputArea]


class Postprocessor:
    """Runs a fixed list of passes, optionally filtered to some output areas."""

    def __init__(self, passes: Iterable):
        self.passes = list(passes)
        # Resolved per instance so setup_logfire() can run first
        self._lf = get_logfire()

    def describe(self) -> List[dict]:
        return describe_passes(self.passes)

    async def run(
        self,
        areas: Optional[Iterable[OutputArea]] = None,
        options: Optional[PostprocessOptions] = None,
        config: Optional[DocumentConfig] = None,
        ctx: Optional[PipelineContext] = None,
    ) -> PipelineResult:
        if ctx is None:
            ctx = PipelineContext(options=options or PostprocessOptions(), config=config)

        wanted = None if areas is None else {OutputArea(a) for a in areas}
        active = [p for p in self.passes if wanted is None or p.area in wanted]

        index = 0
        while index < len(active):
            current = active[index]
            index += 1

            logger.debug(f"Running {type(current).__name__} ({current.area.value})")
            with self._lf.span("postprocess pass {area}", area=current.area.value):
                proceed = await current.run(ctx)
            ctx.completed.append(current.area)

            if not proceed:
                logger.info(f"{type(current).__name__} stopped the pipeline")
                break

        return PipelineResult(outputs=ctx.outputs, warnings=ctx.warnings, completed=list(ctx.completed))

