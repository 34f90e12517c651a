"""
Base class for postprocessing passes.

A pass is bound to the working tree when it is created and runs against a
shared PipelineContext. ``execute`` does the work and returns a PassResult;
``run`` records the result on the context and tells the runner whether to
continue.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, List

from bs4 import Tag

from ...metadata import PassMetadata
from ..state import OutputArea, PipelineContext


@dataclass
class PassResult:
    data: Any = None
    warnings: List[str] = field(default_factory=list)
    proceed: bool = True


class BasePass(ABC):
    area: ClassVar[OutputArea]
    metadata: ClassVar[PassMetadata] = PassMetadata()

    def __init__(self, root: Tag):
        self.root = root

    @abstractmethod
    async def execute(self, ctx: PipelineContext) -> PassResult:
        ...

    async def run(self, ctx: PipelineContext) -> bool:
        result = await self.execute(ctx)
        if result.data is not None:
            ctx.outputs.write(self.area, result.data)
        ctx.warnings.extend(result.warnings)
        return result.proceed
