"""
Tests for the pass runner and the write-once outputs.
"""

import pytest

from specpipe.core.exceptions import OutputAlreadyWrittenError
from specpipe.core.models import PostprocessOptions
from specpipe.pipelines.postprocess import Postprocessor
from specpipe.pipelines.postprocess.passes import PASS_CLASSES, BasePass, PassResult, create_passes
from specpipe.pipelines.postprocess.state import (
    PASS_AREAS,
    OutputArea,
    PipelineContext,
    PipelineOutputs,
    XrefReport,
)
from specpipe.utils.html_tree import new_container


class _ScriptedPass(BasePass):
    """Pass that records its run and returns a fixed result."""

    def __init__(self, area, log, data=None, proceed=True, error=None, warnings=None):
        super().__init__(new_container())
        self.area = area
        self.log = log
        self.data = data
        self.proceed = proceed
        self.error = error
        self.warnings = warnings or []

    async def execute(self, ctx):
        self.log.append(self.area)
        if self.error is not None:
            raise self.error
        return PassResult(data=self.data, warnings=list(self.warnings), proceed=self.proceed)


def _make_passes(log, **by_area):
    """One scripted pass per pass area; keyword args override an area's behaviour."""
    return [_ScriptedPass(area, log, **by_area.get(area.value, {})) for area in PASS_AREAS]


class TestRunOrder:
    """Passes run once each, in order, filtered by area."""

    @pytest.mark.asyncio
    async def test_runs_all_in_order(self):
        log = []
        result = await Postprocessor(_make_passes(log)).run()

        assert log == list(PASS_AREAS)
        assert result.completed == list(PASS_AREAS)

    @pytest.mark.asyncio
    async def test_area_filter(self):
        log = []
        await Postprocessor(_make_passes(log)).run(areas=[OutputArea.TOC, OutputArea.IDL])
        assert log == [OutputArea.IDL, OutputArea.TOC]

    @pytest.mark.asyncio
    async def test_short_circuit(self):
        log = []
        passes = _make_passes(log, references={"proceed": False})

        result = await Postprocessor(passes).run()

        assert log == [OutputArea.IDL, OutputArea.XREF, OutputArea.REFERENCES]
        assert result.completed == [OutputArea.IDL, OutputArea.XREF, OutputArea.REFERENCES]

    @pytest.mark.asyncio
    async def test_warnings_accumulate_in_order(self):
        log = []
        passes = _make_passes(
            log,
            idl={"warnings": ["a", "b"]},
            toc={"warnings": ["a"]},
        )

        result = await Postprocessor(passes).run()

        assert result.warnings == ["a", "b", "a"]


class TestRunFailures:
    """A raising pass stops the run and propagates; earlier outputs stay."""

    @pytest.mark.asyncio
    async def test_exception_propagates_with_partial_outputs(self):
        log = []
        report = XrefReport(local_hits=2)
        passes = _make_passes(
            log,
            xref={"data": report},
            references={"error": RuntimeError("boom")},
        )
        ctx = PipelineContext(options=PostprocessOptions())

        with pytest.raises(RuntimeError, match="boom"):
            await Postprocessor(passes).run(ctx=ctx)

        assert ctx.outputs.xref is report
        assert ctx.completed == [OutputArea.IDL, OutputArea.XREF]
        assert OutputArea.BOILERPLATE not in log

    @pytest.mark.asyncio
    async def test_second_write_to_an_area_fails(self):
        log = []
        passes = [
            _ScriptedPass(OutputArea.XREF, log, data=XrefReport()),
            _ScriptedPass(OutputArea.XREF, log, data=XrefReport()),
        ]

        with pytest.raises(OutputAlreadyWrittenError):
            await Postprocessor(passes).run()


class TestPipelineOutputs:
    def test_write_once(self):
        outputs = PipelineOutputs()
        outputs.write(OutputArea.TOC, None)

        with pytest.raises(OutputAlreadyWrittenError, match="toc"):
            outputs.write("toc", None)

    def test_carry_forward_skips_written_areas(self):
        previous = PipelineOutputs()
        previous.write(OutputArea.XREF, XrefReport(local_hits=1))
        previous.write(OutputArea.METADATA, {"title": "old"})

        outputs = PipelineOutputs()
        outputs.write(OutputArea.METADATA, {"title": "new"})
        outputs.carry_forward(previous, [OutputArea.XREF, OutputArea.METADATA])

        assert outputs.xref.local_hits == 1
        assert outputs.metadata == {"title": "new"}
        # Carried areas may still be written by this run
        assert OutputArea.XREF not in outputs.written

    def test_to_dict_drops_empty_areas(self):
        outputs = PipelineOutputs()
        outputs.write(OutputArea.PUBRULES, "<p>rules</p>")
        assert outputs.to_dict() == {"pubrules": "<p>rules</p>"}


class TestPassRegistry:
    def test_pass_order_matches_areas(self):
        assert tuple(cls.area for cls in PASS_CLASSES) == PASS_AREAS

    def test_create_passes_filters(self):
        passes = create_passes(new_container(), [OutputArea.TOC])
        assert [p.area for p in passes] == [OutputArea.TOC]

    def test_describe(self):
        described = Postprocessor(create_passes(new_container())).describe()

        assert [d["name"] for d in described] == [cls.__name__ for cls in PASS_CLASSES]
        xref = described[1]
        assert xref["area"] == "xref"
        assert xref["uses_network"] is True
        assert described[0]["uses_network"] is False
