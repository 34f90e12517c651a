"""
Tests for concept cross-reference resolution: local tier, cite scopes,
external resolvers and disambiguation.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from specpipe.core.models import DiagnosticsOptions, PostprocessOptions, XrefOptions, XrefResult
from specpipe.pipelines.postprocess.passes import XrefPass
from specpipe.pipelines.postprocess.passes.xref import collect_xref_anchors, parse_cite_scope
from specpipe.pipelines.postprocess.state import PipelineContext
from specpipe.services.xref import StaticXrefResolver, choose_result
from specpipe.utils.html_tree import SoupTreeParser


DOM_EVENT = XrefResult(href="https://dom.spec.whatwg.org/#concept-event", cite="dom")
HTML_EVENT = XrefResult(href="https://html.spec.whatwg.org/#event", cite="html")


def _make_root(markup):
    return SoupTreeParser().parse(markup)


def _make_ctx(resolvers=None, **options):
    return PipelineContext(options=PostprocessOptions(xref=resolvers or [], **options))


async def _run(root, ctx):
    proceed = await XrefPass(root).run(ctx)
    assert proceed is True
    return ctx.outputs.xref


# ============================================================================
# Local tier
# ============================================================================

class TestLocalTier:
    """Definitions first, then headings; first occurrence wins."""

    @pytest.mark.asyncio
    async def test_dfn_gets_slug_id(self):
        root = _make_root(
            '<p>The <dfn>event loop</dfn> runs.</p>'
            '<p><a data-xref="Event  Loop">loop</a></p>'
        )
        ctx = _make_ctx()

        report = await _run(root, ctx)

        assert root.find("dfn")["id"] == "event-loop"
        assert root.find("a")["href"] == "#event-loop"
        assert report.local_hits == 1
        assert ctx.warnings == []

    @pytest.mark.asyncio
    async def test_dfn_id_avoids_existing_ids(self):
        root = _make_root(
            '<h2 id="foo">Introduction</h2>'
            '<p><dfn>Foo</dfn></p>'
            '<a data-xref="foo">f</a>'
        )
        await _run(root, _make_ctx())

        assert root.find("dfn")["id"] == "foo-2"
        assert root.find("a")["href"] == "#foo-2"
        assert root.find("h2")["id"] == "foo"

    @pytest.mark.asyncio
    async def test_punctuation_only_dfn_gets_fallback_id(self):
        root = _make_root('<p><dfn>!!</dfn></p><a data-xref="!!">bang</a>')
        await _run(root, _make_ctx())

        assert root.find("dfn")["id"] == "dfn"
        assert root.find("a")["href"] == "#dfn"

    @pytest.mark.asyncio
    async def test_dfn_variants(self):
        root = _make_root(
            '<dfn id="task" data-lt="task|tasks, queued task">task</dfn>'
            '<a data-xref="tasks">t</a><a data-xref="queued task">q</a>'
        )
        await _run(root, _make_ctx())

        assert [a["href"] for a in root.find_all("a")] == ["#task", "#task"]

    @pytest.mark.asyncio
    async def test_heading_links_to_section(self):
        root = _make_root(
            '<section id="parsing"><h2>Parsing</h2></section>'
            '<a data-xref="parsing">p</a>'
        )
        await _run(root, _make_ctx())

        assert root.find("a")["href"] == "#parsing"

    @pytest.mark.asyncio
    async def test_dfn_wins_over_heading(self):
        root = _make_root(
            '<h2 id="origin-heading">Origin</h2>'
            '<p><dfn id="origin-dfn">origin</dfn></p>'
            '<a data-xref="origin">o</a>'
        )
        await _run(root, _make_ctx())

        assert root.find("a")["href"] == "#origin-dfn"

    @pytest.mark.asyncio
    async def test_suppressed_anchors_are_skipped(self):
        resolver = StaticXrefResolver({})
        root = _make_root('<div class="no-link-warnings"><a data-xref="nothing">x</a></div>')
        ctx = _make_ctx([XrefOptions(resolver=resolver)])

        await _run(root, ctx)

        assert root.find("a").get("href") is None
        assert ctx.warnings == []
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_custom_suppress_class(self):
        root = _make_root('<div class="quiet"><a data-xref="nothing">x</a></div>')
        ctx = _make_ctx(diagnostics=DiagnosticsOptions(suppress_class="quiet"))

        await _run(root, ctx)

        assert ctx.warnings == []


# ============================================================================
# External tier
# ============================================================================

class TestExternalTier:
    """Unresolved terms are batched per resolver and disambiguated."""

    @pytest.mark.asyncio
    async def test_priority_order_picks_first_spec(self):
        resolver = StaticXrefResolver({"event": [DOM_EVENT, HTML_EVENT]})
        root = _make_root('<a data-xref="event">event</a>')
        ctx = _make_ctx([XrefOptions(specs=["html", "dom"], resolver=resolver)])

        report = await _run(root, ctx)

        anchor = root.find("a")
        assert anchor["href"] == HTML_EVENT.href
        assert anchor["data-cite"] == "html"
        assert report.external_hits == 1
        assert ctx.warnings == []

    @pytest.mark.asyncio
    async def test_cite_scope_restricts_query(self):
        resolver = StaticXrefResolver({"event": [DOM_EVENT, HTML_EVENT]})
        root = _make_root('<section data-cite="dom"><p><a data-xref="event">event</a></p></section>')
        ctx = _make_ctx([XrefOptions(specs=["html", "dom"], resolver=resolver)])

        await _run(root, ctx)

        assert root.find("a")["href"] == DOM_EVENT.href
        assert resolver.calls[0][0].specs == ["dom"]

    @pytest.mark.asyncio
    async def test_disjoint_scope_skips_resolver(self):
        resolver = StaticXrefResolver({"event": [DOM_EVENT]})
        root = _make_root('<section data-cite="css"><a data-xref="event">event</a></section>')
        ctx = _make_ctx([XrefOptions(specs=["dom"], resolver=resolver)])

        report = await _run(root, ctx)

        assert resolver.calls == []
        assert ctx.warnings == ['No matching xref: "event"']
        assert report.unresolved == ["event"]

    @pytest.mark.asyncio
    async def test_anchors_in_one_bucket_share_a_query(self):
        resolver = StaticXrefResolver({"event": [DOM_EVENT]})
        root = _make_root('<a data-xref="event">a</a><a data-xref="Event">b</a>')
        ctx = _make_ctx([XrefOptions(specs=["dom"], resolver=resolver)])

        report = await _run(root, ctx)

        assert len(resolver.calls) == 1
        assert len(resolver.calls[0]) == 1
        assert [a["href"] for a in root.find_all("a")] == [DOM_EVENT.href, DOM_EVENT.href]
        assert report.external_hits == 2

    @pytest.mark.asyncio
    async def test_ambiguous_without_preference(self):
        resolver = StaticXrefResolver({"event": [DOM_EVENT, HTML_EVENT]})
        root = _make_root('<a data-xref="event">event</a>')
        ctx = _make_ctx([XrefOptions(resolver=resolver)])

        report = await _run(root, ctx)

        assert root.find("a").get("href") is None
        assert ctx.warnings == ['Ambiguous xref: "event"']
        assert report.ambiguous == ["event"]

    @pytest.mark.asyncio
    async def test_ambiguous_within_preferred_spec(self):
        other = XrefResult(href="https://dom.spec.whatwg.org/#event-other", cite="dom")
        resolver = StaticXrefResolver({"event": [DOM_EVENT, other]})
        root = _make_root('<section data-cite="dom"><a data-xref="event">event</a></section>')
        ctx = _make_ctx([XrefOptions(resolver=resolver)])

        await _run(root, ctx)

        assert root.find("a").get("href") is None
        assert ctx.warnings == ['Ambiguous xref: "event"']

    @pytest.mark.asyncio
    async def test_failing_resolver_does_not_stop_others(self):
        failing = MagicMock()
        failing.resolve_batch = AsyncMock(side_effect=RuntimeError("service down"))
        working = StaticXrefResolver({"event": [DOM_EVENT]})
        root = _make_root('<a data-xref="event">event</a>')
        ctx = _make_ctx([
            XrefOptions(specs=["dom"], resolver=failing),
            XrefOptions(specs=["dom"], resolver=working),
        ])

        await _run(root, ctx)

        assert ctx.warnings == ["Xref resolver failed: service down"]
        assert root.find("a")["href"] == DOM_EVENT.href

    @pytest.mark.asyncio
    async def test_no_resolvers(self):
        root = _make_root('<a data-xref="unknown">u</a>')
        ctx = _make_ctx()

        await _run(root, ctx)

        assert ctx.warnings == ['No matching xref: "unknown"']


# ============================================================================
# Helpers
# ============================================================================

class TestScopeCollection:
    """One traversal in document order; the nearest data-cite wins."""

    def test_nested_scopes(self):
        root = _make_root(
            '<section data-cite="html dom">'
            '<a data-xref="one">1</a>'
            '<div data-cite="css,fetch"><a data-xref="two">2</a></div>'
            '<a data-xref="three">3</a>'
            '</section>'
            '<a data-xref="four">4</a>'
        )

        found = collect_xref_anchors(root, "no-link-warnings")

        assert [(a["data-xref"], scope) for a, scope in found] == [
            ("one", ["html", "dom"]),
            ("two", ["css", "fetch"]),
            ("three", ["html", "dom"]),
            ("four", None),
        ]

    def test_scope_inherited_from_above_root(self):
        root = _make_root('<section data-cite="dom"><div><a data-xref="x">x</a></div></section>')
        inner = root.find("div")

        found = collect_xref_anchors(inner, "no-link-warnings")

        assert found[0][1] == ["dom"]

    def test_parse_cite_scope(self):
        assert parse_cite_scope(" html,  dom  css ") == ["html", "dom", "css"]


class TestChooseResult:
    def test_single_hit_without_preference(self):
        assert choose_result([DOM_EVENT], []) == (DOM_EVENT, False)

    def test_no_hits(self):
        assert choose_result([], ["dom"]) == (None, False)

    def test_single_leftover_resolves(self):
        assert choose_result([DOM_EVENT], ["html"]) == (DOM_EVENT, False)

    def test_several_leftovers_are_ambiguous(self):
        css = XrefResult(href="https://drafts.csswg.org/#event", cite="css")
        assert choose_result([DOM_EVENT, css], ["html"]) == (None, True)
