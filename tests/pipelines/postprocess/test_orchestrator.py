"""
Tests for SpecRenderer document assembly, passthrough areas and hooks.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bs4 import Tag

from specpipe.pipelines.postprocess import DocumentConfig, OutputArea, SpecRenderer
from specpipe.utils.html_tree import SoupTreeParser, create_element, new_container


def _make_sections(markup='<section id="a"><h2>Alpha</h2></section><section id="b"><h2>Beta</h2></section>'):
    container = SoupTreeParser().parse(markup)
    return [child for child in container.children if isinstance(child, Tag)]


def _make_tag(name, text=None, **attrs):
    return create_element(new_container(), name, text, **attrs)


class TestAssembly:
    """Header and status section lead the tree; only body sections come back."""

    @pytest.mark.asyncio
    async def test_sections_exclude_header_and_sotd(self):
        sections = _make_sections()
        header = _make_tag("header", "Smooth Scrolling")
        sotd = _make_tag("section", "Draft.", id="sotd")

        result = await SpecRenderer().render_document(
            DocumentConfig(sections=sections, header=header, sotd=sotd)
        )

        tree = result.session.tree
        assert tree.contents[0] is header
        assert tree.contents[1] is sotd
        assert len(result.sections) == 2
        assert all(a is b for a, b in zip(result.sections, sections))
        assert result.header is header
        assert result.sotd is sotd

    @pytest.mark.asyncio
    async def test_passthrough_areas(self):
        pubrules = _make_tag("div", "Rules")
        legal = _make_tag("p", "Copyright")
        metadata = {"title": "Smooth Scrolling", "editors": ["A. Editor"]}

        result = await SpecRenderer().render_document(DocumentConfig(
            sections=_make_sections(),
            pubrules=pubrules,
            legal=legal,
            metadata=metadata,
        ))

        assert result.outputs.metadata == metadata
        assert result.outputs.pubrules == "<div>Rules</div>"
        assert result.outputs.legal == "<p>Copyright</p>"
        assert result.pubrules is pubrules
        assert result.metadata == metadata

    @pytest.mark.asyncio
    async def test_requested_areas_only(self):
        result = await SpecRenderer().render_document(
            DocumentConfig(sections=_make_sections()),
            areas=[OutputArea.TOC],
        )

        assert result.session.completed == frozenset({OutputArea.TOC})
        assert result.outputs.idl is None
        assert [item.id for item in result.outputs.toc.items] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_render_html(self):
        rendered = await SpecRenderer().render_html(
            '<section id="s"><h2>Scope</h2><div data-format="markdown">Some *text*.</div></section>'
        )

        assert "<em>text</em>" in rendered.html
        assert rendered.html.startswith('<section id="s">')
        assert rendered.result.session.tree is not None


class TestHooks:
    """Hooks see the final tree and outputs; a failing hook only warns."""

    @pytest.mark.asyncio
    async def test_sync_hook(self):
        hook = MagicMock(return_value=None)

        result = await SpecRenderer().render_document(
            DocumentConfig(sections=_make_sections(), post_process=[hook])
        )

        hook.assert_called_once()
        tree, outputs = hook.call_args.args
        assert tree is result.session.tree
        assert outputs is result.outputs
        assert outputs.toc is not None

    @pytest.mark.asyncio
    async def test_async_hook_is_awaited(self):
        hook = AsyncMock(return_value=None)

        await SpecRenderer().render_document(
            DocumentConfig(sections=_make_sections(), post_process=[hook])
        )

        hook.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failing_hook_warns(self):
        failing = MagicMock(side_effect=ValueError("boom"))
        after = MagicMock(return_value=None)

        result = await SpecRenderer().render_document(
            DocumentConfig(sections=_make_sections(), post_process=[failing, after])
        )

        assert "Post-process hook failed: boom" in result.warnings
        after.assert_called_once()

    @pytest.mark.asyncio
    async def test_hook_edits_are_kept(self):
        def stamp(tree, outputs):
            tree.append(create_element(tree, "footer", "stamped"))

        result = await SpecRenderer().render_document(
            DocumentConfig(sections=_make_sections(), post_process=[stamp])
        )

        assert result.session.tree.find("footer").get_text() == "stamped"
