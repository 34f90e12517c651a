"""
Tests for the incremental scheduler: field comparison, changed areas and
stale-area selection.
"""

import dataclasses

from specpipe.pipelines.postprocess.scheduler import changed_output_areas, field_changed, stale_areas
from specpipe.pipelines.postprocess.state import (
    PASS_AREAS,
    DocumentConfig,
    OutputArea,
    PipelineSession,
)
from specpipe.utils.html_tree import create_element, new_container


def _make_tag(name="section", text=None):
    return create_element(new_container(), name, text)


def _make_config(**overrides):
    defaults = {
        "sections": [_make_tag(), _make_tag()],
        "header": _make_tag("header", "Title"),
    }
    defaults.update(overrides)
    return DocumentConfig(**defaults)


def _make_session(snapshot, completed=PASS_AREAS):
    return PipelineSession(snapshot=snapshot, completed=frozenset(completed))


class TestFieldChanged:
    """Lists compare by element identity, tags by identity, the rest by value."""

    def test_same_list(self):
        items = [_make_tag()]
        assert field_changed(items, items) is False

    def test_copied_list_with_same_elements(self):
        items = [_make_tag(), _make_tag()]
        assert field_changed(items, list(items)) is False

    def test_equal_but_distinct_elements(self):
        old = [_make_tag("p", "x")]
        new = [_make_tag("p", "x")]
        assert field_changed(old, new) is True

    def test_length_change(self):
        first = _make_tag()
        assert field_changed([first], [first, _make_tag()]) is True

    def test_tags_by_identity(self):
        tag = _make_tag()
        assert field_changed(tag, tag) is False
        assert field_changed(tag, _make_tag()) is True
        assert field_changed(None, tag) is True

    def test_values_by_equality(self):
        assert field_changed({"a": 1}, {"a": 1}) is False
        assert field_changed({"a": 1}, {"a": 2}) is True


class TestChangedOutputAreas:
    def test_first_run_changes_everything(self):
        assert changed_output_areas(None, _make_config()) == list(PASS_AREAS)

    def test_unchanged_snapshot(self):
        config = _make_config()
        assert changed_output_areas(config, dataclasses.replace(config)) == []

    def test_header_only_touches_boilerplate(self):
        config = _make_config()
        changed = dataclasses.replace(config, header=_make_tag("header", "New"))
        assert changed_output_areas(config, changed) == [OutputArea.BOILERPLATE]

    def test_status_fragments_touch_boilerplate(self):
        config = _make_config()
        for name in ("sotd", "pubrules", "legal"):
            changed = dataclasses.replace(config, **{name: _make_tag()})
            assert changed_output_areas(config, changed) == [OutputArea.BOILERPLATE]

    def test_sections_touch_every_pass(self):
        config = _make_config()
        changed = dataclasses.replace(config, sections=config.sections + [_make_tag()])
        assert changed_output_areas(config, changed) == list(PASS_AREAS)

    def test_unmapped_fields_are_ignored(self):
        config = _make_config()
        changed = dataclasses.replace(config, metadata={"title": "x"}, base_url="file:///x/")
        assert changed_output_areas(config, changed) == []


class TestStaleAreas:
    """stale = requested ∩ (changed ∪ (requested − completed))."""

    def test_no_session_runs_everything(self):
        assert stale_areas(None, _make_config()) == list(PASS_AREAS)

    def test_fresh_session_runs_nothing(self):
        config = _make_config()
        assert stale_areas(_make_session(config), config) == []

    def test_uncompleted_areas_run(self):
        config = _make_config()
        session = _make_session(config, completed=[OutputArea.IDL, OutputArea.XREF])

        assert stale_areas(session, config) == [
            OutputArea.REFERENCES,
            OutputArea.BOILERPLATE,
            OutputArea.TOC,
            OutputArea.DIAGNOSTICS,
            OutputArea.ASSERTIONS,
        ]

    def test_requested_subset(self):
        config = _make_config()
        assert stale_areas(None, config, [OutputArea.TOC, OutputArea.IDL]) == [
            OutputArea.IDL,
            OutputArea.TOC,
        ]

    def test_changed_area_outside_request_is_skipped(self):
        config = _make_config()
        changed = dataclasses.replace(config, header=_make_tag("header", "New"))

        assert stale_areas(_make_session(config), changed, [OutputArea.TOC]) == []
        assert stale_areas(_make_session(config), changed) == [OutputArea.BOILERPLATE]

    def test_accepts_string_areas(self):
        assert stale_areas(None, _make_config(), ["toc"]) == [OutputArea.TOC]
