"""
Tests for WebIDL parsing and target collection.
"""

import pytest

from specpipe.core.exceptions import IdlParseError, SpecPipeError
from specpipe.services.idl_parser import collect_targets, parse_idl


SMOOTH_SCROLLER = """
[Exposed=Window]
interface SmoothScroller : EventTarget {
  constructor(optional ScrollOptions options = {});
  readonly attribute unsigned long long position;
  attribute DOMString? label;
  const unsigned short MAX_SPEED = 10;
  Promise<undefined> scrollTo(double x, double y);
  undefined stop();
  static SmoothScroller create(ScrollOptions... options);
  getter any (DOMString name);
  iterable<DOMString>;
  stringifier;
};
"""

DEFINITIONS = """
dictionary ScrollOptions {
  required double speed;
  ScrollBehavior behavior = "smooth";
  sequence<DOMString> tags = [];
};
enum ScrollBehavior { "auto", "smooth", };
typedef (double or DOMString) Distance;
callback ScrollCallback = undefined (double position);
interface mixin Scrollable { attribute boolean scrolling; };
SmoothScroller includes Scrollable;
partial interface SmoothScroller { undefined reset(); };
namespace ScrollUtils { double clamp(double value); };
callback interface ScrollListener { undefined handleEvent(); };
"""


class TestParse:
    """Every supported top-level form parses into a named construct."""

    def test_definition_kinds(self):
        constructs = parse_idl(DEFINITIONS)
        assert [(c.idl_type, c.name) for c in constructs] == [
            ("dictionary", "ScrollOptions"),
            ("enum", "ScrollBehavior"),
            ("typedef", "Distance"),
            ("callback", "ScrollCallback"),
            ("interface", "Scrollable"),
            ("includes", "SmoothScroller"),
            ("interface", "SmoothScroller"),
            ("namespace", "ScrollUtils"),
            ("callback", "ScrollListener"),
        ]

    def test_member_names(self):
        iface = parse_idl(SMOOTH_SCROLLER)[0]
        named = [m.name for m in iface if m.idl_type in ("attribute", "method", "const")]

        assert "position" in named
        assert "MAX_SPEED" in named
        assert "scrollTo" in named

    def test_escaped_identifiers_drop_underscore(self):
        iface = parse_idl("interface Foo { attribute DOMString _default; };")[0]
        assert [m.name for m in iface] == ["default"]

    def test_empty_source(self):
        assert parse_idl("") == []


class TestParseErrors:
    """Syntax errors raise IdlParseError carrying the parser's message."""

    def test_missing_interface_name(self):
        with pytest.raises(IdlParseError) as exc_info:
            parse_idl("interface {")
        assert "SYNTAX ERROR" in str(exc_info.value)

    def test_bad_member(self):
        with pytest.raises(IdlParseError) as exc_info:
            parse_idl("interface A {\n  attribute long;\n};")
        assert "attribute long" in str(exc_info.value)

    def test_enum_needs_strings(self):
        with pytest.raises(IdlParseError):
            parse_idl("enum E { 1 };")

    def test_error_is_specpipe_error(self):
        with pytest.raises(SpecPipeError):
            parse_idl("interface Foo {")


class TestCollectTargets:
    """Named definitions and named members become anchor targets."""

    def test_interface_targets(self):
        targets = collect_targets(parse_idl(SMOOTH_SCROLLER))

        assert [t.id for t in targets] == [
            "idl-smoothscroller",
            "idl-smoothscroller-position",
            "idl-smoothscroller-label",
            "idl-smoothscroller-max-speed",
            "idl-smoothscroller-scrollto",
            "idl-smoothscroller-stop",
            "idl-smoothscroller-create",
        ]

    def test_keys_are_lowercase(self):
        targets = collect_targets(parse_idl(SMOOTH_SCROLLER))
        by_text = {t.text: t.key for t in targets}

        assert by_text["SmoothScroller"] == "smoothscroller"
        assert by_text["SmoothScroller.scrollTo"] == "smoothscroller.scrollto"

    def test_escaped_member_key(self):
        targets = collect_targets(parse_idl("interface Foo { attribute DOMString _default; };"))
        assert [t.key for t in targets] == ["foo", "foo.default"]
        assert targets[1].id == "idl-foo-default"

    def test_includes_statements_have_no_target(self):
        targets = collect_targets(parse_idl("A includes B;"))
        assert targets == []

    def test_definition_targets(self):
        targets = collect_targets(parse_idl(DEFINITIONS))
        ids = [t.id for t in targets]

        assert "idl-scrollbehavior" in ids
        assert "idl-distance" in ids
        assert "idl-scrolloptions-speed" in ids
        assert "idl-scrollable-scrolling" in ids
        assert "idl-scrollutils-clamp" in ids
        assert "idl-scrolllistener-handleevent" in ids
