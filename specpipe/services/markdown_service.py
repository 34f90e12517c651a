"""
Markdown conversion with spec shorthand syntaxes.

CommonMark (via markdown-it-py) with GFM tables, strikethrough, task lists
and bare-URL links, plus three inline rules:
- ``[= term =]``           -> ``<a data-xref="term">term</a>``
- ``{{ Name }}``           -> ``<a data-idl="Name">Name</a>``
- ``[[SPEC]]`` / ``[[!SPEC]]`` -> ``<a data-spec="SPEC" data-normative="...">[SPEC]</a>``

Citations are also recorded in ``env["citations"]`` so callers can see them
before a tree exists.
"""

import html
import json
import logging
from typing import Any, Dict, Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.rules_inline import StateInline
from mdit_py_plugins.tasklists import tasklists_plugin

from ..core.models import MarkdownOptions
from ..utils.text import heading_slug

logger = logging.getLogger(__name__)


def _delimited_rule(opener: str, closer: str):
    """Build an inline rule matching ``opener ... closer``; returns (content, end) or None."""

    def scan(state: StateInline):
        pos = state.pos
        if not state.src.startswith(opener, pos):
            return None
        end = state.src.find(closer, pos + len(opener))
        if end < 0:
            return None
        return state.src[pos + len(opener):end].strip(), end + len(closer)

    return scan


_scan_concept = _delimited_rule("[=", "=]")
_scan_idl = _delimited_rule("{{", "}}")
_scan_cite = _delimited_rule("[[", "]]")


def _push_anchor(state: StateInline, label: str, **attrs: str) -> None:
    open_token = state.push("link_open", "a", 1)
    for name, value in attrs.items():
        open_token.attrSet(name, value)
    text = state.push("text", "", 0)
    text.content = label
    state.push("link_close", "a", -1)


def concept_rule(state: StateInline, silent: bool) -> bool:
    match = _scan_concept(state)
    if match is None:
        return False
    content, end = match
    if not silent:
        _push_anchor(state, content, **{"data-xref": content})
    state.pos = end
    return True


def idl_rule(state: StateInline, silent: bool) -> bool:
    match = _scan_idl(state)
    if match is None:
        return False
    content, end = match
    if not silent:
        _push_anchor(state, content, **{"data-idl": content})
    state.pos = end
    return True


def cite_rule(state: StateInline, silent: bool) -> bool:
    match = _scan_cite(state)
    if match is None:
        return False
    raw, end = match
    if not silent:
        normative = raw.startswith("!")
        spec_id = raw[1:].strip() if normative else raw
        state.env.setdefault("citations", []).append(
            {"id": spec_id, "normative": normative}
        )
        _push_anchor(
            state,
            f"[{spec_id}]",
            **{"data-spec": spec_id, "data-normative": "true" if normative else "false"},
        )
    state.pos = end
    return True


def spec_shorthand_plugin(md: MarkdownIt) -> None:
    """Install the concept, IDL and citation inline rules."""
    md.inline.ruler.before("link", "spec_concept", concept_rule)
    md.inline.ruler.before("link", "spec_cite", cite_rule)
    md.inline.ruler.before("emphasis", "spec_idl", idl_rule)


def mermaid_plugin(md: MarkdownIt, config: Optional[Dict[str, Any]] = None) -> None:
    """
    Render ``mermaid`` fences as ``<div class="mermaid">`` for mermaid.js.

    The diagram source stays escaped text; a non-empty ``config`` is attached
    as JSON in ``data-config``. Other fences go to the previous fence rule.
    """
    default_fence = md.renderer.rules["fence"]
    config_attr = f' data-config="{escapeHtml(json.dumps(config))}"' if config else ""

    def render_mermaid(self, tokens, idx, opts, env):
        token = tokens[idx]
        if (token.info or "").strip() != "mermaid":
            return default_fence(tokens, idx, opts, env)
        return f'<div class="mermaid"{config_attr}>{escapeHtml(token.content)}</div>\n'

    md.add_render_rule("fence", render_mermaid)


def _use_extension(md: MarkdownIt, extension: Any) -> None:
    if isinstance(extension, (tuple, list)):
        plugin, plugin_options = extension
        if isinstance(plugin_options, dict):
            md.use(plugin, **plugin_options)
        else:
            md.use(plugin, plugin_options)
    else:
        md.use(extension)


def create_markdown_renderer(options: Optional[MarkdownOptions] = None) -> MarkdownIt:
    options = options or MarkdownOptions()
    md = MarkdownIt(
        "commonmark",
        {
            "html": False,
            "linkify": options.gfm,
            "breaks": options.breaks,
            "typographer": options.smartypants,
        },
    )
    if options.gfm:
        md.enable(["table", "strikethrough", "linkify"])
        md.use(tasklists_plugin)
    if options.smartypants:
        md.enable(["replacements", "smartquotes"])

    header_ids = options.header_ids

    def render_heading_open(self, tokens, idx, opts, env):
        open_token = tokens[idx]
        # h1 is reserved for the document title
        if open_token.tag == "h1":
            open_token.tag = "h2"
            close_index = idx + 2
            if close_index < len(tokens) and tokens[close_index].type == "heading_close":
                tokens[close_index].tag = "h2"
        inline = tokens[idx + 1] if idx + 1 < len(tokens) else None
        if header_ids and inline is not None and inline.type == "inline":
            open_token.attrSet("id", heading_slug(inline.content))
        return self.renderToken(tokens, idx, opts, env)

    def render_fence(self, tokens, idx, opts, env):
        token = tokens[idx]
        info = (token.info or "").strip()
        lang = info.split()[0] if info else ""
        class_attr = f' class="{escapeHtml(lang)}"' if lang else ""
        return f"<pre{class_attr}><code>{escapeHtml(token.content)}</code></pre>\n"

    md.add_render_rule("heading_open", render_heading_open)
    md.add_render_rule("fence", render_fence)
    md.use(spec_shorthand_plugin)

    if options.mermaid:
        md.use(mermaid_plugin, options.mermaid if isinstance(options.mermaid, dict) else None)

    for extension in options.extensions:
        _use_extension(md, extension)
    return md


def parse_markdown(
    markdown: str,
    options: Optional[MarkdownOptions] = None,
    env: Optional[Dict[str, Any]] = None,
) -> str:
    """Render markdown to HTML; failures render an inline error paragraph."""
    try:
        md = create_markdown_renderer(options)
        return md.render(markdown, env if env is not None else {})
    except Exception as e:
        logger.error(f"Markdown parsing error: {e}")
        return f'<p class="error">Error parsing markdown: {html.escape(str(e))}</p>'
