"""
Content format strategies and the data-format element processor.
"""

import logging
from typing import Dict, Optional, Protocol

from bs4 import Tag

from ..core.exceptions import UnsupportedFormatError
from ..core.models import MarkdownOptions
from ..utils.html_tree import inner_html
from ..utils.stats import StatsTracker
from ..utils.text import strip_indent
from .markdown_service import parse_markdown

logger = logging.getLogger(__name__)


class FormatStrategy(Protocol):
    def convert(self, content: str) -> str:
        ...


class MarkdownStrategy:
    def __init__(self, options: Optional[MarkdownOptions] = None):
        self.options = options or MarkdownOptions()

    def convert(self, content: str) -> str:
        return parse_markdown(content, self.options)


class PassthroughStrategy:
    """Used for text and html content."""

    def convert(self, content: str) -> str:
        return content


class FormatRegistry:
    """Maps format names to strategies."""

    def __init__(
        self,
        markdown_options: Optional[MarkdownOptions] = None,
        custom_strategies: Optional[Dict[str, FormatStrategy]] = None,
    ):
        passthrough = PassthroughStrategy()
        self._strategies: Dict[str, FormatStrategy] = {
            "markdown": MarkdownStrategy(markdown_options),
            "text": passthrough,
            "html": passthrough,
        }
        for name, strategy in (custom_strategies or {}).items():
            self.register(name, strategy)

    def register(self, format_name: str, strategy: FormatStrategy) -> None:
        self._strategies[format_name] = strategy

    def strategy_for(self, format_name: str) -> FormatStrategy:
        """
        Look up the strategy registered for ``format_name``.

        Raises:
            UnsupportedFormatError: No strategy is registered for the format.
        """
        strategy = self._strategies.get(format_name)
        if strategy is None:
            raise UnsupportedFormatError(format_name)
        return strategy

    def convert(self, content: str, format_name: str) -> str:
        return self.strategy_for(format_name).convert(content)


class FormatProcessor:
    """Converts elements carrying a ``data-format`` attribute in place."""

    def __init__(self, registry: Optional[FormatRegistry] = None):
        self.registry = registry or FormatRegistry()

    def process_content(self, content: str, format_name: str) -> str:
        return self.registry.convert(content, format_name)

    def process(self, element: Tag, tracker: StatsTracker) -> Optional[str]:
        """
        Convert the element's own content according to its data-format.

        Returns the converted markup, or None when the element was empty.
        UnsupportedFormatError propagates to the caller.
        """
        format_name = element.get("data-format") or "text"
        del element["data-format"]
        self.registry.strategy_for(format_name)

        if format_name == "markdown":
            # Markdown source must keep its literal '>' and '&'
            raw = element.decode_contents(formatter=None)
        else:
            raw = inner_html(element)
        if not raw.strip():
            return None

        if format_name == "markdown":
            content = strip_indent(raw).strip()
            tracker.increment_markdown_blocks()
        else:
            content = raw
        return self.process_content(content, format_name)
