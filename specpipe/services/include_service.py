"""
File include handling.

Loaders are plain async callables ``(path) -> str`` so callers can inject
their own (tests, sandboxes, virtual file systems).
"""

import asyncio
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

import httpx
from bs4 import Tag
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import Config
from ..core.exceptions import IncludeError
from ..utils.stats import StatsTracker
from .format_service import FormatProcessor

logger = logging.getLogger(__name__)

FileLoader = Callable[[str], Awaitable[str]]


@dataclass
class IncludeResult:
    """Converted include content and the format it was converted from."""
    content: str
    format: str

    @property
    def is_markup(self) -> bool:
        return self.format != "text"


async def local_file_loader(path: str) -> str:
    """Read a local path or ``file://`` URL."""
    parsed = urlparse(path)
    fs_path = url2pathname(parsed.path) if parsed.scheme == "file" else path
    try:
        return await asyncio.to_thread(Path(fs_path).read_text, encoding="utf-8")
    except OSError as e:
        raise IncludeError(f"Failed to load file: {path}. {e}", path=path) from e


@retry(
    retry=retry_if_exception_type(httpx.TransportError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, min=2, max=8),
    reraise=True,
)
async def _fetch_text(url: str) -> str:
    async with httpx.AsyncClient(timeout=Config.HTTP_TIMEOUT, follow_redirects=True) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.text


async def http_file_loader(url: str) -> str:
    """Fetch an ``http(s)`` URL."""
    try:
        return await _fetch_text(url)
    except httpx.HTTPError as e:
        raise IncludeError(f"Failed to fetch file: {url}. {e}", path=url) from e


async def default_file_loader(path: str) -> str:
    """Dispatch on scheme: http(s) goes over the network, anything else is local."""
    if urlparse(path).scheme in ("http", "https"):
        return await http_file_loader(path)
    return await local_file_loader(path)


def create_fallback_file_loader(loaders: List[FileLoader]) -> FileLoader:
    """Try each loader in turn, raising the last error if all fail."""

    async def load(path: str) -> str:
        last_error: Optional[Exception] = None
        for loader in loaders:
            try:
                return await loader(path)
            except Exception as e:
                logger.debug(f"Loader {getattr(loader, '__name__', loader)} failed for {path}: {e}")
                last_error = e
        raise last_error or IncludeError(f"All file loaders failed for: {path}", path=path)

    return load


class IncludeProcessor:
    """Resolves ``data-include`` attributes into converted content."""

    def __init__(
        self,
        base_url: Optional[str],
        file_loader: FileLoader,
        format_processor: FormatProcessor,
    ):
        self.base_url = base_url
        self.file_loader = file_loader
        self.format_processor = format_processor

    def resolve_path(self, path: str) -> str:
        resolved = urljoin(self.base_url, path) if self.base_url else path
        logger.debug(f"Resolved file path: {resolved}")
        return resolved

    async def process(
        self,
        element: Tag,
        tracker: StatsTracker,
        warnings: List[str],
    ) -> Optional[IncludeResult]:
        """
        Load and convert the element's include target.

        Returns the converted content, or None when loading failed (a warning
        is appended). Unsupported formats raise UnsupportedFormatError.
        """
        include_path = element.get("data-include") or ""
        include_format = element.get("data-include-format") or "text"
        del element["data-include"]
        if element.has_attr("data-include-format"):
            del element["data-include-format"]

        if not include_path:
            warnings.append("data-include attribute is empty")
            return None

        self.format_processor.registry.strategy_for(include_format)

        full_path = self.resolve_path(include_path)
        try:
            content = await self.file_loader(full_path)
        except Exception as e:
            logger.warning(f"Include failed for {full_path}: {e}")
            warnings.append(f"Failed to load: {include_path}")
            return None

        tracker.increment_files()
        if include_format == "markdown":
            tracker.increment_markdown_blocks()
        converted = self.format_processor.process_content(content, include_format)
        return IncludeResult(content=converted, format=include_format)
