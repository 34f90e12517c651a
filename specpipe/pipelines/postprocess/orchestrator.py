"""
Document orchestration.

``DocumentBuilder`` assembles the working tree (resolving ``data-include``
and ``data-format``); ``SpecRenderer`` schedules the stale passes, runs them,
calls post-process hooks and hands back a new session token.
"""

import dataclasses
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from bs4 import Tag

from ...core.models import MarkdownOptions, PostprocessOptions, ProcessingStats
from ...core.observability import get_logfire
from ...services.format_service import FormatProcessor, FormatRegistry
from ...services.include_service import FileLoader, IncludeProcessor, default_file_loader
from ...utils.html_tree import HtmlTreeParser, SoupTreeParser, new_container, render_error, set_inner_html
from ...utils.stats import StatsTracker
from .passes import create_passes
from .runner import Postprocessor
from .scheduler import changed_output_areas, field_changed, stale_areas
from .state import (
    PASS_AREAS,
    DocumentConfig,
    OutputArea,
    PipelineContext,
    PipelineSession,
    RenderResult,
)

logger = logging.getLogger(__name__)

# Includes may pull in further includes; stop after this many rounds
MAX_EXPANSION_ROUNDS = 8


def _needs_processing(element: Tag) -> bool:
    return element.has_attr("data-include") or element.has_attr("data-format")


def _is_within(element: Tag, ancestor: Tag) -> bool:
    return element is ancestor or any(parent is ancestor for parent in element.parents)


class DocumentBuilder:
    """Assembles header, status section and body sections into one tree."""

    def __init__(
        self,
        include_processor: IncludeProcessor,
        format_processor: FormatProcessor,
    ):
        self.include_processor = include_processor
        self.format_processor = format_processor

    async def process_element(self, element: Tag, tracker: StatsTracker, warnings: List[str]) -> None:
        if element.has_attr("data-include"):
            include_path = element.get("data-include") or ""
            included = await self.include_processor.process(element, tracker, warnings)
            if included is None:
                if include_path:
                    render_error(element, f"Failed to load: {include_path}")
            elif included.is_markup:
                set_inner_html(element, included.content)
            else:
                element.string = included.content

        if element.has_attr("data-format"):
            converted = self.format_processor.process(element, tracker)
            if converted is not None:
                set_inner_html(element, converted)

        tracker.increment_elements()

    async def expand(self, element: Tag, tracker: StatsTracker, warnings: List[str]) -> None:
        """Process ``element`` and any nested include/format elements."""
        for _ in range(MAX_EXPANSION_ROUNDS):
            pending = [element] if _needs_processing(element) else []
            pending.extend(element.find_all(_needs_processing))
            if not pending:
                return
            for candidate in pending:
                # Content replaced earlier in this round is gone from the tree
                if _is_within(candidate, element):
                    await self.process_element(candidate, tracker, warnings)

        logger.warning(f"Stopped expanding <{element.name}> after {MAX_EXPANSION_ROUNDS} rounds")
        warnings.append(f"Include depth exceeded in <{element.name}>")

    async def build(self, config: DocumentConfig, tracker: StatsTracker, warnings: List[str]) -> Tag:
        tree = new_container()
        for part in (config.header, config.sotd, *config.sections):
            if part is None:
                continue
            tree.append(part)
            await self.expand(part, tracker, warnings)
        await self.expand_fragments(config, tracker, warnings)
        return tree

    async def refresh(
        self,
        tree: Tag,
        previous: DocumentConfig,
        config: DocumentConfig,
        tracker: StatsTracker,
        warnings: List[str],
    ) -> Tag:
        """Reuse a tree whose sections are unchanged, swapping header and status."""
        position = 0
        for slot in ("header", "sotd"):
            old = getattr(previous, slot)
            new = getattr(config, slot)
            if old is not new:
                if old is not None and old.parent is tree:
                    if new is None:
                        old.extract()
                    else:
                        old.replace_with(new)
                elif new is not None:
                    tree.insert(position, new)
                if new is not None:
                    await self.expand(new, tracker, warnings)
            if new is not None:
                position += 1
        await self.expand_fragments(config, tracker, warnings)
        return tree

    async def expand_fragments(self, config: DocumentConfig, tracker: StatsTracker, warnings: List[str]) -> None:
        for fragment in (config.pubrules, config.legal):
            if fragment is not None:
                await self.expand(fragment, tracker, warnings)


@dataclass
class HtmlRenderResult:
    html: str
    warnings: List[str]
    stats: ProcessingStats
    result: RenderResult


class SpecRenderer:
    """
    Renders spec documents through the postprocessing pipeline.

    No state from one run is kept on the instance; pass the ``session`` of a
    previous RenderResult to skip passes whose inputs did not change.
    """

    def __init__(
        self,
        options: Optional[PostprocessOptions] = None,
        base_url: Optional[str] = None,
        file_loader: Optional[FileLoader] = None,
        markdown_options: Optional[MarkdownOptions] = None,
        format_registry: Optional[FormatRegistry] = None,
        parser: Optional[HtmlTreeParser] = None,
    ):
        self.options = options or PostprocessOptions()
        self.base_url = base_url
        self.parser = parser or SoupTreeParser()
        self.format_processor = FormatProcessor(format_registry or FormatRegistry(markdown_options))
        self.include_processor = IncludeProcessor(
            base_url,
            file_loader or default_file_loader,
            self.format_processor,
        )
        self.builder = DocumentBuilder(self.include_processor, self.format_processor)
        self._lf = get_logfire()

    def describe_passes(self) -> List[dict]:
        return Postprocessor(create_passes(new_container())).describe()

    async def render_document(
        self,
        config: DocumentConfig,
        areas: Optional[Iterable[OutputArea]] = None,
        session: Optional[PipelineSession] = None,
    ) -> RenderResult:
        """
        Assemble the document and run the passes that are stale.

        Raises:
            UnsupportedFormatError: An element asked for an unknown format.
        """
        tracker = StatsTracker()
        tracker.start()
        warnings: List[str] = []

        if config.base_url is None and self.base_url:
            config = dataclasses.replace(config, base_url=self.base_url)

        requested = [OutputArea(a) for a in (areas if areas is not None else PASS_AREAS)]
        previous = session.snapshot if session else None

        if (
            session is not None
            and session.tree is not None
            and previous is not None
            and not field_changed(previous.sections, config.sections)
        ):
            tree = await self.builder.refresh(session.tree, previous, config, tracker, warnings)
        else:
            tree = await self.builder.build(config, tracker, warnings)

        stale = stale_areas(session, config, requested)
        changed = set(changed_output_areas(previous, config))

        ctx = PipelineContext(options=self.options, config=config)
        kept = frozenset()
        if session is not None:
            kept = session.completed - changed - set(stale)
            ctx.outputs.carry_forward(session.outputs, kept)
        ctx.outputs.write(OutputArea.METADATA, config.metadata)
        ctx.outputs.write(OutputArea.PUBRULES, str(config.pubrules) if config.pubrules is not None else None)
        ctx.outputs.write(OutputArea.LEGAL, str(config.legal) if config.legal is not None else None)

        with self._lf.span("render document", stale=[a.value for a in stale]):
            try:
                await Postprocessor(create_passes(tree, stale)).run(stale, ctx=ctx)
            except Exception as e:
                logger.error(f"Postprocess failed: {e}")
                ctx.warnings.append(f"Postprocess failed: {e}")
        warnings.extend(ctx.warnings)

        for hook in config.post_process:
            try:
                outcome = hook(tree, ctx.outputs)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"Post-process hook failed: {e}")
                warnings.append(f"Post-process hook failed: {e}")

        tracker.stop()
        outputs = ctx.outputs
        new_session = PipelineSession(
            snapshot=dataclasses.replace(config, sections=list(config.sections)),
            completed=frozenset(kept | set(ctx.completed)),
            outputs=outputs,
            tree=tree,
        )

        logger.info(
            f"Rendered document: ran {[a.value for a in ctx.completed]}, "
            f"{len(warnings)} warnings"
        )
        return RenderResult(
            sections=[
                child for child in tree.children
                if isinstance(child, Tag) and child is not config.header and child is not config.sotd
            ],
            warnings=warnings,
            stats=tracker.snapshot(),
            outputs=outputs,
            session=new_session,
            header=config.header,
            sotd=config.sotd,
            pubrules=config.pubrules,
            legal=config.legal,
            metadata=config.metadata,
            toc=outputs.toc.html if outputs.toc else None,
            boilerplate=outputs.boilerplate,
            references=outputs.references,
            assertions=outputs.assertions.items if outputs.assertions else None,
        )

    async def render_html(
        self,
        markup: str,
        session: Optional[PipelineSession] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> HtmlRenderResult:
        """Render a markup fragment whose top-level elements are the sections."""
        container = self.parser.parse(markup)
        sections = [child for child in container.children if isinstance(child, Tag)]
        result = await self.render_document(
            DocumentConfig(sections=sections, metadata=metadata),
            session=session,
        )
        return HtmlRenderResult(
            html=self.parser.serialize(result.session.tree),
            warnings=result.warnings,
            stats=result.stats,
            result=result,
        )
