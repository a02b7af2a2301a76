"""Context gatherer: concurrent multi-source aggregation under a token budget."""

import asyncio
import dataclasses
import inspect
import logging
import math
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config.settings import GathererConfig, get_default_config
from ..core.budget_manager import BudgetManager
from ..core.context_assembler import ContextAssembler
from ..core.models import ContentChunk, ContextBundle, GatherOptions
from ..core.tokenizer_service import TokenizerService
from ..exceptions import SourceGatherError, SourceTimeoutError
from ..sources.base import ContextSource
from ..utils.context_formatter import format_for_model
from ..utils.log_utils import log_context_gathering

logger = logging.getLogger(__name__)


async def _resolve(value: Any) -> Any:
    # Sources may implement the contract with plain or async methods
    if inspect.isawaitable(value):
        return await value
    return value


def _check_chunks(source_name: str, chunks: Any) -> List[ContentChunk]:
    """Reject provider output that would break ranking or formatting."""
    checked = []
    for chunk in chunks or []:
        if not isinstance(chunk, ContentChunk):
            raise SourceGatherError(source_name, f"returned {type(chunk).__name__} instead of ContentChunk")
        if not isinstance(chunk.source, str) or not isinstance(chunk.content, str):
            raise SourceGatherError(source_name, "returned a chunk with non-string source or content")
        relevance = chunk.relevance
        if isinstance(relevance, bool) or not isinstance(relevance, (int, float)) or math.isnan(relevance):
            raise SourceGatherError(source_name, f"returned a chunk with invalid relevance {relevance!r}")
        checked.append(chunk)
    return checked


class ContextGatherer:
    """Gathers context from registered sources and fits it into a budget.

    Sources are registered once at setup. Each gather call activates a subset
    of them, queries the active ones concurrently, merges their chunks, ranks
    them by relevance and keeps as many as fit in the token budget. A failing
    source only loses its own contribution.
    """

    def __init__(self,
                 config: Optional[GathererConfig] = None,
                 tokenizer_service: Optional[TokenizerService] = None):
        """
        Initialize context gatherer.

        Args:
            config: Gatherer configuration (defaults to get_default_config())
            tokenizer_service: Token estimator; built from config when omitted
        """
        self.config = config or get_default_config()
        self.tokenizer = tokenizer_service or TokenizerService(
            backend=self.config.tokenizer.backend,
            encoding_name=self.config.tokenizer.encoding_name
        )
        self.budget_manager = BudgetManager(self.tokenizer)
        self.assembler = ContextAssembler()
        self._sources: Dict[str, ContextSource] = {}

    @property
    def sources(self) -> Dict[str, ContextSource]:
        """Registered sources in registration order."""
        return dict(self._sources)

    def get_source(self, name: str) -> Optional[ContextSource]:
        return self._sources.get(name)

    def register_source(self, source: ContextSource):
        """Register a source under its name, replacing any previous one."""
        self._sources[source.name] = source
        logger.info("Context source registered: %s", source.name, extra={"source": source.name})

    async def gather_context(self,
                             query: str,
                             options: Optional[GatherOptions] = None) -> ContextBundle:
        """
        Gather, rank and select context for a query.

        Args:
            query: Free-text query passed to every active source
            options: Per-call options (budget, preferred sources, file content)

        Returns:
            ContextBundle with the selected chunks bucketed by source
        """
        options = options or GatherOptions()
        if options.include_file_content is None:
            options = dataclasses.replace(
                options, include_file_content=self.config.context.include_file_content
            )
        budget = (options.max_tokens if options.max_tokens is not None
                  else self.config.context.max_context_tokens)
        start_time = time.monotonic()

        logger.debug("Starting context gathering",
                     extra={"query": query, "max_tokens": budget})

        active_sources = await self._get_active_sources(options.preferred_sources)

        results = await asyncio.gather(
            *(self._gather_from_source(source, query, options) for source in active_sources)
        )

        chunks: List[ContentChunk] = []
        for _, source_chunks in results:
            chunks.extend(source_chunks)

        selection = self.budget_manager.select(chunks, budget)

        duration_ms = (time.monotonic() - start_time) * 1000
        log_context_gathering(logger, selection.sources_used, selection.total_tokens, duration_ms)

        return self.assembler.assemble(query, selection.selected, selection.total_tokens)

    async def _get_active_sources(self,
                                  preferred: Optional[Sequence[str]] = None) -> List[ContextSource]:
        """Pick the sources to query for this call."""
        sources = []

        if preferred:
            # Preferred sources bypass the enable flags
            for name in dict.fromkeys(preferred):
                source = self._sources.get(name)
                if source is not None and await self._check_available(source):
                    sources.append(source)
        else:
            for name, source in self._sources.items():
                if not self.config.is_source_enabled(name):
                    logger.debug("Source disabled by configuration: %s", name,
                                 extra={"source": name})
                    continue
                if await self._check_available(source):
                    sources.append(source)

        return sources

    async def _check_available(self, source: ContextSource) -> bool:
        try:
            available = bool(await _resolve(source.is_available()))
        except Exception as e:
            logger.warning("Availability check failed for source %s: %s", source.name, e,
                           extra={"source": source.name})
            return False

        if not available:
            logger.debug("Source unavailable, skipping: %s", source.name,
                         extra={"source": source.name})
        return available

    async def _gather_from_source(self,
                                  source: ContextSource,
                                  query: str,
                                  options: GatherOptions) -> Tuple[str, List[ContentChunk]]:
        """Run one source, turning any failure into an empty result."""
        timeout = self.config.context.source_timeout
        try:
            if timeout is None:
                chunks = await _resolve(source.gather(query, options))
            else:
                try:
                    chunks = await asyncio.wait_for(_resolve(source.gather(query, options)), timeout)
                except asyncio.TimeoutError:
                    raise SourceTimeoutError(source.name, timeout)
            chunks = _check_chunks(source.name, chunks)
        except Exception as e:
            if not isinstance(e, SourceGatherError):
                e = SourceGatherError(source.name, f"{type(e).__name__}: {e}")
            logger.warning("Failed to gather from source %s: %s", source.name, e,
                           extra={"source": source.name, "error": e})
            return source.name, []

        return source.name, chunks

    @staticmethod
    def format_for_model(bundle: ContextBundle) -> str:
        """Render a bundle as prompt-ready text."""
        return format_for_model(bundle)
