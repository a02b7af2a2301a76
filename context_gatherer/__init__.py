"""
context-gatherer: budget-constrained context aggregation for language-model requests.

Queries several independent context sources concurrently, ranks what they
return by relevance and keeps as much as fits inside a token budget.
"""

__version__ = "0.1.0"
__author__ = "Context Gatherer Team"

from typing import Optional

from .core.models import ContentChunk, ContextBundle, GatherOptions
from .core.tokenizer_service import TokenizerService
from .core.budget_manager import BudgetManager
from .core.context_assembler import ContextAssembler
from .core.context_gatherer import ContextGatherer
from .config.settings import GathererConfig, get_default_config
from .sources import (
    ContextSource,
    FileContextSource,
    LspContextSource,
    MemoryContextSource,
    SerenaContextSource,
    ToolCaller,
)
from .utils.context_formatter import format_for_model


def create_gatherer(config: Optional[GathererConfig] = None,
                    tool_caller: Optional[ToolCaller] = None) -> ContextGatherer:
    """
    Build a gatherer with the four standard sources registered.

    Args:
        config: Gatherer configuration (defaults to get_default_config())
        tool_caller: Async tool invoker shared by the tool-server sources;
            without one those sources report themselves unavailable

    Returns:
        Ready-to-use ContextGatherer
    """
    config = config or get_default_config()
    gatherer = ContextGatherer(config)
    gatherer.register_source(SerenaContextSource(tool_caller))
    gatherer.register_source(MemoryContextSource(
        tool_caller, project_context=config.context.memory_project_context
    ))
    gatherer.register_source(LspContextSource(tool_caller))
    gatherer.register_source(FileContextSource(config.context.working_directory))
    return gatherer


__all__ = [
    "ContentChunk",
    "ContextBundle",
    "GatherOptions",
    "TokenizerService",
    "BudgetManager",
    "ContextAssembler",
    "ContextGatherer",
    "GathererConfig",
    "get_default_config",
    "ContextSource",
    "FileContextSource",
    "LspContextSource",
    "MemoryContextSource",
    "SerenaContextSource",
    "ToolCaller",
    "format_for_model",
    "create_gatherer",
]
