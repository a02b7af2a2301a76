"""Core components: data models, token estimation, selection and aggregation."""

from .models import ContentChunk, ContextBundle, GatherOptions
from .tokenizer_service import TokenizerService
from .budget_manager import BudgetManager, BudgetSelection
from .context_assembler import ContextAssembler
from .context_gatherer import ContextGatherer

__all__ = [
    "ContentChunk",
    "ContextBundle",
    "GatherOptions",
    "TokenizerService",
    "BudgetManager",
    "BudgetSelection",
    "ContextAssembler",
    "ContextGatherer",
]
