"""Budget manager for ranking chunks and selecting them under a token budget."""

from typing import List, Optional, Set
from dataclasses import dataclass, field
from ..core.models import ContentChunk
from ..core.tokenizer_service import TokenizerService


@dataclass
class BudgetSelection:
    """Result of budget-constrained selection."""
    selected: List[ContentChunk]
    total_tokens: int
    budget: int
    dropped: List[ContentChunk] = field(default_factory=list)

    @property
    def sources_used(self) -> Set[str]:
        """Sources that have at least one selected chunk."""
        return {chunk.source for chunk in self.selected}

    @property
    def budget_utilization(self) -> float:
        return self.total_tokens / self.budget if self.budget > 0 else 0.0


class BudgetManager:
    """Ranks chunks by relevance and greedily fills a token budget.

    Selection is a single pass over the ranked list: a chunk is taken whole if
    it still fits, otherwise it is skipped and the scan continues. This is not
    an optimal knapsack solution, but it is deterministic for a given input
    order.
    """

    def __init__(self, tokenizer_service: Optional[TokenizerService] = None):
        """
        Initialize budget manager.

        Args:
            tokenizer_service: TokenizerService instance for token counting
        """
        self.tokenizer = tokenizer_service or TokenizerService()

    def rank(self, chunks: List[ContentChunk]) -> List[ContentChunk]:
        """Sort by descending relevance; ties keep their input order."""
        # sorted() is stable, so equal relevance preserves insertion order
        return sorted(chunks, key=lambda c: c.relevance, reverse=True)

    def select(self, chunks: List[ContentChunk], budget: int) -> BudgetSelection:
        """
        Rank chunks and select as many as fit within the budget.

        Args:
            chunks: Candidate chunks in merge order
            budget: Maximum total token cost

        Returns:
            BudgetSelection with the chosen chunks in ranked order
        """
        selected = []
        dropped = []
        total_tokens = 0

        for chunk in self.rank(chunks):
            cost = self.tokenizer.estimate(chunk.content)
            if total_tokens + cost <= budget:
                selected.append(chunk)
                total_tokens += cost
            else:
                dropped.append(chunk)

        return BudgetSelection(
            selected=selected,
            total_tokens=total_tokens,
            budget=budget,
            dropped=dropped
        )
