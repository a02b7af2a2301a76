"""Data models shared by sources, the gatherer and the formatter."""

from typing import Dict, List, Optional, Set, Any
from dataclasses import dataclass, field


@dataclass
class ContentChunk:
    """One unit of candidate context produced by a source."""
    source: str
    content: str
    relevance: float
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def create(cls,
               source: str,
               content: str,
               relevance: float,
               metadata: Optional[Dict[str, Any]] = None) -> 'ContentChunk':
        """Build a chunk with relevance clamped to [0, 1]."""
        return cls(
            source=source,
            content=content,
            relevance=max(0.0, min(1.0, relevance)),
            metadata=metadata
        )


@dataclass(frozen=True)
class GatherOptions:
    """Per-call options for a gather request."""
    max_tokens: Optional[int] = None
    preferred_sources: Optional[List[str]] = None
    include_file_content: Optional[bool] = None


@dataclass
class ContextBundle:
    """Budget-constrained result of a single gather call."""
    query: str
    code_context: List[str] = field(default_factory=list)
    file_contents: Dict[str, str] = field(default_factory=dict)
    memory_context: List[str] = field(default_factory=list)
    lsp_context: List[str] = field(default_factory=list)
    additional_info: Dict[str, List[str]] = field(default_factory=dict)
    total_tokens: int = 0
    sources_used: Set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        """Return True when no bucket holds any content."""
        return not (
            self.code_context
            or self.file_contents
            or self.memory_context
            or self.lsp_context
            or any(self.additional_info.values())
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the bundle to a JSON-friendly dictionary."""
        return {
            'query': self.query,
            'code_context': list(self.code_context),
            'file_contents': dict(self.file_contents),
            'memory_context': list(self.memory_context),
            'lsp_context': list(self.lsp_context),
            'additional_info': {
                name: list(items) for name, items in self.additional_info.items()
            },
            'total_tokens': self.total_tokens,
            'sources_used': sorted(self.sources_used)
        }
