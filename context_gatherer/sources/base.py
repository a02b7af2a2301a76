"""Base classes for context sources."""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
from abc import ABC, abstractmethod

from ..core.models import ContentChunk, GatherOptions

logger = logging.getLogger(__name__)

# Async callable that invokes a tool on an external tool server:
# tool_caller(server_name, tool_name, arguments) -> decoded result
ToolCaller = Callable[[str, str, Dict[str, Any]], Awaitable[Any]]


class ContextSource(ABC):
    """A pluggable provider of candidate context for a query.

    Subclasses set ``name`` to the stable key the gatherer registers them
    under. ``is_available`` should be cheap and must not raise. ``gather``
    should handle its own errors and return an empty list, although the
    gatherer tolerates it raising.
    """

    name: str = ""

    @abstractmethod
    async def is_available(self) -> bool:
        """Return True if the source can currently serve queries."""
        pass

    @abstractmethod
    async def gather(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        """Return zero or more chunks relevant to the query."""
        pass


class ToolServerSource(ContextSource):
    """Adapter base for sources backed by an out-of-process tool server.

    Without a ``tool_caller`` the source reports itself unavailable and
    gathers nothing. Availability is decided once and cached.
    """

    server_name: str = ""

    def __init__(self, tool_caller: Optional[ToolCaller] = None):
        self.tool_caller = tool_caller
        self._available: Optional[bool] = None

    async def is_available(self) -> bool:
        if self._available is None:
            self._available = self.tool_caller is not None
            if not self._available:
                logger.debug("%s tool server not configured", self.server_name,
                             extra={"source": self.name})
        return self._available

    async def gather(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        logger.debug("Gathering context from %s", self.name,
                     extra={"source": self.name, "query": query})

        if self.tool_caller is None:
            return []

        try:
            chunks = await self._collect(query, options)
        except Exception as e:
            logger.error("Failed to gather from %s: %s", self.name, e,
                         extra={"source": self.name})
            return []

        logger.debug("%s context gathering complete", self.name,
                     extra={"source": self.name, "chunks_found": len(chunks)})
        return chunks

    async def _call_tool(self, tool: str, arguments: Dict[str, Any]) -> Any:
        return await self.tool_caller(self.server_name, tool, arguments)

    @abstractmethod
    async def _collect(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        """Query the tool server and translate its answers into chunks."""
        pass
