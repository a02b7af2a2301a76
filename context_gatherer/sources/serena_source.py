"""Semantic code search through a Serena tool server.

Serena answers symbol lookups backed by language servers. The adapter asks
``find_symbol`` for symbols matching the query and, for symbols returned
without a body, ``get_definition`` for the full definition. Symbols are
expected as mappings with ``name``, ``type``, ``filepath``, ``line``,
``definition`` and an optional ``relevance``.
"""

from typing import Any, Dict, List

from ..core.models import ContentChunk, GatherOptions
from .base import ToolServerSource

DEFAULT_SYMBOL_RELEVANCE = 0.5


class SerenaContextSource(ToolServerSource):
    """Symbol definitions relevant to the query."""

    name = "serena"
    server_name = "serena"

    async def _collect(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        chunks = []
        for symbol in await self.find_relevant_symbols(query):
            definition = symbol.get("definition") or await self.get_symbol_definition(
                symbol.get("name", ""), symbol.get("filepath", "")
            )
            if not definition:
                continue

            chunks.append(ContentChunk.create(
                source=self.name,
                content=definition,
                relevance=float(symbol.get("relevance", DEFAULT_SYMBOL_RELEVANCE)),
                metadata={
                    "symbol_name": symbol.get("name"),
                    "filepath": symbol.get("filepath"),
                    "symbol_type": symbol.get("type"),
                    "line_number": symbol.get("line")
                }
            ))
        return chunks

    async def find_relevant_symbols(self, query: str) -> List[Dict[str, Any]]:
        result = await self._call_tool("find_symbol", {"query": query})
        return list(result or [])

    async def get_symbol_definition(self, symbol_name: str, filepath: str) -> str:
        result = await self._call_tool("get_definition", {"symbol": symbol_name, "file": filepath})
        return result or ""
