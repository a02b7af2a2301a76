"""Language intelligence through a cclsp tool server.

cclsp exposes language-server features over tool calls: go to definition,
find references and diagnostics. Symbols and file paths are pulled out of
the query text, then each is looked up.
"""

import re
from typing import Any, Dict, List, Optional

from ..core.models import ContentChunk, GatherOptions
from .base import ToolServerSource

# PascalCase, camelCase or CONSTANT_CASE
SYMBOL_PATTERN = re.compile(r'^[A-Z][a-z]+[A-Z]|^[a-z]+[A-Z]|^[A-Z_]+$')
FILE_PATTERN = re.compile(r'([a-zA-Z0-9_\-./]+\.[a-zA-Z]{2,})')

DEFINITION_RELEVANCE = 0.8
DIAGNOSTICS_RELEVANCE = 0.7
REFERENCES_RELEVANCE = 0.6


class LspContextSource(ToolServerSource):
    """Definitions, references and diagnostics for symbols in the query."""

    name = "cclsp"
    server_name = "cclsp"

    async def _collect(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        chunks = []

        for symbol in self.extract_symbols(query):
            definition = await self.get_definition(symbol)
            if definition:
                chunks.append(ContentChunk(
                    source=self.name,
                    content=definition.get("content", ""),
                    relevance=DEFINITION_RELEVANCE,
                    metadata={
                        "symbol_name": symbol,
                        "filepath": definition.get("filepath"),
                        "line_number": definition.get("line"),
                        "type": "definition"
                    }
                ))

            references = await self.get_references(symbol)
            if references:
                chunks.append(ContentChunk(
                    source=self.name,
                    content=self.format_references(references),
                    relevance=REFERENCES_RELEVANCE,
                    metadata={
                        "symbol_name": symbol,
                        "reference_count": len(references),
                        "type": "references"
                    }
                ))

        for filepath in self.extract_file_paths(query):
            diagnostics = await self.get_diagnostics(filepath)
            if diagnostics:
                chunks.append(ContentChunk(
                    source=self.name,
                    content=self.format_diagnostics(diagnostics),
                    relevance=DIAGNOSTICS_RELEVANCE,
                    metadata={
                        "filepath": filepath,
                        "diagnostic_count": len(diagnostics),
                        "type": "diagnostics"
                    }
                ))

        return chunks

    @staticmethod
    def extract_symbols(query: str) -> List[str]:
        return [word for word in query.split() if SYMBOL_PATTERN.match(word)]

    @staticmethod
    def extract_file_paths(query: str) -> List[str]:
        return FILE_PATTERN.findall(query)

    async def get_definition(self, symbol: str) -> Optional[Dict[str, Any]]:
        return await self._call_tool("go_to_definition", {"symbol": symbol})

    async def get_references(self, symbol: str) -> List[Dict[str, Any]]:
        return list(await self._call_tool("find_references", {"symbol": symbol}) or [])

    async def get_diagnostics(self, filepath: str) -> List[Dict[str, Any]]:
        return list(await self._call_tool("get_diagnostics", {"file": filepath}) or [])

    @staticmethod
    def format_references(references: List[Dict[str, Any]]) -> str:
        lines = ["## References:"]
        for ref in references:
            lines.append(f"- {ref.get('filepath', 'unknown')}:{ref.get('line', '?')} - {ref.get('context', '')}")
        return "\n".join(lines)

    @staticmethod
    def format_diagnostics(diagnostics: List[Dict[str, Any]]) -> str:
        lines = ["## Diagnostics:"]
        for diag in diagnostics:
            lines.append(f"- [{diag.get('severity', 'info')}] Line {diag.get('line', '?')}: {diag.get('message', '')}")
        return "\n".join(lines)
