"""Project memory through a graph-memory tool server.

The memory server keeps a knowledge graph of entities (decisions,
architecture patterns, lessons learned) per project context. Entities are
found with ``aim_search_nodes`` and completed with ``aim_open_nodes``.
"""

from typing import Any, Dict, List, Optional

from ..core.models import ContentChunk, GatherOptions
from .base import ToolCaller, ToolServerSource


class MemoryContextSource(ToolServerSource):
    """Stored project facts relevant to the query."""

    name = "memory"
    server_name = "graph-memory"

    def __init__(self,
                 tool_caller: Optional[ToolCaller] = None,
                 project_context: str = "context-gatherer"):
        """
        Initialize memory source.

        Args:
            tool_caller: Async tool invoker for the memory server
            project_context: Name of the memory graph to search
        """
        super().__init__(tool_caller)
        self.project_context = project_context

    async def _collect(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        entities = await self.search_memories(query)
        incomplete = [e["name"] for e in entities if e.get("name") and not e.get("observations")]
        if incomplete:
            details = {d["name"]: d for d in await self.get_entity_details(incomplete) if d.get("name")}
            entities = [self._merge_entity(details.get(e.get("name"), {}), e) for e in entities]

        chunks = []
        for entity in entities:
            chunks.append(ContentChunk.create(
                source=self.name,
                content=self.format_memory_content(entity),
                relevance=float(entity.get("similarity", 0.0)),
                metadata={
                    "entity_name": entity.get("name"),
                    "entity_type": entity.get("type"),
                    "relations": entity.get("relations", []),
                    "timestamp": entity.get("timestamp")
                }
            ))
        return chunks

    async def search_memories(self, query: str) -> List[Dict[str, Any]]:
        result = await self._call_tool(
            "aim_search_nodes", {"context": self.project_context, "query": query}
        )
        return list(result or [])

    async def get_entity_details(self, entity_names: List[str]) -> List[Dict[str, Any]]:
        result = await self._call_tool(
            "aim_open_nodes", {"context": self.project_context, "names": entity_names}
        )
        return list(result or [])

    @staticmethod
    def _merge_entity(detail: Dict[str, Any], found: Dict[str, Any]) -> Dict[str, Any]:
        # Search hits carry the similarity score, details carry the body
        merged = dict(detail)
        merged.update({key: value for key, value in found.items() if value})
        return merged

    @staticmethod
    def format_memory_content(entity: Dict[str, Any]) -> str:
        """Render an entity as a heading with its observations and relations."""
        lines = [f"# {entity.get('name', '')} ({entity.get('type', 'entity')})"]

        observations = entity.get("observations") or []
        if observations:
            lines.append("\n## Observations:")
            lines.extend(f"- {obs}" for obs in observations)

        relations = entity.get("relations") or []
        if relations:
            lines.append("\n## Relations:")
            lines.extend(f"- {rel.get('type', 'related')}: {rel.get('target', '')}" for rel in relations)

        return "\n".join(lines)
