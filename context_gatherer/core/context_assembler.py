"""Context assembler that routes selected chunks into a typed bundle."""

from typing import Dict, List
from ..core.models import ContentChunk, ContextBundle


# Stable source names with a dedicated bundle field
SERENA_SOURCE = "serena"
MEMORY_SOURCE = "memory"
LSP_SOURCE = "cclsp"
FILE_SOURCE = "file"


class ContextAssembler:
    """Buckets selected chunks into a ContextBundle by source name."""

    def assemble(self,
                 query: str,
                 chunks: List[ContentChunk],
                 total_tokens: int) -> ContextBundle:
        """
        Build a bundle from already-selected chunks.

        Args:
            query: The query the chunks were gathered for
            chunks: Selected chunks in ranked order
            total_tokens: Estimated cost of the selected chunks

        Returns:
            ContextBundle with every chunk routed to its bucket
        """
        bundle = ContextBundle(
            query=query,
            total_tokens=total_tokens,
            sources_used={chunk.source for chunk in chunks}
        )

        for chunk in chunks:
            if chunk.source == SERENA_SOURCE:
                bundle.code_context.append(chunk.content)
            elif chunk.source == MEMORY_SOURCE:
                bundle.memory_context.append(chunk.content)
            elif chunk.source == LSP_SOURCE:
                bundle.lsp_context.append(chunk.content)
            elif chunk.source == FILE_SOURCE:
                self._add_file_content(bundle.file_contents, chunk)
            else:
                bundle.additional_info.setdefault(chunk.source, []).append(chunk.content)

        return bundle

    def _add_file_content(self, file_contents: Dict[str, str], chunk: ContentChunk):
        # Chunks without a string filepath have nowhere to go and are dropped
        filepath = (chunk.metadata or {}).get("filepath")
        if isinstance(filepath, str) and filepath:
            file_contents[filepath] = chunk.content
