#!/usr/bin/env python3
"""
Example usage of context-gatherer.
"""

import asyncio

from context_gatherer import (
    ContentChunk,
    ContextSource,
    GatherOptions,
    create_gatherer,
    format_for_model,
)
from context_gatherer.config.settings import GathererConfig
from context_gatherer.utils.log_utils import setup_logging


class DocsSource(ContextSource):
    """Toy source serving canned documentation snippets."""

    name = "docs"

    def __init__(self, snippets):
        self.snippets = snippets

    async def is_available(self) -> bool:
        return True

    async def gather(self, query, options):
        words = set(query.lower().split())
        chunks = []
        for title, text in self.snippets.items():
            overlap = len(words & set(text.lower().split()))
            if overlap:
                chunks.append(ContentChunk.create(self.name, f"{title}: {text}", overlap / len(words)))
        return chunks


async def fake_tool_server(server, tool, arguments):
    """Stand-in for a real tool-server client."""
    if tool == "find_symbol":
        return [{"name": "ContextGatherer", "type": "class", "filepath": "context_gatherer/core/context_gatherer.py",
                 "line": 29, "definition": "class ContextGatherer: ...", "relevance": 0.9}]
    if tool == "aim_search_nodes":
        return [{"name": "BudgetPolicy", "type": "decision", "similarity": 0.6,
                 "observations": ["Greedy selection keeps results reproducible"]}]
    return []


async def main():
    """Demonstrate context-gatherer functionality."""
    setup_logging("INFO")

    print("=== context-gatherer Example ===\n")

    config = GathererConfig.from_dict({'context': {'max_context_tokens': 2000}})
    gatherer = create_gatherer(config, tool_caller=fake_tool_server)
    gatherer.register_source(DocsSource({
        "Budget": "the token budget caps the total context size",
        "Sources": "each source is queried concurrently and failures are isolated",
    }))

    print(f"Tokenizer: {gatherer.tokenizer.get_tokenizer_info()}")
    print(f"Registered sources: {list(gatherer.sources)}\n")

    query = "how is the token budget applied in setup.py and example.py"
    bundle = await gatherer.gather_context(query, GatherOptions(max_tokens=1500))

    print(f"Sources used: {sorted(bundle.sources_used)}")
    print(f"Total tokens: {bundle.total_tokens}\n")
    print(format_for_model(bundle))


if __name__ == "__main__":
    asyncio.run(main())
