"""Shared test fixtures for context-gatherer."""

import asyncio
from typing import List, Optional

import pytest

from context_gatherer.config.settings import GathererConfig
from context_gatherer.core.context_gatherer import ContextGatherer
from context_gatherer.core.models import ContentChunk, GatherOptions
from context_gatherer.core.tokenizer_service import TokenizerService
from context_gatherer.sources.base import ContextSource


class FakeSource(ContextSource):
    """In-memory source that records how it was used."""

    def __init__(self,
                 name: str,
                 chunks: Optional[List[ContentChunk]] = None,
                 available: bool = True,
                 error: Optional[Exception] = None,
                 availability_error: Optional[Exception] = None,
                 delay: float = 0.0):
        self.name = name
        self.chunks = chunks or []
        self.available = available
        self.error = error
        self.availability_error = availability_error
        self.delay = delay
        self.gather_calls = []

    async def is_available(self) -> bool:
        if self.availability_error is not None:
            raise self.availability_error
        return self.available

    async def gather(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        self.gather_calls.append((query, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.chunks)


def text_of_tokens(tokens: int, char: str = "x") -> str:
    """Text that the heuristic estimator prices at exactly ``tokens``."""
    return char * (tokens * 4)


@pytest.fixture
def make_source():
    """Factory for FakeSource instances."""
    return FakeSource


@pytest.fixture
def tokens_text():
    return text_of_tokens


@pytest.fixture
def heuristic_tokenizer() -> TokenizerService:
    return TokenizerService(backend="heuristic")


@pytest.fixture
def config() -> GathererConfig:
    return GathererConfig.from_dict({
        'context': {'max_context_tokens': 1000},
        'tokenizer': {'backend': 'heuristic'}
    })


@pytest.fixture
def gatherer(config, heuristic_tokenizer) -> ContextGatherer:
    return ContextGatherer(config, heuristic_tokenizer)
