"""Tests for ContextGatherer."""

import asyncio
import logging

import pytest
from context_gatherer.config.settings import GathererConfig
from context_gatherer.core.context_gatherer import ContextGatherer
from context_gatherer.core.models import ContentChunk, GatherOptions
from context_gatherer.exceptions import SourceGatherError, SourceTimeoutError


class TestRegistration:
    """Test cases for source registration."""

    def test_register_source(self, gatherer, make_source, caplog):
        source = make_source("test-source")

        with caplog.at_level(logging.INFO):
            gatherer.register_source(source)

        assert gatherer.get_source("test-source") is source
        assert list(gatherer.sources) == ["test-source"]
        record = next(r for r in caplog.records if "registered" in r.getMessage())
        assert record.source == "test-source"

    def test_reregistering_replaces_in_place(self, gatherer, make_source):
        gatherer.register_source(make_source("a"))
        gatherer.register_source(make_source("b"))
        replacement = make_source("a")
        gatherer.register_source(replacement)

        assert list(gatherer.sources) == ["a", "b"]
        assert gatherer.get_source("a") is replacement


class TestGatherContext:
    """Test cases for gather_context."""

    @pytest.mark.asyncio
    async def test_merges_multiple_sources(self, gatherer, make_source):
        gatherer.register_source(make_source("source1", [ContentChunk("source1", "Content from source 1", 0.9)]))
        gatherer.register_source(make_source("source2", [ContentChunk("source2", "Content from source 2", 0.8)]))

        bundle = await gatherer.gather_context("test query")

        assert bundle.query == "test query"
        assert bundle.sources_used == {"source1", "source2"}
        assert bundle.total_tokens > 0
        assert bundle.additional_info == {
            "source1": ["Content from source 1"],
            "source2": ["Content from source 2"],
        }

    @pytest.mark.asyncio
    async def test_budget_scenario(self, gatherer, make_source, tokens_text):
        """Higher relevance wins; the second chunk no longer fits."""
        gatherer.register_source(make_source("A", [ContentChunk("A", tokens_text(50), 0.9)]))
        gatherer.register_source(make_source("B", [ContentChunk("B", tokens_text(80), 0.95)]))

        bundle = await gatherer.gather_context("q", GatherOptions(max_tokens=100))

        assert bundle.total_tokens == 80
        assert bundle.sources_used == {"B"}
        assert bundle.additional_info == {"B": [tokens_text(80)]}

    @pytest.mark.asyncio
    async def test_respects_token_limits(self, gatherer, make_source):
        large = "x" * 10000
        gatherer.register_source(make_source("large-source", [
            ContentChunk("large-source", large, 0.9),
            ContentChunk("large-source", large, 0.8),
            ContentChunk("large-source", large, 0.7),
        ]))

        bundle = await gatherer.gather_context("q", GatherOptions(max_tokens=1000))

        assert bundle.total_tokens <= 1000
        assert bundle.total_tokens == 0
        assert bundle.sources_used == set()

    @pytest.mark.asyncio
    async def test_default_budget_from_config(self, gatherer, make_source, tokens_text):
        gatherer.register_source(make_source("s", [
            ContentChunk("s", tokens_text(600), 0.9),
            ContentChunk("s", tokens_text(600), 0.8),
        ]))

        bundle = await gatherer.gather_context("q")

        assert bundle.total_tokens == 600

    @pytest.mark.asyncio
    async def test_sorts_by_relevance(self, gatherer, make_source):
        gatherer.register_source(make_source("test", [
            ContentChunk("test", "low relevance", 0.3),
            ContentChunk("test", "high relevance", 0.9),
            ContentChunk("test", "medium relevance", 0.6),
        ]))

        bundle = await gatherer.gather_context("q")

        assert bundle.additional_info["test"] == ["high relevance", "medium relevance", "low relevance"]

    @pytest.mark.asyncio
    async def test_ties_keep_registration_order(self, gatherer, make_source):
        # The slow source finishes last but was registered first
        gatherer.register_source(make_source("slow", [ContentChunk("shared", "from slow", 0.5)], delay=0.05))
        gatherer.register_source(make_source("fast", [ContentChunk("shared", "from fast", 0.5)]))

        bundle = await gatherer.gather_context("q")

        assert bundle.additional_info["shared"] == ["from slow", "from fast"]

    @pytest.mark.asyncio
    async def test_unavailable_source_is_never_gathered(self, gatherer, make_source):
        available = make_source("available", [ContentChunk("available", "content", 0.8)])
        unavailable = make_source("unavailable", [ContentChunk("unavailable", "hidden", 0.9)], available=False)
        gatherer.register_source(available)
        gatherer.register_source(unavailable)

        bundle = await gatherer.gather_context("q")

        assert bundle.sources_used == {"available"}
        assert unavailable.gather_calls == []

    @pytest.mark.asyncio
    async def test_raising_availability_check_counts_as_unavailable(self, gatherer, make_source, caplog):
        broken = make_source("broken", [ContentChunk("broken", "x", 0.9)],
                             availability_error=RuntimeError("probe failed"))
        gatherer.register_source(broken)

        with caplog.at_level(logging.WARNING):
            bundle = await gatherer.gather_context("q")

        assert broken.gather_calls == []
        assert bundle.sources_used == set()
        assert any(getattr(r, "source", None) == "broken" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_source_errors_are_isolated(self, gatherer, make_source, caplog):
        error_source = make_source("error-source", error=RuntimeError("Source error"))
        good_source = make_source("good-source", [ContentChunk("good-source", "content", 0.8)])
        gatherer.register_source(error_source)
        gatherer.register_source(good_source)

        with caplog.at_level(logging.WARNING):
            bundle = await gatherer.gather_context("q")

        assert bundle.sources_used == {"good-source"}
        assert bundle.additional_info == {"good-source": ["content"]}
        failures = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(failures) == 1
        assert failures[0].source == "error-source"
        assert isinstance(failures[0].error, SourceGatherError)
        assert failures[0].error.source_name == "error-source"
        assert "RuntimeError: Source error" in str(failures[0].error)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_chunk", [
        ContentChunk("bad", "x", None),
        ContentChunk("bad", None, 0.9),
        ContentChunk("bad", "x", float("nan")),
        ContentChunk(None, "x", 0.9),
        "just a string",
    ])
    async def test_malformed_chunks_fail_only_their_source(self, gatherer, make_source, caplog, bad_chunk):
        gatherer.register_source(make_source("bad", [ContentChunk("bad", "fine", 0.4), bad_chunk]))
        gatherer.register_source(make_source("good", [ContentChunk("good", "content", 0.8)]))

        with caplog.at_level(logging.WARNING):
            bundle = await gatherer.gather_context("q")

        assert bundle.sources_used == {"good"}
        assert bundle.additional_info == {"good": ["content"]}
        assert gatherer.format_for_model(bundle) == "## good\ncontent"
        failures = [r for r in caplog.records if getattr(r, "source", None) == "bad"]
        assert len(failures) == 1
        assert isinstance(failures[0].error, SourceGatherError)

    @pytest.mark.asyncio
    async def test_all_sources_failing_gives_empty_bundle(self, gatherer, make_source):
        gatherer.register_source(make_source("a", error=ValueError("bad")))
        gatherer.register_source(make_source("b", error=KeyError("missing")))

        bundle = await gatherer.gather_context("q")

        assert bundle.is_empty()
        assert bundle.total_tokens == 0
        assert bundle.sources_used == set()

    @pytest.mark.asyncio
    async def test_no_sources(self, gatherer):
        bundle = await gatherer.gather_context("q")
        assert bundle.is_empty()
        assert bundle.query == "q"

    @pytest.mark.asyncio
    async def test_organizes_chunks_by_source_type(self, gatherer, make_source):
        gatherer.register_source(make_source("mixed-source", [
            ContentChunk("serena", "code content", 0.9),
            ContentChunk("memory", "memory content", 0.8),
            ContentChunk("file", "file content", 0.7, {"filepath": "test.py"}),
            ContentChunk("cclsp", "lsp content", 0.6),
        ]))

        bundle = await gatherer.gather_context("q")

        assert bundle.code_context == ["code content"]
        assert bundle.memory_context == ["memory content"]
        assert bundle.file_contents == {"test.py": "file content"}
        assert bundle.lsp_context == ["lsp content"]

    @pytest.mark.asyncio
    async def test_file_chunk_without_path_is_dropped(self, gatherer, make_source):
        gatherer.register_source(make_source("mixed", [
            ContentChunk("file", "no path here", 0.9),
            ContentChunk("mixed", "other", 0.5),
        ]))

        bundle = await gatherer.gather_context("q")

        assert bundle.file_contents == {}
        assert bundle.additional_info == {"mixed": ["other"]}
        assert "no path here" not in gatherer.format_for_model(bundle)
        # The unplaced chunk was still selected, so it keeps its cost and source
        assert bundle.total_tokens == 3 + 2
        assert bundle.sources_used == {"file", "mixed"}

    @pytest.mark.asyncio
    async def test_runs_sources_concurrently(self, gatherer, make_source):
        for name in ("a", "b", "c"):
            gatherer.register_source(make_source(name, [ContentChunk(name, name, 0.5)], delay=0.2))

        loop = asyncio.get_running_loop()
        start = loop.time()
        bundle = await gatherer.gather_context("q")
        elapsed = loop.time() - start

        assert bundle.sources_used == {"a", "b", "c"}
        assert elapsed < 0.5


class TestSourceActivation:
    """Test cases for choosing which sources run."""

    @pytest.mark.asyncio
    async def test_preferred_sources(self, gatherer, make_source):
        source1 = make_source("source1", [ContentChunk("source1", "content1", 0.9)])
        source2 = make_source("source2", [ContentChunk("source2", "content2", 0.9)])
        gatherer.register_source(source1)
        gatherer.register_source(source2)

        bundle = await gatherer.gather_context("q", GatherOptions(preferred_sources=["source1"]))

        assert bundle.sources_used == {"source1"}
        assert len(source1.gather_calls) == 1
        assert source2.gather_calls == []

    @pytest.mark.asyncio
    async def test_preferred_sources_bypass_enable_flags(self, heuristic_tokenizer, make_source):
        config = GathererConfig.from_dict({'context': {'enable_memory': False}})
        gatherer = ContextGatherer(config, heuristic_tokenizer)
        memory = make_source("memory", [ContentChunk("memory", "decision", 0.9)])
        gatherer.register_source(memory)

        bundle = await gatherer.gather_context("q")
        assert memory.gather_calls == []
        assert bundle.sources_used == set()

        bundle = await gatherer.gather_context("q", GatherOptions(preferred_sources=["memory"]))
        assert bundle.memory_context == ["decision"]

    @pytest.mark.asyncio
    async def test_preferred_sources_still_need_availability(self, gatherer, make_source):
        down = make_source("down", [ContentChunk("down", "x", 0.9)], available=False)
        gatherer.register_source(down)

        bundle = await gatherer.gather_context("q", GatherOptions(preferred_sources=["down", "missing"]))

        assert down.gather_calls == []
        assert bundle.sources_used == set()

    @pytest.mark.asyncio
    async def test_preferred_duplicates_gather_once(self, gatherer, make_source):
        source = make_source("s", [ContentChunk("s", "x", 0.9)])
        gatherer.register_source(source)

        await gatherer.gather_context("q", GatherOptions(preferred_sources=["s", "s"]))

        assert len(source.gather_calls) == 1

    @pytest.mark.asyncio
    async def test_disabled_sources_are_skipped(self, heuristic_tokenizer, make_source):
        config = GathererConfig.from_dict({
            'context': {'enable_serena': False, 'enable_cclsp': False, 'include_file_content': False}
        })
        gatherer = ContextGatherer(config, heuristic_tokenizer)
        sources = {name: make_source(name, [ContentChunk(name, name, 0.5)])
                   for name in ("serena", "cclsp", "file", "memory", "custom")}
        for source in sources.values():
            gatherer.register_source(source)

        bundle = await gatherer.gather_context("q")

        assert bundle.sources_used == {"memory", "custom"}
        assert sources["serena"].gather_calls == []
        assert sources["cclsp"].gather_calls == []
        assert sources["file"].gather_calls == []

    @pytest.mark.asyncio
    async def test_include_file_content_defaults_from_config(self, gatherer, make_source):
        source = make_source("s")
        gatherer.register_source(source)

        await gatherer.gather_context("q")
        await gatherer.gather_context("q", GatherOptions(include_file_content=False))

        assert source.gather_calls[0][1].include_file_content is True
        assert source.gather_calls[1][1].include_file_content is False


class TestSourceTimeout:
    """Test cases for the optional per-source timeout."""

    @pytest.mark.asyncio
    async def test_timeout_treated_as_failure(self, heuristic_tokenizer, make_source, caplog):
        config = GathererConfig.from_dict({'context': {'source_timeout': 0.05}})
        gatherer = ContextGatherer(config, heuristic_tokenizer)
        gatherer.register_source(make_source("hung", [ContentChunk("hung", "late", 0.9)], delay=1.0))
        gatherer.register_source(make_source("quick", [ContentChunk("quick", "fast", 0.5)]))

        with caplog.at_level(logging.WARNING):
            bundle = await gatherer.gather_context("q")

        assert bundle.sources_used == {"quick"}
        assert any("timed out" in r.getMessage() for r in caplog.records)
        timeouts = [r for r in caplog.records if isinstance(getattr(r, "error", None), SourceTimeoutError)]
        assert [r.error.timeout for r in timeouts] == [0.05]


class TestSummaryLogging:
    """Test cases for the per-call summary record."""

    @pytest.mark.asyncio
    async def test_summary_record(self, gatherer, make_source, caplog):
        gatherer.register_source(make_source("s", [ContentChunk("s", "abcdefgh", 0.5)]))

        with caplog.at_level(logging.INFO):
            await gatherer.gather_context("q")

        record = next(r for r in caplog.records if getattr(r, "event", None) == "context_gathered")
        assert record.sources == ["s"]
        assert record.tokens_used == 2
        assert record.duration_ms >= 0
