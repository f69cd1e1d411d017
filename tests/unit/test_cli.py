"""Unit tests for the operator CLI -- parser and handlers against a mock facade."""

from __future__ import annotations

import argparse
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from emergency_kb.cli.kb import (
    _build_parser,
    _handle_add,
    _handle_init,
    _handle_search,
    _handle_stats,
    main,
)
from emergency_kb.models.knowledge import (
    ChunkingStrategy,
    DocumentFormat,
    KnowledgeBaseStats,
    SearchEntry,
)
from emergency_kb.models.results import (
    AlreadyInitialized,
    DocumentAddSuccess,
    InitializationError,
    InitializationSuccess,
    NoResults,
    SearchError,
    SearchSuccess,
)
from tests.conftest import make_entry


class TestParser:
    def test_add_defaults(self) -> None:
        args = _build_parser().parse_args(["add", "--file", "x.md", "--format", "markdown"])
        assert args.command == "add"
        assert (args.category, args.priority, args.language) == ("general", 3, "en")
        assert args.strategy == "fixed_size"

    def test_search_options(self) -> None:
        args = _build_parser().parse_args(
            ["search", "stop bleeding", "--limit", "3", "--priority-threshold", "2"]
        )
        assert args.query == "stop bleeding"
        assert args.limit == 3
        assert args.priority_threshold == 2
        assert args.category is None

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["add", "--file", "x", "--format", "docx"])

    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1


class TestHandlers:
    async def test_init_already_initialized(self, capsys: pytest.CaptureFixture) -> None:
        kb = MagicMock()
        kb.initialize_if_needed = AsyncMock(return_value=AlreadyInitialized())

        assert await _handle_init(argparse.Namespace(), kb) == 0
        assert "already initialized" in capsys.readouterr().out

    async def test_init_error_exit_code(self) -> None:
        kb = MagicMock()
        kb.initialize_if_needed = AsyncMock(return_value=InitializationError(message="boom"))
        assert await _handle_init(argparse.Namespace(), kb) == 1

    async def test_init_success_prints_summary(self, capsys: pytest.CaptureFixture) -> None:
        kb = MagicMock()
        kb.initialize_if_needed = AsyncMock(
            return_value=InitializationSuccess(
                entries_added=5, sources_processed=2, errors=["bad.csv: no text"]
            )
        )

        assert await _handle_init(argparse.Namespace(), kb) == 0
        out = capsys.readouterr().out
        assert "Entries added:     5" in out
        assert "! bad.csv: no text" in out

    async def test_add_builds_metadata(self, tmp_path: Path) -> None:
        doc = tmp_path / "burns.md"
        doc.write_text("# Burns\nCool the burn.")
        kb = MagicMock()
        kb.add_document_at_runtime = AsyncMock(
            return_value=DocumentAddSuccess(entries_added=1, source="burns.md")
        )
        args = _build_parser().parse_args(
            ["add", "--file", str(doc), "--format", "markdown", "--category", "medical",
             "--priority", "2", "--strategy", "paragraph"]
        )

        assert await _handle_add(args, kb) == 0
        data, metadata = kb.add_document_at_runtime.call_args.args
        assert data == doc.read_bytes()
        assert metadata.source == "burns.md"
        assert metadata.format is DocumentFormat.MARKDOWN
        assert (metadata.category, metadata.priority) == ("medical", 2)
        assert metadata.chunking_strategy is ChunkingStrategy.PARAGRAPH

    async def test_add_missing_file(self, tmp_path: Path) -> None:
        args = _build_parser().parse_args(
            ["add", "--file", str(tmp_path / "gone.txt"), "--format", "text"]
        )
        assert await _handle_add(args, MagicMock()) == 1

    async def test_search_prints_matches(self, capsys: pytest.CaptureFixture) -> None:
        match = SearchEntry(entry=make_entry(id=1), similarity=0.9, relevance_score=0.93)
        kb = MagicMock()
        kb.search = AsyncMock(return_value=SearchSuccess(matches=[match]))
        args = _build_parser().parse_args(["search", "bleeding"])

        assert await _handle_search(args, kb) == 0
        out = capsys.readouterr().out
        assert "Severe Bleeding Control" in out
        assert "0.930" in out

    async def test_search_no_results_is_success(self) -> None:
        kb = MagicMock()
        kb.search = AsyncMock(return_value=NoResults(message="nothing"))
        args = _build_parser().parse_args(["search", "zzz"])
        assert await _handle_search(args, kb) == 0

    async def test_search_error(self) -> None:
        kb = MagicMock()
        kb.search = AsyncMock(return_value=SearchError(message="bad"))
        args = _build_parser().parse_args(["search", "zzz"])
        assert await _handle_search(args, kb) == 1

    async def test_stats(self, capsys: pytest.CaptureFixture) -> None:
        kb = MagicMock()
        kb.get_statistics = AsyncMock(
            return_value=KnowledgeBaseStats(
                total_entries=2, category_counts={"medical": 2}, priority_counts={1: 2}
            )
        )
        assert await _handle_stats(argparse.Namespace(), kb) == 0
        out = capsys.readouterr().out
        assert "Total entries: 2" in out
        assert "medical" in out
