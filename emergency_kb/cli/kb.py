# =============================================================================
# emergency_kb/cli/kb.py -- Operator CLI for the Emergency Knowledge Base
# =============================================================================
#
# Supported subcommands:
#
#   init    -- Bootstrap the knowledge base if the version, emptiness or
#             staleness rules require it (otherwise reports "already
#             initialized")
#   reinit  -- Wipe every entry and rebuild from the source manifest
#   add     -- Add one document (json, csv, markdown, xml, pdf, text)
#   search  -- Ranked semantic search with category / priority filters
#   stats   -- Entry counts by category, priority and language
#
# Usage examples:
#   python -m emergency_kb.cli init
#   python -m emergency_kb.cli add --file burns.md --format markdown \
#       --category medical --priority 2
#   python -m emergency_kb.cli search "how to stop bleeding" --limit 3
#   python -m emergency_kb.cli stats
# =============================================================================

"""Operator CLI for the emergency knowledge base.

Usage::

    python -m emergency_kb.cli init
    python -m emergency_kb.cli search "severe bleeding" --category medical
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from emergency_kb.config.settings import Settings
from emergency_kb.models.knowledge import (
    DEFAULT_CATEGORY,
    DEFAULT_LANGUAGE,
    DEFAULT_PRIORITY,
    ChunkingStrategy,
    DocumentFormat,
    DocumentMetadata,
)
from emergency_kb.models.results import (
    AlreadyInitialized,
    DocumentAddSuccess,
    InitializationSuccess,
    NoResults,
    SearchSuccess,
)
from emergency_kb.services.knowledge_base import KnowledgeBase
from emergency_kb.services.version_manager import InitializationOutcome

# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _print_initialization(result: InitializationOutcome) -> int:
    if isinstance(result, AlreadyInitialized):
        print(result.message)
        return 0
    if isinstance(result, InitializationSuccess):
        print("Initialization complete:")
        print(f"  Entries added:     {result.entries_added}")
        print(f"  Sources processed: {result.sources_processed}")
        print(f"  Skipped entries:   {result.skipped_count}")
        print(f"  Time:              {result.elapsed_ms} ms")
        for error in result.errors:
            print(f"  ! {error}")
        return 0
    print(f"Error: {result.message}", file=sys.stderr)
    return 1


async def _handle_init(args: argparse.Namespace, kb: KnowledgeBase) -> int:
    """Run the bootstrap check."""
    return _print_initialization(await kb.initialize_if_needed())


async def _handle_reinit(args: argparse.Namespace, kb: KnowledgeBase) -> int:
    """Wipe and rebuild.  Requires confirmation unless --yes is passed."""
    if not args.yes:
        total = await kb.count()
        confirm = input(f"Delete all {total} entries and rebuild? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("Aborted.")
            return 0
    return _print_initialization(await kb.force_reinitialize())


async def _handle_add(args: argparse.Namespace, kb: KnowledgeBase) -> int:
    """Add one document file."""
    path = Path(args.file)
    metadata = DocumentMetadata(
        source=args.source or path.name,
        format=DocumentFormat(args.format),
        category=args.category,
        priority=args.priority,
        language_code=args.language,
        chunking_strategy=ChunkingStrategy(args.strategy),
    )
    try:
        data = path.read_bytes()
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    print(f"Adding {metadata.format.value} document: {path}")
    result = await kb.add_document_at_runtime(data, metadata)
    if not isinstance(result, DocumentAddSuccess):
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    print(f"  Entries added:   {result.entries_added}")
    print(f"  Skipped entries: {result.skipped_count}")
    for error in result.errors:
        print(f"  ! {error}")
    return 0


async def _handle_search(args: argparse.Namespace, kb: KnowledgeBase) -> int:
    """Print ranked matches for a query."""
    result = await kb.search(
        args.query,
        limit=args.limit,
        category=args.category,
        priority_threshold=args.priority_threshold,
    )
    if isinstance(result, NoResults):
        print(result.message)
        return 0
    if not isinstance(result, SearchSuccess):
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    for rank, match in enumerate(result.matches, start=1):
        entry = match.entry
        print(
            f"{rank}. [{entry.category} | P{entry.priority}] {entry.title} "
            f"(relevance {match.relevance_score:.3f}, similarity {match.similarity:.3f})"
        )
        print(f"   {entry.text_preview}")
    return 0


async def _handle_stats(args: argparse.Namespace, kb: KnowledgeBase) -> int:
    """Display knowledge-base statistics."""
    stats = await kb.get_statistics()

    print("Knowledge Base Statistics")
    print("=" * 40)
    print(f"  Total entries: {stats.total_entries}")
    print(f"  Last updated:  {stats.last_updated or 'never'}")

    for label, counts in (
        ("category", stats.category_counts),
        ("priority", stats.priority_counts),
        ("language", stats.language_counts),
    ):
        if counts:
            print(f"\n  Entries by {label}:")
            for key, count in sorted(counts.items()):
                print(f"    {str(key):<15} {count}")
    return 0


_HANDLERS = {
    "init": _handle_init,
    "reinit": _handle_reinit,
    "add": _handle_add,
    "search": _handle_search,
    "stats": _handle_stats,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred so --help never loads the embedding backends.
    from emergency_kb.main import open_knowledge_base

    kb = await open_knowledge_base(app_settings)
    try:
        return await _HANDLERS[args.command](args, kb)
    finally:
        await kb.close()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the knowledge-base CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m emergency_kb.cli",
        description="Manage and query the offline emergency knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Knowledge-base commands")

    # -- init --
    subparsers.add_parser("init", help="Initialize the knowledge base if needed")

    # -- reinit --
    reinit_parser = subparsers.add_parser("reinit", help="Wipe and rebuild from sources")
    reinit_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    # -- add --
    add_parser = subparsers.add_parser("add", help="Add one document")
    add_parser.add_argument("--file", required=True, help="Path to the document")
    add_parser.add_argument(
        "--format",
        required=True,
        choices=[f.value for f in DocumentFormat],
        help="Document format",
    )
    add_parser.add_argument("--source", default=None, help="Source name (default: file name)")
    add_parser.add_argument("--category", default=DEFAULT_CATEGORY, help="Default entry category")
    add_parser.add_argument(
        "--priority", type=int, default=DEFAULT_PRIORITY, help="Default priority (1 = critical)"
    )
    add_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Language code")
    add_parser.add_argument(
        "--strategy",
        default=ChunkingStrategy.FIXED_SIZE.value,
        choices=[s.value for s in ChunkingStrategy],
        help="Chunking strategy for text and PDF documents",
    )

    # -- search --
    search_parser = subparsers.add_parser("search", help="Search the knowledge base")
    search_parser.add_argument("query", help="Free-text query")
    search_parser.add_argument("--limit", type=int, default=None, help="Maximum results")
    search_parser.add_argument("--category", default=None, help="Exact category filter")
    search_parser.add_argument(
        "--priority-threshold",
        type=int,
        default=None,
        dest="priority_threshold",
        help="Only entries with priority <= this value",
    )

    # -- stats --
    subparsers.add_parser("stats", help="Show knowledge-base statistics")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, build the knowledge base, dispatch."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    sys.exit(asyncio.run(_run(args, app_settings)))


if __name__ == "__main__":
    main()
