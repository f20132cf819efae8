"""Standalone CLI for the docdesk corpus.

Usage::

    python -m docdesk.cli ingest handbook.pdf notes/*.md
    python -m docdesk.cli stats
    python -m docdesk.cli ask "How do I request VPN access?"
    python -m docdesk.cli ask "And for contractors?" --conversation 3

Components are assembled exactly as the web app assembles them, so the same
``.env`` / ``config/config.yaml`` applies.  With ``STORAGE_BACKEND=memory``
everything is discarded when the command exits; use ``sqlite`` to build a
corpus the server can read.
"""

from __future__ import annotations

import argparse
import asyncio
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any

from docdesk.config.loader import load_settings
from docdesk.config.settings import Settings
from docdesk.models.rag import IngestionResult
from docdesk.services.ingestion.ingestion_service import IngestionService
from docdesk.utils.concurrency import throttled_gather
from docdesk.utils.errors import DocDeskError


def _build_components(app_settings: Settings) -> dict[str, Any]:
    # Deferred so --help does not pay for importing the provider SDKs.
    from docdesk.main import build_components

    return build_components(app_settings)


def _warn_if_ephemeral(app_settings: Settings) -> None:
    if app_settings.storage_backend == "memory":
        print(
            "Note: STORAGE_BACKEND=memory -- results are discarded when this command exits.",
            file=sys.stderr,
        )


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _ingest_copy(
    service: IngestionService,
    source: Path,
    staged: Path,
) -> IngestionResult | None:
    """Ingest a private copy of *source*; ingestion deletes the file it reads."""
    shutil.copy2(source, staged)
    return await service.ingest(
        file_path=staged,
        original_name=source.name,
        file_type=source.suffix.lstrip("."),
    )


async def _handle_ingest(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ingest one or more local files with bounded concurrency."""
    sources = [Path(p) for p in args.files]
    missing = [str(p) for p in sources if not p.is_file()]
    if missing:
        print(f"Error: not a file: {', '.join(missing)}", file=sys.stderr)
        return 1

    components = _build_components(app_settings)
    storage = components["storage"]
    service: IngestionService = components["ingestion_service"]
    print(f"Embedding: {components['embedding_provider'].get_provider_name()} "
          f"| Storage: {app_settings.storage_backend}")
    print()

    await storage.initialize()
    try:
        with tempfile.TemporaryDirectory(prefix="docdesk-ingest-") as tmp:
            staging_dir = Path(tmp)
            semaphore = asyncio.Semaphore(max(1, args.workers or app_settings.ingestion_workers))
            results = await throttled_gather(
                [
                    _ingest_copy(service, src, staging_dir / f"{i}_{src.name}")
                    for i, src in enumerate(sources)
                ],
                semaphore=semaphore,
            )
    finally:
        await storage.close()

    failures = 0
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            failures += 1
            print(f"  FAILED   {source.name}: {result}")
        elif result is None:
            failures += 1
            print(f"  SKIPPED  {source.name}: text could not be extracted")
        else:
            print(
                f"  OK       {source.name}: {result.chunks_created} chunks "
                f"({result.chunks_embedded} embedded, {result.chunks_failed} without embedding) "
                f"in {result.ingestion_time:.2f}s"
            )

    print(f"\n{len(sources) - failures}/{len(sources)} documents ingested.")
    return 1 if failures else 0


async def _handle_stats(app_settings: Settings) -> int:
    """Display corpus statistics."""
    components = _build_components(app_settings)
    storage = components["storage"]
    await storage.initialize()
    try:
        stats = await storage.get_stats()
    finally:
        await storage.close()

    print("Corpus Statistics")
    print("=" * 40)
    print(f"  Documents:         {stats.total_docs}")
    print(f"  Indexed:           {stats.indexed_docs}")
    print(f"  Chunks:            {stats.total_chunks}")
    print(f"  Embedded chunks:   {stats.embedded_chunks}")
    return 0


async def _handle_ask(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ask one question and print the answer with its sources."""
    components = _build_components(app_settings)
    storage = components["storage"]
    chat_service = components["chat_service"]

    await storage.initialize()
    try:
        turn = await chat_service.ask(args.conversation, args.question)
        await chat_service.drain()
    except DocDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await storage.close()

    print(turn.assistant_message.content)
    print()
    if turn.sources:
        print("Sources:")
        for source in turn.sources:
            print(f"  - {source.original_name} ({source.file_type})")
    else:
        print("Sources: none")
    print(f"\nConversation {turn.conversation.id} | retrieval: {turn.retrieval_mode}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the docdesk CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docdesk.cli",
        description="Manage the docdesk document corpus and ask questions against it.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to the YAML config file (default: config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest local documents")
    ingest_parser.add_argument("files", nargs="+", help="Files to ingest (.txt, .md, .docx, .pdf)")
    ingest_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Concurrent ingestions (default: ingestion.workers from config)",
    )

    # -- stats --
    subparsers.add_parser("stats", help="Show corpus statistics")

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Ask a question against the corpus")
    ask_parser.add_argument("question", help="Question text")
    ask_parser.add_argument(
        "--conversation",
        type=int,
        default=None,
        help="Continue an existing conversation by id",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        app_settings = load_settings(args.config)
    except DocDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    _warn_if_ephemeral(app_settings)

    if args.command == "ingest":
        return asyncio.run(_handle_ingest(args, app_settings))
    if args.command == "stats":
        return asyncio.run(_handle_stats(app_settings))
    if args.command == "ask":
        return asyncio.run(_handle_ask(args, app_settings))

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
