# =============================================================================
# workspace_rag/cli/rag.py -- Operator CLI for the workspace vector index
# =============================================================================
#
# Subcommands:
#
#   setup   -- create the index if missing and print its description
#   stats   -- vector counts per namespace
#   ingest  -- chunk, embed and index a local file into a namespace
#   search  -- run a semantic search and print the formatted result
#   delete  -- remove one document's chunks from a namespace
#   purge   -- drop a whole namespace (asks for confirmation unless --yes)
#
# Heavy imports (chromadb, provider SDKs) are deferred inside the handlers so
# `--help` stays fast.
# =============================================================================

"""Command-line management of the workspace RAG index."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from workspace_rag.config.settings import Settings
from workspace_rag.utils.logging import configure_logging


async def _handle_setup(app_settings: Settings) -> int:
    from workspace_rag.main import get_components, shutdown

    store = get_components(app_settings)["vector_store"]
    try:
        created = await store.create_index_if_not_exists()
        description = await store.describe_index()
    finally:
        await shutdown()

    print("Created index." if created else "Index already exists.")
    print(f"  Name:       {description.name}")
    print(f"  Dimension:  {description.dimension}")
    print(f"  Metric:     {description.metric}")
    print(f"  Namespaces: {', '.join(description.namespaces) or '(none)'}")
    return 0


async def _handle_stats(app_settings: Settings) -> int:
    from workspace_rag.main import get_components, shutdown

    store = get_components(app_settings)["vector_store"]
    try:
        stats = await store.get_stats()
    finally:
        await shutdown()

    print("Index Statistics")
    print("=" * 40)
    print(f"  Index:          {stats.index_name}")
    print(f"  Dimension:      {stats.dimension}")
    print(f"  Total vectors:  {stats.total_vector_count}")
    if stats.namespaces:
        print("\n  Vectors by namespace:")
        for namespace, count in sorted(stats.namespaces.items()):
            print(f"    {namespace:30s} {count:>8d}")
    return 0


async def _handle_ingest(args: argparse.Namespace, app_settings: Settings) -> int:
    from workspace_rag.main import get_components, shutdown
    from workspace_rag.models.rag import Document

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    document = Document(
        id=args.document_id or path.stem,
        workspace_id=args.namespace,
        content=path.read_text(encoding="utf-8"),
        title=args.title or path.stem,
        document_type=args.document_type,
        created_at=datetime.now(timezone.utc),
        created_by_user_id="cli",
    )
    print(f"Ingesting {path} as '{document.id}' ({document.document_type}) into '{args.namespace}'")

    sync_service = get_components(app_settings)["sync_service"]
    try:
        outcome = await sync_service.sync(document)
    finally:
        await shutdown()

    print(f"  Status:         {outcome.status.value}")
    print(f"  Chunks written: {outcome.chunks_written}")
    print(f"  Time:           {outcome.elapsed_seconds:.2f}s")
    for error in outcome.errors:
        print(f"  Error: {error}", file=sys.stderr)
    return 0 if outcome.ok else 1


async def _handle_search(args: argparse.Namespace, app_settings: Settings) -> int:
    from workspace_rag.main import get_components, shutdown
    from workspace_rag.models.search import QueryRequest

    request = QueryRequest(
        query=args.query,
        namespace=args.namespace,
        content_type=args.content_type,
        top_k=args.top_k,
        expand_context=args.expand_context,
        use_reranking=not args.no_rerank,
    )
    retrieval_service = get_components(app_settings)["retrieval_service"]
    try:
        response = await retrieval_service.search(request)
    finally:
        await shutdown()

    if args.json:
        print(json.dumps(response.to_tool_result(), indent=2, default=str))
    elif response.success:
        print(f"{response.match_count} match(es) in {response.duration}\n")
        print(response.content)
    else:
        print(f"Error: {response.error}", file=sys.stderr)
    return 0 if response.success else 1


async def _handle_delete(args: argparse.Namespace, app_settings: Settings) -> int:
    from workspace_rag.main import get_components, shutdown

    sync_service = get_components(app_settings)["sync_service"]
    try:
        outcome = await sync_service.delete(args.document_id, args.namespace)
    finally:
        await shutdown()

    if not outcome.ok:
        print(f"Error: {'; '.join(outcome.errors)}", file=sys.stderr)
        return 1
    print(f"Deleted chunks of '{args.document_id}' from '{args.namespace}'.")
    return 0


async def _handle_purge(args: argparse.Namespace, app_settings: Settings) -> int:
    """Drop every vector in a namespace.  Destructive; confirms unless --yes."""
    from workspace_rag.main import get_components, shutdown

    store = get_components(app_settings)["vector_store"]
    try:
        stats = await store.get_stats()
        count = stats.namespaces.get(args.namespace, 0)
        if count == 0:
            print(f"Namespace '{args.namespace}' is empty. Nothing to purge.")
            return 0

        print(f"  Found {count} vectors in namespace '{args.namespace}'")
        if not args.yes:
            confirm = input(f"  Delete all {count} vectors? [y/N] ").strip().lower()
            if confirm not in ("y", "yes"):
                print("  Aborted.")
                return 0

        await store.delete_namespace(args.namespace)
    finally:
        await shutdown()

    print(f"\n  Purged namespace '{args.namespace}'.")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workspace-rag",
        description="Manage and query the workspace RAG vector index.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Index commands")

    subparsers.add_parser("setup", help="Create the index if it does not exist")
    subparsers.add_parser("stats", help="Show vector counts per namespace")

    ingest_parser = subparsers.add_parser("ingest", help="Index a local file")
    ingest_parser.add_argument("--file", required=True, help="Path to the document")
    ingest_parser.add_argument("--namespace", required=True, help="Workspace id")
    ingest_parser.add_argument(
        "--document-type",
        required=True,
        dest="document_type",
        help="Document type, e.g. transcript, summary, context",
    )
    ingest_parser.add_argument("--title", default=None, help="Title (default: file name)")
    ingest_parser.add_argument(
        "--document-id",
        default=None,
        dest="document_id",
        help="Document id (default: file name without extension)",
    )

    search_parser = subparsers.add_parser("search", help="Semantic search in a namespace")
    search_parser.add_argument("query", help="Search text")
    search_parser.add_argument("--namespace", required=True, help="Workspace id")
    search_parser.add_argument("--top-k", type=int, default=5, dest="top_k", help="Results (1-20)")
    search_parser.add_argument(
        "--content-type",
        choices=["transcript", "summary", "all"],
        default="all",
        dest="content_type",
    )
    search_parser.add_argument(
        "--expand-context",
        action="store_true",
        dest="expand_context",
        help="Include neighbouring chunks",
    )
    search_parser.add_argument(
        "--no-rerank",
        action="store_true",
        dest="no_rerank",
        help="Skip the reranking pass",
    )
    search_parser.add_argument("--json", action="store_true", help="Print the raw tool payload")

    delete_parser = subparsers.add_parser("delete", help="Remove one document's chunks")
    delete_parser.add_argument("--document-id", required=True, dest="document_id")
    delete_parser.add_argument("--namespace", required=True, help="Workspace id")

    purge_parser = subparsers.add_parser("purge", help="Delete every vector in a namespace")
    purge_parser.add_argument("--namespace", required=True, help="Workspace id")
    purge_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, load settings and dispatch to the subcommand handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=args.log_level or app_settings.log_level)

    handlers: dict[str, Any] = {
        "setup": lambda: _handle_setup(app_settings),
        "stats": lambda: _handle_stats(app_settings),
        "ingest": lambda: _handle_ingest(args, app_settings),
        "search": lambda: _handle_search(args, app_settings),
        "delete": lambda: _handle_delete(args, app_settings),
        "purge": lambda: _handle_purge(args, app_settings),
    }
    exit_code = asyncio.run(handlers[args.command]())
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
