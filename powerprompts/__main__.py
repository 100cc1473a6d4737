"""CLI entry point for powerprompts.

Usage:
    export OPENAI_API_KEY="your-api-key-here"
    python -m powerprompts "Write a haiku about the sea" --framework RACE --techniques cot rsip
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from powerprompts.clients import OpenAICompletionClient
from powerprompts.config import load_settings, setup_logging
from powerprompts.errors import ConfigurationError, RetrievalUnavailable
from powerprompts.optimizer import PromptOptimizer
from powerprompts.retrieval import ChromaSimilarityStore, DocumentService
from powerprompts.runner import OptimizationRunner
from powerprompts.storage import Database, SqlPromptStore
from powerprompts.types import FRAMEWORKS, TECHNIQUES, OptimizationRequest

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the optimize command."""
    parser = argparse.ArgumentParser(
        prog="powerprompts", description="Iteratively optimize a prompt against a synthetic dataset"
    )
    parser.add_argument("prompt", help="Prompt text to optimize")
    parser.add_argument("--framework", choices=FRAMEWORKS, default="RACE")
    parser.add_argument("--techniques", nargs="*", choices=TECHNIQUES, default=[])
    parser.add_argument("--iterations", type=int, default=1, help="Rounds to run (1-3)")
    parser.add_argument("--examples", type=int, default=15, help="Dataset size (5-50)")
    parser.add_argument("--model", default=None, help="Worker model (defaults to DEFAULT_MODEL)")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--rag-collection", default="knowledge_base")
    parser.add_argument(
        "--ingest",
        type=Path,
        action="append",
        default=[],
        help="Text file to add to the retrieval collection before running (repeatable)",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    """Build the pipeline from settings and run one optimization."""
    settings = load_settings(args.config)
    setup_logging(settings.log_level)

    try:
        request = OptimizationRequest(
            prompt=args.prompt,
            selected_framework=args.framework,
            techniques_enabled=args.techniques,
            parameters={"model": args.model},
            dataset_config={"example_count": args.examples},
            iteration_count=args.iterations,
            rag_collection=args.rag_collection,
        )
    except ValidationError as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        return 1

    client = OpenAICompletionClient.from_settings(settings)
    database = Database(settings.database_path)
    similarity_store = ChromaSimilarityStore(
        client, persist_directory=settings.chroma_path, embedding_model=settings.embedding_model
    )

    try:
        if args.ingest:
            documents = DocumentService(
                similarity_store,
                database,
                chunk_size=settings.optimizer.techniques.chunk_size,
                chunk_overlap=settings.optimizer.techniques.chunk_overlap,
            )
            for path in args.ingest:
                await documents.upload_document(
                    request.rag_collection, path.name, path.read_text(encoding="utf-8")
                )
                print(f"Ingested {path} into '{request.rag_collection}'")

        optimizer = PromptOptimizer(
            client,
            SqlPromptStore(database),
            config=settings.optimizer,
            similarity_store=similarity_store,
        )
        runner = OptimizationRunner(optimizer, verbose=settings.optimizer.verbose)
        result = await runner.run(request)
    finally:
        database.close()

    return 0 if result is not None else 1


def main(argv: list[str] | None = None) -> int:
    """Execute the optimizer and return the process exit code."""
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Set OPENAI_API_KEY (or LLM_PROVIDER=openrouter with OPENROUTER_API_KEY)", file=sys.stderr)
        return 1
    except RetrievalUnavailable as e:
        print(f"Document ingestion failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
