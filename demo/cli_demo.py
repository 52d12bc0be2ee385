#!/usr/bin/env python3
"""
Interactive CLI demo for the catalog resolver.

Loads a catalog CSV, then resolves each typed question and shows the
decision, the candidate scores and which passages would survive filtering.
"""
import logging
import os
import sys

from dotenv import load_dotenv

# Imports assume PYTHONPATH=src is set (e.g., PYTHONPATH=src python demo/cli_demo.py)
from catalog_resolver.app import CatalogResolverApp
from catalog_resolver.canonicalizer import build_documents
from catalog_resolver.config_loader import load_config_from_env
from catalog_resolver.schemas import AnswerStatus

# Load environment variables
load_dotenv()


def print_banner():
    """Print welcome banner."""
    print("\n" + "=" * 60)
    print("  Catalog Resolver - Interactive CLI Demo")
    print("=" * 60)
    print("\nAsk about a product in the catalog, e.g. 'G3 vekt'.")
    print("Type 'quit' or 'exit' to end the session.")
    print("-" * 60 + "\n")


def print_context(context):
    """Print formatted answer context."""
    outcome = context.outcome
    print(f"\nQuery: {context.query}")
    print(f"Status: {context.status.value}")

    if outcome is not None:
        print(f"Decision: {outcome.decision} (normalized: '{outcome.query_norm}')")
        for candidate in outcome.candidates:
            print(
                f"  {candidate.item.title}: alias={candidate.alias_score:.2f} "
                f"fts={candidate.fts_score:.2f} total={candidate.total_score:.2f}"
            )

    if context.filter_result is not None:
        result = context.filter_result
        print(
            f"Filter: {result.method.value}, kept {len(result.kept)}/{result.original_count}"
            f"{' (fallback)' if result.used_fallback else ''}"
        )

    if context.status == AnswerStatus.ANSWER:
        for doc in context.passages:
            print(f"  [{doc.metadata.get('source')}] {doc.page_content}")
    elif context.message:
        print(f"Message: {context.message}")

    print(f"Latency: {context.latency_ms}ms")
    print("-" * 60)


def setup_app():
    """Set up and initialize the catalog resolver app."""
    config = load_config_from_env()
    if not config.catalog_csv_path:
        config.catalog_csv_path = os.path.join(os.path.dirname(__file__), "..", "data", "catalog.csv")

    app = CatalogResolverApp(config)
    app.initialize()
    print(f"Loaded {len(app.list_items())} catalog items from {config.catalog_csv_path}")
    return app


def main():
    """Main CLI loop."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print_banner()

    try:
        app = setup_app()
    except Exception as e:
        print(f"\nFailed to initialize: {e}")
        print("Please check your environment variables and configuration.")
        return 1

    # Item descriptions stand in for documentation passages
    passages = build_documents(app.list_items())

    while True:
        try:
            query = input("You: ").strip()

            if not query:
                continue

            if query.lower() in ["quit", "exit", "q"]:
                print("\nGoodbye!\n")
                break

            print_context(app.prepare_context(query, passages=passages))

        except KeyboardInterrupt:
            print("\n\nInterrupted. Goodbye!\n")
            break
        except EOFError:
            print("\n\nGoodbye!\n")
            break

    app.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
