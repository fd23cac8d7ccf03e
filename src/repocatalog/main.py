"""
Main entry point for the repository catalogue CLI.

This module ties together all components and provides the main execution flow.
"""

import json
import os
import sys

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from repocatalog.aggregator import Aggregator
from repocatalog.analyzer import build_analyzer
from repocatalog.cli import parse_arguments, validate_arguments
from repocatalog.config import DEFAULT_MODEL_NAME, MODEL_NAME_ENV, OPENAI_API_KEY_ENV
from repocatalog.errors import RepoCatalogError
from repocatalog.logging_config import setup_logging
from repocatalog.pipeline import IngestionPipeline, load_batch_file
from repocatalog.repository import RepositoryContentExtractor
from repocatalog.store import Store


def _print_json(payload):
    print(json.dumps(payload, indent=2, default=str))


def _build_analyzer(logger):
    """Selects the analyzer once for the whole run."""
    analyzer = build_analyzer(
        api_key=os.getenv(OPENAI_API_KEY_ENV),
        model_name=os.getenv(MODEL_NAME_ENV, DEFAULT_MODEL_NAME),
    )
    logger.info(f"Analyzer mode: {analyzer.mode}")
    return analyzer


def _build_pipeline(args, store, logger):
    extractor = RepositoryContentExtractor(output_dir=args.output_dir)
    return IngestionPipeline(store, _build_analyzer(logger), extractor)


def _handle_process(args, store, logger):
    """Processes one repository; fails when the pipeline fails."""
    result = _build_pipeline(args, store, logger).process(args.url, args.name, args.description)
    _print_json(result.to_dict())
    return 0 if result.success else 1


def _handle_batch(args, store, logger):
    """Processes every batch entry; fails when any entry fails."""
    entries = load_batch_file(args.batch_file)
    logger.info(f"Processing {len(entries)} repositories from {args.batch_file}")
    results = _build_pipeline(args, store, logger).process_batch(entries)
    failures = [result for result in results if not result["success"]]
    _print_json(
        {
            "total": len(results),
            "succeeded": len(results) - len(failures),
            "failed": len(failures),
            "results": results,
        }
    )
    return 1 if failures else 0


def _handle_analyze(args, store, logger):
    report = Aggregator(store, _build_analyzer(logger)).run(args.needs)
    _print_json(report)
    return 0


def _handle_list(args, store, logger):
    repositories = [
        {key: value for key, value in repository.items() if key != "raw_content"}
        for repository in store.list_repositories()
    ]
    _print_json({"total": len(repositories), "repositories": repositories})
    return 0


def _handle_categories(args, store, logger):
    categories = store.list_categories()
    _print_json({"total": len(categories), "categories": categories})
    return 0


def _handle_tools(args, store, logger):
    # Reporting never calls the analyzer
    _print_json(Aggregator(store, analyzer=None).tools_listing())
    return 0


def _handle_category(args, store, logger):
    _print_json(Aggregator(store, analyzer=None).category_report(args.name))
    return 0


HANDLERS = {
    "process": _handle_process,
    "batch": _handle_batch,
    "analyze": _handle_analyze,
    "list": _handle_list,
    "categories": _handle_categories,
    "tools": _handle_tools,
    "category": _handle_category,
}


def main(argv=None):
    """
    Main function to run the repository catalogue.

    Args:
        argv (list, optional): Command-line arguments; defaults to sys.argv[1:].

    Returns:
        int: Process exit code (0 on success, 1 on failure).
    """
    load_dotenv()
    args = parse_arguments(argv)
    logger = setup_logging(args.log_level)

    is_valid, error_message = validate_arguments(args)
    if not is_valid:
        logger.error(f"Invalid arguments: {error_message}")
        _print_json({"success": False, "error": error_message})
        return 1

    try:
        with Store(args.database) as store:
            return HANDLERS[args.command](args, store, logger)
    except (RepoCatalogError, SQLAlchemyError) as e:
        logger.error(f"{args.command} failed: {str(e)}")
        _print_json({"success": False, "error": str(e)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
