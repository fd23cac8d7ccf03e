"""
CLI Interface for the repository catalogue.

This module handles command-line argument parsing and validation.
"""

import argparse
import os
from pathlib import Path

from repocatalog.config import (
    DATABASE_URL_ENV,
    DEFAULT_DATABASE_URL,
    DEFAULT_OUTPUT_DIR,
    LOG_LEVEL,
    LOG_LEVEL_ENV,
    OUTPUT_DIR_ENV,
)


def build_parser():
    """
    Build the argument parser with one subcommand per catalogue operation.

    Returns:
        argparse.ArgumentParser: The configured parser.
    """
    parser = argparse.ArgumentParser(
        prog="repocatalog",
        description="Catalogue, classify and compare repositories (LLM-assisted)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog="Environment: OPENAI_API_KEY enables LLM analysis (optional).",
    )

    parser.add_argument(
        "--database",
        default=os.getenv(DATABASE_URL_ENV, DEFAULT_DATABASE_URL),
        help="SQLAlchemy database URL of the catalogue.",
    )

    parser.add_argument(
        "--output-dir",
        default=Path(os.getenv(OUTPUT_DIR_ENV, str(DEFAULT_OUTPUT_DIR))),
        type=Path,
        help="Directory to save flattened repository outputs.",
    )

    parser.add_argument(
        "--log-level",
        default=os.getenv(LOG_LEVEL_ENV, LOG_LEVEL),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    process = subparsers.add_parser("process", help="Process a single repository.")
    process.add_argument("url", help="Repository URL or local path.")
    process.add_argument("name", help="Repository name.")
    process.add_argument("description", nargs="?", default="", help="Repository description.")

    batch = subparsers.add_parser("batch", help="Process repositories listed in a JSON file.")
    batch.add_argument("batch_file", type=Path, help="JSON array of {url, name, description}.")

    analyze = subparsers.add_parser(
        "analyze", help="Compare all repositories and generate a report."
    )
    analyze.add_argument("--needs", default=None, help="Free-text description of your needs.")

    subparsers.add_parser("list", help="List all repositories.")
    subparsers.add_parser("categories", help="List all categories.")
    subparsers.add_parser("tools", help="List all tools grouped by repository.")

    category = subparsers.add_parser("category", help="Report for one category.")
    category.add_argument("name", help="Category name, e.g. web-scraping.")

    return parser


def parse_arguments(argv=None):
    """
    Parse command-line arguments for the repository catalogue.

    Args:
        argv (list, optional): Arguments to parse; defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    return build_parser().parse_args(argv)


def validate_arguments(args):
    """
    Validate the parsed command-line arguments.

    Args:
        args (argparse.Namespace): Parsed command-line arguments.

    Returns:
        tuple: (is_valid, error_message)
    """
    if not args.database or not str(args.database).strip():
        return False, "database URL must not be empty"

    if args.command == "process":
        if not args.url.strip():
            return False, "url must not be empty"
        if not args.name.strip():
            return False, "name must not be empty"

    if args.command == "batch":
        batch_file = Path(args.batch_file)
        if not batch_file.exists():
            return False, f"Batch file does not exist: {args.batch_file}"
        if not batch_file.is_file():
            return False, f"Batch path is not a file: {args.batch_file}"

    if args.command in ("process", "batch"):
        output_dir = Path(args.output_dir)
        if output_dir.exists() and not output_dir.is_dir():
            return False, f"Output path exists but is not a directory: {args.output_dir}"

    return True, ""
