#!/usr/bin/env python3
"""
Command-line entry point for C# snippet extraction.

Resolves member patterns against source files and prints the snippet, or
processes a whole request manifest into a JSONL dump plus a run report.

Usage:
    python run_snippets.py --source-root ./src --file Sample.cs --pattern "NS.OneClass.Foo(string)"
    python run_snippets.py --source-root ./src --file Options.cs --pattern "=Options"
    python run_snippets.py --config snippets.yaml --requests requests.yaml --output out/snippets.jsonl
"""

import argparse
import logging
import sys

from core.run_artifacts import write_jsonl, write_run_report
from core.structured_logging import configure_structured_logging, set_run_id
from snippet.errors import SnippetExtractionError
from snippet.extractor import extract_many
from snippet.settings import (
    ConfigValidationError,
    ExtractionRequest,
    ExtractorSettings,
    load_requests,
    load_settings,
)

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="C# Member Snippet Extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python run_snippets.py --source-root ./src --file Sample.cs --pattern Foo\n"
            "  python run_snippets.py --config snippets.yaml --requests requests.yaml\n"
        ),
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--file",
        help="File to extract from, relative to a source root.",
    )
    mode.add_argument(
        "--requests",
        help="YAML/JSON manifest listing many snippet requests.",
    )

    parser.add_argument(
        "--pattern",
        default="",
        help="Member pattern; empty extracts the whole file. Used with --file.",
    )
    parser.add_argument(
        "--source-root",
        action="append",
        dest="source_roots",
        default=None,
        help="Source directory to resolve files against. Repeatable; first match wins.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML/JSON settings file.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Reject source files containing syntax errors.",
    )
    parser.add_argument(
        "--output",
        default="output/snippets.jsonl",
        help="JSONL output for --requests mode. Default: output/snippets.jsonl",
    )
    parser.add_argument(
        "--report-dir",
        default="output/run_reports",
        help="Directory for the JSON run report. Default: output/run_reports",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)


def extract_single(settings: ExtractorSettings, file_path: str, pattern: str) -> int:
    """Extract one snippet and print it to stdout.

    Returns:
        Process exit code.
    """
    request = ExtractionRequest(file_path=file_path, pattern=pattern)
    batch = extract_many([request], settings)
    result = batch.results[0]
    if not result.ok:
        logger.error("Extraction failed: %s", result.error)
        return 1
    sys.stdout.write(result.snippet.content + "\n")
    return 0


def extract_batch(
    settings: ExtractorSettings,
    manifest_path: str,
    output_file: str,
    run_report: dict,
) -> int:
    """Extract every request of a manifest into a JSONL file.

    Returns:
        Process exit code: 1 when at least one request failed.
    """
    requests = load_requests(manifest_path)
    batch = extract_many(requests, settings)

    lines = write_jsonl((result.to_dict() for result in batch.results), output_file)
    logger.info("Wrote %d snippet record(s) to %s", lines, output_file)

    run_report["stats"] = batch.stats.to_dict()
    run_report["output_file"] = output_file
    run_report["failures"] = [result.to_dict() for result in batch.failures]
    run_report["status"] = "failed" if batch.failures else "success"
    return 1 if batch.failures else 0


def main(argv=None) -> None:
    """Main entry point for snippet extraction."""
    args = parse_args(argv)
    configure_structured_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    run_id = set_run_id()

    try:
        settings = load_settings(
            args.config,
            source_roots=args.source_roots,
            strict_parsing=args.strict,
        )
        if not settings.source_roots:
            raise ConfigValidationError(
                "No source roots configured: use --source-root, a settings file or SNIPPET_SOURCE_ROOTS"
            )
    except ConfigValidationError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(2)

    if args.file is not None:
        sys.exit(extract_single(settings, args.file, args.pattern))

    run_report = {
        "run_id": run_id,
        "pipeline": "snippet_extraction",
        "manifest": args.requests,
        "source_roots": list(settings.source_roots),
        "status": "failed",
    }
    try:
        exit_code = extract_batch(settings, args.requests, args.output, run_report)
    except (ConfigValidationError, SnippetExtractionError, OSError) as e:
        run_report["error"] = str(e)
        exit_code = 1
        logger.error("Snippet extraction failed: %s", e, exc_info=True)

    report_path = write_run_report(run_report, run_id, output_dir=args.report_dir)
    logger.info("Run report written: %s", report_path)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
