"""Command line entry point."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from doc2notebook.batch import convert_path
from doc2notebook.config import DOC2NOTEBOOK_LOG_LEVEL, DOC2NOTEBOOK_OUTPUT_PATH, DOC2NOTEBOOK_STORE_URL
from doc2notebook.exceptions import Doc2NotebookError
from doc2notebook.formats import get_profile, get_supported_formats
from doc2notebook.schemas import BatchReport
from doc2notebook.store.adapter import OutlineWriter
from doc2notebook.store.http import HttpOutlineStore
from doc2notebook.store.memory import InMemoryOutlineStore
from doc2notebook.utils.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

OUTLINE_FILE_NAME = "outline.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc2notebook",
        description="Convert documents, slide decks and page images into notebook pages.",
    )
    parser.add_argument("input", nargs="?", type=Path, help="File or directory to convert")
    parser.add_argument(
        "--output",
        type=Path,
        default=DOC2NOTEBOOK_OUTPUT_PATH,
        help="Directory under which notebooks are created",
    )
    parser.add_argument("--format", default="Generic", help="Conversion profile name")
    parser.add_argument(
        "--store-url",
        default=DOC2NOTEBOOK_STORE_URL,
        help="Remote outline store; without it the outline is written to outline.json",
    )
    parser.add_argument("--log-level", default=DOC2NOTEBOOK_LOG_LEVEL, help="Logging level")
    parser.add_argument("--list-formats", action="store_true", help="List conversion profiles and exit")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_formats:
        for name in get_supported_formats():
            print(name)
        return 0
    if args.input is None:
        parser.error("INPUT is required")

    configure_logging(args.log_level)
    output_dir: Path = args.output.expanduser().resolve()

    try:
        profile = get_profile(args.format)
        if args.store_url:
            with HttpOutlineStore(args.store_url) as store:
                report = convert_path(
                    profile, args.input, OutlineWriter(store, output_path=output_dir), scratch_dir=output_dir
                )
        else:
            store = InMemoryOutlineStore()
            report = convert_path(
                profile, args.input, OutlineWriter(store, output_path=output_dir), scratch_dir=output_dir
            )
            output_dir.mkdir(parents=True, exist_ok=True)
            store.dump(output_dir / OUTLINE_FILE_NAME)
            logger.info("Outline written", extra={"path": str(output_dir / OUTLINE_FILE_NAME)})
    except Doc2NotebookError as exc:
        logger.error("%s", exc)
        return 1

    print_summary(report)
    return 0 if not report.failed else 1


def print_summary(report: BatchReport) -> None:
    for result in report.converted:
        line = f"converted: {result.source} ({len(result.page_ids)} page(s))"
        if result.error_page_id is not None:
            line += f", {len(result.page_errors)} page(s) with errors"
        print(line)
    for source in report.not_converted:
        print(f"not converted: {source}")
    for failure in report.failed:
        print(f"failed: {failure.source}: {failure.error_type}: {failure.message}")
