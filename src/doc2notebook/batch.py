"""Convert a file or a directory tree, one document at a time."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from doc2notebook.exceptions import Doc2NotebookError, RendererError, UnsupportedFormatError
from doc2notebook.formats import FormatProfile
from doc2notebook.orchestrator import DocumentConverter
from doc2notebook.renderers import (
    ASSET_FOLDER_SUFFIX,
    AUX_FILE_SUFFIX,
    HTML_EXTENSIONS,
    IMAGE_EXTENSIONS,
    MANIFEST_EXTENSIONS,
    StaticEbook,
    collect_page_images,
    load_manifest,
    natural_sort_key,
)
from doc2notebook.schemas import BatchReport, ConversionResult, DocumentFailure
from doc2notebook.store.adapter import OutlineWriter

logger = logging.getLogger(__name__)


def convert_path(
    profile: FormatProfile,
    input_path: Path,
    writer: OutlineWriter,
    *,
    scratch_dir: Path | None = None,
) -> BatchReport:
    """Convert ``input_path`` with ``profile``.

    A file is converted on its own. A directory is walked recursively:
    markup exports and slide-deck or e-book manifests are converted one by one and
    the images found directly in each directory form one page-image set.
    Asset folders belonging to an export or a manifest are not walked.

    A document that fails is recorded in the report and the walk continues.

    Raises:
        RendererError: If ``input_path`` does not exist.
    """
    converter = DocumentConverter(writer, profile)
    report = BatchReport()

    if input_path.is_file():
        _run(report, input_path, lambda: convert_file(converter, input_path, scratch_dir=scratch_dir))
        return report
    if not input_path.is_dir():
        raise RendererError(f"No such file or directory: {input_path}")

    for root, dirnames, filenames in os.walk(input_path):
        directory = Path(root)
        owned = _asset_folders(filenames)
        dirnames[:] = sorted(name for name in dirnames if name not in owned)

        images = collect_page_images(directory)
        for name in sorted(filenames, key=lambda n: natural_sort_key(Path(n))):
            path = directory / name
            if path.suffix.lower() not in IMAGE_EXTENSIONS:
                _run(report, path, lambda p=path: convert_file(converter, p, scratch_dir=scratch_dir))

        if images:
            _run(
                report,
                directory,
                lambda: converter.convert_page_images(
                    images, section_name=directory.name, source=str(directory)
                ),
            )

    logger.info(
        "Batch finished",
        extra={
            "converted": len(report.converted),
            "failed": len(report.failed),
            "not_converted": len(report.not_converted),
        },
    )
    return report


def convert_file(
    converter: DocumentConverter, path: Path, *, scratch_dir: Path | None = None
) -> ConversionResult:
    """Convert one file, choosing the pipeline by extension.

    Raises:
        UnsupportedFormatError: If no pipeline handles the extension.
    """
    suffix = path.suffix.lower()
    if suffix in HTML_EXTENSIONS:
        return converter.convert_html_file(path, scratch_dir=scratch_dir)
    if suffix in MANIFEST_EXTENSIONS:
        manifest = load_manifest(path)
        if isinstance(manifest, StaticEbook):
            return converter.convert_ebook(manifest, source=str(path))
        return converter.convert_slide_deck(
            manifest, section_name=manifest.name, image_dir=manifest.image_dir, source=str(path)
        )
    if suffix in IMAGE_EXTENSIONS:
        return converter.convert_page_images([path], section_name=path.stem, source=str(path))
    raise UnsupportedFormatError(f"No converter for {path.name}")


def _run(report: BatchReport, source: Path, convert: Callable[[], ConversionResult]) -> None:
    try:
        result = convert()
    except UnsupportedFormatError:
        logger.info("Skipping %s", source)
        report.not_converted.append(str(source))
    except Doc2NotebookError as exc:
        logger.error("Failed to convert %s: %s", source, exc)
        report.failed.append(
            DocumentFailure(source=str(source), error_type=type(exc).__name__, message=str(exc))
        )
    else:
        report.converted.append(result)


def _asset_folders(filenames: list[str]) -> set[str]:
    owned = set()
    for name in filenames:
        path = Path(name)
        suffix = path.suffix.lower()
        if suffix in HTML_EXTENSIONS:
            owned.add(path.stem + ASSET_FOLDER_SUFFIX)
            owned.add(path.stem + AUX_FILE_SUFFIX + ASSET_FOLDER_SUFFIX)
        elif suffix in MANIFEST_EXTENSIONS:
            owned.add(path.stem)
    return owned
