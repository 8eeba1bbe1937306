"""
Split spread pages of a PDF file into single pages.

Why this module exists:
- Ties file I/O, the in-memory transform, debug overlays and the manifest
  together, separate from CLI parsing.
- The output file is only written after every page was planned and copied.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from .extract import page_summaries, plan_bytes, unspread_bytes
from .manifest import ManifestRecorder
from .planner import SplitConfig
from .utils import (
    DEFAULT_SUFFIX,
    UserError,
    ensure_dir,
    ensure_file_path,
    read_bytes,
    validate_positive_int,
    with_suffix,
    write_bytes,
)


def default_out_pdf(pdf_path: Path, suffix: str = DEFAULT_SUFFIX) -> Path:
    """book.pdf -> book_unspread.pdf, next to the input."""

    return with_suffix(pdf_path, suffix)


def debug_dir_for(out_pdf: Path) -> Path:
    return out_pdf.parent / f"{out_pdf.stem}_debug"


def unspread_pdf(
    pdf_path: Path,
    config: SplitConfig,
    out_pdf: Optional[Path],
    suffix: str,
    overwrite: bool,
    dry_run: bool,
    manifest_path: Optional[Path],
    command_string: str,
    options: Dict[str, object],
    debug: bool = False,
    debug_dpi: int = 72,
) -> Path:
    """
    Read `pdf_path`, split its spreads and write the result.

    Returns the output path (even for dry-runs, where nothing is written).
    """

    if out_pdf is None:
        out_pdf = default_out_pdf(pdf_path, suffix)
    if manifest_path is None:
        manifest_path = out_pdf.parent / "manifest.json"

    recorder = ManifestRecorder(
        tool_version=str(options.get("version", "0.0.0")),
        command=command_string,
        options=options,
        inputs={"pdf": str(pdf_path)},
        outputs={"out_pdf": str(out_pdf), "manifest": str(manifest_path)},
        dry_run=dry_run,
        verbosity=str(options.get("verbosity", "normal")),
    )

    total_pages = 0
    output_pages = 0
    error_message: str | None = None
    debug_paths: List[Path] = []
    summary: Dict[str, object] = {
        "page_count": 0,
        "output_page_count": 0,
        "output_pdf": str(out_pdf),
    }

    def write_overlays(work_doc, pages, document_plan) -> None:
        from .debug import write_debug_overlays

        debug_dir = debug_dir_for(out_pdf)
        ensure_dir(debug_dir, dry_run=False)
        debug_paths.extend(
            write_debug_overlays(work_doc, pages, document_plan.plans, debug_dir, debug_dpi)
        )
        recorder.log(f"Wrote {len(debug_paths)} debug overlay(s) to {debug_dir}")
        for path in debug_paths:
            recorder.add_action(action="debug_overlay", status="written", output=str(path))

    try:
        ensure_file_path(out_pdf, "Output PDF")
        validate_positive_int(debug_dpi, "--debug_dpi")
        if out_pdf.resolve() == pdf_path.resolve():
            raise UserError("Output PDF is the same as input. Choose another --out_pdf or --suffix.")

        if out_pdf.exists() and not overwrite and not dry_run:
            recorder.log(f"Skipping because output exists: {out_pdf}")
            recorder.add_action(action="unspread", status="skipped", output=str(out_pdf))
            summary["status"] = "skipped"
            summary["reason"] = "output exists"
            return out_pdf

        data = read_bytes(pdf_path)
        recorder.log(f"Unspreading {pdf_path} -> {out_pdf}")

        if dry_run:
            pages, document_plan = plan_bytes(data, config)
            for page, plan in zip(pages, document_plan.plans):
                recorder.record_plan(page, plan)
            output_pages = document_plan.output_count
            recorder.log(
                f"[dry-run] Would write {output_pages} page(s) from {len(pages)} to {out_pdf}"
            )
        else:
            output, result = unspread_bytes(
                data,
                config,
                on_plan=recorder.record_plan,
                before_assemble=write_overlays if debug else None,
            )
            pages, document_plan = result.pages, result.document_plan
            output_pages = result.output_page_count
            for warning in result.warnings:
                recorder.log(warning, level="warning")
            write_bytes(out_pdf, output)
            recorder.log(f"Wrote {output_pages} page(s) from {len(pages)} to {out_pdf}")

        total_pages = len(pages)
        recorder.inputs["page_count"] = total_pages
        recorder.inputs["effective_vertical"] = document_plan.vertical
        recorder.inputs["rotation_flipped"] = document_plan.rotation_flipped
        recorder.inputs["size_variation"] = list(document_plan.variation.sizes)
        summary["pages"] = page_summaries(pages, document_plan)
        return out_pdf
    except Exception as exc:  # pragma: no cover - includes validation and PyMuPDF errors
        if isinstance(exc, UserError):
            error_message = str(exc)
        else:
            error_message = f"Failed to unspread PDF {pdf_path}: {exc}"
        recorder.log(error_message, level="error")
        recorder.add_action(action="unspread", status="error", error=error_message)
        if isinstance(exc, UserError):
            raise
        raise UserError(error_message) from exc
    finally:
        summary["page_count"] = total_pages
        summary["output_page_count"] = output_pages
        if debug_paths:
            summary["debug_images"] = [str(path) for path in debug_paths]
        if "status" not in summary:
            summary["status"] = "error" if error_message else "ok"
        if error_message is not None:
            summary["error"] = error_message
        recorder.write_manifest(manifest_path, summary)
