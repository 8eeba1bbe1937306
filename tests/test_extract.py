"""
End-to-end tests of the PDF side: synthetic PDFs in, split PDFs out.

The PDFs are built with PyMuPDF in memory, so no fixtures are needed.
"""

from __future__ import annotations

import unittest

from helpers_cli import make_pdf

try:
    import fitz  # PyMuPDF
except ModuleNotFoundError:  # pragma: no cover - optional dependency for local test runs
    fitz = None  # type: ignore[assignment]

from pdf_unspread.geometry import Rect
from pdf_unspread.planner import SplitConfig
from pdf_unspread.utils import ParseError

if fitz is not None:
    from pdf_unspread.extract import (
        load_document,
        plan_bytes,
        read_page_geometry,
        unspread_bytes,
    )


def _raw_box(doc, page, name):
    kind, value = doc.xref_get_key(page.xref, name)
    if kind == "null":
        return None
    return Rect.from_pdf_array(value)


def _media_boxes(data: bytes):
    with fitz.open(stream=data, filetype="pdf") as doc:
        return [_raw_box(doc, page, "MediaBox") for page in doc]


def _zero_page_pdf() -> bytes:
    """A well-formed PDF whose page tree is empty."""

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [] /Count 0 >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


@unittest.skipIf(fitz is None, "PyMuPDF is required for PDF tests.")
class UnspreadBytesTests(unittest.TestCase):
    def test_two_horizontal_spreads_become_four_pages(self) -> None:
        data = make_pdf([(200, 100), (200, 100)])
        output, result = unspread_bytes(data, SplitConfig())

        self.assertEqual(result.output_page_count, 4)
        self.assertEqual(
            _media_boxes(output),
            [
                Rect(0, 0, 100, 100),
                Rect(100, 0, 100, 100),
                Rect(0, 0, 100, 100),
                Rect(100, 0, 100, 100),
            ],
        )

    def test_output_keeps_source_order(self) -> None:
        data = make_pdf([(200, 100), (200, 100)])
        output, _ = unspread_bytes(data, SplitConfig())
        with fitz.open(stream=output, filetype="pdf") as doc:
            texts = [page.get_text().strip() for page in doc]
        # Text sits at x=10, so only the left half of each spread shows it.
        self.assertEqual(texts, ["page 1", "", "page 2", ""])

    def test_minimal_pages_pass_through_unchanged(self) -> None:
        data = make_pdf([(200, 100), (200, 200), (200, 100)])
        output, result = unspread_bytes(data, SplitConfig(vertical=True))

        self.assertEqual(result.document_plan.variation.sizes, (100, 200))
        self.assertEqual(
            _media_boxes(output),
            [
                Rect(0, 0, 200, 100),
                Rect(0, 100, 200, 100),
                Rect(0, 0, 200, 100),
                Rect(0, 0, 200, 100),
            ],
        )

    def test_single_page_centered(self) -> None:
        data = make_pdf([(200, 100)])
        config = SplitConfig(vertical=True, centered_top=True, centered_last=True)
        output, result = unspread_bytes(data, config)

        self.assertEqual(result.output_page_count, 1)
        self.assertEqual(_media_boxes(output), [Rect(0, 25, 200, 50)])

    def test_rotation_is_copied_and_flips_axis(self) -> None:
        data = make_pdf([(100, 200)], rotations=[90])
        output, result = unspread_bytes(data, SplitConfig())

        self.assertTrue(result.document_plan.rotation_flipped)
        with fitz.open(stream=output, filetype="pdf") as doc:
            self.assertEqual([page.rotation for page in doc], [90, 90])
            self.assertEqual(
                [_raw_box(doc, page, "MediaBox") for page in doc],
                [Rect(0, 100, 100, 100), Rect(0, 0, 100, 100)],
            )

    def test_mixed_rotation_warns(self) -> None:
        data = make_pdf([(200, 100), (200, 100)], rotations=[0, 90])
        _, result = unspread_bytes(data, SplitConfig())
        self.assertEqual(len(result.warnings), 1)

    def test_boxes_equal_to_media_follow_it(self) -> None:
        boxes = [{"CropBox": "[0 0 200 100]", "TrimBox": "[10 10 190 90]"}]
        data = make_pdf([(200, 100)], boxes=boxes)
        output, _ = unspread_bytes(data, SplitConfig())

        with fitz.open(stream=output, filetype="pdf") as doc:
            left, right = doc[0], doc[1]
            self.assertEqual(_raw_box(doc, left, "CropBox"), Rect(0, 0, 100, 100))
            self.assertEqual(_raw_box(doc, right, "CropBox"), Rect(100, 0, 100, 100))
            self.assertEqual(_raw_box(doc, left, "TrimBox"), Rect(10, 10, 180, 80))
            self.assertEqual(_raw_box(doc, right, "TrimBox"), Rect(10, 10, 180, 80))
            self.assertIsNone(_raw_box(doc, left, "ArtBox"))

    def test_media_box_origin_is_respected(self) -> None:
        data = make_pdf([(200, 100)], boxes=[{"MediaBox": "[10 20 210 120]"}])
        output, _ = unspread_bytes(data, SplitConfig())
        self.assertEqual(
            _media_boxes(output),
            [Rect(10, 20, 100, 100), Rect(110, 20, 100, 100)],
        )

    def test_trim_box_singleton_is_centered(self) -> None:
        boxes = [None, {"TrimBox": "[60 0 140 100]"}]
        data = make_pdf([(200, 100), (200, 100)], boxes=boxes)
        output, result = unspread_bytes(data, SplitConfig(trim_box=True))

        self.assertEqual(result.output_page_count, 3)
        self.assertEqual(_media_boxes(output)[2], Rect(50, 0, 100, 100))

    def test_plan_callback_sees_every_page_in_order(self) -> None:
        data = make_pdf([(200, 100)] * 3)
        seen = []
        unspread_bytes(data, SplitConfig(), on_plan=lambda page, plan: seen.append(page.index))
        self.assertEqual(seen, [0, 1, 2])


@unittest.skipIf(fitz is None, "PyMuPDF is required for PDF tests.")
class LoaderTests(unittest.TestCase):
    def test_garbage_is_a_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            load_document(b"this is not a pdf at all")

    def test_empty_input_is_a_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            unspread_bytes(b"", SplitConfig())

    def test_zero_page_pdf_is_a_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            load_document(_zero_page_pdf())

    def test_geometry_is_read_from_page_dictionaries(self) -> None:
        boxes = [{"TrimBox": "[60 0 140 100]"}, None]
        data = make_pdf([(200, 100), (300, 150)], rotations=[0, 270], boxes=boxes)
        with load_document(data) as doc:
            pages = read_page_geometry(doc)

        self.assertEqual([(p.width, p.height) for p in pages], [(200, 100), (300, 150)])
        self.assertEqual([p.rotation for p in pages], [0, 270])
        self.assertEqual(pages[0].trim_box, Rect(60, 0, 80, 100))
        self.assertIsNone(pages[1].trim_box)

    def test_plan_bytes_does_not_need_output(self) -> None:
        pages, plan = plan_bytes(make_pdf([(200, 100)]), SplitConfig())
        self.assertEqual(len(pages), 1)
        self.assertEqual(plan.output_count, 2)


if __name__ == "__main__":
    unittest.main()
