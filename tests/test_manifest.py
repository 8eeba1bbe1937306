"""
Tests for manifest structure and console verbosity.
"""

from __future__ import annotations

import io
import json
import unittest

from helpers_cli import workspace_temp_dir

from pdf_unspread.geometry import PageGeometry, Rect
from pdf_unspread.manifest import ManifestRecorder
from pdf_unspread.planner import CENTERED_SINGLE, TWO_WAY, SplitPlan


def _recorder(dry_run: bool = True, verbosity: str = "normal", stream=None) -> ManifestRecorder:
    return ManifestRecorder(
        tool_version="0.0.0",
        command="pdf-unspread --path in.pdf",
        options={},
        inputs={"pdf": "in.pdf"},
        outputs={"out_pdf": "in_unspread.pdf"},
        dry_run=dry_run,
        verbosity=verbosity,
        console_stream=stream if stream is not None else io.StringIO(),
    )


class ManifestStructureTests(unittest.TestCase):
    def test_build_manifest_has_expected_shape(self) -> None:
        recorder = _recorder()
        recorder.log("hello")
        page = PageGeometry.of_size(0, 200, 100)
        recorder.record_plan(
            page,
            SplitPlan(TWO_WAY, (Rect(0, 0, 100, 100), Rect(100, 0, 100, 100)), "split at midpoint"),
        )
        recorder.record_plan(
            PageGeometry.of_size(1, 200, 100),
            SplitPlan(CENTERED_SINGLE, (Rect(50, 0, 100, 100),), "last page centered"),
        )

        manifest = recorder.build_manifest({"page_count": 2})
        self.assertEqual(manifest["tool"], "pdf-unspread")
        self.assertIn("started_at", manifest)
        self.assertIn("ended_at", manifest)
        self.assertEqual(manifest["action_counts"], {"split_page": 1, "centered_single": 1})
        self.assertEqual(manifest["actions"][0]["page"], 1)
        self.assertEqual(manifest["actions"][0]["status"], "dry-run")
        self.assertEqual(manifest["actions"][1]["views"][0]["x"], 50)

    def test_write_manifest_respects_dry_run(self) -> None:
        with workspace_temp_dir("manifest") as tmpdir:
            out_path = tmpdir / "manifest.json"
            _recorder(dry_run=True).write_manifest(out_path, {"ok": True})
            self.assertFalse(out_path.exists())

    def test_write_manifest_writes_json(self) -> None:
        with workspace_temp_dir("manifest") as tmpdir:
            out_path = tmpdir / "nested" / "manifest.json"
            recorder = _recorder(dry_run=False)
            recorder.add_action("pass_through", "written", page=1)
            recorder.write_manifest(out_path, {"output_page_count": 1})

            loaded = json.loads(out_path.read_text(encoding="utf-8"))
            self.assertEqual(loaded["summary"]["output_page_count"], 1)
            self.assertEqual(loaded["action_counts"].get("pass_through"), 1)


class ManifestVerbosityTests(unittest.TestCase):
    def test_quiet_suppresses_info_but_prints_error(self) -> None:
        stream = io.StringIO()
        recorder = _recorder(verbosity="quiet", stream=stream)
        recorder.log("hello-info")
        recorder.log("hello-error", level="error")
        output = stream.getvalue()
        self.assertNotIn("hello-info", output)
        self.assertIn("hello-error", output)
        self.assertEqual(len(recorder.logs), 2)

    def test_normal_prints_info_but_not_debug(self) -> None:
        stream = io.StringIO()
        recorder = _recorder(verbosity="normal", stream=stream)
        recorder.log("hello-info")
        recorder.log("hello-debug", level="debug")
        output = stream.getvalue()
        self.assertIn("hello-info", output)
        self.assertNotIn("hello-debug", output)

    def test_verbose_prints_debug_with_level_prefix(self) -> None:
        stream = io.StringIO()
        recorder = _recorder(verbosity="verbose", stream=stream)
        recorder.log("hello-debug", level="debug")
        self.assertIn("[debug] hello-debug", stream.getvalue())


if __name__ == "__main__":
    unittest.main()
