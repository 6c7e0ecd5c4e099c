import tempfile
import unittest
from pathlib import Path

from tests._test_path import SRC  # noqa: F401

from idphotoshop.app.temp_paths import TempPaths
from idphotoshop.core.models import PipelineResult
from tests._fakes import GENERATED_BYTES, faces, generation, segmentation


class TestTempPaths(unittest.TestCase):
    def test_default_creates_session_dir(self):
        tp = TempPaths.default(app_name="idphotoshop_test_unittest", session_id="s1")
        self.assertTrue(tp.base_dir.exists())
        self.assertTrue(tp.base_dir.is_dir())
        self.assertEqual(tp.base_dir.name, "s1")
        self.assertEqual(tp.preview_image("jpg").name, "preview.jpg")

    def test_sessions_get_separate_dirs(self):
        a = TempPaths.default(app_name="idphotoshop_test_unittest")
        b = TempPaths.default(app_name="idphotoshop_test_unittest")
        self.assertNotEqual(a.base_dir, b.base_dir)

    def test_write_result_replaces_previous_preview(self):
        with tempfile.TemporaryDirectory() as d:
            tp = TempPaths(base_dir=Path(d))
            png = tp.write_result(PipelineResult.from_stages(faces(), segmentation(), generation("png")))
            self.assertEqual(png.read_bytes(), GENERATED_BYTES)

            jpg = tp.write_result(PipelineResult.from_stages(faces(), segmentation(), generation("jpg")))
            self.assertEqual(jpg.name, "preview.jpg")
            self.assertFalse(png.exists())

    def test_cleanup_removes_preview_file(self):
        with tempfile.TemporaryDirectory() as d:
            tp = TempPaths(base_dir=Path(d))
            tp.preview_image().write_bytes(b"test")
            self.assertTrue(tp.preview_image().exists())

            tp.cleanup()
            self.assertFalse(tp.preview_image().exists())

            # Safe to call again
            tp.cleanup()

    def test_preview_name_only_from_known_formats(self):
        tp = TempPaths(base_dir=Path("/nonexistent"))
        for fmt in (".." , "../x", "../../x", "png/../../x"):
            with self.subTest(fmt=fmt), self.assertRaises(ValueError):
                tp.preview_image(fmt)

    def test_write_result_with_unknown_format_writes_nothing(self):
        with tempfile.TemporaryDirectory() as d:
            base = Path(d) / "session"
            tp = TempPaths(base_dir=base)
            result = PipelineResult.from_stages(faces(), segmentation(), generation("../../escaped"))
            with self.assertRaises(ValueError):
                tp.write_result(result)
            self.assertEqual(list(Path(d).rglob("*escaped*")), [])
            self.assertEqual(list(base.iterdir()), [])
