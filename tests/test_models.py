import base64
import unittest
from dataclasses import FrozenInstanceError, replace

from tests._test_path import SRC  # noqa: F401

from idphotoshop.core.models import FaceDetectionResult, GenerationOptions, GenerationResult, PipelineResult, UploadedImage
from tests._fakes import faces, generation, segmentation


class TestGenerationOptions(unittest.TestCase):
    def test_defaults(self):
        o = GenerationOptions()
        self.assertEqual(o.size, "1inch")
        self.assertEqual(o.background_color, "#ffffff")
        self.assertEqual(o.format, "png")
        self.assertEqual(o.quality, 95)
        self.assertAlmostEqual(o.padding, 0.1, places=4)
        self.assertEqual(o.lighting, "studio")
        self.assertEqual(o.style, "professional")

    def test_frozen(self):
        o = GenerationOptions()
        with self.assertRaises(FrozenInstanceError):
            o.size = "2inch"  # type: ignore[misc]

    def test_replace(self):
        o = GenerationOptions()
        o2 = replace(o, size="passport", background_color="#1e40af")
        self.assertEqual(o2.size, "passport")
        self.assertEqual(o2.background_color, "#1e40af")
        # original unchanged
        self.assertEqual(o.size, "1inch")

    def test_rejects_out_of_range_values(self):
        with self.assertRaises(ValueError):
            GenerationOptions(quality=101)
        with self.assertRaises(ValueError):
            GenerationOptions(size="3inch")  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            GenerationOptions(lighting="dim")  # type: ignore[arg-type]

    def test_payload_uses_camel_case(self):
        payload = GenerationOptions().to_payload()
        self.assertEqual(payload["backgroundColor"], "#ffffff")
        self.assertEqual(set(payload), {"size", "backgroundColor", "format", "quality", "padding", "lighting", "style"})


class TestPayloadParsing(unittest.TestCase):
    def test_face_detection_from_payload(self):
        r = FaceDetectionResult.from_payload({
            "hasFace": True,
            "faceCount": 1,
            "faces": [{
                "boundingBox": {"x": 1, "y": 2, "width": 3, "height": 4},
                "confidence": 0.9,
                "landmarks": [{"x": 5, "y": 6, "type": "nose"}],
            }],
            "processingTime": 12,
        })
        self.assertTrue(r.has_face)
        self.assertEqual(r.primary_face.bounding_box.width, 3.0)
        self.assertEqual(r.primary_face.landmarks[0].type, "nose")

    def test_missing_key_raises(self):
        with self.assertRaises(KeyError):
            FaceDetectionResult.from_payload({"hasFace": True})

    def test_generation_data_uri(self):
        g = GenerationResult.from_payload({
            "image": "QUJD",
            "size": {"width": 295, "height": 413},
            "format": "jpg",
            "processingTime": 1.5,
            "prompt": "x",
        })
        self.assertEqual(g.data_uri, "data:image/jpg;base64,QUJD")

    def test_generation_rejects_unknown_format(self):
        payload = {"image": "QUJD", "size": {"width": 1, "height": 1}}
        for fmt in ("../../x", "gif", ""):
            with self.subTest(fmt=fmt), self.assertRaises(ValueError):
                GenerationResult.from_payload({**payload, "format": fmt})

    def test_generation_format_is_normalized(self):
        g = GenerationResult.from_payload({"image": "QUJD", "size": {"width": 1, "height": 1}, "format": "PNG"})
        self.assertEqual(g.format, "png")


class TestPipelineResult(unittest.TestCase):
    def test_final_image_from_generation(self):
        result = PipelineResult.from_stages(faces(), segmentation(), generation())
        self.assertTrue(result.final_image.startswith("data:image/png;base64,"))
        self.assertEqual(result.final_image_bytes(), base64.b64decode(generation().image))
        self.assertEqual(result.format, "png")


class TestUploadedImage(unittest.TestCase):
    def test_url_is_data_uri(self):
        img = UploadedImage(data=b"abc", filename="a.png", mime_type="image/png", width=1, height=1)
        self.assertEqual(img.url, "data:image/png;base64,YWJj")
        self.assertEqual(img.base64, "YWJj")
        self.assertTrue(img.id)

    def test_ids_are_unique(self):
        a = UploadedImage(data=b"a", filename="a.png", mime_type="image/png", width=1, height=1)
        b = UploadedImage(data=b"a", filename="a.png", mime_type="image/png", width=1, height=1)
        self.assertNotEqual(a.id, b.id)
