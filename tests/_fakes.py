"""Shared test doubles: a scripted processing backend and sample payloads."""

import asyncio
import base64
import io
import struct
import zlib

from PIL import Image

from tests._test_path import SRC  # noqa: F401

from idphotoshop.core.models import (
    BoundingBox,
    Face,
    FaceDetectionResult,
    GenerationResult,
    SegmentationResult,
    UploadedImage,
)

GENERATED_BYTES = b"\x89PNG generated"


def png_bytes(size=(40, 30), color=(200, 180, 160)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def _png_chunk(kind: bytes, body: bytes) -> bytes:
    return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body))


def oversized_png(width: int = 100_000, height: int = 100_000) -> bytes:
    """A PNG that declares huge dimensions but carries no pixel data."""
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + _png_chunk(b"IHDR", header) + _png_chunk(b"IDAT", b"")


def uploaded_image() -> UploadedImage:
    return UploadedImage(data=png_bytes(), filename="me.png", mime_type="image/png", width=40, height=30)


def faces(count: int = 1, confidence: float = 0.95) -> FaceDetectionResult:
    box = BoundingBox(x=10, y=5, width=20, height=20)
    return FaceDetectionResult(
        has_face=count > 0,
        face_count=count,
        faces=tuple(Face(bounding_box=box, confidence=confidence) for _ in range(count)),
        processing_time=0.1,
    )


def segmentation() -> SegmentationResult:
    return SegmentationResult(mask="bWFzaw==", original_image="b3JpZw==", segmented_image="c2VnbWVudGVk")


def generation(fmt: str = "png") -> GenerationResult:
    return GenerationResult(
        image=base64.b64encode(GENERATED_BYTES).decode("ascii"),
        width=295,
        height=413,
        format=fmt,
        prompt="p",
    )


class FakeBackend:
    """
    Stands in for RemoteProcessingClient. Each stage returns its scripted value,
    or raises it when it is an exception. Calls are recorded in order.
    """

    def __init__(self, detect=None, segment=None, generate=None, delay: float = 0.0):
        self.detect = faces() if detect is None else detect
        self.segment = segmentation() if segment is None else segment
        self.generate = generation() if generate is None else generate
        self.delay = delay
        self.calls = []

    async def _answer(self, name, value):
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(value, BaseException):
            raise value
        return value

    async def detect_faces(self, image_b64):
        self.last_detect_image = image_b64
        return await self._answer("detect_faces", self.detect)

    async def segment_person(self, image_b64):
        self.last_segment_image = image_b64
        return await self._answer("segment_person", self.segment)

    async def generate_id_photo(self, segmented_b64, options, prompt=None):
        self.last_generate_args = (segmented_b64, options, prompt)
        return await self._answer("generate_id_photo", self.generate)
