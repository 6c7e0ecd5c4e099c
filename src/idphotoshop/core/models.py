from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

PhotoSize = Literal["1inch", "2inch", "passport", "custom"]
OutputFormat = Literal["png", "jpg"]
Lighting = Literal["natural", "studio", "bright"]
Style = Literal["professional", "casual", "traditional"]
Stage = Literal[
    "idle",
    "uploading",
    "face_detection",
    "validation",
    "segmentation",
    "generation",
    "complete",
]

PHOTO_SIZES: tuple[str, ...] = ("1inch", "2inch", "passport", "custom")
OUTPUT_FORMATS: tuple[str, ...] = ("png", "jpg")
LIGHTINGS: tuple[str, ...] = ("natural", "studio", "bright")
STYLES: tuple[str, ...] = ("professional", "casual", "traditional")
STAGES: tuple[str, ...] = (
    "idle",
    "uploading",
    "face_detection",
    "validation",
    "segmentation",
    "generation",
    "complete",
)
# Stages during which a spinner is shown.
PROGRESS_STAGES: tuple[str, ...] = tuple(s for s in STAGES if s not in ("idle", "complete"))


@dataclass(frozen=True)
class GenerationOptions:
    """
    Parameters that control how the ID photo is generated.

    size:
        Photo size class. Default "1inch".
    background_color:
        Hex colour of the generated background. Default white.
    format / quality:
        Output encoding; quality is 0-100. Defaults "png" / 95.
    padding:
        Margin around the subject as a fraction of the output size. Default 0.1.
    lighting / style:
        Presets forwarded to the generator. Defaults "studio" / "professional".
    """
    size: PhotoSize = "1inch"
    background_color: str = "#ffffff"
    format: OutputFormat = "png"
    quality: int = 95
    padding: float = 0.1
    lighting: Lighting = "studio"
    style: Style = "professional"

    def __post_init__(self) -> None:
        if self.size not in PHOTO_SIZES:
            raise ValueError(f"Unknown photo size: {self.size!r}")
        if self.format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format: {self.format!r}")
        if self.lighting not in LIGHTINGS:
            raise ValueError(f"Unknown lighting preset: {self.lighting!r}")
        if self.style not in STYLES:
            raise ValueError(f"Unknown style preset: {self.style!r}")
        if not (0 <= self.quality <= 100):
            raise ValueError("quality must be between 0 and 100")
        if not (0.0 <= self.padding < 0.5):
            raise ValueError("padding must be in [0, 0.5)")

    def to_payload(self) -> dict[str, Any]:
        """Options as the generation endpoint expects them (camelCase keys)."""
        return {
            "size": self.size,
            "backgroundColor": self.background_color,
            "format": self.format,
            "quality": self.quality,
            "padding": self.padding,
            "lighting": self.lighting,
            "style": self.style,
        }


@dataclass(frozen=True)
class UploadedImage:
    """A validated user photo. Owns its raw bytes; replaced, never mutated."""
    data: bytes = field(repr=False)
    filename: str
    mime_type: str
    width: int
    height: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BoundingBox":
        return cls(
            x=float(payload["x"]),
            y=float(payload["y"]),
            width=float(payload["width"]),
            height=float(payload["height"]),
        )


@dataclass(frozen=True)
class Landmark:
    x: float
    y: float
    type: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Landmark":
        return cls(x=float(payload["x"]), y=float(payload["y"]), type=str(payload["type"]))


@dataclass(frozen=True)
class Face:
    bounding_box: BoundingBox
    confidence: float
    landmarks: tuple[Landmark, ...] = ()

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Face":
        return cls(
            bounding_box=BoundingBox.from_payload(payload["boundingBox"]),
            confidence=float(payload["confidence"]),
            landmarks=tuple(Landmark.from_payload(lm) for lm in payload.get("landmarks") or ()),
        )


@dataclass(frozen=True)
class FaceDetectionResult:
    has_face: bool
    face_count: int
    faces: tuple[Face, ...]
    processing_time: float = 0.0

    @property
    def primary_face(self) -> Optional[Face]:
        return self.faces[0] if self.faces else None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "FaceDetectionResult":
        return cls(
            has_face=bool(payload["hasFace"]),
            face_count=int(payload["faceCount"]),
            faces=tuple(Face.from_payload(f) for f in payload.get("faces") or ()),
            processing_time=float(payload.get("processingTime", 0.0)),
        )


@dataclass(frozen=True)
class SegmentationResult:
    mask: str = field(repr=False)
    original_image: str = field(repr=False)
    segmented_image: str = field(repr=False)
    processing_time: float = 0.0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SegmentationResult":
        return cls(
            mask=str(payload["mask"]),
            original_image=str(payload.get("originalImage", "")),
            segmented_image=str(payload["segmentedImage"]),
            processing_time=float(payload.get("processingTime", 0.0)),
        )


@dataclass(frozen=True)
class GenerationResult:
    image: str = field(repr=False)
    width: int
    height: int
    format: str
    processing_time: float = 0.0
    prompt: str = ""

    @property
    def data_uri(self) -> str:
        return f"data:image/{self.format};base64,{self.image}"

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GenerationResult":
        size = payload["size"]
        fmt = str(payload["format"]).lower()
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {fmt!r}")
        return cls(
            image=str(payload["image"]),
            width=int(size["width"]),
            height=int(size["height"]),
            format=fmt,
            processing_time=float(payload.get("processingTime", 0.0)),
            prompt=str(payload.get("prompt", "")),
        )


@dataclass(frozen=True)
class PipelineResult:
    """Outputs of all three stages. Only built when every stage succeeded."""
    face_result: FaceDetectionResult
    segmentation_result: SegmentationResult
    generation_result: GenerationResult
    final_image: str = field(repr=False)

    @classmethod
    def from_stages(
        cls,
        face_result: FaceDetectionResult,
        segmentation_result: SegmentationResult,
        generation_result: GenerationResult,
    ) -> "PipelineResult":
        return cls(
            face_result=face_result,
            segmentation_result=segmentation_result,
            generation_result=generation_result,
            final_image=generation_result.data_uri,
        )

    @property
    def format(self) -> str:
        return self.generation_result.format

    def final_image_bytes(self) -> bytes:
        _, _, payload = self.final_image.partition(",")
        return base64.b64decode(payload)


@dataclass(frozen=True)
class ProgressEvent:
    stage: Stage
    percent: int
    message: str = ""
