"""
Three-stage ID photo pipeline: face validation -> segmentation -> generation.

Stages run strictly in sequence and the first failure ends the run. A failed
run raises PhotoProcessingError tagged with the stage kind and never returns a
partial result.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from idphotoshop.core.errors import (
    FACE_DETECTION_FAILED,
    GENERATION_FAILED,
    SEGMENTATION_FAILED,
    UNKNOWN,
    VALIDATION_FAILED,
    PhotoProcessingError,
    error_message,
)
from idphotoshop.core.models import (
    FaceDetectionResult,
    GenerationOptions,
    GenerationResult,
    PipelineResult,
    ProgressEvent,
    SegmentationResult,
    UploadedImage,
)
from idphotoshop.instructions.prompt import build_prompt
from idphotoshop.validation.face_rules import MIN_FACE_CONFIDENCE, check_face_detection

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]
T = TypeVar("T")


class ProcessingBackend(Protocol):
    """What the pipeline needs from the remote service."""

    async def detect_faces(self, image_b64: str) -> FaceDetectionResult: ...

    async def segment_person(self, image_b64: str) -> SegmentationResult: ...

    async def generate_id_photo(
        self, segmented_b64: str, options: GenerationOptions, prompt: Optional[str] = None
    ) -> GenerationResult: ...


class PhotoPipeline:
    def __init__(self, client: ProcessingBackend, *, min_confidence: float = MIN_FACE_CONFIDENCE):
        self.client = client
        self.min_confidence = min_confidence

    async def run(
        self,
        image: UploadedImage,
        options: GenerationOptions,
        instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Run all three stages for `image`.

        instruction:
            Free text forwarded to the generator as its prompt. When blank, a
            prompt is synthesized from `options`.
        on_progress:
            Called once per stage transition with increasing percentages
            (10, 30, 60, 100).
        """
        def emit(stage, percent: int, message: str) -> None:
            if on_progress is not None:
                on_progress(ProgressEvent(stage=stage, percent=percent, message=message))

        logger.info("Pipeline started for image %s (%s)", image.id, options.size)

        # Stage 1: face validation
        emit("face_detection", 10, "Detecting face...")
        faces = await self._stage(FACE_DETECTION_FAILED, lambda: self.client.detect_faces(image.base64))
        report = check_face_detection(faces, self.min_confidence)
        failure = report.first_failure()
        if failure is not None:
            logger.info("Face validation rejected image %s: %s", image.id, failure.rule_id)
            raise PhotoProcessingError(
                failure.message,
                VALIDATION_FAILED,
                {"rule_id": failure.rule_id, "report": report},
            )

        # Stage 2: person segmentation
        emit("segmentation", 30, "Face check passed, segmenting person...")
        segmentation = await self._stage(SEGMENTATION_FAILED, lambda: self.client.segment_person(image.base64))

        # Stage 3: ID photo generation
        emit("generation", 60, "Person segmented, generating ID photo...")
        prompt = instruction.strip() if instruction and instruction.strip() else build_prompt(options)
        generation = await self._stage(
            GENERATION_FAILED,
            lambda: self.client.generate_id_photo(segmentation.segmented_image, options, prompt),
        )

        result = PipelineResult.from_stages(faces, segmentation, generation)
        emit("complete", 100, "ID photo ready.")
        logger.info("Pipeline finished for image %s", image.id)
        return result

    @staticmethod
    async def _stage(code: str, call: Callable[[], Awaitable[T]]) -> T:
        """Await one remote call, re-raising any failure tagged with the stage kind."""
        try:
            return await call()
        except PhotoProcessingError as e:
            logger.warning("%s: %s (%s)", code, e.message, e.code)
            raise PhotoProcessingError(e.message, code, e.details, reason=e.code) from e
        except Exception as e:
            logger.exception("%s: unexpected error", code)
            raise PhotoProcessingError(error_message(e), code, reason=UNKNOWN) from e
