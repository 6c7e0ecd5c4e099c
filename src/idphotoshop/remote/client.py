"""
Async client for the remote photo-processing service.

Every operation returns a typed result or raises PhotoProcessingError with one
of API_ERROR / NETWORK_ERROR / TIMEOUT_ERROR, so callers never see httpx
exceptions. The client does not retry.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, Optional, TypeVar

import httpx

from idphotoshop.core.config import AppConfig
from idphotoshop.core.errors import API_ERROR, NETWORK_ERROR, TIMEOUT_ERROR, PhotoProcessingError
from idphotoshop.core.models import (
    FaceDetectionResult,
    GenerationOptions,
    GenerationResult,
    SegmentationResult,
)
from idphotoshop.instructions.prompt import build_prompt

logger = logging.getLogger(__name__)

FACE_DETECTION_ENDPOINT = "/api/face-detection"
PERSON_SEGMENTATION_ENDPOINT = "/api/person-segmentation"
ID_PHOTO_GENERATION_ENDPOINT = "/api/id-photo-generation"
HEALTH_CHECK_ENDPOINT = "/api/health"

DETECTION_MIN_CONFIDENCE = 0.7
DETECTION_MAX_FACES = 10
SEGMENTATION_MODEL = "deeplabv3"

T = TypeVar("T")


class RemoteProcessingClient:
    """
    Usage:
        async with RemoteProcessingClient(AppConfig.from_env()) as client:
            faces = await client.detect_faces(image.base64)

    Pass `http_client` to share a connection pool, or `transport` to swap the
    network layer (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or AppConfig()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=self.config.base_url, transport=transport)

    async def __aenter__(self) -> "RemoteProcessingClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # ---------- Transport ----------

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        timeout: float,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the envelope's `data`."""
        request_id = str(uuid.uuid4())
        headers = {
            "Content-Type": "application/json",
            "X-Request-ID": request_id,
            **self.config.headers,
        }
        details: dict[str, Any] = {"endpoint": endpoint, "request_id": request_id}
        logger.debug("%s %s (request %s, timeout %.1fs)", method, endpoint, request_id, timeout)

        try:
            # wait_for cancels the in-flight request when the budget runs out.
            response = await asyncio.wait_for(
                self._http.request(method, endpoint, json=body, headers=headers, timeout=timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("%s %s timed out after %.1fs (request %s)", method, endpoint, timeout, request_id)
            raise PhotoProcessingError("Request timeout", TIMEOUT_ERROR, {**details, "timeout": timeout}) from None
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s (request %s)", method, endpoint, e, request_id)
            raise PhotoProcessingError(
                f"Network error: {e}" if str(e) else "Network error",
                NETWORK_ERROR,
                {**details, "original_error": repr(e)},
            ) from e

        if not response.is_success:
            logger.warning("%s %s returned HTTP %s (request %s)", method, endpoint, response.status_code, request_id)
            raise PhotoProcessingError(
                f"API request failed: {response.status_code} {response.reason_phrase}".strip(),
                API_ERROR,
                {**details, "status": response.status_code},
            )

        try:
            envelope = response.json()
        except ValueError as e:
            raise PhotoProcessingError("API returned a malformed response", API_ERROR, details) from e
        if not isinstance(envelope, dict):
            raise PhotoProcessingError("API returned a malformed response", API_ERROR, details)

        if not envelope.get("success"):
            error = envelope.get("error")
            if not isinstance(error, dict):
                error = {}
            logger.warning(
                "%s %s reported failure %s (request %s)", method, endpoint, error.get("code"), request_id
            )
            raise PhotoProcessingError(
                error.get("message") or "API request failed",
                API_ERROR,
                {**details, "code": error.get("code"), "details": error.get("details")},
            )

        return envelope.get("data")

    @staticmethod
    def _parse(factory: Callable[[dict[str, Any]], T], data: Any, endpoint: str) -> T:
        try:
            return factory(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PhotoProcessingError(
                "API returned an incomplete payload", API_ERROR, {"endpoint": endpoint, "missing": str(e)}
            ) from e

    # ---------- Operations ----------

    async def detect_faces(self, image_b64: str) -> FaceDetectionResult:
        data = await self._request(
            "POST",
            FACE_DETECTION_ENDPOINT,
            timeout=self.config.face_detection_timeout,
            body={
                "image": image_b64,
                "minConfidence": DETECTION_MIN_CONFIDENCE,
                "maxFaces": DETECTION_MAX_FACES,
            },
        )
        return self._parse(FaceDetectionResult.from_payload, data, FACE_DETECTION_ENDPOINT)

    async def segment_person(self, image_b64: str) -> SegmentationResult:
        data = await self._request(
            "POST",
            PERSON_SEGMENTATION_ENDPOINT,
            timeout=self.config.segmentation_timeout,
            body={"image": image_b64, "model": SEGMENTATION_MODEL, "outputFormat": "png"},
        )
        return self._parse(SegmentationResult.from_payload, data, PERSON_SEGMENTATION_ENDPOINT)

    async def generate_id_photo(
        self,
        segmented_b64: str,
        options: GenerationOptions,
        prompt: Optional[str] = None,
    ) -> GenerationResult:
        data = await self._request(
            "POST",
            ID_PHOTO_GENERATION_ENDPOINT,
            timeout=self.config.generation_timeout,
            body={
                "image": segmented_b64,
                "options": options.to_payload(),
                "prompt": prompt or build_prompt(options),
                "enhanceQuality": True,
                "removeBackground": True,
            },
        )
        return self._parse(GenerationResult.from_payload, data, ID_PHOTO_GENERATION_ENDPOINT)

    async def health_check(self) -> bool:
        try:
            await self._request("GET", HEALTH_CHECK_ENDPOINT, timeout=self.config.health_timeout)
        except PhotoProcessingError as e:
            logger.warning("Health check failed: %s (%s)", e.message, e.code)
            return False
        except Exception as e:
            logger.warning("Health check failed: %r", e)
            return False
        return True
