from __future__ import annotations

from typing import Any, Optional

# Pipeline stage failures
VALIDATION_FAILED = "VALIDATION_FAILED"
FACE_DETECTION_FAILED = "FACE_DETECTION_FAILED"
SEGMENTATION_FAILED = "SEGMENTATION_FAILED"
GENERATION_FAILED = "GENERATION_FAILED"

# Transport failures, produced by the remote client
API_ERROR = "API_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT_ERROR = "TIMEOUT_ERROR"

UPLOAD_INVALID = "UPLOAD_INVALID"
UNKNOWN = "UNKNOWN"

STAGE_ERROR_CODES = (VALIDATION_FAILED, FACE_DETECTION_FAILED, SEGMENTATION_FAILED, GENERATION_FAILED)
TRANSPORT_ERROR_CODES = (API_ERROR, NETWORK_ERROR, TIMEOUT_ERROR)

DEFAULT_ERROR_MESSAGE = "An unknown error occurred, please try again."


class PhotoProcessingError(Exception):
    """
    Single error type for everything that can go wrong while producing a photo.

    code:
        One of the module-level codes (stage kind or transport kind).
    reason:
        For stage errors, the lower-level code that caused them
        (API_ERROR / NETWORK_ERROR / TIMEOUT_ERROR / UNKNOWN).
    details:
        Free-form context (HTTP status, endpoint, remote error payload, ...).
    """

    def __init__(
        self,
        message: str,
        code: str = UNKNOWN,
        details: Optional[dict[str, Any]] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.reason = reason

    def __repr__(self) -> str:
        return f"PhotoProcessingError(code={self.code!r}, reason={self.reason!r}, message={self.message!r})"


class UploadError(PhotoProcessingError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code=UPLOAD_INVALID, details=details)


class SessionBusyError(RuntimeError):
    """Raised when a message is sent while another one is still being processed."""


def error_message(error: BaseException) -> str:
    """Human-readable message for any exception."""
    if isinstance(error, PhotoProcessingError):
        return error.message
    text = str(error).strip()
    return text or DEFAULT_ERROR_MESSAGE
