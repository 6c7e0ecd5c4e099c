"""
Chat-driven session: each user message either starts a pipeline run or gets a
canned reply.

One session owns exactly one ProcessingStateMachine and at most one in-flight
message. Sessions share no mutable state with each other.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List, Literal, Optional, Sequence, Tuple

from idphotoshop.app.state import ProcessingStateMachine
from idphotoshop.app.temp_paths import TempPaths
from idphotoshop.app.uploads import image_from_bytes, load_uploaded_image
from idphotoshop.core.errors import PhotoProcessingError, SessionBusyError
from idphotoshop.core.models import PROGRESS_STAGES, ProgressEvent, UploadedImage
from idphotoshop.instructions.parser import is_action_intent, parse_instruction
from idphotoshop.pipeline.orchestrator import PhotoPipeline

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I can help you create a professional ID photo. Tell me what you need, "
    "for example the size and background colour."
)
UPLOAD_FIRST_REPLY = "Please upload a photo first, then tell me how you would like it processed."

CANNED_RESPONSES: Tuple[str, ...] = (
    "Got it. I'll adjust the composition and lighting of your photo.",
    "Sure, I'll improve the image quality so it suits an ID photo.",
    "Based on your request, I'll adjust the size and proportions of the photo.",
    "I'll touch up this photo so it looks more professional.",
    "Understood, I'll process the photo the way you asked.",
)


@dataclass(frozen=True)
class Message:
    role: Literal["user", "assistant"]
    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)


class CannedResponder:
    """
    Replies to messages that do not ask for a photo.

    The random choice and the simulated "thinking" delay are injectable so tests
    can run deterministically and without waiting.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        delay: Tuple[float, float] = (1.5, 3.5),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        responses: Sequence[str] = CANNED_RESPONSES,
    ):
        if not responses:
            raise ValueError("responses must not be empty")
        self._rng = rng or random.Random()
        self._delay = delay
        self._sleep = sleep
        self.responses = tuple(responses)

    async def reply(self, text: str) -> str:
        await self._sleep(self._rng.uniform(*self._delay))
        return self._rng.choice(self.responses)


class ChatSession:
    def __init__(
        self,
        pipeline: PhotoPipeline,
        *,
        state: Optional[ProcessingStateMachine] = None,
        responder: Optional[CannedResponder] = None,
        temp_paths: Optional[TempPaths] = None,
    ):
        self.pipeline = pipeline
        self.state = state or ProcessingStateMachine()
        self.responder = responder or CannedResponder()
        self._temp_paths = temp_paths
        self.transcript: List[Message] = [Message("assistant", GREETING)]
        self.preview_path: Optional[Path] = None
        self.last_progress: Optional[ProgressEvent] = None
        self._in_flight = False

    @property
    def can_send(self) -> bool:
        return not self._in_flight

    @property
    def temp_paths(self) -> TempPaths:
        if self._temp_paths is None:
            self._temp_paths = TempPaths.default()
        return self._temp_paths

    # ---------- Upload ----------

    def upload(self, path: str) -> UploadedImage:
        return self._accept_upload(lambda: load_uploaded_image(path))

    def upload_bytes(self, data: bytes, filename: str) -> UploadedImage:
        return self._accept_upload(lambda: image_from_bytes(data, filename))

    def _accept_upload(self, load: Callable[[], UploadedImage]) -> UploadedImage:
        if self._in_flight:
            raise SessionBusyError("Cannot upload while a photo is being processed.")

        self.state.set_stage("uploading")
        try:
            image = load()
        except Exception as e:
            # Never leave the session showing "uploading" after a failed load.
            self.state.set_error(e)
            raise

        self._release_preview()
        self.state.set_uploaded_image(image)
        logger.info("Accepted upload %s (%dx%d)", image.filename, image.width, image.height)
        return image

    # ---------- Chat ----------

    async def send(self, content: str) -> Message:
        """
        Add a user message and return the assistant's reply.

        Raises SessionBusyError if a previous message is still being handled;
        messages are rejected, not queued.
        """
        text = (content or "").strip()
        if not text:
            raise ValueError("Message must not be empty.")
        if self._in_flight:
            raise SessionBusyError("A message is already being processed.")

        self._in_flight = True
        try:
            self.transcript.append(Message("user", text))
            reply = await self._respond(text)
        finally:
            self._in_flight = False

        message = Message("assistant", reply)
        self.transcript.append(message)
        return message

    async def _respond(self, text: str) -> str:
        if not is_action_intent(text):
            return await self.responder.reply(text)

        image = self.state.state.uploaded_image
        if image is None:
            return UPLOAD_FIRST_REPLY

        options = parse_instruction(text)
        try:
            result = await self.pipeline.run(image, options, text, on_progress=self._on_progress)
        except PhotoProcessingError as e:
            self.state.set_error(e)
            return f"Sorry, the photo could not be generated: {e.message}"

        self.state.set_result(result)
        self.preview_path = self.temp_paths.write_result(result)
        gen = result.generation_result
        return f'Your ID photo is ready ({gen.width}x{gen.height} {gen.format.upper()}), made from your request "{text}".'

    def _on_progress(self, event: ProgressEvent) -> None:
        self.last_progress = event
        # "complete" is reached through set_result once the result is in hand.
        if event.stage in PROGRESS_STAGES:
            self.state.set_stage(event.stage)

    # ---------- Reset ----------

    def reset(self) -> None:
        if self._in_flight:
            raise SessionBusyError("Cannot reset while a photo is being processed.")
        self.state.reset()
        self._release_preview()
        self.transcript = [Message("assistant", GREETING)]
        self.last_progress = None

    def _release_preview(self) -> None:
        if self._temp_paths is not None:
            self._temp_paths.cleanup()
        self.preview_path = None
