from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Union

from idphotoshop.core.errors import PhotoProcessingError, UNKNOWN, error_message
from idphotoshop.core.models import PROGRESS_STAGES, STAGES, PipelineResult, Stage, UploadedImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateError:
    code: str
    message: str

    @staticmethod
    def from_exception(error: BaseException) -> "StateError":
        code = error.code if isinstance(error, PhotoProcessingError) else UNKNOWN
        return StateError(code=code, message=error_message(error))


@dataclass(frozen=True)
class ProcessingState:
    """
    What the UI shows for one session.

    Invariants kept by transition():
      - result is set iff stage == "complete" and error is None
      - error set => stage == "idle" and not processing
    """
    stage: Stage = "idle"
    is_processing: bool = False
    error: Optional[StateError] = None
    result: Optional[PipelineResult] = None
    uploaded_image: Optional[UploadedImage] = None


# ---------- Actions ----------

@dataclass(frozen=True)
class ImageUploaded:
    image: UploadedImage


@dataclass(frozen=True)
class StageChanged:
    stage: Stage


@dataclass(frozen=True)
class ResultReady:
    result: PipelineResult


@dataclass(frozen=True)
class ErrorRaised:
    error: StateError


@dataclass(frozen=True)
class Reset:
    pass


Action = Union[ImageUploaded, StageChanged, ResultReady, ErrorRaised, Reset]
Listener = Callable[[ProcessingState, ProcessingState], None]

INITIAL_STATE = ProcessingState()


def transition(state: ProcessingState, action: Action) -> ProcessingState:
    """Pure transition function: returns the next state, never mutates `state`."""
    if isinstance(action, ImageUploaded):
        # A new image never shows a stale result or error.
        return ProcessingState(uploaded_image=action.image)

    if isinstance(action, StageChanged):
        if action.stage not in STAGES:
            raise ValueError(f"Unknown stage: {action.stage!r}")
        if action.stage == "complete":
            raise ValueError("The complete stage is only reachable with a result")
        return replace(
            state,
            stage=action.stage,
            is_processing=action.stage in PROGRESS_STAGES,
            error=None,
            result=None,
        )

    if isinstance(action, ResultReady):
        return replace(state, stage="complete", is_processing=False, error=None, result=action.result)

    if isinstance(action, ErrorRaised):
        return replace(state, stage="idle", is_processing=False, error=action.error, result=None)

    if isinstance(action, Reset):
        return INITIAL_STATE

    raise TypeError(f"Unknown action: {action!r}")


class ProcessingStateMachine:
    """
    Holds the current ProcessingState of a session and notifies listeners.

    All changes go through dispatch(); the set_* helpers only build actions.
    """

    def __init__(self, initial: ProcessingState = INITIAL_STATE):
        self._state = initial
        self._listeners: List[Listener] = []

    @property
    def state(self) -> ProcessingState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> ProcessingState:
        old = self._state
        new = transition(old, action)
        self._state = new
        if new.stage != old.stage:
            logger.debug("Stage %s -> %s", old.stage, new.stage)
        for listener in list(self._listeners):
            listener(old, new)
        return new

    def set_uploaded_image(self, image: UploadedImage) -> ProcessingState:
        return self.dispatch(ImageUploaded(image))

    def set_stage(self, stage: Stage) -> ProcessingState:
        return self.dispatch(StageChanged(stage))

    def set_result(self, result: PipelineResult) -> ProcessingState:
        return self.dispatch(ResultReady(result))

    def set_error(self, error: Union[StateError, BaseException]) -> ProcessingState:
        if not isinstance(error, StateError):
            error = StateError.from_exception(error)
        return self.dispatch(ErrorRaised(error))

    def reset(self) -> ProcessingState:
        return self.dispatch(Reset())
