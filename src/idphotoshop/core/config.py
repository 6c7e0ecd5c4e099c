from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


@dataclass(frozen=True)
class AppConfig:
    """
    Settings for talking to the remote processing service.

    Timeouts are whole-request budgets in seconds, one per remote operation.
    max_retries is carried for callers that want to re-send; nothing in the
    pipeline retries on its own.
    """
    base_url: str = "http://localhost:3001"
    api_key: str = ""
    client_version: str = "1.0.0"
    face_detection_timeout: float = 10.0
    segmentation_timeout: float = 20.0
    generation_timeout: float = 30.0
    health_timeout: float = 5.0
    max_retries: int = 3

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if env is None else env
        d = AppConfig()
        return AppConfig(
            base_url=env.get("IDPHOTO_API_BASE_URL") or d.base_url,
            api_key=env.get("IDPHOTO_API_KEY", d.api_key),
            client_version=env.get("IDPHOTO_CLIENT_VERSION") or d.client_version,
            face_detection_timeout=_env_float(env, "IDPHOTO_FACE_DETECTION_TIMEOUT", d.face_detection_timeout),
            segmentation_timeout=_env_float(env, "IDPHOTO_SEGMENTATION_TIMEOUT", d.segmentation_timeout),
            generation_timeout=_env_float(env, "IDPHOTO_GENERATION_TIMEOUT", d.generation_timeout),
            health_timeout=_env_float(env, "IDPHOTO_HEALTH_TIMEOUT", d.health_timeout),
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "X-Client-Version": self.client_version,
        }
