from __future__ import annotations

import logging
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from idphotoshop.core.models import OUTPUT_FORMATS, PipelineResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TempPaths:
    """
    Where a session keeps the generated photo until the user saves it.

    Each session gets its own directory so sessions never overwrite each other.
    Only one preview exists at a time; writing a new one releases the old one.
    """
    base_dir: Path

    @staticmethod
    def default(app_name: str = "idphotoshop", session_id: Optional[str] = None) -> "TempPaths":
        base = Path(tempfile.gettempdir()) / app_name / (session_id or uuid.uuid4().hex)
        base.mkdir(parents=True, exist_ok=True)
        return TempPaths(base_dir=base)

    def preview_image(self, fmt: str = "png") -> Path:
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported preview format: {fmt!r}")
        return self.base_dir / f"preview.{fmt}"

    def write_result(self, result: PipelineResult) -> Path:
        self.cleanup()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.preview_image(result.format)
        path.write_bytes(result.final_image_bytes())
        return path

    def cleanup(self) -> None:
        """
        Remove any preview file. Safe to call multiple times.
        """
        if not self.base_dir.exists():
            return
        for path in self.base_dir.glob("preview.*"):
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Could not remove preview %s: %s", path, e)
