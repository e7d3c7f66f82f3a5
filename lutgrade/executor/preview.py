"""Single-frame preview generation."""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from ..models import ColorGradeConfig
from .orchestrator import ProcessOrchestrator

logger = logging.getLogger("lutgrade")

PREVIEW_IMAGE_NAME = "preview_image.png"


class PreviewGenerator:
    """Renders graded preview frames into a transient image file.

    Each request supersedes the previous one, so rapid slider changes only
    ever leave the newest render running.
    """

    def __init__(
        self,
        orchestrator: ProcessOrchestrator,
        preview_dir: Optional[str | Path] = None,
    ):
        self.orchestrator = orchestrator
        self.preview_dir = Path(preview_dir) if preview_dir else Path(tempfile.gettempdir())

    @property
    def image_path(self) -> Path:
        return self.preview_dir / PREVIEW_IMAGE_NAME

    async def generate(
        self,
        source: str | Path,
        config: ColorGradeConfig,
    ) -> Optional[Path]:
        """Render the first frame of ``source``.

        Returns:
            Path to the preview image, or None if the render failed or was
            superseded by a newer request, or if an export is running.
        """
        self.preview_dir.mkdir(parents=True, exist_ok=True)
        result = await self.orchestrator.run_preview(source, config, self.image_path)

        if result.terminated or result.rejected:
            return None
        if not result.success:
            self.orchestrator.events.log("Failed to generate preview image.")
            return None

        self.orchestrator.events.log("Preview image generated successfully.")
        return self.image_path

    def discard(self, path: Optional[Path] = None) -> None:
        """Remove a consumed preview image."""
        target = path or self.image_path
        try:
            target.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove preview image %s: %s", target, e)
