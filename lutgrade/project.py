"""Editable project state: selected videos, LUTs and export settings."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .models import ColorGradeConfig, ExportBatch, ExportJob, output_file_name
from .sanitize import validate_lut_path, validate_output_dir, validate_video_path


class ValidationResult(BaseModel):
    error_message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error_message is None


class ProjectState(BaseModel):
    video_paths: list[Path] = Field(default_factory=list)
    grade: ColorGradeConfig = Field(default_factory=ColorGradeConfig)
    export_dir: Optional[Path] = None
    use_hardware_acceleration: bool = True
    output_extension: str = "mp4"

    @property
    def is_ready_for_preview(self) -> bool:
        return bool(self.video_paths) and self.grade.primary_lut_path is not None

    @property
    def is_ready_for_export(self) -> bool:
        return self.is_ready_for_preview and self.export_dir is not None

    @property
    def has_secondary_lut(self) -> bool:
        return self.grade.secondary_lut_path is not None

    @property
    def opacity_percentage(self) -> int:
        return self.grade.opacity_percentage

    def add_video(self, path: str | Path, must_exist: bool = True) -> Path:
        """Add a source video; duplicates are ignored."""
        resolved = validate_video_path(path, must_exist=must_exist)
        if resolved not in self.video_paths:
            self.video_paths.append(resolved)
        return resolved

    def remove_video(self, path: str | Path) -> None:
        target = Path(path).resolve()
        self.video_paths = [p for p in self.video_paths if p != target]

    def clear_videos(self) -> None:
        self.video_paths = []

    def set_primary_lut(self, path: Optional[str | Path], must_exist: bool = True) -> None:
        self.grade.primary_lut_path = validate_lut_path(path, must_exist) if path else None

    def set_secondary_lut(self, path: Optional[str | Path], must_exist: bool = True) -> None:
        self.grade.secondary_lut_path = validate_lut_path(path, must_exist) if path else None

    def set_export_dir(self, path: Optional[str | Path]) -> None:
        self.export_dir = validate_output_dir(path) if path else None

    def validate_configuration(self) -> ValidationResult:
        if not self.video_paths:
            return ValidationResult(error_message="No video files selected")
        if self.grade.primary_lut_path is None:
            return ValidationResult(error_message="No primary LUT selected")
        if self.export_dir is None:
            return ValidationResult(error_message="No export directory selected")
        return ValidationResult()

    def output_file_name(self, video: str | Path) -> str:
        return output_file_name(
            video,
            self.grade.secondary_lut_path,
            self.grade.blend_opacity,
            self.output_extension,
        )

    def output_path_for(self, video: str | Path) -> Optional[Path]:
        if self.export_dir is None:
            return None
        return self.export_dir / self.output_file_name(video)

    def to_batch(self) -> ExportBatch:
        """Snapshot the current grade into one export job per video.

        Raises:
            ValueError: If the project is not ready for export.
        """
        validation = self.validate_configuration()
        if not validation.is_valid:
            raise ValueError(validation.error_message)
        return ExportBatch(jobs=[
            ExportJob.for_source(video, self.export_dir, self.grade, self.output_extension)
            for video in self.video_paths
        ])
