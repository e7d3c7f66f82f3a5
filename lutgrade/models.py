"""Data model shared by the filter builder, orchestrator and batch pipeline."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

OPACITY_RANGE = (0.0, 1.0)
WHITE_BALANCE_RANGE = (-10.0, 10.0)
NO_SECONDARY_LUT_NAME = "NoSecondLUT"


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, float(value)))


class ColorGradeConfig(BaseModel):
    """The semantic grading parameters a filter graph is built from.

    Opacity and white balance are clamped into range whenever they are set,
    including on assignment to an existing instance.
    """
    model_config = ConfigDict(validate_assignment=True)

    primary_lut_path: Optional[Path] = None
    secondary_lut_path: Optional[Path] = None
    blend_opacity: float = 1.0
    white_balance: float = 0.0

    @field_validator("blend_opacity")
    @classmethod
    def _clamp_opacity(cls, value: float) -> float:
        return _clamp(value, OPACITY_RANGE)

    @field_validator("white_balance")
    @classmethod
    def _clamp_white_balance(cls, value: float) -> float:
        return _clamp(value, WHITE_BALANCE_RANGE)

    @property
    def effective_secondary(self) -> Optional[Path]:
        """Secondary LUT, or None when there is no primary to stack it on."""
        if self.primary_lut_path is None:
            return None
        return self.secondary_lut_path

    @property
    def opacity_percentage(self) -> int:
        return int(self.blend_opacity * 100)


def output_file_name(
    source: str | Path,
    secondary_lut: Optional[str | Path],
    opacity: float,
    extension: str = "mp4",
) -> str:
    """Build the export file name for a source video.

    ``input_video.mp4`` with secondary ``creative_lut.cube`` at 0.75 gives
    ``input_video_converted_creative_lut_75percent.mp4``.
    """
    stem = Path(source).stem
    lut_name = Path(secondary_lut).stem if secondary_lut else NO_SECONDARY_LUT_NAME
    percentage = int(_clamp(opacity, OPACITY_RANGE) * 100)
    return f"{stem}_converted_{lut_name}_{percentage}percent.{extension}"


class ExportJob(BaseModel):
    """One source to export with a snapshot of the grade at queue time."""
    source_path: Path
    destination_path: Path
    config: ColorGradeConfig
    total_frames: Optional[int] = None

    @classmethod
    def for_source(
        cls,
        source: str | Path,
        export_dir: str | Path,
        config: ColorGradeConfig,
        extension: str = "mp4",
    ) -> "ExportJob":
        """Create a job whose destination is derived from the source name."""
        name = output_file_name(
            source, config.secondary_lut_path, config.blend_opacity, extension
        )
        return cls(
            source_path=Path(source),
            destination_path=Path(export_dir) / name,
            config=config.model_copy(deep=True),
        )


class ExportBatch(BaseModel):
    """Ordered export jobs plus the cursor the pipeline advances."""
    jobs: list[ExportJob] = Field(default_factory=list)
    current_index: int = 0
    completed_count: int = 0
    current_fraction: float = 0.0

    @property
    def total(self) -> int:
        return len(self.jobs)

    @property
    def current_job(self) -> Optional[ExportJob]:
        if 0 <= self.current_index < len(self.jobs):
            return self.jobs[self.current_index]
        return None

    @property
    def overall_progress(self) -> float:
        """``(completed + current job fraction) / total``, within [0, 1]."""
        if not self.jobs:
            return 1.0
        value = (self.completed_count + self.current_fraction) / len(self.jobs)
        return _clamp(value, (0.0, 1.0))

    def advance(self) -> None:
        """Mark the current job resolved and move the cursor on."""
        self.completed_count += 1
        self.current_index += 1
        self.current_fraction = 0.0

    def reset(self) -> None:
        self.current_index = 0
        self.completed_count = 0
        self.current_fraction = 0.0


class ProgressReport(BaseModel):
    """A progress sample extracted from engine output.

    ``fraction`` is None when the total frame count is unknown.
    ``elapsed`` carries the engine's ``time=`` token in seconds; it is
    reported but not used to compute ``fraction``.
    """
    model_config = ConfigDict(frozen=True)

    frames_processed: Optional[int] = None
    fraction: Optional[float] = None
    elapsed: Optional[float] = None

    @property
    def indeterminate(self) -> bool:
        return self.fraction is None
