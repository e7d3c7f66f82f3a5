"""
lutgrade: LUT grading and transcoding through an external ffmpeg

Builds deterministic filter graphs from a small set of grading parameters
and manages the ffmpeg processes that render previews and batch exports.
"""

__version__ = "1.0.0"

from .config import Settings, load_settings
from .events import EventSink
from .executor.batch import BatchExportPipeline, BatchResult
from .executor.orchestrator import JobKind, JobResult, ProcessOrchestrator
from .executor.preview import PreviewGenerator
from .executor.process_handle import HandleState, ProcessHandle
from .models import ColorGradeConfig, ExportBatch, ExportJob, ProgressReport
from .project import ProjectState
from .session import GradingSession
from .video.formats import EncodingProfile

__all__ = [
    "BatchExportPipeline",
    "BatchResult",
    "ColorGradeConfig",
    "EncodingProfile",
    "EventSink",
    "ExportBatch",
    "ExportJob",
    "GradingSession",
    "HandleState",
    "JobKind",
    "JobResult",
    "PreviewGenerator",
    "ProcessHandle",
    "ProcessOrchestrator",
    "ProgressReport",
    "ProjectState",
    "Settings",
    "load_settings",
]
