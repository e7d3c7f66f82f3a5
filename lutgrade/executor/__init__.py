"""FFMPEG command construction and process execution."""

from .command_builder import CommandBuilder, Filter, FilterChain, FilterGraph, FFMPEGCommand
from .process_handle import HandleState, ProcessHandle, ProgressScanner
from .orchestrator import JobKind, JobResult, ProcessOrchestrator
from .preview import PreviewGenerator
from .batch import BatchExportPipeline, BatchResult

__all__ = [
    "CommandBuilder",
    "Filter",
    "FilterChain",
    "FilterGraph",
    "FFMPEGCommand",
    "HandleState",
    "ProcessHandle",
    "ProgressScanner",
    "JobKind",
    "JobResult",
    "ProcessOrchestrator",
    "PreviewGenerator",
    "BatchExportPipeline",
    "BatchResult",
]
