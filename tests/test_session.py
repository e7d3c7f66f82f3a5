"""Tests for preview generation and the grading session."""

import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from lutgrade.config import Settings
from lutgrade.errors import JobRejected, ProbeError
from lutgrade.executor.orchestrator import JobKind, JobResult
from lutgrade.executor.preview import PreviewGenerator
from lutgrade.executor.process_handle import HandleState
from lutgrade.models import ColorGradeConfig
from lutgrade.session import GradingSession
from lutgrade.video.formats import VideoCodec


def _preview_orchestrator(sink, state):
    orchestrator = MagicMock()
    orchestrator.events = sink
    orchestrator.run_preview = AsyncMock(return_value=JobResult(JobKind.PREVIEW, state))
    return orchestrator


class TestPreviewGenerator:
    @pytest.mark.asyncio
    async def test_successful_preview(self, sink, tmp_path):
        orchestrator = _preview_orchestrator(sink, HandleState.SUCCEEDED)
        previews = PreviewGenerator(orchestrator, tmp_path / "previews")
        config = ColorGradeConfig(primary_lut_path=Path("/luts/a.cube"))

        path = await previews.generate("/videos/a.mp4", config)

        assert path == tmp_path / "previews" / "preview_image.png"
        orchestrator.run_preview.assert_awaited_once_with("/videos/a.mp4", config, path)
        assert sink.logs == ["Preview image generated successfully."]

    @pytest.mark.asyncio
    async def test_failed_preview(self, sink, tmp_path):
        previews = PreviewGenerator(_preview_orchestrator(sink, HandleState.FAILED), tmp_path)
        assert await previews.generate("/videos/a.mp4", ColorGradeConfig()) is None
        assert sink.logs == ["Failed to generate preview image."]

    @pytest.mark.asyncio
    async def test_superseded_preview(self, sink, tmp_path):
        previews = PreviewGenerator(_preview_orchestrator(sink, HandleState.TERMINATED), tmp_path)
        assert await previews.generate("/videos/a.mp4", ColorGradeConfig()) is None
        assert sink.logs == []

    def test_discard(self, sink, tmp_path):
        previews = PreviewGenerator(_preview_orchestrator(sink, HandleState.SUCCEEDED), tmp_path)
        previews.image_path.write_bytes(b"png")
        previews.discard()
        assert not previews.image_path.exists()
        # Discarding twice is harmless
        previews.discard()

    def test_defaults_to_temp_dir(self, sink):
        previews = PreviewGenerator(_preview_orchestrator(sink, HandleState.SUCCEEDED))
        assert previews.preview_dir == Path(tempfile.gettempdir())


@pytest.fixture
def session(sink, tmp_path):
    async def probe(path):
        return 100

    settings = Settings(preview_dir=tmp_path / "previews")
    return GradingSession(settings=settings, events=sink, probe=probe)


def _ready(session, tmp_path):
    session.project.add_video(tmp_path / "a.mp4", must_exist=False)
    session.project.set_primary_lut(tmp_path / "grade.cube", must_exist=False)
    session.project.set_export_dir(tmp_path / "exports")


class TestGradingSession:
    def test_project_follows_settings(self, sink):
        settings = Settings(use_hardware_acceleration=False, output_extension="mov")
        session = GradingSession(settings=settings, events=sink)
        assert not session.project.use_hardware_acceleration
        assert session.project.output_extension == "mov"

    def test_toggle_hardware_acceleration(self, session, sink):
        assert session.toggle_hardware_acceleration() is False
        assert session.toggle_hardware_acceleration() is True
        assert sink.logs == ["Switched to CPU encoding mode", "Switched to GPU encoding mode"]

    @pytest.mark.asyncio
    async def test_export_not_ready(self, session, sink):
        assert await session.export() is None
        assert sink.logs == ["Cannot export: No video files selected"]

    @pytest.mark.asyncio
    async def test_export_runs_batch(self, session, sink, tmp_path, monkeypatch):
        _ready(session, tmp_path)
        run_export = AsyncMock(return_value=JobResult(JobKind.EXPORT, HandleState.SUCCEEDED))
        monkeypatch.setattr(session.orchestrator, "run_export", run_export)
        session.toggle_hardware_acceleration()

        result = await session.export()

        assert result.completed_count == 1
        assert not result.aborted
        job, profile = run_export.await_args.args
        assert job.total_frames == 100
        assert job.destination_path == tmp_path.resolve() / "exports" / "a_converted_NoSecondLUT_100percent.mp4"
        assert profile.video_codec is VideoCodec.H264

    @pytest.mark.asyncio
    async def test_preview_uses_first_video(self, session, tmp_path, monkeypatch):
        _ready(session, tmp_path)
        session.project.add_video(tmp_path / "b.mp4", must_exist=False)
        generate = AsyncMock(return_value=tmp_path / "previews" / "preview_image.png")
        monkeypatch.setattr(session.previews, "generate", generate)

        await session.update_preview()

        generate.assert_awaited_once_with(session.project.video_paths[0], session.project.grade)

    @pytest.mark.asyncio
    async def test_preview_without_videos(self, session):
        assert await session.update_preview() is None

    @pytest.mark.asyncio
    async def test_missing_ffprobe(self, sink, tmp_path, monkeypatch):
        monkeypatch.setattr("lutgrade.session.resolve_ffprobe", lambda explicit=None: None)
        session = GradingSession(settings=Settings(), events=sink)
        with pytest.raises(ProbeError, match="ffprobe not found"):
            await session.probe(tmp_path / "a.mp4")

    @pytest.mark.asyncio
    async def test_abort_without_export(self, session, sink):
        await session.abort()
        assert sink.logs == ["No running process to abort."]


@pytest.mark.asyncio
async def test_preview_refused_during_export_is_quiet(sink, tmp_path):
    orchestrator = MagicMock()
    orchestrator.events = sink
    orchestrator.run_preview = AsyncMock(return_value=JobResult(
        JobKind.PREVIEW, HandleState.FAILED, error=JobRejected("preview", "export"),
    ))
    previews = PreviewGenerator(orchestrator, tmp_path)

    assert await previews.generate("/videos/a.mp4", ColorGradeConfig()) is None
    assert sink.logs == []
