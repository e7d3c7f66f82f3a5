"""Tests for frame count probing and binary resolution."""

import json
import os
import subprocess
from unittest.mock import patch

import pytest

from lutgrade import binary
from lutgrade.errors import ExecutableUnavailable, ProbeError
from lutgrade.video.analyzer import VideoAnalyzer, VideoStreamInfo


def _completed(payload, returncode=0, stderr=""):
    stdout = payload if isinstance(payload, str) else json.dumps(payload)
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00")
    return path


class TestVideoAnalyzer:
    def test_requires_ffprobe(self):
        with pytest.raises(ExecutableUnavailable):
            VideoAnalyzer(None)

    def test_declared_frame_count(self, video):
        payload = {"streams": [{
            "codec_type": "video", "codec_name": "h264", "width": 1920, "height": 1080,
            "r_frame_rate": "24/1", "duration": "10.0", "nb_frames": "240",
        }]}
        with patch("lutgrade.video.analyzer.subprocess.run", return_value=_completed(payload)) as run:
            assert VideoAnalyzer("ffprobe").frame_count(video) == 240

        cmd = run.call_args.args[0]
        assert cmd[0] == "ffprobe"
        assert cmd[-1] == str(video)
        assert ["-select_streams", "v:0"] == cmd[3:5]

    def test_frame_count_from_rate_and_duration(self, video):
        payload = {
            "streams": [{"codec_type": "video", "r_frame_rate": "30/1"}],
            "format": {"duration": "10.0"},
        }
        with patch("lutgrade.video.analyzer.subprocess.run", return_value=_completed(payload)):
            assert VideoAnalyzer("ffprobe").frame_count(video) == 300

    def test_no_video_track(self, video):
        payload = {"streams": [{"codec_type": "audio"}]}
        with patch("lutgrade.video.analyzer.subprocess.run", return_value=_completed(payload)):
            with pytest.raises(ProbeError, match="no video track"):
                VideoAnalyzer("ffprobe").frame_count(video)

    def test_unknown_frame_count(self, video):
        payload = {"streams": [{"codec_type": "video", "r_frame_rate": "0/0"}]}
        with patch("lutgrade.video.analyzer.subprocess.run", return_value=_completed(payload)):
            with pytest.raises(ProbeError, match="frame count unavailable"):
                VideoAnalyzer("ffprobe").frame_count(video)

    def test_ffprobe_failure(self, video):
        result = _completed("", returncode=1, stderr="moov atom not found")
        with patch("lutgrade.video.analyzer.subprocess.run", return_value=result):
            with pytest.raises(ProbeError, match="moov atom not found"):
                VideoAnalyzer("ffprobe").frame_count(video)

    def test_unreadable_output(self, video):
        with patch("lutgrade.video.analyzer.subprocess.run", return_value=_completed("not json")):
            with pytest.raises(ProbeError, match="unreadable"):
                VideoAnalyzer("ffprobe").frame_count(video)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProbeError, match="file not found"):
            VideoAnalyzer("ffprobe").frame_count(tmp_path / "missing.mp4")

    @pytest.mark.asyncio
    async def test_async_probe(self, video):
        payload = {"streams": [{"codec_type": "video", "nb_frames": "48"}]}
        with patch("lutgrade.video.analyzer.subprocess.run", return_value=_completed(payload)):
            assert await VideoAnalyzer("ffprobe").probe(video) == 48


def test_total_frames_prefers_declared_count():
    info = VideoStreamInfo(frame_rate=25.0, duration=4.0, nb_frames=99)
    assert info.total_frames == 99
    assert VideoStreamInfo(frame_rate=25.0, duration=4.0).total_frames == 100
    assert VideoStreamInfo().total_frames is None


@pytest.fixture
def fake_ffmpeg(tmp_path):
    path = tmp_path / "ffmpeg"
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
class TestResolveBinary:
    def test_explicit_path(self, fake_ffmpeg):
        assert binary.resolve_ffmpeg(str(fake_ffmpeg)) == str(fake_ffmpeg.resolve())

    def test_environment_variable(self, fake_ffmpeg, monkeypatch):
        monkeypatch.setenv("LUTGRADE_FFMPEG", str(fake_ffmpeg))
        assert binary.resolve_ffmpeg() == str(fake_ffmpeg.resolve())

    def test_non_executable_skipped(self, tmp_path, monkeypatch):
        plain = tmp_path / "ffmpeg"
        plain.write_text("")
        monkeypatch.delenv("LUTGRADE_FFMPEG", raising=False)
        monkeypatch.setattr(binary.shutil, "which", lambda name: None)
        monkeypatch.setattr(binary, "_EXTRA_SEARCH_DIRS", [])
        assert binary.resolve_ffmpeg(str(plain)) is None

    def test_path_lookup(self, monkeypatch):
        monkeypatch.delenv("LUTGRADE_FFPROBE", raising=False)
        monkeypatch.setattr(binary.shutil, "which", lambda name: f"/found/{name}")
        assert binary.resolve_ffprobe() == "/found/ffprobe"

    def test_search_dirs(self, tmp_path, fake_ffmpeg, monkeypatch):
        monkeypatch.delenv("LUTGRADE_FFMPEG", raising=False)
        monkeypatch.setattr(binary.shutil, "which", lambda name: None)
        monkeypatch.setattr(binary, "_EXTRA_SEARCH_DIRS", [tmp_path])
        assert binary.resolve_ffmpeg() == str(fake_ffmpeg)
