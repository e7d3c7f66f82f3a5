"""Tests for lutgrade.sanitize."""

import os

import pytest

from lutgrade.sanitize import (
    escape_filter_path, validate_lut_path, validate_output_dir, validate_video_path,
)


class TestValidateVideoPath:
    """Tests for validate_video_path."""

    def test_empty_path_raises(self):
        with pytest.raises(ValueError, match="empty"):
            validate_video_path("   ")

    def test_traversal_raises(self):
        with pytest.raises(ValueError, match="traversal"):
            validate_video_path("/tmp/../etc/clip.mp4", must_exist=False)

    def test_nonexistent_file_raises(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            validate_video_path(tmp_path / "missing.mp4")

    def test_valid_file_returns_resolved(self, tmp_path):
        clip = tmp_path / "clip.mov"
        clip.write_bytes(b"fake video data")
        result = validate_video_path(clip)
        assert result.is_absolute()
        assert result == clip.resolve()

    def test_directory_masquerading_as_file_raises(self, tmp_path):
        folder = tmp_path / "folder.mp4"
        folder.mkdir()
        with pytest.raises(ValueError, match="not a file"):
            validate_video_path(folder)

    def test_invalid_extension_raises(self):
        with pytest.raises(ValueError, match="Invalid file extension"):
            validate_video_path("/videos/clip.cube", must_exist=False)

    def test_extension_case_insensitive(self):
        assert validate_video_path("/videos/CLIP.MP4", must_exist=False).name == "CLIP.MP4"


class TestValidateLutPath:
    @pytest.mark.parametrize("name", ["a.cube", "b.3dl", "c.csp", "d.dat", "e.m3d"])
    def test_lut_formats(self, name):
        assert validate_lut_path(f"/luts/{name}", must_exist=False).name == name

    def test_video_is_not_a_lut(self):
        with pytest.raises(ValueError, match="Invalid file extension"):
            validate_lut_path("/luts/clip.mp4", must_exist=False)

    def test_traversal_raises(self):
        with pytest.raises(ValueError, match="traversal"):
            validate_lut_path("../luts/a.cube", must_exist=False)


class TestValidateOutputDir:
    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            validate_output_dir("")

    def test_traversal_raises(self):
        with pytest.raises(ValueError, match="traversal"):
            validate_output_dir("exports/../../elsewhere")

    @pytest.mark.skipif(os.name == "nt", reason="POSIX system directories")
    def test_system_directory_raises(self):
        with pytest.raises(ValueError, match="unsafe"):
            validate_output_dir("/etc/exports")

    def test_missing_directory_allowed(self, tmp_path):
        assert validate_output_dir(tmp_path / "new") == (tmp_path / "new").resolve()


class TestEscapeFilterPath:
    def test_plain_path_quoted(self):
        assert escape_filter_path("/luts/a.cube") == "'/luts/a.cube'"

    def test_special_characters_kept_inside_quotes(self):
        assert escape_filter_path("/luts/a b,c;d:e.cube") == "'/luts/a b,c;d:e.cube'"

    def test_single_quote_escaped(self):
        assert escape_filter_path("/luts/it's.cube") == "'/luts/it'\\''s.cube'"
