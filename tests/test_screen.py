"""Tests for image loading and screen capture helpers."""
from __future__ import annotations

import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from llm_dev.errors import ExecutionError
from llm_dev.screen import (
    MAX_IMAGE_FILE_SIZE,
    PillowScreenBackend,
    capture_screen,
    load_image_file,
    normalize_mac_screenshot_path,
    resize_to_width,
)


def _decode(data: str) -> Image.Image:
    image = Image.open(io.BytesIO(base64.b64decode(data)))
    image.load()
    return image


class TestResize:
    def test_small_image_unchanged(self):
        image = Image.new("RGB", (640, 480))
        assert resize_to_width(image) is image

    def test_wide_image_scaled(self):
        resized = resize_to_width(Image.new("RGB", (1536, 1000)))
        assert resized.size == (768, 500)


class TestLoadImageFile:
    """Tests for image_processor file handling."""

    def test_png_output(self, tmp_path):
        path = tmp_path / "shot.bmp"
        Image.new("RGB", (100, 50), "white").save(path)

        image = _decode(load_image_file(path))

        assert image.format == "PNG"
        assert image.size == (100, 50)

    def test_large_image_resized(self, tmp_path):
        path = tmp_path / "wide.png"
        Image.new("RGBA", (2000, 1000)).save(path)
        assert _decode(load_image_file(path)).size == (768, 384)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExecutionError, match="does not exist"):
            load_image_file(tmp_path / "missing.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("not really a png")
        with pytest.raises(ExecutionError, match="Failed to open image file"):
            load_image_file(path)

    def test_file_too_large(self, tmp_path):
        path = tmp_path / "huge.png"
        with open(path, "wb") as f:
            f.truncate(MAX_IMAGE_FILE_SIZE + 1)
        with pytest.raises(ExecutionError, match="Maximum size is 10MB"):
            load_image_file(path)


class TestMacScreenshotPath:
    def test_narrow_space_inserted(self):
        path = Path("/Users/me/Desktop/Screenshot 2024-01-01 at 9.41.22 AM.png")
        normalized = normalize_mac_screenshot_path(path)
        assert normalized.name == "Screenshot 2024-01-01 at 9.41.22\u202fAM.png"

    def test_other_names_unchanged(self):
        path = Path("/tmp/photo.png")
        assert normalize_mac_screenshot_path(path) == path


class TestCapture:
    def test_default_backend_cannot_list_windows(self):
        with pytest.raises(ExecutionError, match="Failed to list windows"):
            PillowScreenBackend().list_windows()

    def test_default_backend_rejects_other_displays(self):
        with pytest.raises(ExecutionError, match="not an available monitor"):
            PillowScreenBackend().capture_display(2)

    def test_capture_screen_uses_backend(self):
        class Backend:
            def list_windows(self):
                return []

            def capture_display(self, display):
                return Image.new("RGB", (800, 600))

            def capture_window(self, title):
                raise AssertionError("not expected")

        image = _decode(capture_screen(Backend()))
        assert image.size == (768, 576)
