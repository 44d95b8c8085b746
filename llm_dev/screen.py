"""Screenshots and image files as PNG content.

Capture goes through a ScreenBackend so hosts can plug in platform
window APIs. The default backend uses Pillow's ImageGrab for displays and
has no window enumeration.
"""
from __future__ import annotations

import base64
import io
import logging
import re
import sys
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, ImageGrab, UnidentifiedImageError

from .errors import ExecutionError

logger = logging.getLogger(__name__)

MAX_IMAGE_WIDTH = 768
MAX_IMAGE_FILE_SIZE = 10 * 1024 * 1024  # 10MB

_MAC_SCREENSHOT = re.compile(
    r"^Screenshot \d{4}-\d{2}-\d{2} at \d{1,2}\.\d{2}\.\d{2} (AM|PM|am|pm)(?: \(\d+\))?\.png$"
)


class ScreenBackend(Protocol):
    def list_windows(self) -> list[str]: ...

    def capture_display(self, display: int) -> Image.Image: ...

    def capture_window(self, title: str) -> Image.Image: ...


class PillowScreenBackend:
    """Display capture through PIL.ImageGrab."""

    def list_windows(self) -> list[str]:
        raise ExecutionError("Failed to list windows")

    def capture_display(self, display: int) -> Image.Image:
        if display != 0:
            # ImageGrab captures the virtual desktop as a single image
            raise ExecutionError(f"{display} was not an available monitor, 1 found.")
        try:
            return ImageGrab.grab(all_screens=True)
        except OSError as e:
            raise ExecutionError(f"Failed to capture display {display}: {e}") from e

    def capture_window(self, title: str) -> Image.Image:
        raise ExecutionError(f"No window found with title '{title}'")


def resize_to_width(image: Image.Image, max_width: int = MAX_IMAGE_WIDTH) -> Image.Image:
    """Scale down to max_width keeping the aspect ratio."""
    if image.width <= max_width:
        return image
    scale = max_width / image.width
    new_height = int(image.height * scale)
    return image.resize((max_width, new_height), Image.Resampling.LANCZOS)


def encode_png(image: Image.Image) -> str:
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except OSError as e:
        raise ExecutionError(f"Failed to write image buffer: {e}") from e
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def normalize_mac_screenshot_path(path: Path) -> Path:
    """macOS names screenshots with a narrow no-break space before AM/PM."""
    match = _MAC_SCREENSHOT.match(path.name)
    if match is None:
        return path
    meridian_pos = path.name.rfind(match.group(1))
    space_pos = len(path.name[:meridian_pos].rstrip())
    if space_pos <= 0:
        return path
    name = f"{path.name[:space_pos]}\u202f{path.name[space_pos + 1:]}"
    return path.with_name(name)


def load_image_file(path: Path) -> str:
    """Open, resize and PNG-encode an image file.

    Raises:
        ExecutionError: If the file is missing, too large or not an image
    """
    if sys.platform == "darwin":
        path = normalize_mac_screenshot_path(path)
    if not path.exists():
        raise ExecutionError(f"File '{path}' does not exist")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise ExecutionError(f"Failed to get file metadata: {e}") from e
    if file_size > MAX_IMAGE_FILE_SIZE:
        raise ExecutionError(
            f"File '{path}' is too large ({file_size / (1024 * 1024):.2f}MB). Maximum size is 10MB."
        )

    try:
        with Image.open(path) as image:
            image.load()
            processed = resize_to_width(image)
            return encode_png(processed)
    except (OSError, UnidentifiedImageError) as e:
        raise ExecutionError(f"Failed to open image file: {e}") from e


def capture_screen(
    backend: ScreenBackend,
    display: int = 0,
    window_title: Optional[str] = None,
) -> str:
    """Capture a display or a window and return it as base64 PNG."""
    if window_title is not None:
        image = backend.capture_window(window_title)
    else:
        image = backend.capture_display(display)
    return encode_png(resize_to_width(image))
