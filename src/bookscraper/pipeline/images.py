"""Page image loading.

Images are read whole and handed on as base64 text. Format detection looks
only at the leading magic bytes; decoding pixels is the OCR engine's job.
"""

from __future__ import annotations

import base64
from pathlib import Path

from bookscraper.core.constants import MAX_IMAGE_BYTES
from bookscraper.core.errors import (
    FileAccessFailure,
    ImageProcessingFailure,
    InvalidConfigurationFailure,
)

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpeg"),
    (b"II*\x00", "tiff"),
    (b"MM\x00*", "tiff"),
    (b"BM", "bmp"),
)


def detect_image_format(data: bytes) -> str | None:
    """Image format from magic bytes, or None if unrecognised."""
    for signature, name in _SIGNATURES:
        if data.startswith(signature):
            return name
    return None


def load_image_bytes(image_path: Path | str) -> bytes:
    """Read a page image from disk.

    Raises:
        InvalidConfigurationFailure: The path is blank.
        FileAccessFailure: The file is missing or cannot be read.
        ImageProcessingFailure: The file is empty, too large, or not an image.
    """
    if image_path is None or not str(image_path).strip():
        raise InvalidConfigurationFailure(
            "Image path cannot be empty.",
            "Parameter 'image_path' was None or blank.",
        )

    path = Path(image_path)
    if not path.is_file():
        raise FileAccessFailure(f"Image file not found at path '{path}'.", str(path))

    try:
        size = path.stat().st_size
        if size > MAX_IMAGE_BYTES:
            raise ImageProcessingFailure(
                f"Image file at '{path}' is too large to process safely. Size: {size} bytes.",
                str(path),
            )
        data = path.read_bytes()
    except OSError as e:
        raise FileAccessFailure(f"Cannot read image file '{path}'.", str(path)) from e

    if not data:
        raise ImageProcessingFailure("Image file is empty.", str(path))
    if detect_image_format(data) is None:
        raise ImageProcessingFailure(
            f"Image file at '{path}' is not a recognised image format.", str(path)
        )
    return data


def load_image_as_base64(image_path: Path | str) -> str:
    """Load a page image and return it as base64 text."""
    return base64.b64encode(load_image_bytes(image_path)).decode("ascii")
