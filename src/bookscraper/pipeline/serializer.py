"""YAML serialization of pages.

Page files use snake_case keys in a fixed order, omit unset optional fields,
and store timestamps as ISO-8601 strings::

    page_number: 1
    images:
      original: iVBORw0KGgo...
    book_name: moby-dick
    ocr_text: Call me Ishmael.
    processed_timestamp: '2026-01-01T12:00:00+00:00'
    ocr_engine: Tesseract
    language: eng
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from bookscraper.core.constants import YAML_SERIALIZATION_ERROR_CODE
from bookscraper.core.errors import FileAccessFailure, YamlSerializationFailure
from bookscraper.pipeline.models import Page

_FIELD_ORDER = (
    "page_number",
    "images",
    "total_pages",
    "location_current",
    "location_total",
    "book_name",
    "ocr_text",
    "processed_timestamp",
    "ocr_engine",
    "language",
)

_OCR_FIELDS = ("ocr_text", "ocr_engine", "language", "processed_timestamp")


def _serialization_failure(message: str) -> YamlSerializationFailure:
    return YamlSerializationFailure(message, YAML_SERIALIZATION_ERROR_CODE)


def _optional_int(payload: dict[str, Any], key: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise _serialization_failure(f"{key} must be an integer in YAML payload.")
    return value


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise _serialization_failure(
            f"processed_timestamp is not an ISO-8601 timestamp: {value!r}"
        ) from e


class PageSerializer:
    """Converts Page objects to and from YAML documents."""

    def to_dict(self, page: Page) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name in _FIELD_ORDER:
            value = getattr(page, name)
            if value is None:
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, dict):
                value = dict(value)
            data[name] = value
        return data

    def dumps(self, page: Page) -> str:
        """Serialize a page to YAML text."""
        try:
            return yaml.safe_dump(
                self.to_dict(page),
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
            )
        except yaml.YAMLError as e:
            raise _serialization_failure(
                f"Failed to serialize page {page.page_number} of '{page.book_name}'."
            ) from e

    def write_page(self, page: Page, output_path: Path | str) -> Path:
        """Write a page to ``output_path``, creating parent directories.

        Raises:
            YamlSerializationFailure: The page cannot be rendered as YAML.
            FileAccessFailure: The file cannot be written.
        """
        path = Path(output_path)
        text = self.dumps(page)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise FileAccessFailure(f"Cannot write page file '{path}'.", str(path)) from e
        return path

    def read_page(self, text: str) -> Page:
        """Parse a YAML page document and validate required fields.

        OCR fields are restored only when text, engine, language and
        timestamp are all present.

        Raises:
            YamlSerializationFailure: The YAML is malformed or a required
                field is missing or invalid.
        """
        if text is None:
            raise TypeError("text must not be None")
        try:
            payload = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise _serialization_failure("Page YAML could not be parsed.") from e

        if not isinstance(payload, dict):
            raise _serialization_failure("Page YAML document must be a mapping.")

        page_number = payload.get("page_number")
        if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number <= 0:
            raise _serialization_failure("page_number must be greater than zero in YAML payload.")

        images = payload.get("images")
        if not isinstance(images, dict) or not images:
            raise _serialization_failure("images must contain at least one entry in YAML payload.")

        book_name = payload.get("book_name")
        if not isinstance(book_name, str) or not book_name.strip():
            raise _serialization_failure(
                "book_name must not be null, empty, or whitespace in YAML payload."
            )

        try:
            page = Page(
                page_number=page_number,
                images={str(k): str(v) for k, v in images.items()},
                book_name=book_name,
                total_pages=_optional_int(payload, "total_pages"),
                location_current=_optional_int(payload, "location_current"),
                location_total=_optional_int(payload, "location_total"),
            )
        except ValueError as e:
            raise _serialization_failure(f"Invalid page in YAML payload: {e}") from e

        ocr = {name: payload.get(name) for name in _OCR_FIELDS}
        timestamp = _parse_timestamp(ocr["processed_timestamp"])
        if all(isinstance(ocr[n], str) and ocr[n].strip() for n in _OCR_FIELDS[:3]) and timestamp:
            page.apply_ocr_result(
                ocr_text=ocr["ocr_text"],
                ocr_engine=ocr["ocr_engine"],
                language=ocr["language"],
                processed_timestamp=timestamp,
            )
        return page

    def read_page_file(self, input_path: Path | str) -> Page:
        """Read and parse a page YAML file."""
        path = Path(input_path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileAccessFailure(f"Cannot read page file '{path}'.", str(path)) from e
        return self.read_page(text)
