"""Page model for the extraction pipeline.

A Page holds a book page's image payloads as soon as the image is loaded;
OCR text and reading-application metadata are attached later when present.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass
class Page:
    """A single logical page of a book.

    Attributes:
        page_number: 1-based position within the book.
        images: Base64 image payloads keyed by variant (e.g. "original").
        book_name: Logical book name, derived from the directory layout.
        total_pages: Total page count reported by the reading app, if known.
        location_current: Current reading-app location index, if known.
        location_total: Total reading-app locations, if known.
        ocr_text: Extracted text; None until OCR has run.
        ocr_engine: Engine that produced ``ocr_text``.
        language: OCR language used for ``ocr_text``.
        processed_timestamp: UTC time OCR completed.
    """

    page_number: int
    images: dict[str, str]
    book_name: str
    total_pages: int | None = None
    location_current: int | None = None
    location_total: int | None = None
    ocr_text: str | None = None
    ocr_engine: str | None = None
    language: str | None = None
    processed_timestamp: datetime | None = None

    def __post_init__(self) -> None:
        if isinstance(self.page_number, bool) or not isinstance(self.page_number, int):
            raise ValueError(f"page_number must be an integer, got {self.page_number!r}")
        if self.page_number < 1:
            raise ValueError(f"page_number must be greater than zero, got {self.page_number}")
        if not self.images:
            raise ValueError("images must contain at least one entry")
        if not isinstance(self.book_name, str) or not self.book_name.strip():
            raise ValueError("book_name must not be empty or whitespace")
        for name in ("total_pages", "location_current", "location_total"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")

    @property
    def has_ocr(self) -> bool:
        return self.ocr_text is not None

    def apply_ocr_result(
        self,
        ocr_text: str,
        ocr_engine: str,
        language: str,
        processed_timestamp: datetime | None = None,
    ) -> None:
        """Attach OCR output to the page."""
        if not ocr_engine.strip():
            raise ValueError("ocr_engine must not be empty or whitespace")
        if not language.strip():
            raise ValueError("language must not be empty or whitespace")
        self.ocr_text = ocr_text
        self.ocr_engine = ocr_engine
        self.language = language
        self.processed_timestamp = processed_timestamp or datetime.now(UTC)
