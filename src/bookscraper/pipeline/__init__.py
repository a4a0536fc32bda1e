"""Book page extraction pipeline: images in, page YAML files out."""

from bookscraper.pipeline.images import detect_image_format, load_image_as_base64, load_image_bytes
from bookscraper.pipeline.models import Page
from bookscraper.pipeline.processor import (
    BatchProcessor,
    BookProcessor,
    TextExtractor,
    derive_book_name,
    is_supported_image,
    page_file_name,
)
from bookscraper.pipeline.serializer import PageSerializer

__all__ = [
    "BatchProcessor",
    "BookProcessor",
    "Page",
    "PageSerializer",
    "TextExtractor",
    "derive_book_name",
    "detect_image_format",
    "is_supported_image",
    "load_image_as_base64",
    "load_image_bytes",
    "page_file_name",
]
