"""Book and batch processing.

BookProcessor turns one directory of page images into one YAML file per
page; BatchProcessor runs it over every book directory under an input root.
Neither catches failures: they propagate to the execution boundary, which
decides whether to retry the whole unit of work.

Book layouts:
- Single book: ``<root>/page1.png`` -> book name is ``<root>``'s name.
- Nested: ``<input>/<book>/page1.png`` -> book name is the image's parent.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from bookscraper.core.config import ProcessingOptions
from bookscraper.core.constants import (
    ORIGINAL_IMAGE_KEY,
    PAGE_FILE_TEMPLATE,
    SUPPORTED_IMAGE_SUFFIXES,
)
from bookscraper.core.errors import (
    FileAccessFailure,
    InvalidConfigurationFailure,
    MissingBookNameFailure,
)
from bookscraper.core.logging import get_logger
from bookscraper.pipeline.images import load_image_as_base64
from bookscraper.pipeline.models import Page
from bookscraper.pipeline.serializer import PageSerializer

_logger = get_logger("pipeline")

TextExtractor = Callable[[Path, str], str]
"""OCR hook: (image_path, language) -> extracted text."""


def _is_blank(value: Path | str | None) -> bool:
    return value is None or not str(value).strip()


def is_supported_image(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_IMAGE_SUFFIXES


def derive_book_name(book_root: Path | str, image_path: Path | str) -> str:
    """Derive the logical book name for an image.

    Raises:
        InvalidConfigurationFailure: Either path is blank.
        MissingBookNameFailure: The derived name is empty (e.g. a filesystem root).
    """
    if _is_blank(book_root):
        raise InvalidConfigurationFailure(
            "Book root path must not be empty.", f"book_root: '{book_root}'"
        )
    if _is_blank(image_path):
        raise InvalidConfigurationFailure(
            "Image path must not be empty.", f"image_path: '{image_path}'"
        )

    root = Path(book_root).resolve()
    image_dir = Path(image_path).resolve().parent

    if str(image_dir).casefold() == str(root).casefold():
        book_name = root.name
    else:
        book_name = image_dir.name

    if not book_name.strip():
        raise MissingBookNameFailure(
            f"Derived book name from path '{image_dir}' is empty.",
            str(book_root),
            str(image_path),
        )
    return book_name


def page_file_name(book_name: str, page_number: int) -> str:
    return PAGE_FILE_TEMPLATE.format(book_name=book_name, page_number=page_number)


class BookProcessor:
    """Coordinates image loading, optional OCR, and YAML output for one book."""

    def __init__(
        self,
        serializer: PageSerializer | None = None,
        text_extractor: TextExtractor | None = None,
    ) -> None:
        self._serializer = serializer or PageSerializer()
        self._text_extractor = text_extractor

    def find_images(self, book_root: Path) -> list[Path]:
        """Supported images directly under ``book_root``, sorted case-insensitively."""
        return sorted(
            (p for p in book_root.iterdir() if p.is_file() and is_supported_image(p)),
            key=lambda p: p.name.casefold(),
        )

    def process_book(self, options: ProcessingOptions, book_root: Path | str) -> list[Path]:
        """Process every page image of one book.

        Returns:
            Paths of the written page files, in page order.

        Raises:
            InvalidConfigurationFailure: book_root is blank or holds no images.
            FileAccessFailure: book_root does not exist or is not a directory.
        """
        if _is_blank(book_root):
            raise InvalidConfigurationFailure(
                "Book root path must be provided.", "book_root was None or blank."
            )
        root = Path(book_root)
        if not root.is_dir():
            raise FileAccessFailure(f"Book root directory '{root}' does not exist.", str(root))

        try:
            images = self.find_images(root)
        except OSError as e:
            raise FileAccessFailure(f"Cannot list book directory '{root}'.", str(root)) from e

        if not images:
            raise InvalidConfigurationFailure(
                f"No supported image files were found in '{root}'.",
                f"Supported suffixes: {', '.join(sorted(SUPPORTED_IMAGE_SUFFIXES))}",
                offending_input=str(root),
            )

        log = _logger.bind(book_root=str(root))
        log.info("book.started", pages=len(images))

        written = [
            self._process_page(options, root, image_path, page_number)
            for page_number, image_path in enumerate(images, start=1)
        ]

        log.info("book.completed", pages=len(written), output_dir=str(options.output_directory))
        return written

    def _process_page(
        self,
        options: ProcessingOptions,
        book_root: Path,
        image_path: Path,
        page_number: int,
    ) -> Path:
        book_name = derive_book_name(book_root, image_path)
        page = Page(
            page_number=page_number,
            images={ORIGINAL_IMAGE_KEY: load_image_as_base64(image_path)},
            book_name=book_name,
        )

        if self._text_extractor is not None:
            text = self._text_extractor(image_path, options.language)
            page.apply_ocr_result(text, options.ocr_engine, options.language)

        # Sequential numbering keeps file names unique and ordered.
        output_path = options.output_directory / page_file_name(book_name, page_number)
        self._serializer.write_page(page, output_path)

        if options.enable_logging:
            _logger.debug(
                "page.written",
                book_name=book_name,
                page_number=page_number,
                image=image_path.name,
                output=str(output_path),
                ocr=page.has_ocr,
            )
        return output_path


class BatchProcessor:
    """Processes each book directory under ``options.input_directory``."""

    def __init__(self, book_processor: BookProcessor | None = None) -> None:
        self._book_processor = book_processor or BookProcessor()

    def find_books(self, input_directory: Path) -> list[Path]:
        return sorted(
            (p for p in input_directory.iterdir() if p.is_dir()),
            key=lambda p: p.name.casefold(),
        )

    def process_all(self, options: ProcessingOptions) -> dict[str, list[Path]]:
        """Process every immediate sub-directory of the input directory.

        Returns:
            Book directory name -> written page files.

        Raises:
            FileAccessFailure: The input directory does not exist.
        """
        input_dir = options.input_directory
        if not input_dir.is_dir():
            raise FileAccessFailure(
                f"Input directory '{input_dir}' does not exist.", str(input_dir)
            )

        try:
            books = self.find_books(input_dir)
        except OSError as e:
            raise FileAccessFailure(
                f"Cannot list input directory '{input_dir}'.", str(input_dir)
            ) from e

        _logger.info("batch.started", input_dir=str(input_dir), books=len(books))
        results: dict[str, list[Path]] = {}
        for book_root in books:
            results[book_root.name] = self._book_processor.process_book(options, book_root)
        _logger.info("batch.completed", books=len(results))
        return results
