"""Global constants for bookscraper.

Centralizes magic numbers and well-known names used throughout the codebase,
making them discoverable, consistent, and easy to modify.
"""

from pathlib import Path

# =============================================================================
# Error Catalog Defaults
# =============================================================================

DEFAULT_FALLBACK_ERROR_CODE = "ERR.UNEXPECTED"
"""Error code used when a failure's kind has no contract mapping."""

DEFAULT_FALLBACK_EXIT_CODE = 1
"""Exit code used when the fallback error code itself has no exit mapping."""

YAML_SERIALIZATION_ERROR_CODE = "ERR.YAML_SERIALIZATION_FAILED"
"""Error code carried by serialization failures raised by the page serializer."""

# =============================================================================
# Contract Files
# =============================================================================

DEFAULT_CONTRACTS_DIR = Path(__file__).resolve().parent.parent / "contracts"
"""Contracts shipped with the package."""

CONTRACT_FILES: tuple[str, ...] = (
    "contract.common.errors-and-exit-codes.yaml",
    "contract.bookscraper.errors-and-exit-codes.yaml",
    "contracts.bookscraper.error-mapping.yaml",
)
"""Contract documents, in merge order. Later files override earlier ones."""

# =============================================================================
# Retry Defaults
# =============================================================================

DEFAULT_MAX_RETRIES = 3
"""Default number of retries after the first failed attempt."""

DEFAULT_RETRY_DELAY_SECONDS = 5.0
"""Default base delay for exponential backoff (seconds)."""

# =============================================================================
# Pipeline Defaults
# =============================================================================

SUPPORTED_IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp"})
"""Page image file suffixes (compared lower-case)."""

PAGE_FILE_TEMPLATE = "{book_name}_page_{page_number:04d}.yaml"
"""Output file name for a serialized page."""

MAX_IMAGE_BYTES = 32 * 1024 * 1024
"""Upper bound for a single page image (32 MB)."""

ORIGINAL_IMAGE_KEY = "original"
"""Key of the unmodified page image in ``Page.images``."""
