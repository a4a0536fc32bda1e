"""Contract loader for the error catalog.

Hydrates an ErrorCatalog from the YAML error/exit-code contracts. Files are
read in a fixed order and merged: later files override entries from earlier
ones. The loader tolerates partial contracts (a missing or unreadable file
is logged and skipped) so the common contract alone is enough to run.

Contract document shape (all sections optional)::

    fallback_error_code: ERR.UNEXPECTED
    fallback_exit_code: 1            # int: explicit; string: legacy alias
    cli_exit_codes:
      map:
        ERR.UNEXPECTED: 1
        ERR.IO_FILE_ACCESS: 3
    errors:
      ERR.IO_FILE_ACCESS:
        is_retryable: true
        title: File access failed
        description: A page image or output file could not be accessed.
    exception_mappings:
      file_access: ERR.IO_FILE_ACCESS          # kind tag
      YamlSerializationFailure: ERR.YAML_SERIALIZATION_FAILED   # class name
      builtins.TimeoutError: ERR.OPERATION_TIMEOUT              # foreign type

The same sections may also be nested under ``content.errors_and_exit_codes``
(and its ``mappings`` block), which is how the shared common contract is
authored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError

from bookscraper.core.constants import (
    CONTRACT_FILES,
    DEFAULT_CONTRACTS_DIR,
    DEFAULT_FALLBACK_ERROR_CODE,
)
from bookscraper.core.logging import get_logger

from .catalog import ErrorCatalog
from .codes import ErrorCode, FailureKind
from .failures import FAILURE_TYPES
from .models import ErrorMetadata

_logger = get_logger("contracts")

_FAILURES_MODULE = "bookscraper.core.errors.failures"


class ErrorEntry(BaseModel):
    """One entry of a contract's ``errors`` section."""

    model_config = ConfigDict(extra="ignore")

    is_retryable: StrictBool = False
    title: str | None = None
    description: str | None = None

    def default_message(self, error_code: ErrorCode) -> str:
        """Description, else title, else the code itself."""
        if self.description and self.description.strip():
            return self.description
        if self.title and self.title.strip():
            return self.title
        return str(error_code)


def resolve_failure_key(name: str) -> str | None:
    """Resolve an ``exception_mappings`` key to a classification key.

    Accepts a kind tag (``file_access``), a taxonomy class name
    (``FileAccessFailure``, optionally module-qualified), or the qualified
    name of a foreign exception (``builtins.TimeoutError``).

    Returns:
        The classification key, or None if the name looks like a taxonomy
        class that does not exist.
    """
    name = name.strip()
    try:
        return FailureKind(name).value
    except ValueError:
        pass

    module, _, class_name = name.rpartition(".")
    if not module or module == _FAILURES_MODULE or module.startswith("bookscraper."):
        failure_type = FAILURE_TYPES.get(class_name)
        return failure_type.kind.value if failure_type is not None else None

    return name


def _unwrap(document: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten the optional ``content.errors_and_exit_codes`` envelope."""
    flat = dict(document)
    content = document.get("content")
    if isinstance(content, Mapping):
        envelope = content.get("errors_and_exit_codes")
        if isinstance(envelope, Mapping):
            flat.update(envelope)
            mappings = envelope.get("mappings")
            if isinstance(mappings, Mapping):
                flat.update(mappings)
    return flat


@dataclass
class CatalogTables:
    """Mutable accumulator for merging contract documents."""

    failure_mappings: dict[str, ErrorCode] = field(default_factory=dict)
    error_metadata: dict[ErrorCode, ErrorMetadata] = field(default_factory=dict)
    exit_codes: dict[ErrorCode, int] = field(default_factory=dict)
    fallback_error_code: ErrorCode = field(
        default_factory=lambda: ErrorCode(DEFAULT_FALLBACK_ERROR_CODE)
    )
    fallback_exit_code: int | None = None

    def to_catalog(self) -> ErrorCatalog:
        return ErrorCatalog(
            failure_mappings=self.failure_mappings,
            error_metadata=self.error_metadata,
            fallback_error_code=self.fallback_error_code,
            error_code_to_exit_code=self.exit_codes,
            fallback_exit_code=self.fallback_exit_code,
        )


class ContractLoader:
    """Load the error catalog from contract YAML files.

    Records which files were applied and which were skipped (with a reason)
    so callers such as ``bookscraper validate-contracts`` can report on them.
    """

    def __init__(
        self,
        contracts_dir: Path | str | None = None,
        files: Iterable[str] = CONTRACT_FILES,
    ) -> None:
        """Initialize the contract loader.

        Args:
            contracts_dir: Directory containing the contract files. Defaults
                to the contracts shipped with the package.
            files: Contract file names, in merge order.

        Raises:
            ValueError: If contracts_dir is blank.
            FileNotFoundError: If contracts_dir does not exist.
        """
        if contracts_dir is None:
            contracts_dir = DEFAULT_CONTRACTS_DIR
        if isinstance(contracts_dir, str) and not contracts_dir.strip():
            raise ValueError("Contracts directory path must be provided")

        self.contracts_dir = Path(contracts_dir)
        if not self.contracts_dir.is_dir():
            raise FileNotFoundError(
                f"Contracts directory not found at '{self.contracts_dir}'"
            )

        self.files = tuple(files)
        self.loaded_files: list[Path] = []
        self.skipped_files: list[tuple[Path, str]] = []

    def load(self) -> ErrorCatalog:
        """Read, merge, and freeze all contract files into an ErrorCatalog."""
        self.loaded_files = []
        self.skipped_files = []
        tables = CatalogTables()

        for name in self.files:
            path = self.contracts_dir / name
            document = self._read_document(path)
            if document is None:
                continue
            self._apply(tables, _unwrap(document), path)
            self.loaded_files.append(path)

        catalog = tables.to_catalog()
        _logger.debug(
            "contracts.loaded",
            contracts_dir=str(self.contracts_dir),
            files=[p.name for p in self.loaded_files],
            failure_mappings=len(catalog.failure_mappings),
            error_codes=len(catalog.error_metadata),
            exit_codes=len(catalog.error_code_to_exit_code),
            fallback_error_code=str(catalog.fallback_error_code),
            fallback_exit_code=catalog.fallback_exit_code,
        )
        return catalog

    def _skip(self, path: Path, reason: str) -> None:
        self.skipped_files.append((path, reason))

    def _read_document(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            _logger.warning("contracts.file_missing", path=str(path))
            self._skip(path, "file not found")
            return None

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            _logger.error("contracts.file_unreadable", path=str(path), error=str(e))
            self._skip(path, f"cannot read file: {e}")
            return None

        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            _logger.error("contracts.yaml_invalid", path=str(path), error=str(e))
            self._skip(path, f"YAML syntax error: {e}")
            return None

        if not isinstance(document, dict):
            _logger.warning(
                "contracts.document_not_mapping",
                path=str(path),
                document_type=type(document).__name__,
            )
            self._skip(path, "document root is not a mapping")
            return None

        return document

    def _apply(self, tables: CatalogTables, document: dict[str, Any], path: Path) -> None:
        self._apply_exit_codes(tables, document.get("cli_exit_codes"))

        fallback_exit = document.get("fallback_exit_code")
        if isinstance(fallback_exit, int) and not isinstance(fallback_exit, bool):
            tables.fallback_exit_code = fallback_exit
        elif isinstance(fallback_exit, str) and fallback_exit.strip():
            # Legacy form: names the fallback error code, not an exit status.
            tables.fallback_error_code = ErrorCode(fallback_exit)

        self._apply_failure_mappings(tables, document.get("exception_mappings"), path)
        self._apply_errors(tables, document.get("errors"), path)

        fallback_code = ErrorCode.coerce(document.get("fallback_error_code"))
        if fallback_code is not None:
            tables.fallback_error_code = fallback_code

    @staticmethod
    def _apply_exit_codes(tables: CatalogTables, section: Any) -> None:
        if not isinstance(section, Mapping):
            return
        code_map = section.get("map")
        if not isinstance(code_map, Mapping):
            return
        for raw_code, exit_code in code_map.items():
            code = ErrorCode.coerce(raw_code)
            if code is None or isinstance(exit_code, bool) or not isinstance(exit_code, int):
                continue
            tables.exit_codes[code] = exit_code

    @staticmethod
    def _apply_failure_mappings(tables: CatalogTables, section: Any, path: Path) -> None:
        if not isinstance(section, Mapping):
            return
        for raw_name, raw_code in section.items():
            code = ErrorCode.coerce(raw_code)
            if not isinstance(raw_name, str) or not raw_name.strip() or code is None:
                continue
            key = resolve_failure_key(raw_name)
            if key is None:
                _logger.warning(
                    "contracts.failure_type_unresolved",
                    failure_type=raw_name,
                    path=str(path),
                )
                continue
            tables.failure_mappings[key] = code

    @staticmethod
    def _apply_errors(tables: CatalogTables, section: Any, path: Path) -> None:
        if not isinstance(section, Mapping):
            return
        for raw_code, raw_entry in section.items():
            code = ErrorCode.coerce(raw_code)
            if code is None or not isinstance(raw_entry, Mapping):
                continue
            try:
                entry = ErrorEntry.model_validate(raw_entry)
            except ValidationError as e:
                _logger.warning(
                    "contracts.error_entry_invalid",
                    error_code=str(code),
                    path=str(path),
                    error=str(e),
                )
                continue
            tables.error_metadata[code] = ErrorMetadata(
                error_code=code,
                is_transient=entry.is_retryable,
                default_message=entry.default_message(code),
            )


def load_error_catalog(
    contracts_dir: Path | str | None = None,
    *,
    files: Iterable[str] = CONTRACT_FILES,
) -> ErrorCatalog:
    """Load the error catalog from the contracts in ``contracts_dir``.

    Args:
        contracts_dir: Directory holding the contract files (defaults to the
            packaged contracts).
        files: Contract file names, in merge order.

    Returns:
        A frozen ErrorCatalog.
    """
    return ContractLoader(contracts_dir, files).load()
