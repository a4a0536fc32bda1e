"""Error taxonomy and classification.

Re-exports all public symbols so callers can import from
``bookscraper.core.errors`` directly.
"""

from bookscraper.core.errors.codes import (
    ErrorCode,
    FailureKind,
    WellKnownCodes,
)
from bookscraper.core.errors.failures import (
    FAILURE_TYPES,
    FileAccessFailure,
    ImageProcessingFailure,
    InvalidConfigurationFailure,
    MissingBookNameFailure,
    NetworkConnectionFailure,
    OperationTimeoutFailure,
    PipelineFailure,
    YamlSerializationFailure,
    describe_failure,
    failure_kind_key,
)
from bookscraper.core.errors.models import (
    ErrorMetadata,
    ErrorResponse,
)
from bookscraper.core.errors.catalog import ErrorCatalog, derive_fallback_exit_code
from bookscraper.core.errors.contracts import (
    ContractLoader,
    ErrorEntry,
    load_error_catalog,
    resolve_failure_key,
)

__all__ = [
    "ErrorCode",
    "FailureKind",
    "WellKnownCodes",
    "FAILURE_TYPES",
    "FileAccessFailure",
    "ImageProcessingFailure",
    "InvalidConfigurationFailure",
    "MissingBookNameFailure",
    "NetworkConnectionFailure",
    "OperationTimeoutFailure",
    "PipelineFailure",
    "YamlSerializationFailure",
    "describe_failure",
    "failure_kind_key",
    "ErrorMetadata",
    "ErrorResponse",
    "ErrorCatalog",
    "derive_fallback_exit_code",
    "ContractLoader",
    "ErrorEntry",
    "load_error_catalog",
    "resolve_failure_key",
]
