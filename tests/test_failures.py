"""Tests for the failure taxonomy.

Tests verify:
- Required context is validated at construction
- Kind tags and context payloads
- Diagnostic rendering with cause chains
- Classification keys for foreign exceptions
"""

from datetime import timedelta

import pytest

from bookscraper.core.errors import (
    FAILURE_TYPES,
    FailureKind,
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


# ============================================================================
# Construction
# ============================================================================


class TestRequiredContext:
    """Tests that failures cannot exist without their context."""

    @pytest.mark.parametrize(
        "factory",
        [
            lambda v: FileAccessFailure("boom", v),
            lambda v: ImageProcessingFailure("boom", v),
            lambda v: NetworkConnectionFailure("boom", v),
            lambda v: YamlSerializationFailure("boom", v),
            lambda v: InvalidConfigurationFailure("boom", v),
            lambda v: MissingBookNameFailure("boom", v),
        ],
    )
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_context_rejected(self, factory, value) -> None:
        """Test that None, empty, and whitespace context raise ValueError."""
        with pytest.raises(ValueError):
            factory(value)

    def test_non_string_context_rejected(self) -> None:
        """Test that a non-string path is a type error."""
        with pytest.raises(TypeError):
            FileAccessFailure("boom", 42)  # type: ignore[arg-type]

    def test_timeout_requires_timedelta(self) -> None:
        """Test OperationTimeoutFailure validates its duration."""
        with pytest.raises(ValueError):
            OperationTimeoutFailure("slow", None)  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            OperationTimeoutFailure("slow", 30)  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            OperationTimeoutFailure("slow", timedelta(seconds=-1))

    def test_zero_timeout_allowed(self) -> None:
        """Test a zero timeout is valid context."""
        failure = OperationTimeoutFailure("slow", timedelta(0))
        assert failure.timeout == timedelta(0)

    def test_missing_book_name_optional_image(self) -> None:
        """Test MissingBookNameFailure treats a blank image path as absent."""
        failure = MissingBookNameFailure("no name", "/books", "  ")
        assert failure.image_path is None
        assert failure.context() == {"book_root_path": "/books"}


class TestKindsAndContext:
    """Tests for kind tags and context payloads."""

    def test_every_taxonomy_type_has_distinct_kind(self) -> None:
        """Test each registered failure type maps to its own kind."""
        kinds = [cls.kind for cls in FAILURE_TYPES.values()]
        assert len(kinds) == len(set(kinds)) == len(FailureKind)

    def test_registration_table_uses_class_names(self) -> None:
        """Test FAILURE_TYPES keys match class names."""
        for name, cls in FAILURE_TYPES.items():
            assert cls.__name__ == name
            assert issubclass(cls, PipelineFailure)

    def test_context_payload(self) -> None:
        """Test context() returns typed fields and omits None."""
        failure = InvalidConfigurationFailure(
            "bad", "max_retries was -1", offending_input={"max_retries": -1}
        )
        assert failure.context() == {
            "configuration_details": "max_retries was -1",
            "offending_input": {"max_retries": -1},
        }
        assert failure.kind is FailureKind.INVALID_CONFIGURATION

    def test_str_is_message(self) -> None:
        """Test str() of a failure is its message only."""
        assert str(NetworkConnectionFailure("offline", "https://ocr.example")) == "offline"

    def test_cause_keyword_sets_dunder_cause(self) -> None:
        """Test cause= is exposed as __cause__ and .cause."""
        inner = OSError("disk gone")
        failure = FileAccessFailure("cannot read", "/tmp/p.png", cause=inner)
        assert failure.__cause__ is inner
        assert failure.cause is inner


# ============================================================================
# Diagnostics
# ============================================================================


class TestDiagnostics:
    """Tests for describe_failure() / diagnostic()."""

    def test_diagnostic_includes_type_message_and_context(self) -> None:
        """Test the headline and context lines."""
        failure = FileAccessFailure("cannot read", "/tmp/p.png")
        text = failure.diagnostic()
        assert text.splitlines()[0] == "FileAccessFailure: cannot read"
        assert "  file_path: /tmp/p.png" in text

    def test_diagnostic_follows_explicit_cause_chain(self) -> None:
        """Test that raise ... from chains are rendered innermost last."""
        try:
            try:
                raise PermissionError("denied")
            except PermissionError as e:
                raise FileAccessFailure("cannot read", "/tmp/p.png") from e
        except FileAccessFailure as failure:
            lines = describe_failure(failure).splitlines()

        assert lines[-1] == "Caused by: PermissionError: denied"

    def test_diagnostic_follows_implicit_context(self) -> None:
        """Test exceptions raised while handling another keep that context."""
        try:
            try:
                raise KeyError("images")
            except KeyError:
                raise RuntimeError("parse failed")
        except RuntimeError as failure:
            text = describe_failure(failure)

        assert "RuntimeError: parse failed" in text
        assert "Caused by: KeyError: 'images'" in text

    def test_suppressed_context_is_not_rendered(self) -> None:
        """Test raise ... from None hides the context."""
        try:
            try:
                raise KeyError("images")
            except KeyError:
                raise RuntimeError("parse failed") from None
        except RuntimeError as failure:
            text = describe_failure(failure)

        assert "KeyError" not in text

    def test_cyclic_chain_terminates(self) -> None:
        """Test a cause cycle does not loop forever."""
        first = ValueError("a")
        second = ValueError("b")
        first.__cause__ = second
        second.__cause__ = first
        assert describe_failure(first).count("ValueError") == 2

    def test_message_less_exception(self) -> None:
        """Test exceptions without a message render the type name alone."""
        assert describe_failure(RuntimeError()) == "RuntimeError"


class TestFailureKindKey:
    """Tests for classification keys."""

    def test_taxonomy_failure_uses_kind(self) -> None:
        """Test taxonomy failures key on their kind tag."""
        failure = YamlSerializationFailure("bad yaml", "ERR.YAML_SERIALIZATION_FAILED")
        assert failure_kind_key(failure) == "serialization"

    def test_foreign_exception_uses_qualified_name(self) -> None:
        """Test builtins are keyed by module and qualified name."""
        assert failure_kind_key(TimeoutError("slow")) == "builtins.TimeoutError"

    def test_builtin_timeout_is_not_operation_timeout(self) -> None:
        """Test the builtin TimeoutError is a foreign failure."""
        assert failure_kind_key(TimeoutError()) != FailureKind.OPERATION_TIMEOUT.value
