"""
Tests for the error records and the default-data catalog
"""
import pytest
from pydantic import ValidationError

from reliability.core.exceptions import ToolkitError
from reliability.domain.models import (
    BaseError,
    ErrorCategory,
    ErrorContext,
    ErrorReport,
    ErrorSeverity,
    RecoveryAction,
)
from reliability.infrastructure.error.catalog import (
    CatalogEntry,
    catalog_entries,
    configuration_error,
    connection_error,
    create_error,
    document_processing_error,
    filesystem_error,
    get_catalog_entry,
    model_error,
    register_catalog_entry,
    system_error,
    validation_error,
    workflow_error,
)


class TestCatalog:
    """Catalog lookups and defaults"""

    def test_every_category_has_an_entry(self):
        covered = {entry.category for entry in catalog_entries()}
        assert covered == set(ErrorCategory)

    @pytest.mark.parametrize("category,code,severity,recoverable", [
        (ErrorCategory.CONNECTION, "CONNECTION_FAILED", ErrorSeverity.HIGH, True),
        (ErrorCategory.MODEL, "MODEL_ERROR", ErrorSeverity.MEDIUM, True),
        (ErrorCategory.VALIDATION, "VALIDATION_ERROR", ErrorSeverity.LOW, True),
        (ErrorCategory.AUTHENTICATION, "AUTHENTICATION_FAILED", ErrorSeverity.HIGH, False),
        (ErrorCategory.SYSTEM, "SYSTEM_ERROR", ErrorSeverity.CRITICAL, False),
    ])
    def test_category_defaults(self, category, code, severity, recoverable):
        entry = get_catalog_entry(category)
        assert entry.code == code
        assert entry.severity == severity
        assert entry.recoverable is recoverable

    def test_unknown_code_falls_back_to_category_default_but_keeps_code(self):
        error = create_error(ErrorCategory.NETWORK, "socket closed", code="SOCKET_CLOSED")

        assert error.code == "SOCKET_CLOSED"
        assert error.severity == ErrorSeverity.MEDIUM
        assert error.recoverable is True

    def test_registered_entry_is_used_for_its_code(self):
        register_catalog_entry(CatalogEntry(
            category=ErrorCategory.CACHE,
            code="CACHE_STAMPEDE",
            severity=ErrorSeverity.HIGH,
            recoverable=False,
            user_message="Too many requests for {key}",
        ))

        error = create_error(ErrorCategory.CACHE, "stampede", code="CACHE_STAMPEDE", details={"key": "docs"})
        assert error.severity == ErrorSeverity.HIGH
        assert error.recoverable is False
        assert error.user_message == "Too many requests for docs"

        # The category default is unchanged
        assert create_error(ErrorCategory.CACHE, "miss").code == "CACHE_ERROR"

    def test_overrides_win_over_catalog(self):
        error = create_error(
            ErrorCategory.CONNECTION,
            "refused",
            severity=ErrorSeverity.LOW,
            recoverable=False,
            user_message="custom",
        )

        assert error.severity == ErrorSeverity.LOW
        assert error.recoverable is False
        assert error.user_message == "custom"


class TestConstructors:
    """Convenience constructors"""

    def test_connection_error_carries_recovery_data(self, error_context):
        error = connection_error("Connection refused", error_context)

        assert error.category == ErrorCategory.CONNECTION
        assert error.code == "CONNECTION_FAILED"
        assert error.context == error_context
        assert error.technical_message == "Connection refused"
        assert [action.type for action in error.recovery_actions] == ["retry", "manual"]
        assert error.recovery_actions[0].max_attempts == 3
        assert error.recovery_actions[0].delay_ms == 1000
        assert [step.step for step in error.troubleshooting_steps] == [1, 2, 3]

    def test_model_error_fills_model_name(self):
        error = model_error("model missing", model_name="mistral")

        assert error.details["model_name"] == "mistral"
        assert "Model mistral is not available" in error.user_message
        assert any("ollama pull mistral" in step.action for step in error.troubleshooting_steps)

    def test_missing_placeholder_renders_unknown(self):
        error = model_error("model missing")
        assert "Model unknown is not available" in error.user_message

    def test_detail_keys_for_each_constructor(self):
        assert document_processing_error("bad pdf", document_path="/tmp/a.pdf").details["document_path"] == "/tmp/a.pdf"
        assert workflow_error("step failed", workflow_id="wf", step_id="s1").details == {
            "workflow_id": "wf",
            "step_id": "s1",
        }
        assert filesystem_error("denied", operation="write", path="/x").details == {
            "operation": "write",
            "path": "/x",
        }
        assert validation_error("bad", field="age", value=-1).details == {"field": "age", "value": -1}
        assert configuration_error("missing", config_key="MODEL").details == {"config_key": "MODEL"}

    def test_extra_details_are_kept(self):
        error = model_error("timeout", model_name="llama2", details={"timeout_s": 30})
        assert error.details == {"timeout_s": 30, "model_name": "llama2"}

    def test_system_error_is_not_recoverable(self):
        error = system_error("out of memory")
        assert error.severity == ErrorSeverity.CRITICAL
        assert error.recoverable is False


class TestErrorRecords:
    """Immutability and serialization of records"""

    def test_category_and_severity_cannot_be_reassigned(self):
        error = connection_error("refused")

        with pytest.raises(ValidationError):
            error.category = ErrorCategory.SYSTEM
        with pytest.raises(ValidationError):
            error.severity = ErrorSeverity.LOW

    def test_to_dict_renders_cause(self):
        cause = ConnectionRefusedError("port 11434")
        data = connection_error("refused", cause=cause).to_dict()

        assert data["cause"] == {"type": "ConnectionRefusedError", "message": "port 11434"}
        assert data["category"] == "connection"
        assert isinstance(data["context"]["timestamp"], str)

    def test_automated_actions(self):
        error = BaseError(
            code="X",
            message="x",
            category=ErrorCategory.CACHE,
            severity=ErrorSeverity.LOW,
            recoverable=True,
            recovery_actions=[
                RecoveryAction(type="manual", description="by hand"),
                RecoveryAction(type="ignore", description="skip", automated=True),
            ],
        )
        assert [action.type for action in error.automated_actions] == ["ignore"]

    def test_toolkit_error_wraps_record(self):
        error = validation_error("bad input", field="name")
        exc = ToolkitError(error)

        assert exc.error is error
        assert exc.to_dict()["error"]["code"] == "VALIDATION_ERROR"
        assert exc.context["severity"] == "low"


class TestErrorReport:
    """Outcome flag rules on reports"""

    def test_recovered_requires_attempts(self):
        with pytest.raises(ValidationError):
            ErrorReport(
                error=connection_error("x"),
                handled=True,
                recovered=True,
                recovery_attempts=0,
                handling_duration_ms=1.0,
            )

    def test_unhandled_report_cannot_carry_recovery(self):
        with pytest.raises(ValidationError):
            ErrorReport(
                error=connection_error("x"),
                handled=False,
                recovered=False,
                recovery_attempts=2,
                handling_duration_ms=1.0,
            )

    def test_report_is_frozen(self):
        report = ErrorReport(
            error=connection_error("x"),
            handled=True,
            recovered=False,
            recovery_attempts=0,
            handling_duration_ms=0.5,
        )
        with pytest.raises(ValidationError):
            report.recovered = True

    def test_context_defaults(self):
        context = ErrorContext()
        assert context.metadata == {}
        assert context.timestamp.tzinfo is not None
