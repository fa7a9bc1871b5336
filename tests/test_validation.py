"""Unit tests for validation.

Tests cover:
- JsonSchemaValidator field-scoped and whole-form failures
- Custom messages via the errorMessage keyword
- Input value coercion by input kind
- ValidationOrchestrator sync/async field validation and error translation
- Malformed validator failures
"""

import asyncio
import logging
import math
from types import SimpleNamespace

import jsonschema
import pytest

from formstate.errors import FieldError, ValidationFailure
from formstate.stores import ErrorStore, ValueStore
from formstate.types import FieldErrorCode
from formstate.validation import JsonSchemaValidator, ValidationOrchestrator, get_input_value


NAME_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1, "errorMessage": "Name is required"},
        "email": {"type": "string", "pattern": "^[^@]+@[^@]+$"},
        "age": {"type": "integer", "minimum": 18},
    },
    "required": ["name"],
}


def _input(kind, value, name="field"):
    return SimpleNamespace(target=SimpleNamespace(name=name, type=kind, value=value))


def _orchestrator(initial, schema=NAME_SCHEMA, **kwargs):
    values = ValueStore(initial)
    errors = ErrorStore(initial.keys())
    validator = JsonSchemaValidator(schema) if isinstance(schema, dict) else schema
    return ValidationOrchestrator(values, errors, schema=validator, **kwargs)


class TestJsonSchemaValidatorFields:
    """Test single-field validation with the bundled validator."""

    def test_valid_field_passes(self):
        """Should return normally for a valid field."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        validator.validate_field_sync("name", {"name": "Esteban"})

    def test_custom_message_is_used(self):
        """Should report the subschema's errorMessage."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_field_sync("name", {"name": ""})

        failure = exc_info.value
        assert failure.path == "name"
        assert failure.errors == ["Name is required"]
        assert failure.inner[0].code == FieldErrorCode.TOO_SHORT

    def test_missing_required_field_uses_property_message(self):
        """Should report a missing required field under its own name."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_field_sync("name", {})

        assert exc_info.value.errors == ["Name is required"]
        assert exc_info.value.inner[0].code == FieldErrorCode.REQUIRED

    def test_other_fields_are_ignored(self):
        """Should not fail a field because a different field is invalid."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        validator.validate_field_sync("email", {"name": "", "email": "esteban@mail.com"})

    def test_default_messages(self):
        """Should produce a default message when no errorMessage is set."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_field_sync("age", {"name": "Esteban", "age": 12})

        assert exc_info.value.errors == ["Field 'age' violates minimum constraint: 18"]
        assert exc_info.value.inner[0].code == FieldErrorCode.INVALID_VALUE

    def test_keyword_message_mapping(self):
        """Should pick the message for the failing keyword from a mapping."""
        schema = {
            "type": "object",
            "properties": {
                "email": {
                    "type": "string",
                    "pattern": "@",
                    "errorMessage": {"pattern": "Invalid email", "type": "Must be text"},
                },
            },
        }
        validator = JsonSchemaValidator(schema)

        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_field_sync("email", {"email": "nope"})
        assert exc_info.value.errors == ["Invalid email"]

        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_field_sync("email", {"email": 42})
        assert exc_info.value.errors == ["Must be text"]

    def test_nested_failures_belong_to_parent_field(self):
        """Should report nested failures when validating the parent field."""
        schema = {
            "type": "object",
            "properties": {
                "address": {
                    "type": "object",
                    "properties": {"city": {"type": "string"}},
                    "required": ["city"],
                },
            },
        }
        validator = JsonSchemaValidator(schema)

        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_field_sync("address", {"address": {}})

        assert exc_info.value.inner[0].path == "address.city"
        assert exc_info.value.errors == ["Field 'address.city' is required"]

    def test_async_validate_field(self):
        """Should raise the same failure from the async entry point."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        with pytest.raises(ValidationFailure):
            asyncio.run(validator.validate_field("name", {"name": ""}))

    def test_invalid_schema_is_rejected(self):
        """Should refuse a schema that is not valid JSON Schema."""
        with pytest.raises(jsonschema.SchemaError):
            JsonSchemaValidator({"type": "not-a-type"})


class TestJsonSchemaValidatorWholeForm:
    """Test whole-form validation with the bundled validator."""

    def test_collects_all_failures(self):
        """Should report one FieldError per failure in collect-all mode."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_all({"name": "", "email": "nope", "age": 3})

        failure = exc_info.value
        assert failure.path is None
        assert {e.path for e in failure.inner} == {"name", "email", "age"}
        assert all(isinstance(e, FieldError) for e in failure.inner)

    def test_fail_fast(self):
        """Should stop at the first failure when collect_all is False."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate_all({"name": "", "email": "nope", "age": 3}, collect_all=False)
        assert len(exc_info.value.inner) == 1

    def test_valid_form_passes(self):
        """Should return normally when every field is valid."""
        validator = JsonSchemaValidator(NAME_SCHEMA)
        validator.validate_all({"name": "Esteban", "email": "esteban@mail.com", "age": 30})


class TestGetInputValue:
    """Test coercion of raw input values."""

    def test_number_input_is_coerced(self):
        assert get_input_value(_input("number", "1234").target) == 1234

    def test_range_input_is_coerced(self):
        assert get_input_value(_input("range", "1234").target) == 1234

    def test_text_input_passes_through(self):
        assert get_input_value(_input("text", "testing").target) == "testing"

    def test_decimal_number(self):
        assert get_input_value(_input("number", "12.5").target) == 12.5

    def test_blank_number_is_zero(self):
        assert get_input_value(_input("number", "  ").target) == 0

    def test_unparseable_number_is_nan(self):
        assert math.isnan(get_input_value(_input("number", "abc").target))

    def test_checkbox_value_passes_through(self):
        assert get_input_value(_input("checkbox", True).target) is True


class TestOrchestratorFieldValidation:
    """Test single-field validation through the orchestrator."""

    def test_validate_field_sets_and_clears_error(self):
        """Should set the schema's message, then clear it once fixed."""
        orchestrator = _orchestrator({"name": ""})

        asyncio.run(orchestrator.validate_field("name"))
        assert orchestrator.errors.get()["name"] == "Name is required"

        orchestrator.set_field_value("name", "Testing!")
        asyncio.run(orchestrator.validate_field("name"))
        assert orchestrator.errors.get()["name"] is None

    def test_validate_field_sync_sets_and_clears_error(self):
        """Should behave like the async path using the sync validator."""
        orchestrator = _orchestrator({"name": ""})

        orchestrator.validate_field_sync("name")
        assert orchestrator.errors.get()["name"] == "Name is required"

        orchestrator.set_field_value("name", "Testing!")
        orchestrator.validate_field_sync("name")
        assert orchestrator.errors.get()["name"] is None

    def test_set_field_value_with_validation(self):
        """Should validate the written field when asked to."""
        orchestrator = _orchestrator({"name": "Esteban"})
        orchestrator.set_field_value("name", "", should_validate=True)
        assert orchestrator.errors.get()["name"] == "Name is required"

    def test_set_field_value_without_validation(self):
        """Should only write the value by default."""
        orchestrator = _orchestrator({"name": "Esteban"})
        orchestrator.set_field_value("name", "")
        assert orchestrator.values.get()["name"] == ""
        assert orchestrator.errors.get()["name"] is None

    def test_no_schema_skips_validation(self):
        """Should never touch errors when no schema is configured."""
        orchestrator = _orchestrator({"name": "Esteban"}, schema=None)
        orchestrator.set_field_value("name", "", should_validate=True)
        orchestrator.validate_field_sync("name")
        asyncio.run(orchestrator.validate_field("name"))
        assert orchestrator.errors.get() == {"name": None}

    def test_malformed_failure_is_logged(self, caplog):
        """Should log a failure without a field path and leave errors alone."""

        class BrokenValidator:
            async def validate_field(self, name, values):
                raise ValidationFailure("no path")

            def validate_field_sync(self, name, values):
                raise ValidationFailure("no messages", path=name)

            def validate_all(self, values, collect_all=True):
                return None

        orchestrator = _orchestrator({"name": "Esteban"}, schema=BrokenValidator())

        with caplog.at_level(logging.ERROR, logger="formstate.validation"):
            asyncio.run(orchestrator.validate_field("name"))
            orchestrator.validate_field_sync("name")

        assert orchestrator.errors.get() == {"name": None}
        assert caplog.text.count("missing a field path or messages") == 2

    def test_validator_crash_is_logged_not_raised(self, caplog):
        """Should log any validator exception and leave the error map alone."""

        class CrashingValidator:
            async def validate_field(self, name, values):
                raise ValueError("boom")

            def validate_field_sync(self, name, values):
                raise ValueError("boom")

            def validate_all(self, values, collect_all=True):
                return None

        orchestrator = _orchestrator({"name": "Esteban"}, schema=CrashingValidator())
        orchestrator.errors.set_field_error("name", "Previous error")

        with caplog.at_level(logging.ERROR, logger="formstate.validation"):
            asyncio.run(orchestrator.validate_field("name"))
            orchestrator.validate_field_sync("name")
            orchestrator.set_field_value("name", "", should_validate=True)

        assert orchestrator.errors.get() == {"name": "Previous error"}
        assert orchestrator.values.get()["name"] == ""
        assert caplog.text.count("unexpected error for field 'name'") == 3

    def test_last_resolving_validation_wins(self):
        """Should apply whichever overlapping validation resolves last."""

        class SlowFirstValidator:
            def __init__(self):
                self.calls = 0

            async def validate_field(self, name, values):
                self.calls += 1
                if self.calls == 1:
                    await asyncio.sleep(0.02)
                    return None
                raise ValidationFailure("bad", path=name, errors=["Second call failed"])

            def validate_field_sync(self, name, values):
                return None

            def validate_all(self, values, collect_all=True):
                return None

        orchestrator = _orchestrator({"name": "Esteban"}, schema=SlowFirstValidator())

        async def run():
            await asyncio.gather(
                orchestrator.validate_field("name"),
                orchestrator.validate_field("name"),
            )

        asyncio.run(run())
        # The first call started earlier but resolved later, so its success wins
        assert orchestrator.errors.get()["name"] is None


class TestOrchestratorEvents:
    """Test change and input event handlers."""

    def test_handle_change_coerces_and_writes(self):
        """Should write the coerced value under the target's name."""
        orchestrator = _orchestrator({"name": "", "age": 0})
        orchestrator.handle_change(_input("number", "1234", name="age"))
        assert orchestrator.values.get()["age"] == 1234

    def test_handle_input_passes_text_through(self):
        """Should write text values unchanged."""
        orchestrator = _orchestrator({"name": "", "age": 0})
        orchestrator.handle_input(_input("text", "testing", name="name"))
        assert orchestrator.values.get()["name"] == "testing"

    def test_handle_change_validates_when_configured(self):
        """Should validate on change only when validate_on_change is set."""
        orchestrator = _orchestrator({"name": "Esteban"}, validate_on_change=True)
        orchestrator.handle_change(_input("text", "", name="name"))
        assert orchestrator.errors.get()["name"] == "Name is required"

        orchestrator.handle_input(_input("text", "", name="name"))
        orchestrator.handle_change(_input("text", "Testing!", name="name"))
        assert orchestrator.errors.get()["name"] is None

    def test_handle_input_validates_when_configured(self):
        """Should validate on input only when validate_on_input is set."""
        orchestrator = _orchestrator({"name": "Esteban"}, validate_on_input=True)

        orchestrator.handle_change(_input("text", "", name="name"))
        assert orchestrator.errors.get()["name"] is None

        orchestrator.handle_input(_input("text", "", name="name"))
        assert orchestrator.errors.get()["name"] == "Name is required"


class TestFailureTypes:
    """Test the structured failure types."""

    def test_field_error_to_dict(self):
        err = FieldError(path="email", message="Invalid email", code=FieldErrorCode.INVALID_FORMAT)
        assert err.to_dict() == {"path": "email", "message": "Invalid email", "code": "invalid_format"}

    def test_field_error_from_dict_defaults_code(self):
        err = FieldError.from_dict({"path": "name", "message": "Required"})
        assert err.code == FieldErrorCode.CUSTOM

    def test_field_scoped_failure(self):
        assert ValidationFailure("x", path="name", errors=["Required"]).is_field_scoped is True
        assert ValidationFailure("x", path="name").is_field_scoped is False
        assert ValidationFailure("x", errors=["Required"]).is_field_scoped is False
