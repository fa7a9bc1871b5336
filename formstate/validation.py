"""Validation for the formstate engine.

This module provides three pieces:

- ValidationSchema: the contract an external validator must satisfy. The
  engine never inspects schema internals; it only calls these methods and
  reacts to ValidationFailure.
- JsonSchemaValidator: a bundled ValidationSchema built on ``jsonschema``
  (Draft 7) that translates jsonschema errors into field-scoped messages.
- ValidationOrchestrator: writes field values and drives single-field
  validation (sync and async), translating failures into ErrorStore updates.

Field validation failures never propagate out of the orchestrator. A failure
without a field path or message, or any other exception raised by the
validator, is a validator contract violation: it is logged and otherwise
ignored.
"""

import logging
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Union

import jsonschema
from jsonschema import Draft7Validator
from typing_extensions import Protocol

from formstate.errors import FieldError, ValidationFailure
from formstate.stores import ErrorStore, ValueStore
from formstate.types import FieldErrorCode, FormEvent, FormValues, InputKind, InputTarget

logger = logging.getLogger(__name__)


class ValidationSchema(Protocol):
    """Capabilities the engine expects from a validator.

    Every method returns normally on success and raises ValidationFailure on
    failure. ``validate_all`` may be a plain method or a coroutine function.
    """

    async def validate_field(self, name: str, values: FormValues) -> None:
        ...

    def validate_field_sync(self, name: str, values: FormValues) -> None:
        ...

    def validate_all(
        self, values: FormValues, collect_all: bool = True
    ) -> Union[None, Awaitable[None]]:
        ...


def _within(path: str, name: str) -> bool:
    return path == name or path.startswith(f"{name}.")


class JsonSchemaValidator:
    """ValidationSchema implementation backed by a JSON Schema.

    Messages can be customized with a non-standard ``errorMessage`` keyword on
    any subschema: either a string used for every failure of that subschema,
    or a mapping from jsonschema keyword to message.

    Attributes:
        schema: The JSON Schema definition to validate against
        validator: The underlying jsonschema validator instance

    Examples:
        >>> validator = JsonSchemaValidator({
        ...     "type": "object",
        ...     "properties": {
        ...         "name": {"type": "string", "minLength": 1, "errorMessage": "Name is required"}
        ...     },
        ...     "required": ["name"],
        ... })
        >>> validator.validate_field_sync("name", {"name": "Esteban"})
        >>> try:
        ...     validator.validate_field_sync("name", {"name": ""})
        ... except ValidationFailure as failure:
        ...     failure.errors
        ['Name is required']
    """

    def __init__(self, schema: Dict[str, Any]) -> None:
        """Initialize the validator with a JSON Schema.

        Raises:
            jsonschema.SchemaError: If the provided schema is invalid
        """
        self.schema = schema
        Draft7Validator.check_schema(schema)
        self.validator = Draft7Validator(schema)

    async def validate_field(self, name: str, values: FormValues) -> None:
        self.validate_field_sync(name, values)

    def validate_field_sync(self, name: str, values: FormValues) -> None:
        """Validate the field ``name`` (and anything nested under it).

        Raises:
            ValidationFailure: With ``path`` set to ``name`` and one message
                per failure found for that field
        """
        field_errors = [e for e in self._iter_field_errors(values) if _within(e.path, name)]
        if field_errors:
            raise ValidationFailure(
                f"Field '{name}' failed validation",
                path=name,
                errors=[e.message for e in field_errors],
                inner=field_errors,
            )

    def validate_all(self, values: FormValues, collect_all: bool = True) -> None:
        """Validate every field at once.

        Args:
            values: Current form values
            collect_all: Report every failure; when False stop at the first

        Raises:
            ValidationFailure: With ``inner`` holding one FieldError per failure
        """
        field_errors: List[FieldError] = []
        for field_error in self._iter_field_errors(values):
            field_errors.append(field_error)
            if not collect_all:
                break

        if field_errors:
            raise ValidationFailure(
                f"{len(field_errors)} field(s) failed validation",
                errors=[e.message for e in field_errors],
                inner=field_errors,
            )

    def _iter_field_errors(self, values: FormValues):
        for error in self.validator.iter_errors(values):
            yield self._translate_error(error)

    def _translate_error(self, error: jsonschema.ValidationError) -> FieldError:
        """Translate a jsonschema ValidationError into a FieldError.

        Error mapping:
            - 'required' -> REQUIRED
            - 'type' -> INVALID_TYPE
            - 'format', 'pattern' -> INVALID_FORMAT
            - 'minLength' / 'maxLength' -> TOO_SHORT / TOO_LONG
            - 'enum', 'const', numeric bounds -> INVALID_VALUE
            - anything else -> CUSTOM
        """
        path = ".".join(str(p) for p in error.absolute_path)

        if error.validator == "required":
            # jsonschema only names the missing property in its message
            missing_prop = error.message.split("'")[1] if "'" in error.message else "field"
            full_path = f"{path}.{missing_prop}" if path else missing_prop
            prop_schema = error.schema.get("properties", {}).get(missing_prop, {})
            custom = self._custom_message(prop_schema, "required")
            return FieldError(
                path=full_path,
                message=custom or f"Field '{full_path}' is required",
                code=FieldErrorCode.REQUIRED,
            )

        custom = self._custom_message(error.schema, error.validator)

        if error.validator == "type":
            code = FieldErrorCode.INVALID_TYPE
            default = f"Field '{path}' must be of type {error.validator_value}"
        elif error.validator in ("format", "pattern"):
            code = FieldErrorCode.INVALID_FORMAT
            default = f"Field '{path}' has an invalid format"
        elif error.validator == "minLength":
            code = FieldErrorCode.TOO_SHORT
            default = f"Field '{path}' must be at least {error.validator_value} characters"
        elif error.validator == "maxLength":
            code = FieldErrorCode.TOO_LONG
            default = f"Field '{path}' must be at most {error.validator_value} characters"
        elif error.validator in ("enum", "const"):
            code = FieldErrorCode.INVALID_VALUE
            default = f"Field '{path}' must be one of: {error.validator_value}"
        elif error.validator in ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum"):
            code = FieldErrorCode.INVALID_VALUE
            default = f"Field '{path}' violates {error.validator} constraint: {error.validator_value}"
        else:
            code = FieldErrorCode.CUSTOM
            default = f"Field '{path}' is invalid: {error.message}"

        return FieldError(path=path, message=custom or default, code=code)

    @staticmethod
    def _custom_message(schema: Any, keyword: str) -> Optional[str]:
        if not isinstance(schema, Mapping):
            return None
        custom = schema.get("errorMessage")
        if isinstance(custom, str):
            return custom
        if isinstance(custom, Mapping):
            return custom.get(keyword)
        return None


def _to_number(raw: Any) -> Union[int, float]:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return raw
    text = str(raw).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return float("nan")


def get_input_value(target: InputTarget) -> Any:
    """Read an input's value according to its kind.

    ``number`` and ``range`` inputs are coerced to numbers (blank -> 0,
    unparseable -> nan); every other kind is returned as is.

    Examples:
        >>> from types import SimpleNamespace
        >>> get_input_value(SimpleNamespace(name="age", type="number", value="1234"))
        1234
        >>> get_input_value(SimpleNamespace(name="name", type="text", value="testing"))
        'testing'
    """
    kind = getattr(target, "type", None)
    if kind in (InputKind.NUMBER.value, InputKind.RANGE.value):
        return _to_number(target.value)
    return target.value


class ValidationOrchestrator:
    """Writes field values and validates single fields.

    Shares its ValueStore and ErrorStore with the SubmitController of the
    same form. Overlapping ``validate_field`` calls for one field are neither
    coalesced nor cancelled: whichever resolves last wins.

    Attributes:
        values: The form's value store
        errors: The form's error store
        schema: Optional validator; without it no validation runs
        validate_on_change: Validate the field written by ``handle_change``
        validate_on_input: Validate the field written by ``handle_input``
    """

    def __init__(
        self,
        values: ValueStore,
        errors: ErrorStore,
        schema: Optional[ValidationSchema] = None,
        validate_on_change: bool = False,
        validate_on_input: bool = False,
    ):
        self.values = values
        self.errors = errors
        self.schema = schema
        self.validate_on_change = validate_on_change
        self.validate_on_input = validate_on_input

    def set_field_value(self, name: str, value: Any, should_validate: bool = False) -> None:
        """Write ``value`` under ``name``, then optionally validate it synchronously."""
        self.values.set_field(name, value)

        if should_validate and self.schema is not None:
            self.validate_field_sync(name)

    async def validate_field(self, name: str) -> None:
        """Validate one field with the schema's asynchronous validator."""
        if self.schema is None:
            logger.debug("No validation schema configured, skipping field %r", name)
            return

        current_values = self.values.get()
        try:
            await self.schema.validate_field(name, current_values)
        except ValidationFailure as failure:
            self._apply_failure(name, failure)
            return
        except Exception:
            logger.exception("Validator raised an unexpected error for field %r", name)
            return
        self.errors.set_field_error(name, None)

    def validate_field_sync(self, name: str) -> None:
        """Validate one field with the schema's synchronous validator."""
        if self.schema is None:
            logger.debug("No validation schema configured, skipping field %r", name)
            return

        current_values = self.values.get()
        try:
            self.schema.validate_field_sync(name, current_values)
        except ValidationFailure as failure:
            self._apply_failure(name, failure)
            return
        except Exception:
            logger.exception("Validator raised an unexpected error for field %r", name)
            return
        self.errors.set_field_error(name, None)

    def handle_change(self, event: FormEvent) -> None:
        """Handler for an input's ``change`` event."""
        target = event.target
        self.set_field_value(target.name, get_input_value(target), self.validate_on_change)

    def handle_input(self, event: FormEvent) -> None:
        """Handler for an input's ``input`` event."""
        target = event.target
        self.set_field_value(target.name, get_input_value(target), self.validate_on_input)

    def _apply_failure(self, name: str, failure: ValidationFailure) -> None:
        if not failure.is_field_scoped:
            logger.error(
                "Validator failure for field %r is missing a field path or messages: %s",
                name,
                failure,
            )
            return
        self.errors.set_field_error(failure.path, failure.errors[0])


__all__ = [
    "ValidationSchema",
    "JsonSchemaValidator",
    "ValidationOrchestrator",
    "get_input_value",
]
