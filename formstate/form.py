"""Form factory and instance for the formstate engine.

This module wires the stores, the validation orchestrator, the submission
state machine and the submit controller into one FormInstance. Every
instance owns its own containers; nothing is shared between forms.

Usage:
    >>> from formstate import create_form
    >>> form = create_form({"initial_values": {"name": "Esteban"}})
    >>> form.set_field_value("name", "Testing!")
    >>> form.values.get()["name"]
    'Testing!'
    >>> form.changed_fields()
    ['name']
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from formstate.errors import FormConfigError
from formstate.state_machine import SubmissionStateMachine
from formstate.stores import ErrorStore, Readable, ValueStore
from formstate.submit import OnSubmit, SubmitController
from formstate.types import FormErrors, FormEvent, FormValues
from formstate.utils import deep_clone, diff
from formstate.validation import JsonSchemaValidator, ValidationOrchestrator, ValidationSchema

logger = logging.getLogger(__name__)

# camelCase spellings accepted by FormConfig.from_dict
_CONFIG_ALIASES = {
    "initialValues": "initial_values",
    "onSubmit": "on_submit",
    "validationSchema": "validation_schema",
    "validateOnChange": "validate_on_change",
    "validateOnInput": "validate_on_input",
}


@dataclass
class FormConfig:
    """Constructor input for ``create_form``.

    Attributes:
        initial_values: Required initial field values (copied, never aliased)
        on_submit: Callback invoked with ``(values, helpers)`` on submit
        validation_schema: A ValidationSchema, or a JSON Schema dict which is
            wrapped in JsonSchemaValidator
        validate_on_change: Validate a field when ``handle_change`` writes it
        validate_on_input: Validate a field when ``handle_input`` writes it
    """
    initial_values: Optional[Mapping[str, Any]]
    on_submit: Optional[OnSubmit] = None
    validation_schema: Optional[Union[ValidationSchema, Dict[str, Any]]] = None
    validate_on_change: bool = False
    validate_on_input: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormConfig":
        """Create FormConfig from a dict with snake_case or camelCase keys."""
        normalized = {_CONFIG_ALIASES.get(key, key): value for key, value in data.items()}
        return cls(
            initial_values=normalized.get("initial_values"),
            on_submit=normalized.get("on_submit"),
            validation_schema=normalized.get("validation_schema"),
            validate_on_change=bool(normalized.get("validate_on_change", False)),
            validate_on_input=bool(normalized.get("validate_on_input", False)),
        )


class FormInstance:
    """State and handlers for one logical form.

    Attributes:
        initial_values: The form's own copy of the initial values
        values: Writable store of current values; write through
            ``set_field_value`` rather than directly
        errors: Read-only store of field name -> error message
        is_submitting: Read-only flag, true while a submit cycle runs
        is_validating: Read-only flag, true while whole-form validation runs
    """

    def __init__(self, config: FormConfig):
        self.initial_values: FormValues = deep_clone(dict(config.initial_values))

        schema = config.validation_schema
        if isinstance(schema, dict):
            schema = JsonSchemaValidator(schema)

        self.values = ValueStore(self.initial_values)
        self._errors = ErrorStore(self.initial_values.keys())
        self._state = SubmissionStateMachine()

        self.errors: Readable[FormErrors] = Readable(self._errors)
        self.is_submitting: Readable[bool] = Readable(self._state.is_submitting)
        self.is_validating: Readable[bool] = Readable(self._state.is_validating)

        self._orchestrator = ValidationOrchestrator(
            self.values,
            self._errors,
            schema=schema,
            validate_on_change=config.validate_on_change,
            validate_on_input=config.validate_on_input,
        )
        self._controller = SubmitController(
            self.values,
            self._errors,
            self._state,
            schema=schema,
            on_submit=config.on_submit,
        )

    def set_field_value(self, name: str, value: Any, should_validate: bool = False) -> None:
        """Imperatively set the value of field ``name``."""
        self._orchestrator.set_field_value(name, value, should_validate)

    def set_field_error(self, name: str, message: Optional[str] = None) -> None:
        """Imperatively set the error for ``name``; omit ``message`` to clear it."""
        self._errors.set_field_error(name, message)

    async def validate_field(self, name: str) -> None:
        await self._orchestrator.validate_field(name)

    def validate_field_sync(self, name: str) -> None:
        self._orchestrator.validate_field_sync(name)

    def handle_change(self, event: FormEvent) -> None:
        self._orchestrator.handle_change(event)

    def handle_input(self, event: FormEvent) -> None:
        self._orchestrator.handle_input(event)

    async def handle_submit(self, event: Any = None) -> None:
        await self._controller.handle_submit(event)

    def changed_fields(self) -> List[str]:
        """Fields whose current value differs from the initial one."""
        return diff(self.initial_values, self.values.get())

    def is_dirty(self) -> bool:
        return len(self.changed_fields()) > 0


def create_form(config: Union[FormConfig, Mapping[str, Any], None]) -> FormInstance:
    """Create a new FormInstance.

    Args:
        config: A FormConfig, or a dict accepted by ``FormConfig.from_dict``

    Raises:
        FormConfigError: If ``config`` is missing, or ``initial_values`` is
            missing or not a mapping
    """
    if config is None:
        raise FormConfigError(
            'You must provide a config to "create_form". '
            'Expected "config" to be a FormConfig or a dict, received None instead.'
        )

    if isinstance(config, Mapping):
        config = FormConfig.from_dict(config)

    if not isinstance(config.initial_values, Mapping):
        raise FormConfigError('You must specify "initial_values" with a dict in the form config.')

    form = FormInstance(config)
    logger.debug("Created form with fields %s", sorted(form.initial_values))
    return form


__all__ = [
    "FormConfig",
    "FormInstance",
    "create_form",
]
