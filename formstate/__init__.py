"""formstate: an event-driven form-state engine.

formstate tracks a form's current values, per-field error messages and
submission lifecycle flags, and exposes event handlers that keep them in sync:
- Observable stores for values, errors, ``is_submitting`` and ``is_validating``
- Single-field validation (sync and async) against a pluggable validator
- A submission state machine with collect-all whole-form validation
- A bundled JSON Schema validator built on ``jsonschema``

Basic usage:
    >>> from formstate import create_form
    >>> schema = {
    ...     "type": "object",
    ...     "properties": {"name": {"type": "string", "minLength": 1}},
    ...     "required": ["name"]
    ... }
    >>> form = create_form({"initial_values": {"name": ""}, "validation_schema": schema})
    >>> form.validate_field_sync("name")
    >>> form.errors.get()["name"]
    "Field 'name' must be at least 1 characters"
"""

__version__ = "0.1.0"
__author__ = "formstate contributors"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formstate.errors import FieldError, FormConfigError, ValidationFailure
from formstate.form import FormConfig, FormInstance, create_form
from formstate.validation import JsonSchemaValidator

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "create_form",
    "FormConfig",
    "FormInstance",
    "FieldError",
    "FormConfigError",
    "ValidationFailure",
    "JsonSchemaValidator",
]
