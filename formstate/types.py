"""Core type definitions for the formstate engine.

This module defines the fundamental types shared across the engine:
- FormValues / FormErrors: the two mappings every form instance tracks
- InputKind: input kinds whose raw value is coerced before it is stored
- SubmitPhase: phases of the submission state machine
- FieldErrorCode: failure codes produced by the bundled JSON Schema validator
- InputTarget / FormEvent: duck-typed capabilities consumed from the UI layer

Event objects are never assumed to be of a concrete type. The protocols below
only document which attributes the engine reads; every optional capability is
checked for presence before use.
"""

from enum import Enum
from typing import Any, Dict, Optional

from typing_extensions import Protocol, TypeAlias

FormValues: TypeAlias = Dict[str, Any]
"""Field name -> current value. Values are unconstrained."""

FormErrors: TypeAlias = Dict[str, Optional[str]]
"""Field name -> error message. None and a missing key both mean "no error"."""


class InputKind(str, Enum):
    """Input kinds whose raw value is coerced to a number.

    Any kind not listed here is passed through unmodified.
    """
    NUMBER = "number"
    RANGE = "range"


class SubmitPhase(str, Enum):
    """Submission lifecycle phases.

    ``idle`` is both the initial and the terminal phase; every call to
    ``handle_submit`` starts a fresh cycle from it.
    """
    IDLE = "idle"
    SUBMITTING = "submitting"
    VALIDATING = "validating"


class FieldErrorCode(str, Enum):
    """Failure codes for individual fields.

    Used by the bundled JSON Schema validator to classify failures. Custom
    validators may leave every failure as ``CUSTOM``.
    """
    REQUIRED = "required"
    INVALID_TYPE = "invalid_type"
    INVALID_FORMAT = "invalid_format"
    INVALID_VALUE = "invalid_value"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    CUSTOM = "custom"


class InputTarget(Protocol):
    """The element an input event originated from."""
    name: str
    type: str
    value: Any


class FormEvent(Protocol):
    """A UI event forwarded into the engine.

    ``prevent_default`` and ``stop_propagation`` are optional capabilities and
    are not part of the protocol; callers look them up with ``getattr``.
    """
    target: InputTarget


__all__ = [
    "FormValues",
    "FormErrors",
    "InputKind",
    "SubmitPhase",
    "FieldErrorCode",
    "InputTarget",
    "FormEvent",
]
