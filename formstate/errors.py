"""Error types and structured failure data for the formstate engine.

Three kinds of failure flow through the engine:

- FormConfigError: raised synchronously by ``create_form`` for a missing
  config or missing initial values. Fatal to that construction call.
- ValidationFailure: raised by a validator. The engine recovers from it
  locally by writing messages into the error map; it never reaches the
  caller of a field mutator or of ``handle_submit``.
- InvalidPhaseTransitionError: raised by the submission state machine on an
  illegal transition. Indicates a bug, not a user error.

Per-field failure details travel as FieldError instances.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from formstate.types import FieldErrorCode, SubmitPhase


@dataclass(frozen=True)
class FieldError:
    """A single field-scoped validation failure.

    Attributes:
        path: Dot-notation field path (e.g., "name", "address.city")
        message: Human-readable error description
        code: Failure classification

    Examples:
        >>> err = FieldError(path="email", message="Invalid email format")
        >>> err.to_dict()
        {'path': 'email', 'message': 'Invalid email format', 'code': 'custom'}
    """
    path: str
    message: str
    code: FieldErrorCode = FieldErrorCode.CUSTOM

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "path": self.path,
            "message": self.message,
            "code": self.code.value if isinstance(self.code, FieldErrorCode) else self.code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldError":
        """Create FieldError from dict."""
        code = data.get("code", FieldErrorCode.CUSTOM)
        if isinstance(code, str):
            code = FieldErrorCode(code)
        return cls(
            path=data["path"],
            message=data["message"],
            code=code,
        )


class ValidationFailure(Exception):
    """Raised by a validator when values do not satisfy the schema.

    Single-field validation raises it with ``path`` set to the field and
    ``errors`` holding the messages for that field (the first one is shown).
    Whole-form validation raises it with ``inner`` holding one FieldError per
    failure found.

    Attributes:
        path: Field the failure is scoped to, or None for whole-form failures
        errors: Messages for ``path``, most relevant first
        inner: Per-field failures collected by whole-form validation; dicts
            with ``path`` and ``message`` keys are accepted too
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        errors: Optional[List[str]] = None,
        inner: Optional[List[FieldError]] = None,
    ):
        self.path = path
        self.errors = list(errors) if errors is not None else []
        self.inner = list(inner) if inner is not None else []
        super().__init__(message)

    @property
    def is_field_scoped(self) -> bool:
        """Whether this failure carries a field path and at least one message."""
        return bool(self.path) and len(self.errors) > 0


class FormConfigError(TypeError):
    """Raised by ``create_form`` when the configuration is unusable."""


class InvalidPhaseTransitionError(Exception):
    """Raised when attempting an invalid submission phase transition.

    Attributes:
        current_phase: The phase before the attempted transition
        target_phase: The phase that was attempted
    """

    def __init__(self, current_phase: SubmitPhase, target_phase: SubmitPhase, message: str):
        self.current_phase = current_phase
        self.target_phase = target_phase
        super().__init__(message)


__all__ = [
    "FieldError",
    "ValidationFailure",
    "FormConfigError",
    "InvalidPhaseTransitionError",
]
