"""Submission controller for the formstate engine.

``handle_submit`` runs one submit cycle:

1. Do nothing when no ``on_submit`` callback is configured.
2. Call the event's ``prevent_default`` / ``stop_propagation`` when present.
3. Drop the call (with a warning) if a previous cycle is still in flight.
   Overlapping calls never start a second cycle; sequential calls each start
   a fresh one.
4. Snapshot the current values and enter the submitting phase.
5. With a schema, run whole-form validation in collect-all mode inside the
   validating phase. On failure, overwrite the error map with one message per
   invalid field and stop without calling ``on_submit``. A failure that names
   no usable field is logged, leaves the error map alone, and still blocks
   ``on_submit``: the values were rejected even if the validator could not
   say where.
6. Call ``on_submit(values, helpers)`` and await it if it returns an awaitable.

``is_submitting`` and ``is_validating`` are reset on every exit path.
Exceptions raised by ``on_submit`` propagate to the caller.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from formstate.errors import FieldError, ValidationFailure
from formstate.state_machine import SubmissionStateMachine
from formstate.stores import ErrorStore, ValueStore
from formstate.types import FormErrors, FormValues
from formstate.validation import ValidationSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitHelpers:
    """Capabilities handed to ``on_submit`` alongside the values.

    Attributes:
        set_field_error: Set (or clear, with no message) a field's error
    """
    set_field_error: Callable[..., None]


OnSubmit = Callable[[FormValues, SubmitHelpers], Any]


def _call_if_present(event: Any, capability: str) -> None:
    handler = getattr(event, capability, None)
    if handler is not None and callable(handler):
        handler()


def collect_field_errors(failures: List[Union[FieldError, Mapping[str, Any]]]) -> FormErrors:
    """Group whole-form failures into field -> first message.

    Failures may be FieldError instances or dicts with ``path`` and
    ``message`` keys. Entries without a path or message are logged and
    skipped.
    """
    collected: Dict[str, Optional[str]] = {}
    for failure in failures:
        if isinstance(failure, Mapping):
            if not failure.get("path") or not failure.get("message"):
                logger.error("Skipping validation failure without path or message: %r", failure)
                continue
            failure = FieldError.from_dict(failure)
        path = getattr(failure, "path", None)
        message = getattr(failure, "message", None)
        if not path or not message:
            logger.error("Skipping validation failure without path or message: %r", failure)
            continue
        collected.setdefault(path, message)
    return collected


class SubmitController:
    """Runs submit cycles for one form.

    A call made while a previous cycle is still in flight is ignored, so
    ``on_submit`` never runs twice concurrently for the same form.

    Attributes:
        values: The form's value store
        errors: The form's error store
        state: The form's submission state machine
        schema: Optional whole-form validator
        on_submit: Completion callback; plain function or coroutine function
    """

    def __init__(
        self,
        values: ValueStore,
        errors: ErrorStore,
        state: SubmissionStateMachine,
        schema: Optional[ValidationSchema] = None,
        on_submit: Optional[OnSubmit] = None,
    ):
        self.values = values
        self.errors = errors
        self.state = state
        self.schema = schema
        self.on_submit = on_submit

    async def handle_submit(self, event: Any = None) -> None:
        """Handler for the form's ``submit`` event."""
        if self.on_submit is None or not callable(self.on_submit):
            return

        _call_if_present(event, "prevent_default")
        _call_if_present(event, "stop_propagation")

        if not self.state.is_idle():
            logger.warning(
                "Ignoring submit while a previous submit is %s", self.state.phase.value
            )
            return

        current_values = self.values.get()

        with self.state.submitting():
            if self.schema is not None and not await self._validate(current_values):
                return

            logger.debug(
                "Invoking on_submit with fields %s (field errors present: %s)",
                sorted(current_values),
                self.errors.has_errors(),
            )
            result = self.on_submit(
                current_values,
                SubmitHelpers(set_field_error=self.errors.set_field_error),
            )
            if inspect.isawaitable(result):
                await result

    async def _validate(self, current_values: FormValues) -> bool:
        """Run whole-form validation; return whether submission may proceed."""
        with self.state.validating():
            try:
                result = self.schema.validate_all(current_values, collect_all=True)
                if inspect.isawaitable(result):
                    await result
            except ValidationFailure as failure:
                field_errors = collect_field_errors(failure.inner)
                if not field_errors:
                    logger.error(
                        "Whole-form validation failed without field failures: %s", failure
                    )
                    return False
                logger.debug(
                    "Whole-form validation failed: %s",
                    [e.to_dict() for e in failure.inner if isinstance(e, FieldError)],
                )
                self.errors.replace_all(field_errors)
                return False
        return True


__all__ = [
    "SubmitController",
    "SubmitHelpers",
    "OnSubmit",
    "collect_field_errors",
]
