"""Submission state machine for the formstate engine.

This module tracks which phase a form's submit cycle is in and publishes the
two observable flags derived from it:

- ``is_submitting``: true from the start of a cycle until it exits, on every
  exit path (success, validation short-circuit, or a failing callback)
- ``is_validating``: true only while whole-form validation runs

Phases: ``idle -> submitting -> (validating -> submitting)? -> idle``.
The context managers ``submitting()`` and ``validating()`` perform the
matching exit transition in a ``finally`` block, so a raised validator or
callback cannot leave a flag stuck at true.

Usage:
    >>> sm = SubmissionStateMachine()
    >>> with sm.submitting():
    ...     with sm.validating():
    ...         sm.is_validating.get()
    True
    >>> sm.phase
    <SubmitPhase.IDLE: 'idle'>
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Set

from formstate.errors import InvalidPhaseTransitionError
from formstate.stores import Writable
from formstate.types import SubmitPhase

logger = logging.getLogger(__name__)


# Maps each phase to the set of phases it can transition to
VALID_TRANSITIONS: Dict[SubmitPhase, Set[SubmitPhase]] = {
    SubmitPhase.IDLE: {
        SubmitPhase.SUBMITTING,
    },
    SubmitPhase.SUBMITTING: {
        SubmitPhase.VALIDATING,
        SubmitPhase.IDLE,
    },
    SubmitPhase.VALIDATING: {
        SubmitPhase.SUBMITTING,
    },
}


class SubmissionStateMachine:
    """Phase tracker owning the ``is_submitting``/``is_validating`` flags.

    Each form instance owns exactly one state machine; flags are never shared
    between forms.

    Attributes:
        phase: Current submission phase
        is_submitting: Observable flag, true whenever phase is not idle
        is_validating: Observable flag, true only in the validating phase
    """

    def __init__(self) -> None:
        self.phase = SubmitPhase.IDLE
        self.is_submitting: Writable[bool] = Writable(False)
        self.is_validating: Writable[bool] = Writable(False)

    def can_transition_to(self, target_phase: SubmitPhase) -> bool:
        """Check if transition to target phase is valid."""
        return target_phase in VALID_TRANSITIONS.get(self.phase, set())

    def transition_to(self, target_phase: SubmitPhase) -> None:
        """Move to ``target_phase`` and publish the derived flags.

        Flags are only published when their value actually changes.

        Raises:
            InvalidPhaseTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target_phase):
            raise InvalidPhaseTransitionError(
                current_phase=self.phase,
                target_phase=target_phase,
                message=(
                    f"Invalid phase transition: cannot transition from "
                    f"'{self.phase.value}' to '{target_phase.value}'. "
                    f"Valid transitions from '{self.phase.value}' are: "
                    f"{', '.join(sorted(p.value for p in VALID_TRANSITIONS[self.phase]))}"
                ),
            )

        old_phase = self.phase
        self.phase = target_phase
        logger.debug("Submit phase %s -> %s", old_phase.value, target_phase.value)

        submitting = target_phase != SubmitPhase.IDLE
        validating = target_phase == SubmitPhase.VALIDATING
        if self.is_submitting.get() != submitting:
            self.is_submitting.set(submitting)
        if self.is_validating.get() != validating:
            self.is_validating.set(validating)

    def is_idle(self) -> bool:
        """Whether no submit cycle is in flight."""
        return self.phase == SubmitPhase.IDLE

    @contextmanager
    def submitting(self) -> Iterator[None]:
        """Run a block as one submit cycle; always return to idle on exit."""
        self.transition_to(SubmitPhase.SUBMITTING)
        try:
            yield
        finally:
            self.transition_to(SubmitPhase.IDLE)

    @contextmanager
    def validating(self) -> Iterator[None]:
        """Run a block as the validation stage; always leave it on exit."""
        self.transition_to(SubmitPhase.VALIDATING)
        try:
            yield
        finally:
            self.transition_to(SubmitPhase.SUBMITTING)


__all__ = [
    "SubmissionStateMachine",
    "VALID_TRANSITIONS",
]
