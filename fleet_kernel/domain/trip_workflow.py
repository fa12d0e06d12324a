"""
Trip workflow (``fleet_kernel.domain.trip_workflow``).

Responsibility
--------------
Pure value objects for the trip state machine, and the guarded transition
function every status change goes through.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions; asking to leave one
  raises instead of silently re-applying the transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fleet_kernel.exceptions import InvalidTransitionError, TripAlreadyFinishedError


class TripStatus(str, Enum):
    """Trip lifecycle status.

    Contract: exactly two states.  Transitions follow IN_PROGRESS -> FINISHED
    (one-way seal) through the ``finalize`` action only.
    """

    IN_PROGRESS = "InProgress"
    FINISHED = "Finished"


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"initial_state {self.initial_state!r} not in states of {self.name}"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"Transition {t} references unknown state")
            if t.from_state in self.terminal_states:
                raise ValueError(f"Transition {t} leaves terminal state")

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def require_transition(
        self,
        from_state: str,
        action: str,
        *,
        entity_id: int | None = None,
    ) -> str:
        """
        Return the target state of ``action`` from ``from_state``.

        Raises:
            TripAlreadyFinishedError: from_state is terminal.
            InvalidTransitionError: no such transition from from_state.
        """
        transition = self.find_transition(from_state, action)
        if transition is not None:
            return transition.to_state
        if from_state in self.terminal_states:
            raise TripAlreadyFinishedError(entity_id)
        raise InvalidTransitionError(
            from_state, "unknown", f"no '{action}' transition in {self.name} workflow"
        )

    def require_unchanged(self, from_state: str, to_state: str) -> None:
        """
        Reject a direct status rewrite.

        Field edits may restate the current status but never move a
        document between states; that only happens through an action.
        """
        if to_state not in self.states:
            raise InvalidTransitionError(from_state, to_state, "unknown state")
        if from_state != to_state:
            actions = [
                t.action for t in self.transitions
                if t.from_state == from_state and t.to_state == to_state
            ]
            reason = (
                f"use the '{actions[0]}' action" if actions
                else "transition not allowed"
            )
            raise InvalidTransitionError(from_state, to_state, reason)


TRIP_WORKFLOW = Workflow(
    name="trip",
    description="Haul lifecycle: a trip runs until it is finalized with its cost",
    initial_state=TripStatus.IN_PROGRESS.value,
    states=(TripStatus.IN_PROGRESS.value, TripStatus.FINISHED.value),
    transitions=(
        Transition(
            from_state=TripStatus.IN_PROGRESS.value,
            to_state=TripStatus.FINISHED.value,
            action="finalize",
        ),
    ),
    terminal_states=(TripStatus.FINISHED.value,),
)
