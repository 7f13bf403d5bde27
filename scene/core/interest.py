"""Interest toggle - Pure functions.

Flipping interest is a presence toggle over the (user, event) relation
plus a cached per-event count. The orchestrator applies the returned
state only after the remote write has succeeded.
"""

from dataclasses import dataclass
from enum import Enum


class InterestAction(str, Enum):
    """Remote write needed to carry out a toggle."""
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class InterestState:
    """Interest state of one event as seen by one user.

    Attributes:
        interested: Whether the user has a record for the event
        count: Cached number of interested users
    """
    interested: bool = False
    count: int = 0


@dataclass(frozen=True)
class InterestToggle:
    """A computed toggle: the write to perform and the state after it.

    Attributes:
        action: ADD or REMOVE
        state: State to apply once the write succeeds
    """
    action: InterestAction
    state: InterestState


def toggle_interest(current: InterestState) -> InterestToggle:
    """Flip interest for one user and event.

    Pure function. Removing decrements the count floored at zero; adding
    increments it.

    Args:
        current: State before the toggle

    Returns:
        InterestToggle with the action and resulting state
    """
    if current.interested:
        return InterestToggle(
            action=InterestAction.REMOVE,
            state=InterestState(interested=False, count=max(current.count - 1, 0)),
        )

    return InterestToggle(
        action=InterestAction.ADD,
        state=InterestState(interested=True, count=current.count + 1),
    )


def interest_state_for(
    event_id: str,
    interested_event_ids: frozenset[str],
    interest_counts: dict[str, int],
) -> InterestState:
    """Read the interest state of an event from the view model.

    Pure function.
    """
    return InterestState(
        interested=event_id in interested_event_ids,
        count=interest_counts.get(event_id, 0),
    )
