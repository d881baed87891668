# eventhub-backend/events/state_machine.py
"""
State machines for events and teams.

Event lifecycle (organizer driven):
draft → published → ongoing → completed
            │  │       └──→ closed
            │  └──→ completed
            └──→ closed → ongoing | completed

completed is terminal; a closed event never goes back to published.

Team lifecycle (participant driven):
forming → complete → forming (a member left)
   └──────────┴────→ cancelled (terminal)

Any transition not listed is rejected.
"""
from typing import Tuple
import logging

from django.utils import timezone

from .exceptions import StateError
from .models import Event, Team

logger = logging.getLogger('eventhub.events')


VALID_TRANSITIONS = {
    Event.STATUS_DRAFT: [Event.STATUS_PUBLISHED],
    Event.STATUS_PUBLISHED: [Event.STATUS_ONGOING, Event.STATUS_CLOSED, Event.STATUS_COMPLETED],
    Event.STATUS_ONGOING: [Event.STATUS_COMPLETED, Event.STATUS_CLOSED],
    Event.STATUS_CLOSED: [Event.STATUS_ONGOING, Event.STATUS_COMPLETED],
    Event.STATUS_COMPLETED: [],
}

TEAM_TRANSITIONS = {
    Team.STATUS_FORMING: [Team.STATUS_COMPLETE, Team.STATUS_CANCELLED],
    Team.STATUS_COMPLETE: [Team.STATUS_FORMING, Team.STATUS_CANCELLED],
    Team.STATUS_CANCELLED: [],
}


def can_transition(event: Event, new_status: str) -> Tuple[bool, str]:
    """
    Check if an event can transition to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = event.status

    if new_status == current_status:
        return True, "Same status"

    if new_status not in dict(Event.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    if is_terminal_status(current_status):
        return False, f"Event is already {current_status}"

    allowed = VALID_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def transition(event: Event, new_status: str, actor=None, save: bool = True) -> Tuple[bool, str]:
    """
    Attempt to transition an event to a new status.

    Publishing stamps `published_at` the first time.

    Returns (success: bool, message: str)
    """
    can, reason = can_transition(event, new_status)

    if not can:
        logger.warning(
            f"Invalid state transition attempted: event={event.id}, "
            f"from={event.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        return False, reason

    old_status = event.status
    event.status = new_status
    update_fields = ['status']

    if new_status == Event.STATUS_PUBLISHED and event.published_at is None:
        event.published_at = timezone.now()
        update_fields.append('published_at')

    if save:
        event.save(update_fields=update_fields)

    logger.info(
        f"Event state transition: event={event.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )

    return True, f"Transitioned from '{old_status}' to '{new_status}'"


def get_allowed_transitions(event: Event) -> list:
    return VALID_TRANSITIONS.get(event.status, [])


def is_terminal_status(status: str) -> bool:
    return len(VALID_TRANSITIONS.get(status, [])) == 0


def validate_action_for_status(event: Event, action: str) -> Tuple[bool, str]:
    """
    Validate if an action is allowed given the event's current status.

    - 'register' / 'team': event must be published or ongoing and the
      registration deadline must not have passed
    """
    if action in ('register', 'team'):
        if event.status not in Event.OPEN_STATUSES:
            return False, "Registrations are closed for this event"
        if timezone.now() > event.registration_deadline:
            return False, "Registration deadline has passed"
        return True, ""

    return True, ""


def transition_team(team: Team, new_status: str, actor=None) -> None:
    """
    Move a team to `new_status` in memory and stamp the matching timestamp.

    The caller saves the team inside its own transaction. Raises StateError
    for transitions the team lifecycle does not allow.
    """
    allowed = TEAM_TRANSITIONS.get(team.status, [])
    if new_status not in allowed:
        raise StateError(
            f"Team cannot go from '{team.status}' to '{new_status}'",
            code="invalid_team_transition",
        )

    old_status = team.status
    team.status = new_status

    if new_status == Team.STATUS_COMPLETE:
        team.completed_at = timezone.now()
    elif new_status == Team.STATUS_FORMING:
        team.completed_at = None
    elif new_status == Team.STATUS_CANCELLED:
        team.cancelled_at = timezone.now()

    logger.info(
        f"Team state transition: team={team.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )
