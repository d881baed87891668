# events/services/teams.py
"""
Team formation engine.

Participants create a team, share its invite code and the team is promoted
to `complete` the moment its roster fills up. Promotion reserves capacity on
the event ledger and issues one ticket per member inside the same database
transaction as the membership change, so either everything commits or
nothing does. Leaving or disbanding unwinds tickets and capacity together.

Every entry point locks the team row (select_for_update) before reading its
roster; two joins to the same team are therefore serialized, while different
teams of the same event only meet at the ledger's conditional UPDATE.
"""
import logging
from typing import List, NamedTuple, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.constants import (
    ACTIVITY_TEAM_COMPLETED,
    ACTIVITY_TEAM_CREATED,
    ACTIVITY_TEAM_DISBANDED,
    ACTIVITY_TEAM_JOINED,
    ACTIVITY_TEAM_LEFT,
)
from core.services import ActivityService
from events.capacity import CapacityLedger
from events.emails import dispatch_ticket_notifications
from events.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from events.identifiers import new_invite_code, new_ticket_id
from events.models import Event, Registration, Team, TeamMember
from events.policies import (
    EventPolicy,
    require_eligible,
    require_open_event,
    require_participant,
)
from events.sanitizers import sanitize_team_name, sanitize_text, validate_int
from events.state_machine import transition_team

logger = logging.getLogger('eventhub.teams')

BRANCH_DISBANDED = "disbanded"
BRANCH_LEFT = "left"
BRANCH_LEFT_DEMOTED = "left_demoted"


class JoinResult(NamedTuple):
    team: Team
    team_complete: bool
    tickets: List[Registration]
    message: str


class LeaveResult(NamedTuple):
    team: Team
    branch: str
    cancelled_registrations: int
    message: str


class MyTeam(NamedTuple):
    team: Optional[Team]
    tickets: List[Registration]


# ─────────────────────────────────────────────────────────────
# Lookups and shared checks
# ─────────────────────────────────────────────────────────────

def get_event_or_404(event_id) -> Event:
    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        raise NotFoundError("Event not found", code="event_not_found")
    return event


def ensure_not_engaged(user, event: Event) -> None:
    """A participant holds at most one live team and one confirmed ticket per event."""
    if EventPolicy.has_active_team(user, event):
        raise ConflictError("You are already in a team for this event", code="already_in_team")
    if EventPolicy.has_confirmed_registration(user, event):
        raise ConflictError("You are already registered for this event", code="already_registered")


def integrity_conflict(user, event: Event) -> ConflictError:
    """
    Name the rule behind an IntegrityError, once its transaction has rolled back.

    If a parallel request engaged the user first, that is the answer;
    otherwise a random identifier collided and the request can be retried.
    """
    try:
        ensure_not_engaged(user, event)
    except ConflictError as conflict:
        return conflict
    return ConflictError("Could not complete the request, please try again", code="retry")


def team_tickets(team: Team):
    return list(
        team.registrations
        .filter(status=Registration.STATUS_CONFIRMED)
        .select_related('user')
        .order_by('registered_at', 'id')
    )


def cancel_registrations(event_id: int, queryset) -> int:
    """
    Cancel the confirmed registrations in `queryset` and release exactly
    as many capacity slots as rows that actually changed.
    """
    ids = list(queryset.values_list('id', flat=True))
    if not ids:
        return 0

    cancelled = (
        Registration.objects
        .filter(id__in=ids, status=Registration.STATUS_CONFIRMED)
        .update(status=Registration.STATUS_CANCELLED, cancelled_at=timezone.now())
    )
    CapacityLedger.release(event_id, cancelled)
    return cancelled


# ─────────────────────────────────────────────────────────────
# Create
# ─────────────────────────────────────────────────────────────

def create_team(event_id, user, team_name, requested_size) -> Team:
    require_participant(user, "create teams")

    event = get_event_or_404(event_id)
    if not event.team_based or event.is_merchandise:
        raise ValidationError("This event does not support team registration", code="not_team_based")

    require_open_event(event, 'team')

    size = validate_int(requested_size, "Team size")
    if size < max(event.min_team_size, 2) or size > event.max_team_size:
        raise ValidationError(
            f"Team size must be between {event.min_team_size} and {event.max_team_size}",
            code="team_size_out_of_bounds",
        )

    require_eligible(user, event)
    name = sanitize_team_name(team_name)

    try:
        with transaction.atomic():
            ensure_not_engaged(user, event)

            team = Team.objects.create(
                event=event,
                team_name=name,
                leader=user,
                max_size=size,
                invite_code=new_invite_code(),
            )
            TeamMember.objects.create(
                team=team,
                event=event,
                user=user,
                role=TeamMember.ROLE_LEADER,
            )

            ActivityService.log_activity(
                actor=user,
                verb=ACTIVITY_TEAM_CREATED,
                target=team,
                event=event,
                metadata={'team_name': team.team_name, 'max_size': size},
            )
    except IntegrityError as e:
        # A parallel create/join for the same user, or an invite code collision
        logger.warning(f"Team creation conflict: user={user.id}, event={event.id}: {e}")
        raise integrity_conflict(user, event)

    logger.info(f"Team created: team={team.id}, event={event.id}, leader={user.id}, size={size}")
    return team


# ─────────────────────────────────────────────────────────────
# Join
# ─────────────────────────────────────────────────────────────

def join_team(invite_code, user) -> JoinResult:
    require_participant(user, "join teams")

    code = sanitize_text(invite_code, max_length=16)
    if not code:
        raise ValidationError("Invite code is required", code="invite_code_required")

    new_ticket_ids = []
    event = None
    try:
        with transaction.atomic():
            team = Team.objects.select_for_update().filter(invite_code=code).first()
            if team is None or team.status == Team.STATUS_CANCELLED:
                raise NotFoundError("Invalid or expired invite code", code="invalid_invite_code")
            if team.status == Team.STATUS_COMPLETE:
                raise ConflictError("Team is already full", code="team_full")

            event = Event.objects.get(pk=team.event_id)
            require_open_event(event, 'team')
            require_eligible(user, event)
            ensure_not_engaged(user, event)

            roster = list(team.roster())
            if len(roster) >= team.max_size:
                raise ConflictError("Team is already full", code="team_full")

            membership = TeamMember.objects.create(
                team=team,
                event=event,
                user=user,
                role=TeamMember.ROLE_MEMBER,
            )
            roster.append(membership)

            ActivityService.log_activity(
                actor=user,
                verb=ACTIVITY_TEAM_JOINED,
                target=team,
                event=event,
                metadata={'team_name': team.team_name, 'size': len(roster)},
            )

            if len(roster) < team.max_size:
                remaining = team.max_size - len(roster)
                logger.info(f"Team joined: team={team.id}, user={user.id}, remaining={remaining}")
                return JoinResult(
                    team=team,
                    team_complete=False,
                    tickets=[],
                    message=f"Joined team! {remaining} spot(s) remaining.",
                )

            issued = complete_team(team, event, roster, actor=user)
            new_ticket_ids = [reg.id for reg in issued]
            transaction.on_commit(lambda: dispatch_ticket_notifications(new_ticket_ids))
            tickets = team_tickets(team)
    except IntegrityError as e:
        logger.warning(f"Team join conflict: user={user.id}, code={code}: {e}")
        raise integrity_conflict(user, event)

    return JoinResult(
        team=team,
        team_complete=True,
        tickets=tickets,
        message="Team complete! Tickets generated for all members. Check your email.",
    )


def complete_team(team: Team, event: Event, roster, actor=None) -> List[Registration]:
    """
    Promote a full team: reserve capacity, issue tickets, mark complete.

    Must run inside the caller's transaction with the team row locked.
    Members that already hold a confirmed ticket for the event keep it and
    are not counted again. Raises ConflictError when the event cannot fit
    the new tickets; the caller's transaction then rolls back.
    """
    member_ids = [m.user_id for m in roster]
    ticketed = set(
        Registration.objects
        .filter(event=event, user_id__in=member_ids, status=Registration.STATUS_CONFIRMED)
        .values_list('user_id', flat=True)
    )
    needing = [m for m in roster if m.user_id not in ticketed]

    if not CapacityLedger.try_reserve(event.id, len(needing)):
        logger.warning(
            f"Team completion rejected: team={team.id}, event={event.id}, "
            f"requested={len(needing)}, capacity exhausted"
        )
        raise ConflictError("Event registration limit would be exceeded", code="capacity_exceeded")

    issued = [
        Registration.objects.create(
            event=event,
            user_id=m.user_id,
            ticket_id=new_ticket_id(),
            event_type=event.event_type,
            status=Registration.STATUS_CONFIRMED,
            team=team,
            team_name=team.team_name,
        )
        for m in needing
    ]

    if issued:
        CapacityLedger.lock_form(event.id)

    transition_team(team, Team.STATUS_COMPLETE, actor=actor)
    team.save(update_fields=['status', 'completed_at'])

    ActivityService.log_activity(
        actor=actor or team.leader,
        verb=ACTIVITY_TEAM_COMPLETED,
        target=team,
        event=event,
        metadata={'team_name': team.team_name, 'tickets_issued': len(issued)},
    )
    logger.info(f"Team complete: team={team.id}, event={event.id}, tickets_issued={len(issued)}")
    return issued


# ─────────────────────────────────────────────────────────────
# Leave / disband
# ─────────────────────────────────────────────────────────────

def leave_team(team_id, user) -> LeaveResult:
    with transaction.atomic():
        team = Team.objects.select_for_update().filter(pk=team_id).first()
        if team is None:
            raise NotFoundError("Team not found", code="team_not_found")
        return leave_locked_team(team, user)


def leave_locked_team(team: Team, user) -> LeaveResult:
    """
    Remove `user` from a team whose row the caller has locked.

    The leader leaving disbands the team and cancels every confirmed ticket
    tied to it. Anyone else leaving drops out alone: their ticket is
    cancelled and a complete team goes back to forming.
    """
    if team.status == Team.STATUS_CANCELLED:
        raise StateError("This team has been cancelled", code="team_cancelled")

    membership = team.memberships.filter(user=user, status=TeamMember.STATUS_ACTIVE).first()
    if membership is None:
        raise PermissionDeniedError("You are not in this team", code="not_team_member")

    was_complete = team.status == Team.STATUS_COMPLETE
    now = timezone.now()

    if team.leader_id == user.id:
        transition_team(team, Team.STATUS_CANCELLED, actor=user)
        team.save(update_fields=['status', 'cancelled_at'])
        team.memberships.filter(status=TeamMember.STATUS_ACTIVE).update(
            status=TeamMember.STATUS_DISBANDED,
            left_at=now,
        )
        cancelled = cancel_registrations(
            team.event_id,
            team.registrations.filter(status=Registration.STATUS_CONFIRMED),
        )

        ActivityService.log_activity(
            actor=user,
            verb=ACTIVITY_TEAM_DISBANDED,
            target=team,
            event=team.event,
            metadata={'team_name': team.team_name, 'was_complete': was_complete, 'cancelled': cancelled},
        )
        logger.info(f"Team disbanded: team={team.id}, leader={user.id}, cancelled_registrations={cancelled}")

        if cancelled:
            message = f"Team disbanded: {cancelled} registration(s) cancelled"
        else:
            message = "Team disbanded (leader left)"
        return LeaveResult(team, BRANCH_DISBANDED, cancelled, message)

    membership.status = TeamMember.STATUS_LEFT
    membership.left_at = now
    membership.save(update_fields=['status', 'left_at'])

    if was_complete:
        transition_team(team, Team.STATUS_FORMING, actor=user)
        team.save(update_fields=['status', 'completed_at'])

    # A demoted team can still hold this member's ticket, so check either way
    cancelled = cancel_registrations(
        team.event_id,
        team.registrations.filter(user=user, status=Registration.STATUS_CONFIRMED),
    )

    ActivityService.log_activity(
        actor=user,
        verb=ACTIVITY_TEAM_LEFT,
        target=team,
        event=team.event,
        metadata={'team_name': team.team_name, 'was_complete': was_complete, 'cancelled': cancelled},
    )
    logger.info(
        f"Team member left: team={team.id}, user={user.id}, "
        f"demoted={was_complete}, cancelled_registrations={cancelled}"
    )

    if was_complete:
        return LeaveResult(
            team,
            BRANCH_LEFT_DEMOTED,
            cancelled,
            "Left team. Your registration has been cancelled and the team needs a replacement member.",
        )
    if cancelled:
        return LeaveResult(team, BRANCH_LEFT, cancelled, "Left team. Your registration has been cancelled.")
    return LeaveResult(team, BRANCH_LEFT, 0, "Left team successfully")


# ─────────────────────────────────────────────────────────────
# Queries
# ─────────────────────────────────────────────────────────────

def get_my_team(event_id, user) -> MyTeam:
    event = get_event_or_404(event_id)

    membership = (
        TeamMember.objects
        .filter(event=event, user=user, status=TeamMember.STATUS_ACTIVE)
        .select_related('team')
        .first()
    )
    if membership is None:
        return MyTeam(team=None, tickets=[])

    team = membership.team
    tickets = team_tickets(team) if team.status == Team.STATUS_COMPLETE else []
    return MyTeam(team=team, tickets=tickets)


def list_teams(event_id):
    event = get_event_or_404(event_id)
    return (
        Team.objects
        .filter(event=event)
        .select_related('leader', 'event')
        .order_by('created_at', 'id')
    )
