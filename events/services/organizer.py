# events/services/organizer.py
"""
Organizer-side event management: lifecycle changes and the custom
registration form.
"""
import logging

from django.db import transaction

from core.constants import ACTIVITY_EVENT_FORM_UPDATED, ACTIVITY_EVENT_STATUS_CHANGED
from core.services import ActivityService
from events.exceptions import StateError, ValidationError
from events.models import Event
from events.policies import get_managed_event
from events.sanitizers import sanitize_text, strip_html
from events.services.attendance import complete_attended_registrations
from events.state_machine import transition

logger = logging.getLogger('eventhub.events')

OPTION_FIELD_TYPES = ('select', 'checkbox')


def change_event_status(event_id, user, new_status):
    """
    Move an event along its lifecycle.

    Completing an event closes out every ticket whose holder was checked in.
    Returns (event, message).
    """
    with transaction.atomic():
        event = get_managed_event(event_id, user, lock=True)

        old_status = event.status
        ok, reason = transition(event, new_status, actor=user)
        if not ok:
            raise StateError(reason, code="invalid_transition")

        if old_status != new_status:
            closed_out = 0
            if new_status == Event.STATUS_COMPLETED:
                closed_out = complete_attended_registrations(event)

            ActivityService.log_activity(
                actor=user,
                verb=ACTIVITY_EVENT_STATUS_CHANGED,
                target=event,
                event=event,
                metadata={"from": old_status, "to": new_status, "completed_registrations": closed_out},
            )

    return event, reason


def clean_custom_form(fields) -> list:
    """
    Normalize an organizer's form definition.

    Each field becomes {field_name, field_type, required, options}. Names
    must be unique; select and checkbox fields need at least one option.
    """
    if not isinstance(fields, list):
        raise ValidationError("Custom form must be a list of fields", code="invalid_form")

    cleaned = []
    seen = set()
    for index, field in enumerate(fields, start=1):
        if not isinstance(field, dict):
            raise ValidationError(f"Field {index} must be an object", code="invalid_form")

        name = strip_html(sanitize_text(field.get('field_name'), max_length=100)).strip()
        field_type = sanitize_text(field.get('field_type'), max_length=32).lower()
        if not name or not field_type:
            raise ValidationError(f"Field {index} needs a name and a type", code="invalid_form")
        if name in seen:
            raise ValidationError(f"Duplicate field name: {name}", code="invalid_form")
        seen.add(name)

        options = field.get('options') or []
        if not isinstance(options, list):
            raise ValidationError(f"Options for {name} must be a list", code="invalid_form")
        options = [strip_html(sanitize_text(opt, max_length=100)).strip() for opt in options]
        options = [opt for opt in options if opt]
        if field_type in OPTION_FIELD_TYPES and not options:
            raise ValidationError(f"Field {name} needs at least one option", code="invalid_form")

        cleaned.append({
            'field_name': name,
            'field_type': field_type,
            'required': bool(field.get('required', False)),
            'options': options,
        })

    return cleaned


def update_custom_form(event_id, user, fields) -> Event:
    """
    Replace the event's custom registration form.

    Rejected once the first ticket has been issued: answers already stored
    were validated against the old form.
    """
    cleaned = clean_custom_form(fields)

    with transaction.atomic():
        event = get_managed_event(event_id, user, lock=True)
        if event.form_locked:
            raise StateError("Form is locked after first registration", code="form_locked")

        event.custom_form = cleaned
        event.save(update_fields=['custom_form'])

        ActivityService.log_activity(
            actor=user,
            verb=ACTIVITY_EVENT_FORM_UPDATED,
            target=event,
            event=event,
            metadata={'fields': [f['field_name'] for f in cleaned]},
        )

    logger.info(f"Custom form updated: event={event.id}, fields={len(cleaned)}, actor={user.id}")
    return event
