# events/identifiers.py
"""
Random identifiers handed to participants: team invite codes and ticket ids.

Both are backed by unique columns. Generation is retried while the value is
already taken; the unique constraint still guards the insert itself.
"""
import logging
import secrets

from .models import Registration, Team

logger = logging.getLogger('eventhub.events')

MAX_ATTEMPTS = 8


def generate_invite_code() -> str:
    """8 upper-case hex characters, e.g. '9F3A01BC'."""
    return secrets.token_hex(4).upper()


def generate_ticket_id() -> str:
    """'TKT-' followed by 12 upper-case hex characters."""
    return "TKT-" + secrets.token_hex(6).upper()


def unique_value(generator, model, field: str) -> str:
    """
    Draw values from `generator` until one is unused in `model.field`.

    Raises RuntimeError when every attempt collided.
    """
    for attempt in range(1, MAX_ATTEMPTS + 1):
        value = generator()
        if not model.objects.filter(**{field: value}).exists():
            return value
        logger.warning(f"Identifier collision on {model.__name__}.{field} (attempt {attempt})")

    raise RuntimeError(f"Could not generate a unique {model.__name__}.{field} after {MAX_ATTEMPTS} attempts")


def new_invite_code() -> str:
    return unique_value(generate_invite_code, Team, "invite_code")


def new_ticket_id() -> str:
    return unique_value(generate_ticket_id, Registration, "ticket_id")
