from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from events.models import Event

User = get_user_model()


def make_user(username, role=User.ROLE_NON_IIIT_STUDENT, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="pass1234",
        role=role,
        **extra,
    )


def make_event(organizer, **overrides):
    """A published team-based event open for a week unless overridden."""
    now = timezone.now()
    fields = {
        "organizer": organizer,
        "name": "Hack Night",
        "status": Event.STATUS_PUBLISHED,
        "registration_deadline": now + timedelta(days=7),
        "start_time": now + timedelta(days=10),
        "end_time": now + timedelta(days=11),
        "registration_limit": 100,
        "team_based": True,
        "min_team_size": 2,
        "max_team_size": 4,
    }
    fields.update(overrides)
    return Event.objects.create(**fields)
