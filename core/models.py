#  eventhub-backend/core/models.py
from django.db import models
from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType


class DomainActivity(models.Model):
    """
    Immutable ledger of all business-significant actions in the system.
    Source of truth for audits of team formation and ticket issuance.
    """
    VISIBILITY_PUBLIC = "public"
    VISIBILITY_EVENT = "event"
    VISIBILITY_PRIVATE = "private"

    VISIBILITY_CHOICES = [
        (VISIBILITY_PUBLIC, "Public"),
        (VISIBILITY_EVENT, "Event Staff"),
        (VISIBILITY_PRIVATE, "Private"),
    ]

    # Who did it?
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="activities",
    )

    # What happened? (e.g., 'team.completed')
    verb = models.CharField(max_length=64, db_index=True)

    # To what? (Generic Foreign Key)
    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    object_id = models.PositiveIntegerField()
    content_object = GenericForeignKey("content_type", "object_id")

    # context (Where?)
    event = models.ForeignKey(
        "events.Event",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="activities",
    )

    visibility = models.CharField(
        max_length=16,
        choices=VISIBILITY_CHOICES,
        default=VISIBILITY_EVENT,
        db_index=True,
    )

    # Extra data (Snapshot logic, e.g., team name at time of logging)
    metadata = models.JSONField(default=dict, blank=True)

    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name_plural = "Domain Activities"
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["event", "-timestamp"], name="activity_event_ts_idx"),
            models.Index(fields=["actor", "-timestamp"], name="activity_actor_ts_idx"),
        ]

    def __str__(self):
        return f"{self.actor} - {self.verb} - {self.timestamp}"
