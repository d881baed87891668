from django.contrib.contenttypes.models import ContentType
from .models import DomainActivity


class ActivityService:
    @staticmethod
    def log_activity(actor, verb, target, event=None, visibility=DomainActivity.VISIBILITY_EVENT, metadata=None):
        """
        Logs a domain activity.

        Called from inside the engine's transactions, so the audit row
        commits or rolls back together with the change it describes.
        """
        if metadata is None:
            metadata = {}

        return DomainActivity.objects.create(
            actor=actor,
            verb=verb,
            content_type=ContentType.objects.get_for_model(target),
            object_id=target.pk,
            event=event,
            visibility=visibility,
            metadata=metadata
        )
