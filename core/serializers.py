from rest_framework import serializers
from .models import DomainActivity


class DomainActivitySerializer(serializers.ModelSerializer):
    actor_name = serializers.CharField(source='actor.username', read_only=True)
    target_type = serializers.CharField(source='content_type.model', read_only=True)

    class Meta:
        model = DomainActivity
        fields = [
            'id',
            'actor',
            'actor_name',
            'verb',
            'target_type',
            'object_id',
            'event',
            'metadata',
            'timestamp',
            'visibility'
        ]
        read_only_fields = fields
