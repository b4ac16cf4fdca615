from rest_framework import serializers
from backend.core.serializers import UserSummarySerializer
from .models import Activity


class ActivitySerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Activity
        fields = ['id', 'action', 'entity_type', 'entity_id', 'user', 'project', 'task', 'metadata', 'created_at']
        read_only_fields = fields
