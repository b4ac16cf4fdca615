from rest_framework import serializers
from django.core.validators import RegexValidator
from .models import Notification, NotificationSettings

webhook_url_validator = RegexValidator(r'^https?://\S+$', 'Invalid webhook URL')

EVENT_FIELDS = [event.value for event in NotificationSettings.Event]


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'title', 'message', 'link', 'is_read', 'created_at']
        read_only_fields = fields


class EventTogglesSerializer(serializers.Serializer):
    task_assigned = serializers.BooleanField(required=False)
    task_completed = serializers.BooleanField(required=False)
    task_due_soon = serializers.BooleanField(required=False)
    task_comment = serializers.BooleanField(required=False)
    milestone_reached = serializers.BooleanField(required=False)
    project_updated = serializers.BooleanField(required=False)
    member_joined = serializers.BooleanField(required=False)


class NotificationSettingsSerializer(serializers.Serializer):
    """Write shape for a project's Mattermost settings; every key is optional"""
    webhook_url = serializers.CharField(
        max_length=500, required=False, allow_blank=True, validators=[webhook_url_validator]
    )
    channel = serializers.CharField(max_length=100, required=False, allow_blank=True)
    username = serializers.CharField(max_length=100, required=False, allow_blank=True)
    enabled = serializers.BooleanField(required=False)
    events = EventTogglesSerializer(required=False)

    def update(self, instance, validated_data):
        if 'webhook_url' in validated_data:
            instance.mattermost_webhook_url = validated_data['webhook_url']
        if 'channel' in validated_data:
            instance.mattermost_channel = validated_data['channel']
        if 'username' in validated_data:
            instance.mattermost_username = validated_data['username'] or 'ProjectForge'
        if 'enabled' in validated_data:
            instance.mattermost_enabled = validated_data['enabled']
        for event, value in validated_data.get('events', {}).items():
            setattr(instance, event, value)
        instance.save()
        return instance


def settings_payload(notification_settings, is_manager):
    """Read shape; the webhook URL is only shown to project managers"""
    return {
        'webhook_url': notification_settings.mattermost_webhook_url if is_manager else '',
        'channel': notification_settings.mattermost_channel,
        'username': notification_settings.mattermost_username,
        'enabled': notification_settings.mattermost_enabled,
        'events': {event: getattr(notification_settings, event) for event in EVENT_FIELDS},
        'is_manager': is_manager,
    }
