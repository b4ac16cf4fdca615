from rest_framework import serializers
from backend.projects.models import Project
from .models import Timeline, TimelineEvent


class TimelineEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = TimelineEvent
        fields = ['id', 'timeline', 'title', 'description', 'event_type', 'start_date', 'end_date', 'color', 'created_at']
        read_only_fields = ['timeline', 'created_at']
        extra_kwargs = {
            'title': {'min_length': 1},
        }

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date must be on or after the start date'})
        return attrs


class TimelineSerializer(serializers.ModelSerializer):
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all())
    events = TimelineEventSerializer(many=True, read_only=True)

    class Meta:
        model = Timeline
        fields = ['id', 'name', 'project', 'start_date', 'end_date', 'is_default', 'events', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'name': {'min_length': 1},
        }

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date must be on or after the start date'})
        return attrs


class TimelineUpdateSerializer(TimelineSerializer):
    project = serializers.PrimaryKeyRelatedField(read_only=True)


class TimelineDetailSerializer(TimelineSerializer):
    project_detail = serializers.SerializerMethodField()

    class Meta(TimelineSerializer.Meta):
        fields = TimelineSerializer.Meta.fields + ['project_detail']

    def get_project_detail(self, obj):
        return {'id': obj.project.id, 'name': obj.project.name, 'key': obj.project.key}
