from rest_framework import serializers
from django.contrib.auth import get_user_model
from backend.core.serializers import UserSummarySerializer
from backend.teams.models import Team
from .models import Project, ProjectMember, DEFAULT_PROJECT_COLOR

User = get_user_model()


class TeamRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Team
        fields = ['id', 'name', 'slug']


class ProjectMemberSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = ProjectMember
        fields = ['id', 'user', 'role', 'joined_at']


class ProjectSerializer(serializers.ModelSerializer):
    team = serializers.PrimaryKeyRelatedField(queryset=Team.objects.all())
    team_detail = TeamRefSerializer(source='team', read_only=True)
    members = ProjectMemberSerializer(many=True, read_only=True)
    work_package_count = serializers.SerializerMethodField()
    milestone_count = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            'id', 'name', 'key', 'description', 'status', 'color', 'start_date', 'end_date',
            'team', 'team_detail', 'members', 'work_package_count', 'milestone_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'name': {'min_length': 1},
            'color': {'required': False},
        }
        # (team, key) uniqueness is reported as a 409 by the view
        validators = []

    def to_internal_value(self, data):
        if hasattr(data, 'get') and isinstance(data.get('key'), str):
            data = data.copy()
            data['key'] = data['key'].strip().upper()
        return super().to_internal_value(data)

    def get_work_package_count(self, obj):
        return obj.work_packages.count()

    def get_milestone_count(self, obj):
        return obj.milestones.count()

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date must be on or after the start date'})
        if self.instance is None:
            attrs.setdefault('color', DEFAULT_PROJECT_COLOR)
        return attrs


class ProjectUpdateSerializer(ProjectSerializer):
    """Key and team are fixed once a project exists"""

    class Meta(ProjectSerializer.Meta):
        read_only_fields = ['key', 'team', 'created_at', 'updated_at']

    team = serializers.PrimaryKeyRelatedField(read_only=True)


class ProjectDetailSerializer(ProjectSerializer):
    work_packages = serializers.SerializerMethodField()
    milestones = serializers.SerializerMethodField()

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['work_packages', 'milestones']

    def get_work_packages(self, obj):
        return [
            {
                'id': wp.id,
                'name': wp.name,
                'status': wp.status,
                'priority': wp.priority,
                'parent': wp.parent_id,
                'sort_order': wp.sort_order,
                'task_count': wp.tasks.count(),
            }
            for wp in obj.work_packages.all()
        ]

    def get_milestones(self, obj):
        return [
            {
                'id': m.id,
                'name': m.name,
                'due_date': m.due_date,
                'status': m.status,
                'completed_at': m.completed_at,
            }
            for m in obj.milestones.all()
        ]


class AddProjectMemberSerializer(serializers.Serializer):
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))
    role = serializers.ChoiceField(choices=ProjectMember.Role.choices, default=ProjectMember.Role.MEMBER)
