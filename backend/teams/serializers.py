from rest_framework import serializers
from backend.core.serializers import UserSummarySerializer
from .models import Team, TeamMember


class TeamMemberSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = TeamMember
        fields = ['id', 'user', 'role', 'joined_at']


class TeamSerializer(serializers.ModelSerializer):
    owner = UserSummarySerializer(read_only=True)
    members = TeamMemberSerializer(many=True, read_only=True)
    project_count = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = ['id', 'name', 'slug', 'description', 'avatar_url', 'owner', 'members', 'project_count', 'created_at', 'updated_at']
        read_only_fields = ['slug', 'created_at', 'updated_at']
        extra_kwargs = {'name': {'min_length': 1}}

    def get_project_count(self, obj):
        return obj.projects.count()


class TeamDetailSerializer(TeamSerializer):
    projects = serializers.SerializerMethodField()

    class Meta(TeamSerializer.Meta):
        fields = TeamSerializer.Meta.fields + ['projects']

    def get_projects(self, obj):
        return [
            {
                'id': project.id,
                'name': project.name,
                'key': project.key,
                'status': project.status,
                'color': project.color,
                'work_package_count': project.work_packages.count(),
                'milestone_count': project.milestones.count(),
            }
            for project in obj.projects.all()
        ]


class AddTeamMemberSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=TeamMember.Role.choices, default=TeamMember.Role.MEMBER)
