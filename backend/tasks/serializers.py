from decimal import Decimal

from rest_framework import serializers
from django.contrib.auth import get_user_model
from backend.attachments.serializers import AttachmentSerializer
from backend.core.serializers import UserSummarySerializer
from backend.planning.models import WorkPackage, Milestone
from backend.projects.models import Project, ProjectMember
from .models import Task, TaskDependency, Comment

User = get_user_model()


class ProjectRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = ['id', 'name', 'key']


class WorkPackageRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = WorkPackage
        fields = ['id', 'name']


class MilestoneRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Milestone
        fields = ['id', 'name', 'due_date']


class TaskRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Task
        fields = ['id', 'title', 'status']


class TaskListSerializer(serializers.ModelSerializer):
    """Row shape used inside work package, milestone and gantt payloads"""
    assignee = UserSummarySerializer(read_only=True)

    class Meta:
        model = Task
        fields = [
            'id', 'title', 'status', 'priority', 'assignee', 'work_package', 'milestone',
            'sort_order', 'start_date', 'due_date', 'completed_at'
        ]
        read_only_fields = fields


class TaskSerializer(serializers.ModelSerializer):
    assignee = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True), required=False, allow_null=True
    )
    assignee_detail = UserSummarySerializer(source='assignee', read_only=True)
    creator = UserSummarySerializer(read_only=True)
    project_detail = ProjectRefSerializer(source='project', read_only=True)
    work_package = serializers.PrimaryKeyRelatedField(
        queryset=WorkPackage.objects.all(), required=False, allow_null=True
    )
    work_package_detail = WorkPackageRefSerializer(source='work_package', read_only=True)
    milestone = serializers.PrimaryKeyRelatedField(
        queryset=Milestone.objects.all(), required=False, allow_null=True
    )
    milestone_detail = MilestoneRefSerializer(source='milestone', read_only=True)
    comment_count = serializers.SerializerMethodField()
    attachment_count = serializers.SerializerMethodField()
    estimated_hours = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True
    )
    logged_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal('0'), required=False)

    class Meta:
        model = Task
        fields = [
            'id', 'title', 'description', 'project', 'project_detail', 'status', 'priority',
            'assignee', 'assignee_detail', 'creator',
            'work_package', 'work_package_detail', 'milestone', 'milestone_detail',
            'sort_order', 'estimated_hours', 'logged_hours', 'start_date', 'due_date',
            'completed_at', 'comment_count', 'attachment_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['project', 'completed_at', 'created_at', 'updated_at']
        extra_kwargs = {
            'title': {'min_length': 1},
        }

    def get_comment_count(self, obj):
        return obj.comments.count()

    def get_attachment_count(self, obj):
        return obj.attachments.count()

    def _target_project(self, attrs):
        if 'project' in attrs:
            return attrs['project']
        return getattr(self.instance, 'project', None)

    def validate(self, attrs):
        project = self._target_project(attrs)
        if project is None:
            return attrs

        work_package = attrs.get('work_package')
        if work_package is not None and work_package.project_id != project.id:
            raise serializers.ValidationError({'work_package': 'Work package belongs to a different project'})

        milestone = attrs.get('milestone')
        if milestone is not None and milestone.project_id != project.id:
            raise serializers.ValidationError({'milestone': 'Milestone belongs to a different project'})

        assignee = attrs.get('assignee')
        if assignee is not None and not ProjectMember.objects.filter(project=project, user=assignee).exists():
            raise serializers.ValidationError({'assignee': 'Assignee must be a member of the project'})

        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        due_date = attrs.get('due_date', getattr(self.instance, 'due_date', None))
        if start_date and due_date and due_date < start_date:
            raise serializers.ValidationError({'due_date': 'Due date must be on or after the start date'})
        return attrs


class TaskCreateSerializer(TaskSerializer):
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all())

    class Meta(TaskSerializer.Meta):
        read_only_fields = ['sort_order', 'completed_at', 'created_at', 'updated_at']


class DependencySerializer(serializers.ModelSerializer):
    depends_on = TaskRefSerializer(read_only=True)

    class Meta:
        model = TaskDependency
        fields = ['id', 'depends_on', 'created_at']


class DependentSerializer(serializers.ModelSerializer):
    task = TaskRefSerializer(read_only=True)

    class Meta:
        model = TaskDependency
        fields = ['id', 'task', 'created_at']


class AddDependencySerializer(serializers.Serializer):
    depends_on = serializers.PrimaryKeyRelatedField(queryset=Task.objects.all())


class CommentSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'content', 'task', 'user', 'created_at', 'updated_at']
        read_only_fields = ['task', 'created_at', 'updated_at']
        extra_kwargs = {
            'content': {'min_length': 1, 'trim_whitespace': True},
        }


class TaskDetailSerializer(TaskSerializer):
    comments = CommentSerializer(many=True, read_only=True)
    attachments = AttachmentSerializer(many=True, read_only=True)
    dependencies = DependencySerializer(many=True, read_only=True)
    dependents = DependentSerializer(many=True, read_only=True)

    class Meta(TaskSerializer.Meta):
        fields = TaskSerializer.Meta.fields + ['comments', 'attachments', 'dependencies', 'dependents']


class TaskOrderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    sort_order = serializers.IntegerField()
    status = serializers.ChoiceField(choices=Task.Status.choices, required=False)


class ReorderTasksSerializer(serializers.Serializer):
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all())
    tasks = TaskOrderSerializer(many=True)


class AssignTaskSerializer(serializers.Serializer):
    assignee = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True), allow_null=True
    )
