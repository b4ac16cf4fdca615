from rest_framework import serializers
from django.utils import timezone
from backend.projects.models import Project
from backend.tasks.serializers import TaskListSerializer
from backend.tasks.utils import calculate_progress, count_completed
from .models import WorkPackage, Milestone


class WorkPackageSerializer(serializers.ModelSerializer):
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all())
    parent = serializers.PrimaryKeyRelatedField(
        queryset=WorkPackage.objects.all(), required=False, allow_null=True
    )
    progress = serializers.SerializerMethodField()
    task_count = serializers.SerializerMethodField()
    child_count = serializers.SerializerMethodField()

    class Meta:
        model = WorkPackage
        fields = [
            'id', 'name', 'description', 'project', 'parent', 'status', 'priority', 'color',
            'start_date', 'due_date', 'sort_order', 'progress', 'task_count', 'child_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['sort_order', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'min_length': 1},
        }

    def get_progress(self, obj):
        return calculate_progress(obj.tasks.all())

    def get_task_count(self, obj):
        return obj.tasks.count()

    def get_child_count(self, obj):
        return obj.children.count()

    def validate(self, attrs):
        project = attrs.get('project', getattr(self.instance, 'project', None))
        parent = attrs.get('parent')

        if parent is not None:
            if parent.project_id != project.id:
                raise serializers.ValidationError({'parent': 'Parent work package belongs to a different project'})
            if self.instance is not None:
                # Walk up from the new parent; meeting this package means a loop
                node = parent
                while node is not None:
                    if node.pk == self.instance.pk:
                        raise serializers.ValidationError({'parent': 'A work package cannot be nested under itself'})
                    node = node.parent

        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        due_date = attrs.get('due_date', getattr(self.instance, 'due_date', None))
        if start_date and due_date and due_date < start_date:
            raise serializers.ValidationError({'due_date': 'Due date must be on or after the start date'})
        return attrs


class WorkPackageUpdateSerializer(WorkPackageSerializer):
    """Project is fixed; sort_order may be set directly to reorder"""
    project = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta(WorkPackageSerializer.Meta):
        read_only_fields = ['created_at', 'updated_at']


class MilestoneSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Milestone
        fields = ['id', 'name', 'due_date', 'status', 'completed_at']


class WorkPackageDetailSerializer(WorkPackageSerializer):
    children = serializers.SerializerMethodField()
    tasks = TaskListSerializer(many=True, read_only=True)
    milestones = MilestoneSummarySerializer(many=True, read_only=True)

    class Meta(WorkPackageSerializer.Meta):
        fields = WorkPackageSerializer.Meta.fields + ['children', 'tasks', 'milestones']

    def get_children(self, obj):
        return WorkPackageSerializer(obj.children.all(), many=True).data


class MilestoneSerializer(serializers.ModelSerializer):
    """
    Milestone with task progress.

    ``completed`` is a write-only switch: true marks the milestone COMPLETED
    (stamping completed_at the first time), false reopens it and clears
    completed_at. Leaving it out keeps the current state.
    """
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all())
    work_package = serializers.PrimaryKeyRelatedField(
        queryset=WorkPackage.objects.all(), required=False, allow_null=True
    )
    completed = serializers.BooleanField(write_only=True, required=False)
    progress = serializers.SerializerMethodField()
    task_count = serializers.SerializerMethodField()
    completed_tasks = serializers.SerializerMethodField()

    class Meta:
        model = Milestone
        fields = [
            'id', 'name', 'description', 'project', 'work_package', 'due_date', 'status',
            'completed', 'completed_at', 'progress', 'task_count', 'completed_tasks',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['status', 'completed_at', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'min_length': 1},
        }

    def get_progress(self, obj):
        return calculate_progress(obj.tasks.all())

    def get_task_count(self, obj):
        return obj.tasks.count()

    def get_completed_tasks(self, obj):
        return count_completed(obj.tasks.all())

    def validate(self, attrs):
        if self.instance is None and not attrs.get('due_date'):
            raise serializers.ValidationError({'due_date': 'This field is required.'})

        project = attrs.get('project', getattr(self.instance, 'project', None))
        work_package = attrs.get('work_package')
        if work_package is not None and work_package.project_id != project.id:
            raise serializers.ValidationError({'work_package': 'Work package belongs to a different project'})
        return attrs

    def _apply_completion(self, validated_data, instance=None):
        completed = validated_data.pop('completed', None)
        if completed is None:
            return validated_data
        if completed:
            validated_data['status'] = Milestone.Status.COMPLETED
            if instance is None or instance.completed_at is None:
                validated_data['completed_at'] = timezone.now()
        else:
            validated_data['status'] = Milestone.Status.PENDING
            validated_data['completed_at'] = None
        return validated_data

    def create(self, validated_data):
        return super().create(self._apply_completion(validated_data))

    def update(self, instance, validated_data):
        return super().update(instance, self._apply_completion(validated_data, instance))


class MilestoneUpdateSerializer(MilestoneSerializer):
    project = serializers.PrimaryKeyRelatedField(read_only=True)


class MilestoneDetailSerializer(MilestoneSerializer):
    tasks = TaskListSerializer(many=True, read_only=True)
    work_package_detail = serializers.SerializerMethodField()

    class Meta(MilestoneSerializer.Meta):
        fields = MilestoneSerializer.Meta.fields + ['work_package_detail', 'tasks']

    def get_work_package_detail(self, obj):
        if obj.work_package is None:
            return None
        return {'id': obj.work_package.id, 'name': obj.work_package.name}


class MilestoneTaskSerializer(serializers.Serializer):
    task = serializers.IntegerField()
