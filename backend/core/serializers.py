from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, UserSession


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'avatar_url', 'role', 'is_active', 'last_login', 'created_at', 'updated_at']
        read_only_fields = ['email', 'role', 'is_active', 'last_login', 'created_at', 'updated_at']


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user shape embedded in other resources"""
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'avatar_url']


class UserListSerializer(UserSerializer):
    assigned_task_count = serializers.SerializerMethodField()
    team_count = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['assigned_task_count', 'team_count']

    def get_assigned_task_count(self, obj):
        return obj.assigned_tasks.count()

    def get_team_count(self, obj):
        return obj.team_memberships.count()


class UserDetailSerializer(UserSerializer):
    teams = serializers.SerializerMethodField()
    assigned_task_count = serializers.SerializerMethodField()
    created_task_count = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['teams', 'assigned_task_count', 'created_task_count']

    def get_teams(self, obj):
        return [
            {'id': m.team_id, 'name': m.team.name, 'slug': m.team.slug, 'role': m.role}
            for m in obj.team_memberships.select_related('team')
        ]

    def get_assigned_task_count(self, obj):
        return obj.assigned_tasks.count()

    def get_created_task_count(self, obj):
        return obj.created_tasks.count()


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])

    class Meta:
        model = User
        fields = ['email', 'password', 'first_name', 'last_name']
        extra_kwargs = {
            'first_name': {'min_length': 1},
            'last_name': {'min_length': 1},
        }

    def validate_email(self, value):
        return value.lower()

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, is_active=True, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'avatar_url']
        extra_kwargs = {
            'first_name': {'min_length': 1},
            'last_name': {'min_length': 1},
        }


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.Role.choices)


class UserSessionSerializer(serializers.ModelSerializer):
    current = serializers.SerializerMethodField()

    class Meta:
        model = UserSession
        fields = ['id', 'ip_address', 'user_agent', 'created_at', 'expires_at', 'current']

    def get_current(self, obj):
        request = self.context.get('request')
        return bool(request and isinstance(request.auth, UserSession) and request.auth.pk == obj.pk)
