"""
Serializers for authentication and permission hint endpoints.
"""
from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password

from apps.rbac.models import Role, User


class RegistrationSerializer(serializers.Serializer):
    """Serializer for user registration."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150, default='')
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150, default='')
    organization_name = serializers.CharField(required=True, max_length=255)

    def validate_email(self, value):
        """Validate email uniqueness."""
        email = User.objects.normalize_email(value)
        if User.objects.filter(email=email).exists():
            raise serializers.ValidationError(
                "A user with this email already exists."
            )
        return email

    def validate_password(self, value):
        """Validate password strength with Django's configured validators."""
        validate_password(value)
        return value

    def validate_organization_name(self, value):
        if not value.strip():
            raise serializers.ValidationError(
                "Organization name cannot be empty."
            )
        return value.strip()


class LoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name',
            'is_active', 'last_login_at', 'created_at'
        ]
        read_only_fields = fields


class PrincipalSerializer(serializers.Serializer):
    """The organization context a request acts in."""

    user_id = serializers.UUIDField()
    organization_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=Role.choices)


class PermissionHintsSerializer(serializers.Serializer):
    """Advisory navigation hints. Not a security boundary."""

    organization_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=Role.choices)
    routes = serializers.ListField(child=serializers.CharField())
    actions = serializers.ListField(child=serializers.CharField())
