"""
Serializers for membership management.
"""
from rest_framework import serializers

from apps.rbac.models import Role
from apps.tenants.models import Membership


class MembershipSerializer(serializers.ModelSerializer):
    """Membership as seen by organization administrators."""

    user_id = serializers.UUIDField(read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    full_name = serializers.CharField(source='user.get_full_name', read_only=True)

    class Meta:
        model = Membership
        fields = [
            'id', 'user_id', 'email', 'full_name', 'role', 'status',
            'invited_by', 'joined_at', 'removed_at', 'created_at'
        ]
        read_only_fields = fields


class MembershipCreateSerializer(serializers.Serializer):
    """Add an existing user to the organization, or invite them."""

    email = serializers.EmailField(required=True)
    role = serializers.ChoiceField(choices=Role.choices, default=Role.COLLABORATOR)
    invite = serializers.BooleanField(
        default=False,
        help_text="Create a pending invitation instead of an active membership"
    )


class MembershipUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Role.choices, required=True)


class AcceptInvitationSerializer(serializers.Serializer):
    organization_id = serializers.UUIDField(required=True)
