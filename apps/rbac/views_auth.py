"""
Authentication REST API views.

Implements endpoints for:
- User registration (creates the user's organization)
- Login
- Current user profile
"""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import AuthenticationError, ValidationError
from apps.core.permissions import get_principal
from apps.core.security_logger import SecurityLogger
from apps.rbac.services import AuthService
from apps.rbac.serializers import (
    RegistrationSerializer, LoginSerializer, UserSerializer, PrincipalSerializer
)
from apps.tenants.services import TenantDirectory


@extend_schema(
    tags=['Authentication'],
    summary='Register new user',
    description='''
Register a new user account with its own organization.

Creates:
- User account with hashed password
- Organization owned by the user
- Administrator membership

Returns a JWT token for immediate login. The token identifies the user only;
roles are read from the membership on every request.

**No authentication required** - this is a public endpoint.
    ''',
    request=RegistrationSerializer,
    responses={
        201: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Registration Request',
            value={
                'email': 'engineer@example.com',
                'password': 'SecurePass123!',
                'first_name': 'Ana',
                'last_name': 'Souza',
                'organization_name': 'Souza Construções'
            },
            request_only=True
        ),
    ]
)
class RegistrationView(APIView):
    """
    POST /v1/auth/register

    Register new user with their organization.
    """
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        """Register new user."""
        serializer = RegistrationSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError('Validation error', details=serializer.errors)

        result = AuthService.register_user(
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
            organization_name=serializer.validated_data['organization_name'],
            first_name=serializer.validated_data.get('first_name', ''),
            last_name=serializer.validated_data.get('last_name', ''),
        )

        organization = result['organization']
        return Response(
            {
                'user': UserSerializer(result['user']).data,
                'organization': {
                    'id': str(organization.id),
                    'name': organization.name,
                    'slug': organization.slug,
                },
                'token': result['token'],
            },
            status=status.HTTP_201_CREATED
        )


@extend_schema(
    tags=['Authentication'],
    summary='Login',
    description='Authenticate with email and password and receive a JWT token.',
    request=LoginSerializer,
    responses={
        200: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
        401: OpenApiTypes.OBJECT,
    }
)
class LoginView(APIView):
    """
    POST /v1/auth/login

    Authenticate user and return JWT token.
    """
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        """Login user."""
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError('Validation error', details=serializer.errors)

        result = AuthService.login(
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password']
        )

        if not result:
            SecurityLogger.log_failed_login(
                email=serializer.validated_data['email'],
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
            )
            raise AuthenticationError('Invalid email or password')

        return Response(
            {
                'user': UserSerializer(result['user']).data,
                'token': result['token'],
            },
            status=status.HTTP_200_OK
        )


@extend_schema(
    tags=['Authentication'],
    summary='Current user',
    description='''
Profile of the authenticated user, the organization context this request
resolved to (from `X-Organization-ID`, or the first active membership) and
every active membership.
    ''',
    responses={200: OpenApiTypes.OBJECT}
)
class MeView(APIView):
    """
    GET /v1/auth/me
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        principal = get_principal(request)
        memberships = TenantDirectory.list_active_memberships(request.user.pk)

        return Response(
            {
                'user': UserSerializer(request.user).data,
                'principal': PrincipalSerializer(principal).data if principal else None,
                'memberships': [
                    {
                        'organization_id': str(membership.organization_id),
                        'organization_name': membership.organization.name,
                        'role': membership.role,
                    }
                    for membership in memberships
                ],
            },
            status=status.HTTP_200_OK
        )
