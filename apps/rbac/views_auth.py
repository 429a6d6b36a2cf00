"""
Authentication API views.

Login issues a JWT; the token is then sent as ``Authorization: Bearer``
and decoded by TenantContextMiddleware on every request.
"""
import logging
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import AuthenticationError, LOGIN_RETRY_AFTER
from apps.core.logging import SecurityLogger
from apps.core.views import invalid_request
from apps.rbac.serializers import LoginSerializer, UserSerializer, MemberSerializer
from apps.rbac.services import AuthService, InvitationService
from apps.tenants.serializers import CompanySerializer

logger = logging.getLogger(__name__)


@extend_schema(
    tags=['Authentication'],
    summary='Login',
    description='''
Authenticate with email and password and receive a JWT.

**Rate limit**: 5 requests/minute per IP, 10 requests/hour per email
    ''',
    request=LoginSerializer,
    responses={
        200: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
        401: OpenApiTypes.OBJECT,
        429: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Login Request',
            value={'email': 'user@example.com', 'password': 'secret'},
            request_only=True
        ),
    ]
)
@method_decorator(ratelimit(key='ip', rate='5/m', method='POST', block=False), name='dispatch')
@method_decorator(ratelimit(key='post:email', rate='10/h', method='POST', block=False), name='dispatch')
class LoginView(APIView):
    """
    POST /v1/auth/login

    No authentication required.
    """
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        if getattr(request, 'limited', False):
            SecurityLogger.log_rate_limit_exceeded(
                endpoint='/v1/auth/login',
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
                user_email=request.data.get('email'),
            )
            response = Response(
                {
                    'error': 'Rate limit exceeded. Please try again later.',
                    'code': 'RATE_LIMIT_EXCEEDED',
                    'retry_after': LOGIN_RETRY_AFTER,
                },
                status=status.HTTP_429_TOO_MANY_REQUESTS
            )
            response['Retry-After'] = str(LOGIN_RETRY_AFTER)
            return response

        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        try:
            result = AuthService.login(
                email=serializer.validated_data['email'],
                password=serializer.validated_data['password'],
            )
        except AuthenticationError:
            SecurityLogger.log_failed_login(
                email=serializer.validated_data['email'],
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
                reason='Invalid credentials',
            )
            raise

        return Response({
            'user': UserSerializer(result['user']).data,
            'token': result['token'],
        })


class MeView(APIView):
    """
    GET /v1/auth/me

    The authenticated user, the active company (or null) and the
    permission map in that company.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=['Authentication'], summary='Current user', responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        company = getattr(request, 'tenant', None)
        permissions = getattr(request, 'permissions', None)

        return Response({
            'user': UserSerializer(request.user).data,
            'company': CompanySerializer(company).data if company else None,
            'permissions': permissions.to_dict() if (company and permissions) else None,
        })


class AcceptInvitationView(APIView):
    """
    POST /v1/auth/invitations/{token}/accept

    Accept an invitation as the authenticated user. The invitation email
    must match the user's email.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=['Authentication'], summary='Accept invitation', request=None,
                   responses={200: MemberSerializer})
    def post(self, request, token):
        member = InvitationService.accept_invitation(token, request.user, request=request)
        return Response(MemberSerializer(member).data, status=status.HTTP_200_OK)
