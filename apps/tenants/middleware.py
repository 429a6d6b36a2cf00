"""
Company context middleware for multi-tenant isolation.

Authenticates the bearer token, resolves the active company of the user
and the member's permission map, so every view sees one explicit company
context.
"""
import logging
import uuid
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)


class RequestIDMiddleware(MiddlewareMixin):
    """
    Inject unique request ID for tracing.

    Uses the incoming X-Request-ID header when present and echoes the id
    back in the response.
    """

    def process_request(self, request):
        if not hasattr(request, 'request_id'):
            request.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        return None

    def process_response(self, request, response):
        if hasattr(request, 'request_id'):
            response['X-Request-ID'] = request.request_id
        return response


class TenantContextMiddleware(MiddlewareMixin):
    """
    Resolve user, active company and permissions for each request.

    This middleware:
    1. Decodes the ``Authorization: Bearer <jwt>`` header
    2. Resolves the active company (stored preference, then earliest
       active membership)
    3. Computes the member's permission map for this request only
    4. Attaches request.user, request.tenant, request.membership and
       request.permissions

    A missing company is not an error here: endpoints that need one raise
    NoActiveTenantError themselves. Public endpoints bypass authentication.
    """

    PUBLIC_PATHS = [
        '/v1/auth/login',
        '/v1/health',
        '/v1/documents/files/',
        '/schema',
        '/admin/',
    ]

    def process_request(self, request):
        from apps.rbac.services import AuthService, MemberPermissions, PermissionService
        from apps.rbac.models import Member
        from apps.tenants.services import TenantContextService
        from apps.core.sentry_utils import set_company_context, set_user_context

        if not hasattr(request, 'request_id'):
            request.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())

        request.tenant = None
        request.membership = None
        request.permissions = MemberPermissions.empty()

        if self._is_public_path(request.path):
            return None

        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            return self._error_response(
                request,
                'MISSING_CREDENTIALS',
                'Authorization header with a Bearer token is required',
                status=401
            )

        user = AuthService.get_user_from_jwt(auth_header[len('Bearer '):].strip())
        if user is None:
            logger.warning(
                "Invalid or expired token",
                extra={'request_id': request.request_id, 'path': request.path}
            )
            return self._error_response(request, 'INVALID_TOKEN', 'Invalid or expired token', status=401)

        request.user = user
        set_user_context(user)

        company = TenantContextService.resolve_active_company(user)
        if company is None:
            logger.info(
                "No active company for user",
                extra={'request_id': request.request_id, 'user_id': str(user.id)}
            )
            return None

        membership = Member.objects.get_membership(company, user)
        request.tenant = company
        request.membership = membership
        if membership is not None:
            request.permissions = PermissionService.for_member(membership)
            set_user_context(user, membership)
        set_company_context(company)

        logger.debug(
            f"Company context set: {company.slug}",
            extra={'request_id': request.request_id, 'company_id': str(company.id)}
        )
        return None

    def _is_public_path(self, path):
        return any(path.startswith(public_path) for public_path in self.PUBLIC_PATHS)

    def _error_response(self, request, code, message, status=400):
        response = JsonResponse(
            {
                'error': message,
                'code': code,
                'request_id': request.request_id,
            },
            status=status
        )
        if status == 401:
            response['WWW-Authenticate'] = 'Bearer'
        return response
