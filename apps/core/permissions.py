"""
DRF permission classes and decorators for module/action enforcement.

This module provides:
- HasModulePermission: DRF permission class that checks the member's
  permission map for the view's module and the request's action
- @requires_permission: Decorator to declare the module/action on views
"""
import logging
from functools import wraps
from rest_framework.permissions import BasePermission

from apps.core.logging import SecurityLogger

logger = logging.getLogger(__name__)

METHOD_ACTIONS = {
    'GET': 'view',
    'HEAD': 'view',
    'OPTIONS': 'view',
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete',
}


class HasModulePermission(BasePermission):
    """
    DRF permission class that enforces the module/action matrix.

    The view declares ``permission_module``; the action comes from the HTTP
    method (GET → view, POST → create, PUT/PATCH → update, DELETE → delete)
    unless ``required_permission`` names an explicit ``(module, action)``
    pair. ``request.permissions`` is the MemberPermissions object attached
    by TenantContextMiddleware; a missing one denies everything.

    Usage in views:
        class EmployeeListView(APIView):
            permission_classes = [HasModulePermission]
            permission_module = 'employees'

    Or with decorator:
        class EmployeeTerminateView(APIView):
            permission_classes = [HasModulePermission]

            @requires_permission('employees', 'update')
            def post(self, request, employee_id):
                pass
    """

    def has_permission(self, request, view):
        required = getattr(view, 'required_permission', None)
        if required:
            module, action = required
        else:
            module = getattr(view, 'permission_module', None)
            action = METHOD_ACTIONS.get(request.method, 'view')

        # Views without a module only need an authenticated member context
        if not module:
            return True

        permissions = getattr(request, 'permissions', None)

        if permissions is not None and permissions.can(module, action):
            return True

        user = getattr(request, 'user', None)
        company = getattr(request, 'tenant', None)
        logger.warning(
            f"Permission denied: {module}:{action}",
            extra={
                'required_module': module,
                'required_action': action,
                'view': view.__class__.__name__,
                'method': request.method,
                'path': request.path,
                'request_id': getattr(request, 'request_id', None),
            }
        )
        SecurityLogger.log_permission_denied(
            user, company, module, action,
            ip_address=request.META.get('REMOTE_ADDR')
        )
        return False

    def has_object_permission(self, request, view, obj):
        """Verify that the object belongs to the request's company."""
        request_company = getattr(request, 'tenant', None)
        if not request_company:
            return False

        object_company_id = getattr(obj, 'company_id', None)
        if object_company_id is None:
            return True

        if object_company_id != request_company.id:
            SecurityLogger.log_event(
                'cross_company_access',
                level='error',
                object_type=obj.__class__.__name__,
                object_id=str(obj.pk),
                company_id=str(request_company.id),
            )
            return False

        return True


def requires_permission(module, action):
    """
    Decorator to declare the (module, action) pair on views or methods.

    On a class it sets ``required_permission`` for every method. On a
    method it records the pair on the function; MethodPermissionMixin
    copies it onto the view in ``initial()``, before DRF checks
    permissions.
    """
    def decorator(view_or_method):
        if isinstance(view_or_method, type):
            view_or_method.required_permission = (module, action)
            return view_or_method

        @wraps(view_or_method)
        def wrapped(self, request, *args, **kwargs):
            return view_or_method(self, request, *args, **kwargs)

        wrapped.required_permission = (module, action)
        return wrapped

    return decorator


class MethodPermissionMixin:
    """
    Resolve ``required_permission`` from the handler method when it was set
    with ``@requires_permission`` on a single method.
    """

    def initial(self, request, *args, **kwargs):
        handler = getattr(self, request.method.lower(), None)
        required = getattr(handler, 'required_permission', None)
        if required:
            self.required_permission = required
        super().initial(request, *args, **kwargs)
