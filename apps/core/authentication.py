"""
Custom DRF authentication classes.
"""
from rest_framework.authentication import BaseAuthentication


class MiddlewareAuthentication(BaseAuthentication):
    """
    DRF authentication class that uses the user set by TenantContextMiddleware.

    The middleware decodes the JWT and sets request.user; this class hands
    that user to DRF so views see ``request.user`` as authenticated.
    """

    def authenticate(self, request):
        django_request = request._request

        user = getattr(django_request, 'user', None)
        if user is not None and user.is_authenticated:
            return (user, None)

        return None

    def authenticate_header(self, request):
        return 'Bearer'
