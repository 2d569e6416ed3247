from rest_framework import permissions

from .context import Caller, resolve_role


class HasSchoolRole(permissions.BasePermission):
    """
    Allow authenticated users that are an admin, a teacher or a parent.
    """
    message = 'Your account has no teacher, parent or admin role.'

    def has_permission(self, request, view):
        return resolve_role(request.user) is not None


class CallerMixin:
    """
    Mixin for API views that hand an explicit caller context to the services.
    """
    permission_classes = [permissions.IsAuthenticated, HasSchoolRole]

    @property
    def caller(self):
        if not hasattr(self, '_caller'):
            self._caller = Caller.from_request(self.request)
        return self._caller


def success_response_data(**payload):
    """Standard success envelope used by the JSON endpoints."""
    return {'success': True, **payload}
