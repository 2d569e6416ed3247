"""
Domain errors shared by the attendance and communication apps, and the
REST framework exception handler that renders them.
"""

import logging

from django.utils.translation import gettext_lazy as _
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class SchoolCoreError(Exception):
    """Base class for every error raised by the domain services."""
    status_code = 400
    default_code = 'error'
    default_message = _('The request could not be processed.')

    def __init__(self, message=None, code=None):
        self.message = str(message or self.default_message)
        self.code = code or self.default_code
        super().__init__(self.message)

    def as_dict(self):
        return {'code': self.code, 'message': self.message}


class NotFound(SchoolCoreError):
    status_code = 404
    default_code = 'not_found'
    default_message = _('Resource not found.')


class StudentNotFound(NotFound):
    default_code = 'student_not_found'
    default_message = _('Student not found.')


class TeacherNotFound(NotFound):
    default_code = 'teacher_not_found'
    default_message = _('Teacher not found.')


class ParentNotFound(NotFound):
    default_code = 'parent_not_found'
    default_message = _('Parent not found.')


class ClassNotFound(NotFound):
    default_code = 'class_not_found'
    default_message = _('Class not found.')


class UserNotFound(NotFound):
    default_code = 'user_not_found'
    default_message = _('User not found.')


class AttendanceNotFound(NotFound):
    default_code = 'attendance_not_found'
    default_message = _('Attendance record not found.')


class CalendarMissing(SchoolCoreError):
    default_code = 'calendar_missing'
    default_message = _('Working days are not configured for this month.')


class InvalidDate(SchoolCoreError):
    default_code = 'invalid_date'
    default_message = _('Invalid date.')


class InvalidInput(SchoolCoreError):
    default_code = 'invalid_input'
    default_message = _('Invalid input.')


class Unauthorized(SchoolCoreError):
    status_code = 403
    default_code = 'unauthorized'
    default_message = _('You are not allowed to perform this action.')


class ConcurrencyConflict(SchoolCoreError):
    status_code = 409
    default_code = 'concurrency_conflict'
    default_message = _('The record was modified concurrently, please retry.')


def api_exception_handler(exc, context):
    """
    Render domain errors as JSON; everything else goes through the
    default REST framework handler.
    """
    if isinstance(exc, SchoolCoreError):
        view = context.get('view')
        logger.warning(
            "%s rejected with %s: %s",
            view.__class__.__name__ if view else 'view', exc.code, exc.message
        )
        return Response(
            {'success': False, 'error': exc.as_dict()},
            status=exc.status_code
        )

    return exception_handler(exc, context)
