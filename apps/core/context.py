"""
Explicit caller context handed to the domain services.

Views and consumers build a ``Caller`` from the authenticated user once per
request (or once per WebSocket connection) and pass it down; services never
read identity from global state.
"""

from dataclasses import dataclass
from typing import Optional

from django.contrib.auth.models import AnonymousUser

from .exceptions import Unauthorized


class Role:
    ADMIN = 'admin'
    TEACHER = 'teacher'
    PARENT = 'parent'


def _active_profile(user, name):
    profile = getattr(user, name, None)
    return profile if profile is not None and not profile.is_deleted else None


def resolve_role(user):
    """
    Return the role of a user, or None when it has none. A soft-deleted
    teacher or parent profile grants no role.
    """
    if user is None or isinstance(user, AnonymousUser) or not user.is_authenticated:
        return None
    if _active_profile(user, 'teacher_profile') is not None:
        return Role.TEACHER
    if _active_profile(user, 'parent_profile') is not None:
        return Role.PARENT
    if user.is_staff or user.is_superuser:
        return Role.ADMIN
    return None


@dataclass(frozen=True)
class Caller:
    user: object
    role: str
    teacher: Optional[object] = None
    parent: Optional[object] = None

    @classmethod
    def from_user(cls, user):
        role = resolve_role(user)
        if role is None:
            raise Unauthorized("Your account has no teacher, parent or admin role.")

        return cls(
            user=user,
            role=role,
            teacher=user.teacher_profile if role == Role.TEACHER else None,
            parent=user.parent_profile if role == Role.PARENT else None,
        )

    @classmethod
    def from_request(cls, request):
        return cls.from_user(request.user)

    @property
    def user_id(self):
        return self.user.pk

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @property
    def is_teacher(self):
        return self.role == Role.TEACHER

    @property
    def is_parent(self):
        return self.role == Role.PARENT
