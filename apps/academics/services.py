"""
Roster lookups shared by the attendance and communication services.
"""

import logging

from django.core.exceptions import ValidationError

from apps.core.exceptions import ClassNotFound, StudentNotFound, Unauthorized

from .models import Class, Student

logger = logging.getLogger(__name__)


class RosterService:
    """
    Resolves students and classes and answers "who may see whom".
    """

    @staticmethod
    def get_student(student_id):
        try:
            return Student.objects.select_related(
                'current_class', 'current_class__class_teacher', 'guardian', 'guardian__user'
            ).get(pk=student_id, is_deleted=False)
        except (Student.DoesNotExist, ValidationError, ValueError):
            raise StudentNotFound(f"No student with id {student_id}.")

    @staticmethod
    def get_class(class_id):
        try:
            return Class.objects.select_related('class_teacher').get(pk=class_id, is_deleted=False)
        except (Class.DoesNotExist, ValidationError, ValueError):
            raise ClassNotFound(f"No class with id {class_id}.")

    @staticmethod
    def teaches_student(teacher, student):
        return teacher is not None and teacher.teaches(student.current_class)

    @staticmethod
    def can_view_student(caller, student):
        """Admins, teachers of the student's class and the guardian."""
        if caller.is_admin:
            return True
        if caller.is_teacher:
            return RosterService.teaches_student(caller.teacher, student)
        if caller.is_parent:
            return student.is_child_of(caller.parent)
        return False

    @staticmethod
    def class_students(caller, class_id):
        """
        Students of a class with their guardians. Only admins and teachers
        assigned to the class may list it.
        """
        class_obj = RosterService.get_class(class_id)
        if not (caller.is_admin or (caller.is_teacher and caller.teacher.teaches(class_obj))):
            logger.warning(
                "User %s denied roster of class %s", caller.user_id, class_obj.label
            )
            raise Unauthorized("You are not assigned to this class.")

        students = class_obj.students.filter(is_deleted=False).select_related('guardian', 'guardian__user')
        return class_obj, list(students)

    @staticmethod
    def guardian_students_for_teacher(teacher):
        """Students with a guardian in every class the teacher is assigned to."""
        return (
            Student.objects.filter(
                current_class__in=teacher.assigned_classes(),
                guardian__isnull=False,
                guardian__is_deleted=False,
                is_deleted=False,
            )
            .select_related('current_class', 'guardian')
            .order_by('current_class__name', 'current_class__division', 'last_name', 'first_name')
        )
