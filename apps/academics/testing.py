# apps/academics/testing.py
"""
School fixture shared by the test suites of the academics, attendance and
communication apps.
"""

from django.contrib.auth import get_user_model

from apps.core.context import Caller

from .models import Class, ParentGuardian, Student, SubjectAssignment, Teacher

User = get_user_model()


class SchoolFixtureMixin:
    """
    Builds a small school:

    - 5-A with class teacher ``teacher`` and maths teacher ``subject_teacher``
    - 6-B with class teacher ``other_teacher``
    - ``student`` (5-A, guardian ``parent``), ``sibling`` (5-A, no guardian)
    - ``other_student`` (6-B, guardian ``other_parent``)
    - ``admin_user`` (staff) and ``stranger`` (no role)
    """
    password = 'testpass123'

    def create_school(self):
        self.admin_user = User.objects.create_user(
            email='admin@example.com', password=self.password, is_staff=True
        )
        self.stranger = User.objects.create_user(email='stranger@example.com', password=self.password)

        self.teacher = self.make_teacher('teacher@example.com', 'T001', 'Asha', 'Nair')
        self.subject_teacher = self.make_teacher('maths@example.com', 'T002', 'Ravi', 'Menon')
        self.other_teacher = self.make_teacher('other@example.com', 'T003', 'Lena', 'Joseph')

        self.class_5a = Class.objects.create(name='5', division='A', class_teacher=self.teacher)
        self.class_6b = Class.objects.create(name='6', division='B', class_teacher=self.other_teacher)
        SubjectAssignment.objects.create(
            teacher=self.subject_teacher, subject='Mathematics', class_assigned=self.class_5a
        )

        self.parent = self.make_parent('parent@example.com', 'Maya', 'Das')
        self.other_parent = self.make_parent('parent2@example.com', 'John', 'Paul')

        self.student = Student.objects.create(
            admission_number='S001', first_name='Anu', last_name='Das',
            current_class=self.class_5a, guardian=self.parent
        )
        self.sibling = Student.objects.create(
            admission_number='S002', first_name='Binu', last_name='Das',
            current_class=self.class_5a
        )
        self.other_student = Student.objects.create(
            admission_number='S003', first_name='Tom', last_name='Paul',
            current_class=self.class_6b, guardian=self.other_parent
        )

    def make_teacher(self, email, teacher_id, first_name, last_name):
        user = User.objects.create_user(
            email=email, password=self.password, first_name=first_name, last_name=last_name
        )
        return Teacher.objects.create(user=user, teacher_id=teacher_id)

    def make_parent(self, email, first_name, last_name):
        user = User.objects.create_user(
            email=email, password=self.password, first_name=first_name, last_name=last_name
        )
        return ParentGuardian.objects.create(user=user, first_name=first_name, last_name=last_name)

    @staticmethod
    def caller_for(user):
        # Reload so cached reverse one-to-one lookups reflect the database.
        return Caller.from_user(User.objects.get(pk=user.pk))
