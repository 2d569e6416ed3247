# apps/academics/tests.py

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from apps.core.context import Caller, Role
from apps.core.exceptions import ClassNotFound, StudentNotFound, Unauthorized

from .services import RosterService
from .testing import SchoolFixtureMixin


class RoleResolutionTestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()

    def test_roles(self):
        self.assertEqual(self.caller_for(self.teacher.user).role, Role.TEACHER)
        self.assertEqual(self.caller_for(self.parent.user).role, Role.PARENT)
        self.assertEqual(self.caller_for(self.admin_user).role, Role.ADMIN)

    def test_user_without_role_is_rejected(self):
        with self.assertRaises(Unauthorized):
            Caller.from_user(self.stranger)

    def test_teacher_assignment(self):
        self.assertTrue(self.teacher.teaches(self.class_5a))
        self.assertTrue(self.subject_teacher.teaches(self.class_5a))
        self.assertFalse(self.subject_teacher.is_class_teacher_of(self.class_5a))
        self.assertFalse(self.other_teacher.teaches(self.class_5a))
        self.assertEqual(list(self.subject_teacher.assigned_classes()), [self.class_5a])
        self.assertEqual(
            list(self.class_5a.subject_assignments.values_list('teacher', flat=True)),
            [self.subject_teacher.pk]
        )

    def test_removed_assignment_no_longer_counts(self):
        self.subject_teacher.subject_assignments.get().delete()

        self.assertFalse(self.subject_teacher.teaches(self.class_5a))
        self.assertEqual(list(self.subject_teacher.assigned_classes()), [])

    def test_removed_class_no_longer_counts(self):
        self.class_5a.delete()

        self.assertFalse(self.teacher.teaches(self.class_5a))
        self.assertFalse(self.teacher.is_class_teacher_of(self.class_5a))
        self.assertEqual(list(self.teacher.assigned_classes()), [])

    def test_removed_profile_grants_no_role(self):
        self.parent.delete()
        self.teacher.delete()

        for user in (self.parent.user, self.teacher.user):
            with self.assertRaises(Unauthorized):
                self.caller_for(user)
        self.assertFalse(self.student.is_child_of(self.parent))


class RosterServiceTestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()

    def test_get_student_unknown_or_malformed_id(self):
        with self.assertRaises(StudentNotFound):
            RosterService.get_student('not-a-uuid')
        with self.assertRaises(StudentNotFound):
            RosterService.get_student('2b1e4a4e-7a49-4e36-9a4c-111111111111')

    def test_class_students_for_assigned_teacher(self):
        class_obj, students = RosterService.class_students(
            self.caller_for(self.subject_teacher.user), self.class_5a.pk
        )
        self.assertEqual(class_obj, self.class_5a)
        self.assertEqual({s.pk for s in students}, {self.student.pk, self.sibling.pk})

    def test_class_students_rejects_other_teacher_and_parents(self):
        with self.assertRaises(Unauthorized):
            RosterService.class_students(self.caller_for(self.other_teacher.user), self.class_5a.pk)
        with self.assertRaises(Unauthorized):
            RosterService.class_students(self.caller_for(self.parent.user), self.class_5a.pk)

    def test_unknown_class(self):
        with self.assertRaises(ClassNotFound):
            RosterService.class_students(
                self.caller_for(self.admin_user), '2b1e4a4e-7a49-4e36-9a4c-111111111111'
            )

    def test_can_view_student(self):
        self.assertTrue(RosterService.can_view_student(self.caller_for(self.parent.user), self.student))
        self.assertFalse(RosterService.can_view_student(self.caller_for(self.parent.user), self.sibling))
        self.assertTrue(RosterService.can_view_student(self.caller_for(self.admin_user), self.other_student))
        self.assertFalse(RosterService.can_view_student(self.caller_for(self.teacher.user), self.other_student))


class ClassStudentsAPITestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        self.client = APIClient()
        self.url = reverse('academics:class_students', kwargs={'pk': self.class_5a.pk})

    def test_teacher_lists_roster_with_guardians(self):
        self.client.force_authenticate(self.teacher.user)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['class_info']['label'], '5-A')
        by_admission = {s['admission_number']: s for s in response.data['students']}
        self.assertEqual(by_admission['S001']['guardian']['email'], 'parent@example.com')
        self.assertIsNone(by_admission['S002']['guardian'])

    def test_other_teacher_is_forbidden(self):
        self.client.force_authenticate(self.other_teacher.user)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'unauthorized')

    def test_user_without_role_is_forbidden(self):
        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.client.get(self.url).status_code, 403)

    def test_anonymous_is_rejected(self):
        self.assertIn(self.client.get(self.url).status_code, (401, 403))
