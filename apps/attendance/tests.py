# apps/attendance/tests.py

from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from unittest import mock

from django.contrib import admin
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from openpyxl import Workbook
from rest_framework.test import APIClient

from apps.academics.testing import SchoolFixtureMixin
from apps.core.exceptions import (
    AttendanceNotFound, CalendarMissing, ConcurrencyConflict, InvalidDate,
    InvalidInput, StudentNotFound, Unauthorized,
)

from .dates import coerce_date, normalize_dates, normalize_month, parse_sheet_date
from .importers import parse_presence_sheet, parse_working_days_sheet
from .models import AttendanceRecord, WorkingDayCalendar
from .services import AttendanceService, StaleRecord, WorkingDayService, derive_month_entry

MAY = [date(2025, 5, 1), date(2025, 5, 2), date(2025, 5, 5)]


def workbook_bytes(rows):
    """Serialise rows (lists of cell values) into an .xlsx file."""
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return buffer


class DateNormalisationTestCase(SimpleTestCase):

    def test_month_labels_are_trimmed_and_collapsed(self):
        self.assertEqual(normalize_month('  May   2025 '), 'May 2025')
        with self.assertRaises(InvalidInput):
            normalize_month('   ')
        with self.assertRaises(InvalidInput):
            normalize_month(None)

    def test_coerce_date(self):
        self.assertEqual(coerce_date('2025-05-01'), date(2025, 5, 1))
        self.assertEqual(coerce_date(datetime(2025, 5, 1, 10, 30)), date(2025, 5, 1))
        for bad in ('2025-02-30', '01-05-2025', 45778, None, ''):
            with self.assertRaises(InvalidDate):
                coerce_date(bad)

    def test_normalize_dates_collapses_duplicates(self):
        self.assertEqual(
            normalize_dates(['2025-05-02', date(2025, 5, 1), '2025-05-02']),
            [date(2025, 5, 1), date(2025, 5, 2)]
        )

    def test_parse_sheet_date_representations(self):
        self.assertEqual(parse_sheet_date('01-05-2025'), date(2025, 5, 1))
        self.assertEqual(parse_sheet_date('02/05/2025'), date(2025, 5, 2))
        self.assertEqual(parse_sheet_date('2025-05-05'), date(2025, 5, 5))
        self.assertEqual(parse_sheet_date(datetime(2025, 5, 6)), date(2025, 5, 6))
        self.assertEqual(parse_sheet_date(45658), date(2025, 1, 1))
        self.assertEqual(parse_sheet_date(45779.0), date(2025, 5, 2))
        self.assertEqual(parse_sheet_date('45779'), date(2025, 5, 2))

    def test_parse_sheet_date_rejects_garbage(self):
        for bad in ('holiday', '31-02-2025', True, 0, -5, None):
            with self.assertRaises(InvalidDate):
                parse_sheet_date(bad)

    def test_derive_month_entry(self):
        absent, percentage = derive_month_entry(MAY, [date(2025, 5, 1)])
        self.assertEqual(absent, [date(2025, 5, 2), date(2025, 5, 5)])
        self.assertEqual(percentage, Decimal('33.33'))
        self.assertEqual(derive_month_entry([], [date(2025, 5, 1)])[1], Decimal('0.00'))


class WorkingDayServiceTestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        self.teacher_caller = self.caller_for(self.teacher.user)

    def test_class_teacher_sets_own_class_by_default(self):
        calendar = WorkingDayService.set_working_days(
            self.teacher_caller, None, 'May 2025', ['2025-05-05', '2025-05-01', '2025-05-02', '2025-05-01']
        )

        self.assertEqual(calendar.class_assigned, self.class_5a)
        self.assertEqual(calendar.working_days, ['2025-05-01', '2025-05-02', '2025-05-05'])
        self.assertEqual(calendar.set_by, self.teacher.user)

    def test_set_replaces_wholesale(self):
        WorkingDayService.set_working_days(self.teacher_caller, self.class_5a.pk, 'May 2025', MAY)
        WorkingDayService.set_working_days(self.teacher_caller, self.class_5a.pk, 'May 2025', ['2025-05-09'])

        self.assertEqual(
            WorkingDayService.get_working_days(self.class_5a.pk, 'May 2025'), [date(2025, 5, 9)]
        )
        self.assertEqual(WorkingDayCalendar.objects.count(), 1)

    def test_not_configured_is_distinct_from_empty(self):
        self.assertIsNone(WorkingDayService.get_working_days(self.class_5a.pk, 'May 2025'))

        WorkingDayService.set_working_days(self.teacher_caller, self.class_5a.pk, 'May 2025', [])
        self.assertEqual(WorkingDayService.get_working_days(self.class_5a.pk, 'May 2025'), [])

    def test_only_class_teacher_or_admin_may_set(self):
        with self.assertRaises(Unauthorized):
            WorkingDayService.set_working_days(
                self.caller_for(self.subject_teacher.user), self.class_5a.pk, 'May 2025', MAY
            )
        with self.assertRaises(Unauthorized):
            WorkingDayService.set_working_days(
                self.caller_for(self.subject_teacher.user), None, 'May 2025', MAY
            )
        with self.assertRaises(Unauthorized):
            WorkingDayService.set_working_days(
                self.caller_for(self.parent.user), self.class_5a.pk, 'May 2025', MAY
            )

        WorkingDayService.set_working_days(
            self.caller_for(self.admin_user), self.class_6b.pk, 'May 2025', MAY
        )
        self.assertEqual(WorkingDayService.get_working_days(self.class_6b.pk, 'May 2025'), MAY)

    def test_invalid_dates_write_nothing(self):
        with self.assertRaises(InvalidDate):
            WorkingDayService.set_working_days(
                self.teacher_caller, None, 'May 2025', ['2025-05-01', 'tomorrow']
            )
        self.assertFalse(WorkingDayCalendar.objects.exists())

    def test_get_working_days_checks_caller(self):
        WorkingDayService.set_working_days(self.teacher_caller, None, 'May 2025', MAY)

        self.assertEqual(
            WorkingDayService.get_working_days(
                self.class_5a.pk, 'May 2025', caller=self.caller_for(self.parent.user)
            ),
            MAY
        )
        with self.assertRaises(Unauthorized):
            WorkingDayService.get_working_days(
                self.class_5a.pk, 'May 2025', caller=self.caller_for(self.other_teacher.user)
            )


class AttendanceEngineTestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        self.caller = self.caller_for(self.teacher.user)
        WorkingDayService.set_working_days(self.caller, None, 'May 2025', MAY)

    def submit(self, dates, student=None, month='May 2025'):
        return AttendanceService.submit_presence(
            self.caller, (student or self.student).pk, month, dates
        )

    def test_partial_submissions_accumulate(self):
        record = self.submit(['2025-05-01'])
        self.assertEqual(record.present_dates, ['2025-05-01'])
        self.assertEqual(record.absent_dates, ['2025-05-02', '2025-05-05'])
        self.assertEqual(record.percentage, Decimal('33.33'))

        record = self.submit(['2025-05-02'])
        self.assertEqual(record.present_dates, ['2025-05-01', '2025-05-02'])
        self.assertEqual(record.absent_dates, ['2025-05-05'])
        self.assertEqual(record.percentage, Decimal('66.67'))
        self.assertEqual(AttendanceRecord.objects.filter(student=self.student).count(), 1)

    def test_split_submission_equals_single_submission(self):
        self.submit(['2025-05-01'])
        self.submit([date(2025, 5, 5)])
        split = AttendanceRecord.objects.get(student=self.student)

        self.submit(['2025-05-05', '2025-05-01'], student=self.sibling)
        single = AttendanceRecord.objects.get(student=self.sibling)

        self.assertEqual(split.present_dates, single.present_dates)
        self.assertEqual(split.absent_dates, single.absent_dates)
        self.assertEqual(split.percentage, single.percentage)

    def test_resubmission_is_a_noop(self):
        first = self.submit(['2025-05-01', '2025-05-02'])
        second = self.submit(['2025-05-02', '2025-05-01'])

        self.assertEqual(second.version, first.version)
        self.assertEqual(second.present_dates, first.present_dates)
        self.assertEqual(second.updated_at, first.updated_at)

    def test_derivation_holds_after_every_submission(self):
        for dates in (['2025-05-01'], ['2025-05-05'], ['2025-05-02']):
            record = self.submit(dates)
            present = set(record.present_dates)
            working = {d.isoformat() for d in MAY}
            self.assertEqual(set(record.absent_dates), working - present)
            self.assertEqual(
                record.percentage,
                (Decimal(len(present)) * 100 / len(working)).quantize(Decimal('0.01'))
            )

    def test_missing_calendar_leaves_no_record(self):
        with self.assertRaises(CalendarMissing):
            self.submit(['2025-06-02'], month='June 2025')
        self.assertFalse(AttendanceRecord.objects.exists())

    def test_empty_calendar_counts_as_missing(self):
        WorkingDayService.set_working_days(self.caller, None, 'June 2025', [])
        with self.assertRaises(CalendarMissing):
            self.submit(['2025-06-02'], month='June 2025')

    def test_invalid_date_rejects_whole_submission(self):
        self.submit(['2025-05-01'])
        with self.assertRaises(InvalidDate):
            self.submit(['2025-05-02', '2025-13-01'])

        record = AttendanceRecord.objects.get(student=self.student)
        self.assertEqual(record.present_dates, ['2025-05-01'])

    def test_unknown_student(self):
        with self.assertRaises(StudentNotFound):
            AttendanceService.submit_presence(
                self.caller, '2b1e4a4e-7a49-4e36-9a4c-111111111111', 'May 2025', ['2025-05-01']
            )

    def test_only_class_teacher_or_admin_may_submit(self):
        with self.assertRaises(Unauthorized):
            AttendanceService.submit_presence(
                self.caller_for(self.subject_teacher.user), self.student.pk, 'May 2025', ['2025-05-01']
            )
        with self.assertRaises(Unauthorized):
            AttendanceService.submit_presence(
                self.caller, self.other_student.pk, 'May 2025', ['2025-05-01']
            )

        record = AttendanceService.submit_presence(
            self.caller_for(self.admin_user), self.student.pk, 'May 2025', ['2025-05-01']
        )
        self.assertEqual(record.last_submitted_by, self.admin_user)

    def test_calendar_change_is_picked_up_on_next_submission(self):
        self.submit(['2025-05-01'])
        WorkingDayService.set_working_days(self.caller, None, 'May 2025', MAY + [date(2025, 5, 6)])

        stale = AttendanceRecord.objects.get(student=self.student)
        self.assertEqual(stale.percentage, Decimal('33.33'))

        record = self.submit([])
        self.assertEqual(record.absent_dates, ['2025-05-02', '2025-05-05', '2025-05-06'])
        self.assertEqual(record.percentage, Decimal('25.00'))

    def test_write_bumps_version(self):
        first = self.submit(['2025-05-01'])
        second = self.submit(['2025-05-02'])
        self.assertEqual(second.version, first.version + 1)

    def test_lost_race_is_retried(self):
        merge = AttendanceService._merge
        calls = []

        def flaky_merge(*args):
            calls.append(args)
            if len(calls) == 1:
                raise StaleRecord()
            return merge(*args)

        with mock.patch.object(AttendanceService, '_merge', side_effect=flaky_merge):
            record = self.submit(['2025-05-01'])

        self.assertEqual(len(calls), 2)
        self.assertEqual(record.present_dates, ['2025-05-01'])

    @override_settings(ATTENDANCE_MAX_MERGE_RETRIES=2)
    def test_conflict_surfaces_after_retries(self):
        with mock.patch.object(AttendanceService, '_merge', side_effect=StaleRecord()) as merge:
            with self.assertRaises(ConcurrencyConflict):
                self.submit(['2025-05-01'])
        self.assertEqual(merge.call_count, 2)

    def test_conditional_update_detects_moved_version(self):
        record = self.submit(['2025-05-01'])
        AttendanceRecord.objects.filter(pk=record.pk).update(version=record.version + 5)
        stale_copy = AttendanceRecord.objects.get(pk=record.pk)
        stale_copy.version = record.version

        queryset = mock.MagicMock()
        queryset.filter.return_value.first.return_value = stale_copy
        with mock.patch.object(AttendanceRecord.objects, 'select_for_update', return_value=queryset):
            with self.assertRaises(StaleRecord):
                AttendanceService._merge(self.caller, self.student, 'May 2025', MAY, [date(2025, 5, 2)])

        self.assertEqual(
            AttendanceRecord.objects.get(pk=record.pk).present_dates, ['2025-05-01']
        )


class AttendanceLookupTestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        caller = self.caller_for(self.teacher.user)
        WorkingDayService.set_working_days(caller, None, 'May 2025', MAY)
        WorkingDayService.set_working_days(caller, None, 'June 2025', ['2025-06-02'])
        AttendanceService.submit_presence(caller, self.student.pk, 'May 2025', ['2025-05-01'])
        AttendanceService.submit_presence(caller, self.student.pk, 'June 2025', ['2025-06-02'])

    def test_guardian_reads_single_month(self):
        student, record = AttendanceService.get_attendance(
            self.caller_for(self.parent.user), self.student.pk, ' May  2025'
        )
        self.assertEqual(student, self.student)
        self.assertEqual(record.percentage, Decimal('33.33'))

    def test_subject_teacher_reads_all_months(self):
        _, records = AttendanceService.get_attendance(
            self.caller_for(self.subject_teacher.user), self.student.pk
        )
        self.assertEqual([r.month for r in records], ['May 2025', 'June 2025'])

    def test_other_parent_and_teacher_are_rejected(self):
        for user in (self.other_parent.user, self.other_teacher.user):
            with self.assertRaises(Unauthorized):
                AttendanceService.get_attendance(self.caller_for(user), self.student.pk)

    def test_missing_month(self):
        with self.assertRaises(AttendanceNotFound):
            AttendanceService.get_attendance(self.caller_for(self.admin_user), self.student.pk, 'July 2025')

    def test_soft_deleted_record_is_revived_by_next_submission(self):
        AttendanceRecord.objects.get(student=self.student, month='May 2025').delete()
        guardian = self.caller_for(self.parent.user)
        with self.assertRaises(AttendanceNotFound):
            AttendanceService.get_attendance(guardian, self.student.pk, 'May 2025')

        AttendanceService.submit_presence(
            self.caller_for(self.teacher.user), self.student.pk, 'May 2025', ['2025-05-01']
        )

        _, record = AttendanceService.get_attendance(guardian, self.student.pk, 'May 2025')
        self.assertFalse(record.is_deleted)
        self.assertEqual(record.present_dates, ['2025-05-01'])
        self.assertEqual(record.version, 2)
        self.assertEqual(AttendanceRecord.objects.filter(student=self.student).count(), 2)

    def test_admin_cannot_delete_records(self):
        request = RequestFactory().get('/admin/attendance/attendancerecord/')
        request.user = self.admin_user
        record_admin = admin.site._registry[AttendanceRecord]

        self.assertFalse(record_admin.has_delete_permission(request))
        self.assertNotIn('delete_selected', record_admin.get_actions(request))


class ImporterTestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        self.caller = self.caller_for(self.teacher.user)

    def test_working_days_sheet_with_mixed_representations(self):
        sheet = workbook_bytes([
            ['month', 'month', 'notes'],
            ['May 2025', 'June 2025', 'ignored'],
            ['workingDays', 'workingDays', 'free text'],
            ['01-05-2025', '02/06/2025', 'anything'],
            [45779, datetime(2025, 6, 3), None],
            [datetime(2025, 5, 5), None, None],
            ['01-05-2025', None, None],
        ])

        columns = parse_working_days_sheet(sheet)

        self.assertEqual([c.month for c in columns], ['May 2025', 'June 2025'])
        self.assertEqual(columns[0].dates, MAY)
        self.assertEqual(columns[1].dates, [date(2025, 6, 2), date(2025, 6, 3)])

    def test_bad_value_rejects_whole_working_days_import(self):
        sheet = workbook_bytes([
            ['month', 'month'],
            ['May 2025', 'June 2025'],
            ['workingDays', 'workingDays'],
            ['01-05-2025', '02-06-2025'],
            ['02-05-2025', 'holiday'],
        ])

        with self.assertRaises(InvalidDate):
            WorkingDayService.import_working_days(self.caller, None, sheet)
        self.assertFalse(WorkingDayCalendar.objects.exists())

    def test_working_days_import_applies_each_month(self):
        sheet = workbook_bytes([
            ['month', 'month'],
            ['May 2025', 'June 2025'],
            ['workingDays', 'workingDays'],
            ['01-05-2025', '02-06-2025'],
            ['02-05-2025', None],
        ])

        months = WorkingDayService.import_working_days(self.caller, None, sheet)

        self.assertEqual(months, [
            {'month': 'May 2025', 'working_days': 2},
            {'month': 'June 2025', 'working_days': 1},
        ])
        self.assertEqual(
            WorkingDayService.get_working_days(self.class_5a.pk, 'June 2025'), [date(2025, 6, 2)]
        )

    def test_short_or_unusable_sheet(self):
        with self.assertRaises(InvalidInput):
            parse_working_days_sheet(workbook_bytes([['month'], ['May 2025']]))
        with self.assertRaises(InvalidInput):
            parse_working_days_sheet(workbook_bytes([
                ['month'], ['May 2025'], ['days'], ['01-05-2025'],
            ]))
        with self.assertRaises(InvalidInput):
            parse_working_days_sheet(BytesIO(b'not a spreadsheet'))

    def test_presence_import_reports_per_column(self):
        WorkingDayService.set_working_days(self.caller, None, 'May 2025', MAY)
        sheet = workbook_bytes([
            ['studentId', 'studentId', 'studentId', 'studentId', 'studentId'],
            ['S001', str(self.sibling.pk), 'S003', 'S999', 'S001'],
            ['month', 'month', 'month', 'month', 'month'],
            ['May 2025', 'May 2025', 'May 2025', 'May 2025', 'June 2025'],
            ['presentDates'] * 5,
            ['2025-05-01', '2025-05-01', '2025-05-01', '2025-05-01', '2025-06-02'],
            [45779, 'soon', None, None, None],
        ])

        results = AttendanceService.import_presence(self.caller, sheet)
        by_column = {r['column']: r for r in results}

        self.assertTrue(by_column[1]['success'])
        self.assertEqual(by_column[1]['percentage'], '66.67')
        self.assertEqual(by_column[2]['error']['code'], 'invalid_date')
        self.assertEqual(by_column[3]['error']['code'], 'unauthorized')
        self.assertEqual(by_column[4]['error']['code'], 'student_not_found')
        self.assertEqual(by_column[5]['error']['code'], 'calendar_missing')

        record = AttendanceRecord.objects.get(student=self.student)
        self.assertEqual(record.present_dates, ['2025-05-01', '2025-05-02'])
        self.assertFalse(AttendanceRecord.objects.filter(student=self.sibling).exists())

    def test_presence_sheet_skips_empty_student_columns(self):
        sheet = workbook_bytes([
            ['studentId', None, 'studentId'],
            ['S001', None, 'S002'],
            ['month', None, 'month'],
            ['May 2025', None, ''],
            ['presentDates', None, 'presentDates'],
            ['2025-05-01', None, '2025-05-01'],
        ])

        columns = parse_presence_sheet(sheet)

        self.assertEqual([c.student_ref for c in columns], ['S001', 'S002'])
        self.assertEqual(columns[0].dates, [date(2025, 5, 1)])
        self.assertIsInstance(columns[1].error, InvalidInput)


class AttendanceAPITestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        self.client = APIClient()
        self.client.force_authenticate(self.teacher.user)

    def set_may(self):
        return self.client.post(reverse('attendance:working_days'), {
            'month': 'May 2025',
            'dates': ['2025-05-01', '2025-05-02', '2025-05-05'],
        }, format='json')

    def test_set_and_get_working_days(self):
        response = self.set_may()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['calendar']['class_label'], '5-A')

        response = self.client.get(reverse('attendance:working_days'), {
            'class_id': str(self.class_5a.pk), 'month': 'May 2025'
        })
        self.assertTrue(response.data['configured'])
        self.assertEqual(response.data['working_days'], ['2025-05-01', '2025-05-02', '2025-05-05'])

        response = self.client.get(reverse('attendance:working_days'), {
            'class_id': str(self.class_5a.pk), 'month': 'June 2025'
        })
        self.assertFalse(response.data['configured'])
        self.assertIsNone(response.data['working_days'])

    def test_submit_presence_and_read_back(self):
        self.set_may()
        response = self.client.post(reverse('attendance:presence'), {
            'student_id': str(self.student.pk), 'month': 'May 2025', 'dates': ['2025-05-01'],
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['attendance']['percentage'], '33.33')

        self.client.force_authenticate(self.parent.user)
        response = self.client.get(
            reverse('attendance:student_attendance', kwargs={'pk': self.student.pk}),
            {'month': 'May 2025'}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['attendance']['absent_dates'], ['2025-05-02', '2025-05-05'])

    def test_error_envelope(self):
        response = self.client.post(reverse('attendance:presence'), {
            'student_id': str(self.student.pk), 'month': 'May 2025', 'dates': ['2025-05-01'],
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {
            'success': False,
            'error': {'code': 'calendar_missing', 'message': response.data['error']['message']},
        })

        self.set_may()
        response = self.client.post(reverse('attendance:presence'), {
            'student_id': str(self.student.pk), 'month': 'May 2025', 'dates': ['01/05/2025'],
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'invalid_date')

        response = self.client.post(reverse('attendance:presence'), {
            'student_id': str(self.student.pk), 'month': '  ', 'dates': [],
        }, format='json')
        self.assertEqual(response.data['error']['code'], 'invalid_input')

        self.client.force_authenticate(self.parent.user)
        response = self.client.get(
            reverse('attendance:student_attendance', kwargs={'pk': self.student.pk}),
            {'month': 'May 2025'}
        )
        self.assertEqual(response.status_code, 404)

    def test_upload_presence_sheet(self):
        self.set_may()
        upload = SimpleUploadedFile(
            'presence.xlsx',
            workbook_bytes([
                ['studentId'], ['S001'], ['month'], ['May 2025'], ['presentDates'], ['01-05-2025'],
            ]).getvalue(),
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )

        response = self.client.post(
            reverse('attendance:presence_import'), {'file': upload}, format='multipart'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['applied'], 1)
        self.assertEqual(response.data['results'][0]['percentage'], '33.33')
