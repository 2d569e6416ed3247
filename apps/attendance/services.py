# apps/attendance/services.py
"""
Working-day calendars and the attendance reconciliation engine.

Presence submissions merge into the stored month entry (set union of
present dates) and re-derive the absent dates and percentage from the
class's working-day calendar every time.
"""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.academics.models import Student
from apps.academics.services import RosterService
from apps.core.exceptions import (
    AttendanceNotFound, CalendarMissing, ConcurrencyConflict, InvalidInput,
    SchoolCoreError, StudentNotFound, Unauthorized,
)

from .dates import from_iso_list, normalize_dates, normalize_month, to_iso_list
from .importers import parse_presence_sheet, parse_working_days_sheet
from .models import AttendanceRecord, WorkingDayCalendar

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def derive_month_entry(working_days, present_dates):
    """
    Absent dates and percentage for a set of present dates.

    Returns ``(absent, percentage)``; percentage is 0 without working days.
    """
    present = set(present_dates)
    absent = sorted(set(working_days) - present)
    if not working_days:
        return absent, Decimal('0.00')
    percentage = (Decimal(len(present)) * 100 / Decimal(len(set(working_days))))
    return absent, percentage.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class StaleRecord(Exception):
    """The record version moved between read and conditional write."""


class WorkingDayService:
    """
    Service class for the per-class, per-month working-day calendars.
    """

    @staticmethod
    def resolve_class_for_update(caller, class_id=None):
        """
        The class whose calendar the caller may replace. Teachers default
        to their own homeroom class.
        """
        if class_id in (None, ''):
            if not caller.is_teacher:
                raise InvalidInput("class_id is required.")
            homeroom = caller.teacher.homeroom_classes.filter(is_deleted=False).first()
            if homeroom is None:
                raise Unauthorized("Only a class teacher can set working days.")
            return homeroom

        class_obj = RosterService.get_class(class_id)
        if caller.is_admin or (caller.is_teacher and caller.teacher.is_class_teacher_of(class_obj)):
            return class_obj
        raise Unauthorized("Only the class teacher can set working days for this class.")

    @staticmethod
    def set_working_days(caller, class_id, month, dates):
        """
        Replace the working days of a class for a month.

        Existing attendance records are left as they are; they are
        re-derived on their next submission.
        """
        class_obj = WorkingDayService.resolve_class_for_update(caller, class_id)
        month = normalize_month(month)
        working_days = normalize_dates(dates)

        calendar, created = WorkingDayCalendar.objects.update_or_create(
            class_assigned=class_obj,
            month=month,
            defaults={'working_days': to_iso_list(working_days), 'set_by': caller.user},
        )
        logger.info(
            "Working days %s for class %s, %s: %d days (by %s)",
            'created' if created else 'replaced', class_obj.label, month,
            len(working_days), caller.user_id
        )
        return calendar

    @staticmethod
    def get_working_days(class_id, month, caller=None):
        """
        Sorted working days, or ``None`` when the month is not configured.
        """
        class_obj = RosterService.get_class(class_id)
        if caller is not None and not (
            caller.is_admin
            or (caller.is_teacher and caller.teacher.teaches(class_obj))
            or (caller.is_parent and caller.parent.children.filter(current_class=class_obj, is_deleted=False).exists())
        ):
            raise Unauthorized("You are not assigned to this class.")

        calendar = WorkingDayCalendar.objects.filter(
            class_assigned=class_obj, month=normalize_month(month), is_deleted=False
        ).first()
        return calendar.dates if calendar is not None else None

    @staticmethod
    def import_working_days(caller, class_id, workbook_file):
        """
        Apply every month column of a working-days sheet. A bad date in any
        month column rejects the whole import.
        """
        class_obj = WorkingDayService.resolve_class_for_update(caller, class_id)
        columns = parse_working_days_sheet(workbook_file)

        with transaction.atomic():
            for column in columns:
                WorkingDayCalendar.objects.update_or_create(
                    class_assigned=class_obj,
                    month=column.month,
                    defaults={'working_days': to_iso_list(column.dates), 'set_by': caller.user},
                )

        logger.info(
            "Imported working days for class %s: %s",
            class_obj.label, ', '.join(c.month for c in columns)
        )
        return [{'month': c.month, 'working_days': len(c.dates)} for c in columns]


class AttendanceService:
    """
    Service class for presence submission and attendance lookups.
    """

    @staticmethod
    def submit_presence(caller, student_id, month, dates):
        """
        Merge ``dates`` into the student's month entry and re-derive it.

        Raises StudentNotFound, Unauthorized, CalendarMissing, InvalidDate
        or ConcurrencyConflict. Nothing is written when any date is invalid.
        """
        student = RosterService.get_student(student_id)
        if not (caller.is_admin or (caller.is_teacher and caller.teacher.is_class_teacher_of(student.current_class))):
            raise Unauthorized("Only the class teacher can submit attendance for this student.")

        month = normalize_month(month)
        calendar = WorkingDayCalendar.objects.filter(
            class_assigned=student.current_class_id, month=month, is_deleted=False
        ).first()
        if calendar is None or not calendar.working_days:
            raise CalendarMissing(
                f"Working days are not configured for {student.current_class.label}, {month}."
            )

        submitted = normalize_dates(dates)
        working_days = calendar.dates

        max_retries = getattr(settings, 'ATTENDANCE_MAX_MERGE_RETRIES', 3)
        for attempt in range(1, max_retries + 1):
            try:
                record = AttendanceService._merge(caller, student, month, working_days, submitted)
            except (StaleRecord, IntegrityError):
                logger.info(
                    "Attendance merge for %s, %s lost a race (attempt %d/%d)",
                    student.admission_number, month, attempt, max_retries
                )
                continue

            logger.info(
                "Attendance merged for %s, %s: %d present, %s%%",
                student.admission_number, month, len(record.present_dates), record.percentage
            )
            return record

        logger.warning(
            "Attendance merge for %s, %s gave up after %d attempts",
            student.admission_number, month, max_retries
        )
        raise ConcurrencyConflict()

    @staticmethod
    def _merge(caller, student, month, working_days, submitted):
        with transaction.atomic():
            record = (
                AttendanceRecord.objects.select_for_update()
                .filter(student=student, month=month)
                .first()
            )

            if record is None:
                absent, percentage = derive_month_entry(working_days, submitted)
                return AttendanceRecord.objects.create(
                    student=student,
                    month=month,
                    present_dates=to_iso_list(submitted),
                    absent_dates=to_iso_list(absent),
                    percentage=percentage,
                    last_submitted_by=caller.user,
                )

            merged = set(from_iso_list(record.present_dates)) | set(submitted)
            absent, percentage = derive_month_entry(working_days, merged)
            values = {
                'present_dates': to_iso_list(merged),
                'absent_dates': to_iso_list(absent),
                'percentage': percentage,
            }
            # Records are never deleted; a soft-deleted row is brought back by the next write.
            if (
                not record.is_deleted
                and values['present_dates'] == record.present_dates
                and values['absent_dates'] == record.absent_dates
                and percentage == record.percentage
            ):
                return record

            updated = AttendanceRecord.objects.filter(pk=record.pk, version=record.version).update(
                version=F('version') + 1,
                last_submitted_by=caller.user,
                updated_at=timezone.now(),
                is_deleted=False,
                deleted_at=None,
                **values
            )
            if not updated:
                raise StaleRecord()

            record.refresh_from_db()
            return record

    @staticmethod
    def get_attendance(caller, student_id, month=None):
        """
        One month entry, or every month entry of the student when no month
        is given.
        """
        student = RosterService.get_student(student_id)
        if not RosterService.can_view_student(caller, student):
            raise Unauthorized("You are not allowed to view this student's attendance.")

        records = AttendanceRecord.objects.filter(student=student, is_deleted=False)
        if month is None:
            return student, list(records.order_by('created_at'))

        month = normalize_month(month)
        record = records.filter(month=month).first()
        if record is None:
            raise AttendanceNotFound(f"No attendance for {student.full_name} in {month}.")
        return student, record

    @staticmethod
    def resolve_student_ref(ref):
        """A sheet cell may hold the student's id or admission number."""
        try:
            return RosterService.get_student(uuid.UUID(str(ref)))
        except (ValueError, StudentNotFound):
            pass
        student = Student.objects.filter(admission_number=ref, is_deleted=False).first()
        if student is None:
            raise StudentNotFound(f"No student with id or admission number {ref}.")
        return student

    @staticmethod
    def import_presence(caller, workbook_file):
        """
        Run every column of a presence sheet through ``submit_presence``.
        Failed columns are reported and do not stop the others.
        """
        results = []
        for column in parse_presence_sheet(workbook_file):
            result = {'column': column.column, 'student_id': column.student_ref, 'month': column.month}
            try:
                if column.error is not None:
                    raise column.error
                student = AttendanceService.resolve_student_ref(column.student_ref)
                record = AttendanceService.submit_presence(caller, student.pk, column.month, column.dates)
            except SchoolCoreError as e:
                result.update(success=False, error=e.as_dict())
            else:
                result.update(
                    success=True,
                    student_name=student.full_name,
                    present_days=len(record.present_dates),
                    absent_days=len(record.absent_dates),
                    percentage=str(record.percentage),
                )
            results.append(result)

        succeeded = sum(1 for r in results if r['success'])
        logger.info(
            "Presence import by %s: %d of %d columns applied",
            caller.user_id, succeeded, len(results)
        )
        return results
