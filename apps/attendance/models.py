# apps/attendance/models.py

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.models import CoreBaseModel

from .dates import from_iso_list


class WorkingDayCalendar(CoreBaseModel):
    """
    Working days of one class for one month label ("May 2025").
    A missing row means the month is not configured.
    """
    class_assigned = models.ForeignKey(
        'academics.Class',
        on_delete=models.CASCADE,
        related_name='working_day_calendars',
        verbose_name=_('class')
    )
    month = models.CharField(_('month'), max_length=20)
    working_days = models.JSONField(
        _('working days'),
        default=list,
        help_text=_('Sorted ISO dates (YYYY-MM-DD)')
    )
    set_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('set by')
    )

    class Meta:
        verbose_name = _('Working Day Calendar')
        verbose_name_plural = _('Working Day Calendars')
        unique_together = ['class_assigned', 'month']
        ordering = ['class_assigned', 'month']

    def __str__(self):
        return f"{self.class_assigned} - {self.month} ({len(self.working_days)} days)"

    @property
    def dates(self):
        return from_iso_list(self.working_days)


class AttendanceRecord(CoreBaseModel):
    """
    Month entry of a student's attendance. Absent dates and percentage are
    always derived from the present dates and the working-day calendar.
    """
    student = models.ForeignKey(
        'academics.Student',
        on_delete=models.CASCADE,
        related_name='monthly_attendance',
        verbose_name=_('student')
    )
    month = models.CharField(_('month'), max_length=20)
    present_dates = models.JSONField(_('present dates'), default=list)
    absent_dates = models.JSONField(_('absent dates'), default=list)
    # Present dates outside the calendar still count, so this can exceed 100.
    percentage = models.DecimalField(
        _('attendance percentage'),
        max_digits=7,
        decimal_places=2,
        default=Decimal('0.00')
    )
    version = models.PositiveIntegerField(_('version'), default=1)
    last_submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('last submitted by')
    )

    class Meta:
        verbose_name = _('Attendance Record')
        verbose_name_plural = _('Attendance Records')
        unique_together = ['student', 'month']
        ordering = ['student', 'created_at']

    def __str__(self):
        return f"{self.student} - {self.month} - {self.percentage}%"
