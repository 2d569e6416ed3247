# apps/attendance/admin.py

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from apps.core.context import Caller
from apps.core.exceptions import SchoolCoreError

from .models import AttendanceRecord, WorkingDayCalendar
from .services import AttendanceService


@admin.register(WorkingDayCalendar)
class WorkingDayCalendarAdmin(admin.ModelAdmin):
    list_display = ['class_assigned', 'month', 'day_count', 'set_by', 'updated_at']
    list_filter = ['class_assigned', 'month']
    search_fields = ['month', 'class_assigned__name', 'class_assigned__division']
    readonly_fields = ['set_by', 'created_at', 'updated_at']
    raw_id_fields = ['class_assigned']

    def day_count(self, obj):
        return len(obj.working_days)
    day_count.short_description = _('Working days')


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = [
        'student', 'month', 'percentage', 'present_count', 'absent_count',
        'version', 'last_submitted_by', 'updated_at'
    ]
    list_filter = ['month', 'student__current_class']
    search_fields = [
        'student__first_name', 'student__last_name', 'student__admission_number', 'month'
    ]
    # Derived fields are only written by the reconciliation engine.
    readonly_fields = [
        'student', 'month', 'present_dates', 'absent_dates', 'percentage',
        'version', 'last_submitted_by', 'created_at', 'updated_at'
    ]

    fieldsets = (
        (_('Student Information'), {
            'fields': ('student', 'month')
        }),
        (_('Attendance'), {
            'fields': ('present_dates', 'absent_dates', 'percentage')
        }),
        (_('Audit'), {
            'fields': ('version', 'last_submitted_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).select_related(
            'student', 'student__current_class', 'last_submitted_by'
        )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop('delete_selected', None)
        return actions

    def present_count(self, obj):
        return len(obj.present_dates)
    present_count.short_description = _('Present')

    def absent_count(self, obj):
        return len(obj.absent_dates)
    absent_count.short_description = _('Absent')


def rederive_selected(modeladmin, request, queryset):
    """Re-derive absent dates and percentage from the current calendars."""
    caller = Caller.from_user(request.user)
    updated = 0
    for record in queryset:
        try:
            AttendanceService.submit_presence(caller, record.student_id, record.month, [])
        except SchoolCoreError as e:
            modeladmin.message_user(
                request, f"{record}: {e.message}", level=messages.WARNING
            )
        else:
            updated += 1
    modeladmin.message_user(
        request,
        _('Re-derived %d attendance records.') % updated
    )
rederive_selected.short_description = _('Re-derive from working days')


AttendanceRecordAdmin.actions = [rederive_selected]
