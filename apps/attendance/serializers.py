from rest_framework import serializers

from .models import AttendanceRecord, WorkingDayCalendar


class WorkingDaysInputSerializer(serializers.Serializer):
    class_id = serializers.UUIDField(required=False, allow_null=True)
    month = serializers.CharField(allow_blank=True, trim_whitespace=False)
    # Raw values; the service reports bad dates as invalid_date.
    dates = serializers.ListField(allow_empty=True)


class PresenceInputSerializer(serializers.Serializer):
    student_id = serializers.CharField()
    month = serializers.CharField(allow_blank=True, trim_whitespace=False)
    dates = serializers.ListField(allow_empty=True)


class WorkingDaysImportSerializer(serializers.Serializer):
    class_id = serializers.UUIDField(required=False, allow_null=True)
    file = serializers.FileField()


class PresenceImportSerializer(serializers.Serializer):
    file = serializers.FileField()


class WorkingDayCalendarSerializer(serializers.ModelSerializer):
    class_id = serializers.UUIDField(source='class_assigned_id', read_only=True)
    class_label = serializers.CharField(source='class_assigned.label', read_only=True)

    class Meta:
        model = WorkingDayCalendar
        fields = ['class_id', 'class_label', 'month', 'working_days', 'updated_at']


class AttendanceRecordSerializer(serializers.ModelSerializer):

    class Meta:
        model = AttendanceRecord
        fields = ['month', 'present_dates', 'absent_dates', 'percentage', 'version', 'updated_at']
