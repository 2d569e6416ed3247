# apps/attendance/views.py

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import InvalidInput
from apps.core.mixins import CallerMixin, success_response_data

from .dates import to_iso_list
from .serializers import (
    AttendanceRecordSerializer, PresenceImportSerializer, PresenceInputSerializer,
    WorkingDayCalendarSerializer, WorkingDaysImportSerializer, WorkingDaysInputSerializer,
)
from .services import AttendanceService, WorkingDayService


class WorkingDaysAPIView(CallerMixin, APIView):
    """
    GET the working days of a class and month; POST to replace them.
    """

    def get(self, request):
        class_id = request.query_params.get('class_id')
        month = request.query_params.get('month')
        if not class_id or month is None:
            raise InvalidInput("class_id and month are required.")

        working_days = WorkingDayService.get_working_days(class_id, month, caller=self.caller)
        return Response(success_response_data(
            class_id=class_id,
            month=month,
            configured=working_days is not None,
            working_days=to_iso_list(working_days) if working_days is not None else None,
        ))

    def post(self, request):
        serializer = WorkingDaysInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        calendar = WorkingDayService.set_working_days(
            self.caller, data.get('class_id'), data['month'], data['dates']
        )
        return Response(
            success_response_data(calendar=WorkingDayCalendarSerializer(calendar).data),
            status=status.HTTP_200_OK
        )


class WorkingDaysImportAPIView(CallerMixin, APIView):

    def post(self, request):
        serializer = WorkingDaysImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        months = WorkingDayService.import_working_days(
            self.caller, serializer.validated_data.get('class_id'), serializer.validated_data['file']
        )
        return Response(success_response_data(months=months))


class PresenceAPIView(CallerMixin, APIView):
    """
    Merge present dates into a student's month entry.
    """

    def post(self, request):
        serializer = PresenceInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        record = AttendanceService.submit_presence(
            self.caller, data['student_id'], data['month'], data['dates']
        )
        return Response(success_response_data(attendance=AttendanceRecordSerializer(record).data))


class PresenceImportAPIView(CallerMixin, APIView):

    def post(self, request):
        serializer = PresenceImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        results = AttendanceService.import_presence(self.caller, serializer.validated_data['file'])
        return Response(success_response_data(
            total_records=len(results),
            applied=sum(1 for r in results if r['success']),
            results=results,
        ))


class StudentAttendanceAPIView(CallerMixin, APIView):
    """
    Attendance of one student, for one month (``?month=``) or all months.
    """

    def get(self, request, pk):
        month = request.query_params.get('month')
        student, result = AttendanceService.get_attendance(self.caller, pk, month)

        payload = {'student_id': str(student.pk), 'student_name': student.full_name}
        if month is None:
            payload['attendance'] = AttendanceRecordSerializer(result, many=True).data
        else:
            payload['attendance'] = AttendanceRecordSerializer(result).data
        return Response(success_response_data(**payload))
