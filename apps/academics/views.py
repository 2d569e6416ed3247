from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.mixins import CallerMixin, success_response_data

from .serializers import ClassSerializer, RosterStudentSerializer
from .services import RosterService


class ClassStudentsAPIView(CallerMixin, APIView):
    """
    Students of a class with guardian contact details.
    """

    def get(self, request, pk):
        class_obj, students = RosterService.class_students(self.caller, pk)
        return Response(success_response_data(
            class_info=ClassSerializer(class_obj).data,
            students=RosterStudentSerializer(students, many=True).data,
        ))
