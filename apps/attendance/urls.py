from django.urls import path
from . import views

app_name = 'attendance'

urlpatterns = [
    path('working-days/', views.WorkingDaysAPIView.as_view(), name='working_days'),
    path('working-days/import/', views.WorkingDaysImportAPIView.as_view(), name='working_days_import'),
    path('presence/', views.PresenceAPIView.as_view(), name='presence'),
    path('presence/import/', views.PresenceImportAPIView.as_view(), name='presence_import'),
    path('students/<uuid:pk>/', views.StudentAttendanceAPIView.as_view(), name='student_attendance'),
]
