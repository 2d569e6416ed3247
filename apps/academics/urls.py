from django.urls import path
from . import views

app_name = 'academics'

urlpatterns = [
    path('classes/<uuid:pk>/students/', views.ClassStudentsAPIView.as_view(), name='class_students'),
]
