from django.urls import path
from . import views

app_name = 'communication'

urlpatterns = [
    # Chat
    path('chat/send/', views.SendMessageAPIView.as_view(), name='chat_send'),
    path('chat/history/', views.ChatHistoryAPIView.as_view(), name='chat_history'),
    path('chat/acknowledge/', views.AcknowledgeAPIView.as_view(), name='chat_acknowledge'),
    path('chat/unread/', views.UnreadSummaryAPIView.as_view(), name='chat_unread'),
    path('chat/contacts/', views.ContactsAPIView.as_view(), name='chat_contacts'),
]
