"""
WebSocket routing configuration for the school core.
"""

from django.urls import path

from apps.communication.consumers import ChatConsumer

# Define WebSocket URL patterns
websocket_urlpatterns = [
    # Chat WebSocket, one per browser tab
    path('ws/chat/', ChatConsumer.as_asgi()),
]
