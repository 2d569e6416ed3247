# apps/communication/views.py

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.mixins import CallerMixin, success_response_data

from . import delivery
from .serializers import (
    AcknowledgeSerializer, ChatMessageSerializer, ContactSerializer,
    SendMessageSerializer, ThreadSerializer, UnreadThreadSerializer,
)
from .services import MessagingService


class SendMessageAPIView(CallerMixin, APIView):
    """
    Store a message and push it to the receiver's open connections.
    """

    def post(self, request):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message = MessagingService.send(
            self.caller, data['receiver_id'], data['student_id'], data['content']
        )
        delivery.notify_message(message, temp_id=data.get('temp_id'))

        return Response(
            success_response_data(message=ChatMessageSerializer(message).data),
            status=status.HTTP_201_CREATED
        )


class ChatHistoryAPIView(CallerMixin, APIView):

    def get(self, request):
        serializer = ThreadSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        messages = MessagingService.history(self.caller, data['counterpart_id'], data['student_id'])
        return Response(success_response_data(
            messages=ChatMessageSerializer(messages, many=True).data
        ))


class AcknowledgeAPIView(CallerMixin, APIView):
    """
    Mark a thread read up to ``up_to`` (default: now) and send read receipts.
    """

    def post(self, request):
        serializer = AcknowledgeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message_ids, read_at = MessagingService.acknowledge(
            self.caller, data['counterpart_id'], data['student_id'], data.get('up_to')
        )
        delivery.notify_read(
            self.caller.user_id, data['counterpart_id'], data['student_id'], message_ids, read_at
        )

        return Response(success_response_data(
            message_ids=[str(message_id) for message_id in message_ids],
            count=len(message_ids),
        ))


class UnreadSummaryAPIView(CallerMixin, APIView):

    def get(self, request):
        summary = MessagingService.unread_summary(self.caller)
        return Response(success_response_data(
            total=summary['total'],
            threads=UnreadThreadSerializer(summary['threads'], many=True).data,
        ))


class ContactsAPIView(CallerMixin, APIView):

    def get(self, request):
        contacts = MessagingService.list_contacts(self.caller)
        return Response(success_response_data(
            contacts=ContactSerializer(contacts, many=True).data
        ))
