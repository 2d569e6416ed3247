from rest_framework import serializers

from .models import ChatMessage


class ChatMessageSerializer(serializers.ModelSerializer):
    sender_id = serializers.UUIDField(read_only=True)
    sender_name = serializers.CharField(source='sender.display_name', read_only=True)
    receiver_id = serializers.UUIDField(read_only=True)
    student_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ChatMessage
        fields = [
            'id', 'sender_id', 'sender_name', 'sender_role', 'receiver_id', 'receiver_role',
            'student_id', 'content', 'sequence', 'created_at', 'is_read', 'read_at',
        ]


def chat_message_payload(message):
    """Plain JSON-safe dict of a message, for channel-layer events."""
    return dict(ChatMessageSerializer(message).data)


class SendMessageSerializer(serializers.Serializer):
    receiver_id = serializers.UUIDField()
    student_id = serializers.UUIDField()
    # Blank text is reported by the messaging service as invalid_input.
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)
    temp_id = serializers.CharField(required=False, allow_blank=True)


class ThreadSerializer(serializers.Serializer):
    counterpart_id = serializers.UUIDField()
    student_id = serializers.UUIDField()


class AcknowledgeSerializer(ThreadSerializer):
    up_to = serializers.DateTimeField(required=False, allow_null=True)


class UnreadThreadSerializer(serializers.Serializer):
    counterpart_id = serializers.UUIDField()
    counterpart_name = serializers.CharField()
    counterpart_role = serializers.CharField()
    student_id = serializers.UUIDField()
    student_name = serializers.CharField()
    unread_count = serializers.IntegerField()
    last_message = serializers.CharField()
    last_timestamp = serializers.DateTimeField()


class ContactSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    name = serializers.CharField()
    role = serializers.CharField()
    student_id = serializers.UUIDField()
    student_name = serializers.CharField()
    class_label = serializers.CharField()
    phone = serializers.CharField(required=False)
    is_class_teacher = serializers.BooleanField(required=False)
    subjects = serializers.ListField(child=serializers.CharField(), required=False)
    unread_count = serializers.IntegerField()
    last_message = serializers.CharField(allow_null=True)
    last_activity = serializers.DateTimeField(allow_null=True)
