"""
Live delivery over the channel layer.

Each connected user's sockets join the group ``user_<id>``. Events carry
the message ids so clients can de-duplicate pushes against history polls.
Pushing is best effort: failures are logged and the durable result stands.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .serializers import chat_message_payload

logger = logging.getLogger(__name__)


def user_group(user_id):
    return f"user_{user_id}"


def receive_message_event(payload):
    return {'type': 'receive_message', 'message': payload}


def message_sent_event(payload, temp_id=None):
    return {'type': 'message_sent', 'message': payload, 'temp_id': temp_id}


def messages_read_event(reader_id, counterpart_id, student_id, message_ids, read_at):
    return {
        'type': 'messages_read',
        'reader_id': str(reader_id),
        'counterpart_id': str(counterpart_id),
        'student_id': str(student_id),
        'message_ids': [str(message_id) for message_id in message_ids],
        'read_at': read_at.isoformat(),
    }


def push_to_user(user_id, event):
    """Send an event to every open connection of a user."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False
    try:
        async_to_sync(channel_layer.group_send)(user_group(user_id), event)
    except Exception:
        logger.warning(
            "Live push of %s to user %s failed", event.get('type'), user_id, exc_info=True
        )
        return False
    return True


def notify_message(message, temp_id=None):
    """Push a stored message to the receiver and echo it to the sender."""
    payload = chat_message_payload(message)
    push_to_user(message.receiver_id, receive_message_event(payload))
    push_to_user(message.sender_id, message_sent_event(payload, temp_id))


def notify_read(reader_id, counterpart_id, student_id, message_ids, read_at):
    """Read receipt for the original sender and the reader's other connections."""
    if not message_ids:
        return
    event = messages_read_event(reader_id, counterpart_id, student_id, message_ids, read_at)
    push_to_user(counterpart_id, event)
    push_to_user(reader_id, event)
