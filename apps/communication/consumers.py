import json
import logging

from asgiref.sync import sync_to_async
from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from django.core.serializers.json import DjangoJSONEncoder
from django.utils.dateparse import parse_datetime

from apps.academics.services import RosterService
from apps.core.context import Caller
from apps.core.exceptions import InvalidInput, SchoolCoreError

from . import presence
from .delivery import (
    message_sent_event, messages_read_event, receive_message_event, user_group,
)
from .serializers import chat_message_payload
from .services import MessagingService

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer for teacher/parent chat.

    Every connection of a user joins the group ``user_<id>``. The durable
    messaging call always runs first; events are pushed only on success.
    """

    async def connect(self):
        """Handle WebSocket connection."""
        self.user = self.scope.get('user')
        self.typing_to = set()
        self.threads = {}
        self.user_group_name = None

        # Check if user is authenticated
        if self.user is None or isinstance(self.user, AnonymousUser) or not self.user.is_authenticated:
            await self.close()
            return

        try:
            self.caller = await self.build_caller()
        except SchoolCoreError:
            await self.close()
            return

        self.user_group_name = user_group(self.user.pk)
        await self.channel_layer.group_add(
            self.user_group_name,
            self.channel_name
        )

        await self.accept()
        await sync_to_async(presence.mark_online)(self.user.pk)

    async def disconnect(self, close_code):
        """Handle WebSocket disconnection."""
        if self.user_group_name is None:
            return

        for receiver_id, student_id in list(self.typing_to):
            await self.push_stop_typing(receiver_id, student_id)
        self.typing_to.clear()

        await self.channel_layer.group_discard(
            self.user_group_name,
            self.channel_name
        )
        await sync_to_async(presence.mark_offline)(self.user.pk)

    async def receive(self, text_data=None, bytes_data=None):
        """Handle incoming WebSocket messages."""
        try:
            data = json.loads(text_data or '')
        except json.JSONDecodeError:
            await self.send_error('invalid_json', 'Invalid JSON format')
            return
        if not isinstance(data, dict):
            await self.send_error('invalid_json', 'Expected a JSON object')
            return

        handlers = {
            'send_message': self.handle_send_message,
            'typing_start': self.handle_typing_start,
            'typing_stop': self.handle_typing_stop,
            'mark_read': self.handle_mark_read,
            'get_user_status': self.handle_get_user_status,
        }
        handler = handlers.get(data.get('type'))
        if handler is None:
            await self.send_error('unknown_type', f"Unknown message type: {data.get('type')!r}")
            return

        try:
            await handler(data)
        except SchoolCoreError as e:
            logger.warning("Chat %s from %s rejected: %s", data.get('type'), self.user.pk, e.message)
            await self.send_error(e.code, e.message, data)
        except Exception:
            logger.exception("Chat %s from %s failed", data.get('type'), self.user.pk)
            await self.send_error('server_error', 'Something went wrong', data)

    async def handle_send_message(self, data):
        """Store the message, then push it to both parties."""
        message = await self.save_message(
            data.get('receiver_id'), data.get('student_id'), data.get('content')
        )
        payload = await self.format_message(message)

        key = (str(message.receiver_id), str(message.student_id))
        if key in self.typing_to:
            self.typing_to.discard(key)
            await self.push_stop_typing(*key)

        await self.push(user_group(message.receiver_id), receive_message_event(payload))
        await self.push(self.user_group_name, message_sent_event(payload, data.get('temp_id')))

    async def handle_typing_start(self, data):
        """Typing indicators are not stored; clients expire them."""
        key = await self.typing_target(data)
        self.typing_to.add(key)
        await self.push(
            user_group(key[0]),
            {
                'type': 'user_typing',
                'user_id': str(self.user.pk),
                'user_name': self.user.display_name,
                'student_id': key[1],
                'expires_in': getattr(settings, 'CHAT_TYPING_TIMEOUT_SECONDS', 5),
            }
        )

    async def handle_typing_stop(self, data):
        key = await self.typing_target(data)
        self.typing_to.discard(key)
        await self.push_stop_typing(*key)

    async def handle_mark_read(self, data):
        """Acknowledge a thread and send read receipts."""
        up_to = data.get('up_to')
        if up_to:
            up_to = parse_datetime(str(up_to))
            if up_to is None:
                raise InvalidInput("up_to must be an ISO timestamp.")

        counterpart_id, student_id = await self.resolve_thread(
            data.get('counterpart_id'), data.get('student_id')
        )
        message_ids, read_at = await self.acknowledge(counterpart_id, student_id, up_to)
        if not message_ids:
            return

        event = messages_read_event(self.user.pk, counterpart_id, student_id, message_ids, read_at)
        await self.push(user_group(counterpart_id), event)
        await self.push(self.user_group_name, event)

    async def handle_get_user_status(self, data):
        user_ids = data.get('user_ids')
        if not isinstance(user_ids, list):
            raise InvalidInput("user_ids must be a list.")

        result = await sync_to_async(presence.statuses)(user_ids)
        await self.send_json_event({'type': 'user_statuses', 'statuses': result})

    async def push(self, group, event):
        """Best-effort fan-out; the stored result stands when the layer fails."""
        try:
            await self.channel_layer.group_send(group, event)
        except Exception:
            logger.warning(
                "Live push of %s to %s failed", event.get('type'), group, exc_info=True
            )

    async def push_stop_typing(self, receiver_id, student_id):
        await self.push(
            user_group(receiver_id),
            {
                'type': 'user_stop_typing',
                'user_id': str(self.user.pk),
                'student_id': student_id,
            }
        )

    async def typing_target(self, data):
        return await self.resolve_thread(data.get('receiver_id'), data.get('student_id'))

    async def resolve_thread(self, counterpart_id, student_id):
        """Authorized (counterpart id, student id) as canonical strings."""
        raw = (str(counterpart_id), str(student_id))
        if raw not in self.threads:
            self.threads[raw] = await self.check_thread(counterpart_id, student_id)
        return self.threads[raw]

    # Event handlers for group messages
    async def receive_message(self, event):
        await self.send_json_event(event)

    async def message_sent(self, event):
        await self.send_json_event(event)

    async def messages_read(self, event):
        await self.send_json_event(event)

    async def user_typing(self, event):
        await self.send_json_event(event)

    async def user_stop_typing(self, event):
        await self.send_json_event(event)

    async def send_json_event(self, event):
        await self.send(text_data=json.dumps(event, cls=DjangoJSONEncoder))

    async def send_error(self, code, message, data=None):
        error = {'type': 'error', 'code': code, 'message': message}
        if data and data.get('temp_id'):
            error['temp_id'] = data['temp_id']
        await self.send_json_event(error)

    # Database operations
    @database_sync_to_async
    def build_caller(self):
        return Caller.from_user(self.user)

    @database_sync_to_async
    def save_message(self, receiver_id, student_id, content):
        return MessagingService.send(self.caller, receiver_id, student_id, content)

    @database_sync_to_async
    def format_message(self, message):
        return chat_message_payload(message)

    @database_sync_to_async
    def acknowledge(self, counterpart_id, student_id, up_to):
        return MessagingService.acknowledge(self.caller, counterpart_id, student_id, up_to)

    @database_sync_to_async
    def check_thread(self, counterpart_id, student_id):
        counterpart = MessagingService.get_user(counterpart_id)
        student = RosterService.get_student(student_id)
        MessagingService.authorize_thread(self.caller, counterpart, student)
        return str(counterpart.pk), str(student.pk)
