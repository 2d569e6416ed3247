# apps/communication/tests.py

import json
import uuid
from datetime import timedelta
from unittest import mock

from channels.db import database_sync_to_async
from channels.layers import InMemoryChannelLayer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.core.cache import cache
from django.test import TestCase, TransactionTestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from apps.academics.testing import SchoolFixtureMixin
from apps.core.exceptions import InvalidInput, StudentNotFound, Unauthorized, UserNotFound
from config.routing import websocket_urlpatterns

from . import presence
from .delivery import messages_read_event, user_group
from .models import ChatMessage
from .services import MessagingService


def backdate(message, seconds):
    """Move a message back in time for the timestamp-based checks."""
    created_at = timezone.now() - timedelta(seconds=seconds)
    ChatMessage.objects.filter(pk=message.pk).update(created_at=created_at)
    message.created_at = created_at
    return message


class MessagingServiceTestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        self.teacher_caller = self.caller_for(self.teacher.user)
        self.parent_caller = self.caller_for(self.parent.user)

    def test_thread_history_is_oldest_first_and_unread(self):
        hello = MessagingService.send(self.parent_caller, self.teacher.user.pk, self.student.pk, 'Hello')
        backdate(hello, 60)
        MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Hi')

        history = MessagingService.history(self.parent_caller, self.teacher.user.pk, self.student.pk)

        self.assertEqual([m.content for m in history], ['Hello', 'Hi'])
        self.assertEqual([m.is_read for m in history], [False, False])
        self.assertLess(history[0].created_at, history[1].created_at)
        self.assertEqual(history[0].sender_role, ChatMessage.Role.PARENT)
        self.assertEqual(history[1].sender_role, ChatMessage.Role.TEACHER)

        # Both participants see the same thread.
        teacher_view = MessagingService.history(self.teacher_caller, self.parent.user.pk, self.student.pk)
        self.assertEqual([m.pk for m in teacher_view], [m.pk for m in history])

    def test_parent_acknowledge_marks_only_the_teachers_reply(self):
        hello = MessagingService.send(self.parent_caller, self.teacher.user.pk, self.student.pk, 'Hello')
        backdate(hello, 60)
        MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Hi')

        MessagingService.acknowledge(self.parent_caller, self.teacher.user.pk, self.student.pk)

        self.assertEqual(MessagingService.unread_summary(self.parent_caller)['threads'], [])
        history = MessagingService.history(self.parent_caller, self.teacher.user.pk, self.student.pk)
        self.assertEqual([(m.content, m.is_read) for m in history], [('Hello', False), ('Hi', True)])
        # The parent's own message is still unread for the teacher.
        self.assertEqual(MessagingService.unread_summary(self.teacher_caller)['total'], 1)

    def test_acknowledge_clears_unread_but_keeps_history(self):
        first = MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Hello')
        backdate(first, 60)
        second = MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Are you there?')

        summary = MessagingService.unread_summary(self.parent_caller)
        self.assertEqual(summary['total'], 2)
        self.assertEqual(summary['threads'][0]['unread_count'], 2)
        self.assertEqual(summary['threads'][0]['last_message'], 'Are you there?')
        self.assertEqual(summary['threads'][0]['counterpart_name'], 'Asha Nair')

        message_ids, read_at = MessagingService.acknowledge(
            self.parent_caller, self.teacher.user.pk, self.student.pk
        )

        self.assertCountEqual(message_ids, [first.pk, second.pk])
        self.assertEqual(MessagingService.unread_summary(self.parent_caller), {'total': 0, 'threads': []})
        history = MessagingService.history(self.parent_caller, self.teacher.user.pk, self.student.pk)
        self.assertEqual(len(history), 2)
        self.assertTrue(all(m.is_read and m.read_at == read_at for m in history))

    def test_acknowledge_is_idempotent(self):
        MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Hello')
        MessagingService.acknowledge(self.parent_caller, self.teacher.user.pk, self.student.pk)
        read_at = ChatMessage.objects.get().read_at

        message_ids, _ = MessagingService.acknowledge(self.parent_caller, self.teacher.user.pk, self.student.pk)

        self.assertEqual(message_ids, [])
        self.assertEqual(ChatMessage.objects.get().read_at, read_at)

    def test_acknowledge_only_marks_messages_addressed_to_caller(self):
        MessagingService.send(self.parent_caller, self.teacher.user.pk, self.student.pk, 'Hi')

        message_ids, _ = MessagingService.acknowledge(
            self.parent_caller, self.teacher.user.pk, self.student.pk
        )

        self.assertEqual(message_ids, [])
        self.assertFalse(ChatMessage.objects.get().is_read)

    def test_message_after_snapshot_stays_unread(self):
        seen = MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Hello')
        backdate(seen, 60)
        snapshot = timezone.now() - timedelta(seconds=30)
        late = MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'One more thing')

        message_ids, _ = MessagingService.acknowledge(
            self.parent_caller, self.teacher.user.pk, self.student.pk, up_to=snapshot
        )

        self.assertEqual(message_ids, [seen.pk])
        late.refresh_from_db()
        self.assertFalse(late.is_read)
        self.assertEqual(MessagingService.unread_summary(self.parent_caller)['total'], 1)

    def test_threads_are_scoped_per_student(self):
        self.sibling.guardian = self.parent
        self.sibling.save()

        MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'About Anu')
        MessagingService.send(self.teacher_caller, self.parent.user.pk, self.sibling.pk, 'About Binu')

        anu = MessagingService.history(self.parent_caller, self.teacher.user.pk, self.student.pk)
        binu = MessagingService.history(self.parent_caller, self.teacher.user.pk, self.sibling.pk)
        self.assertEqual([m.content for m in anu], ['About Anu'])
        self.assertEqual([m.content for m in binu], ['About Binu'])

        MessagingService.acknowledge(self.parent_caller, self.teacher.user.pk, self.student.pk)
        summary = MessagingService.unread_summary(self.parent_caller)
        self.assertEqual(summary['total'], 1)
        self.assertEqual(summary['threads'][0]['student_id'], self.sibling.pk)

    def test_subject_teacher_may_message_guardian(self):
        maths = self.caller_for(self.subject_teacher.user)
        message = MessagingService.send(maths, self.parent.user.pk, self.student.pk, 'Homework')
        self.assertEqual(message.receiver, self.parent.user)

    def test_thread_authorization(self):
        other_teacher = self.caller_for(self.other_teacher.user)
        other_parent = self.caller_for(self.other_parent.user)
        admin = self.caller_for(self.admin_user)

        with self.assertRaises(UserNotFound):
            MessagingService.send(self.teacher_caller, uuid.uuid4(), self.student.pk, 'Hello')
        with self.assertRaises(StudentNotFound):
            MessagingService.send(self.teacher_caller, self.parent.user.pk, uuid.uuid4(), 'Hello')
        # Teacher not assigned to 5-A
        with self.assertRaises(Unauthorized):
            MessagingService.send(other_teacher, self.parent.user.pk, self.student.pk, 'Hello')
        # Parent who is not the guardian
        with self.assertRaises(Unauthorized):
            MessagingService.send(other_parent, self.teacher.user.pk, self.student.pk, 'Hello')
        with self.assertRaises(Unauthorized):
            MessagingService.send(self.teacher_caller, self.other_parent.user.pk, self.student.pk, 'Hello')
        # Same role on both ends
        with self.assertRaises(Unauthorized):
            MessagingService.send(self.teacher_caller, self.subject_teacher.user.pk, self.student.pk, 'Hello')
        with self.assertRaises(Unauthorized):
            MessagingService.send(admin, self.parent.user.pk, self.student.pk, 'Hello')
        with self.assertRaises(Unauthorized):
            MessagingService.history(other_parent, self.teacher.user.pk, self.student.pk)

        self.assertFalse(ChatMessage.objects.exists())

    def test_removed_assignment_revokes_thread_access(self):
        maths = self.caller_for(self.subject_teacher.user)
        MessagingService.send(maths, self.parent.user.pk, self.student.pk, 'Homework')
        self.subject_teacher.subject_assignments.get().delete()

        with self.assertRaises(Unauthorized):
            MessagingService.send(maths, self.parent.user.pk, self.student.pk, 'One more thing')
        with self.assertRaises(Unauthorized):
            MessagingService.history(maths, self.parent.user.pk, self.student.pk)
        with self.assertRaises(Unauthorized):
            MessagingService.acknowledge(self.parent_caller, self.subject_teacher.user.pk, self.student.pk)

        contacts = MessagingService.list_contacts(self.parent_caller)
        self.assertEqual([c['name'] for c in contacts], ['Asha Nair'])

    def test_removed_guardian_revokes_thread_access(self):
        self.parent.delete()

        with self.assertRaises(Unauthorized):
            MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Hello')
        self.assertEqual(MessagingService.list_contacts(self.teacher_caller), [])

    def test_same_timestamp_keeps_send_order(self):
        first = MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'First')
        second = MessagingService.send(self.parent_caller, self.teacher.user.pk, self.student.pk, 'Second')
        third = MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'Third')
        ChatMessage.objects.update(created_at=first.created_at)

        history = MessagingService.history(self.parent_caller, self.teacher.user.pk, self.student.pk)

        self.assertEqual([m.content for m in history], ['First', 'Second', 'Third'])
        self.assertLess(first.sequence, second.sequence)
        self.assertLess(second.sequence, third.sequence)

    def test_message_text_is_validated(self):
        for text in ('', '   ', None):
            with self.assertRaises(InvalidInput):
                MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, text)

        with override_settings(CHAT_MESSAGE_MAX_LENGTH=10):
            with self.assertRaises(InvalidInput):
                MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, 'x' * 11)

        message = MessagingService.send(self.teacher_caller, self.parent.user.pk, self.student.pk, '  Hello  ')
        self.assertEqual(message.content, 'Hello')

    def test_parent_contacts(self):
        contacts = MessagingService.list_contacts(self.parent_caller)

        self.assertEqual([c['name'] for c in contacts], ['Asha Nair', 'Ravi Menon'])
        class_teacher, maths = contacts
        self.assertTrue(class_teacher['is_class_teacher'])
        self.assertEqual(class_teacher['subjects'], [])
        self.assertFalse(maths['is_class_teacher'])
        self.assertEqual(maths['subjects'], ['Mathematics'])
        self.assertEqual(maths['class_label'], '5-A')
        self.assertEqual(maths['unread_count'], 0)
        self.assertIsNone(maths['last_activity'])

    def test_contacts_with_unread_come_first(self):
        maths = self.caller_for(self.subject_teacher.user)
        MessagingService.send(maths, self.parent.user.pk, self.student.pk, 'Homework is due')

        contacts = MessagingService.list_contacts(self.parent_caller)

        self.assertEqual(contacts[0]['name'], 'Ravi Menon')
        self.assertEqual(contacts[0]['unread_count'], 1)
        self.assertEqual(contacts[0]['last_message'], 'Homework is due')

        MessagingService.acknowledge(self.parent_caller, self.subject_teacher.user.pk, self.student.pk)
        contacts = MessagingService.list_contacts(self.parent_caller)
        # Still first: most recent activity.
        self.assertEqual(contacts[0]['name'], 'Ravi Menon')
        self.assertEqual(contacts[0]['unread_count'], 0)
        self.assertIsNotNone(contacts[0]['last_activity'])

    def test_teacher_contacts(self):
        contacts = MessagingService.list_contacts(self.teacher_caller)

        # The sibling has no guardian on record.
        self.assertEqual(len(contacts), 1)
        self.assertEqual(contacts[0]['user_id'], self.parent.user.pk)
        self.assertEqual(contacts[0]['student_name'], 'Anu Das')
        self.assertEqual(contacts[0]['role'], 'parent')

        with self.assertRaises(Unauthorized):
            MessagingService.list_contacts(self.caller_for(self.admin_user))


class PresenceTestCase(TestCase):

    def setUp(self):
        cache.clear()

    def test_online_while_any_connection_is_open(self):
        user_id = uuid.uuid4()
        self.assertFalse(presence.is_online(user_id))

        self.assertEqual(presence.mark_online(user_id), 1)
        self.assertEqual(presence.mark_online(user_id), 2)
        self.assertEqual(presence.mark_offline(user_id), 1)
        self.assertTrue(presence.is_online(user_id))

        self.assertEqual(presence.mark_offline(user_id), 0)
        self.assertFalse(presence.is_online(user_id))
        # An extra disconnect does not go negative.
        self.assertEqual(presence.mark_offline(user_id), 0)

    def test_statuses(self):
        online, offline = uuid.uuid4(), uuid.uuid4()
        presence.mark_online(online)

        self.assertEqual(presence.statuses([online, offline]), {
            str(online): 'online',
            str(offline): 'offline',
        })


class MessagingAPITestCase(SchoolFixtureMixin, TestCase):

    def setUp(self):
        self.create_school()
        self.client = APIClient()
        self.client.force_authenticate(self.teacher.user)

    @mock.patch('apps.communication.delivery.notify_message')
    def test_send_message(self, notify_message):
        response = self.client.post(reverse('communication:chat_send'), {
            'receiver_id': str(self.parent.user.pk),
            'student_id': str(self.student.pk),
            'content': 'Hello',
            'temp_id': 'tmp-1',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['message']['content'], 'Hello')
        self.assertEqual(response.data['message']['sender_name'], 'Asha Nair')
        self.assertFalse(response.data['message']['is_read'])
        notify_message.assert_called_once_with(ChatMessage.objects.get(), temp_id='tmp-1')

    @mock.patch('apps.communication.delivery.notify_message')
    def test_rejected_send_is_not_delivered(self, notify_message):
        self.client.force_authenticate(self.other_teacher.user)
        response = self.client.post(reverse('communication:chat_send'), {
            'receiver_id': str(self.parent.user.pk),
            'student_id': str(self.student.pk),
            'content': 'Hello',
        }, format='json')

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['error']['code'], 'unauthorized')
        notify_message.assert_not_called()

        self.client.force_authenticate(self.teacher.user)
        response = self.client.post(reverse('communication:chat_send'), {
            'receiver_id': str(self.parent.user.pk),
            'student_id': str(self.student.pk),
            'content': '   ',
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'invalid_input')

    @mock.patch('apps.communication.delivery.notify_read')
    def test_history_and_acknowledge(self, notify_read):
        MessagingService.send(self.caller_for(self.teacher.user), self.parent.user.pk, self.student.pk, 'Hello')
        self.client.force_authenticate(self.parent.user)

        response = self.client.get(reverse('communication:chat_history'), {
            'counterpart_id': str(self.teacher.user.pk), 'student_id': str(self.student.pk),
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m['content'] for m in response.data['messages']], ['Hello'])

        response = self.client.get(reverse('communication:chat_unread'))
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['threads'][0]['counterpart_role'], 'teacher')

        response = self.client.post(reverse('communication:chat_acknowledge'), {
            'counterpart_id': str(self.teacher.user.pk), 'student_id': str(self.student.pk),
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        notify_read.assert_called_once()

        response = self.client.get(reverse('communication:chat_unread'))
        self.assertEqual(response.data['total'], 0)

    def test_history_requires_thread_params(self):
        response = self.client.get(reverse('communication:chat_history'), {'counterpart_id': 'nope'})
        self.assertEqual(response.status_code, 400)

    def test_contacts(self):
        self.client.force_authenticate(self.parent.user)
        response = self.client.get(reverse('communication:chat_contacts'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data['contacts']), 2)

        self.client.force_authenticate(self.admin_user)
        response = self.client.get(reverse('communication:chat_contacts'))
        self.assertEqual(response.status_code, 403)

    def test_stranger_is_rejected(self):
        self.client.force_authenticate(self.stranger)
        response = self.client.get(reverse('communication:chat_unread'))
        self.assertEqual(response.status_code, 403)


class DeliveryTestCase(SchoolFixtureMixin, TestCase):

    def test_read_receipt_event(self):
        read_at = timezone.now()
        message_id = uuid.uuid4()
        event = messages_read_event('reader', 'sender', 'student', [message_id], read_at)

        self.assertEqual(event['type'], 'messages_read')
        self.assertEqual(event['message_ids'], [str(message_id)])
        self.assertEqual(event['read_at'], read_at.isoformat())

    def test_failed_push_keeps_the_message(self):
        self.create_school()
        with mock.patch('apps.communication.delivery.get_channel_layer') as get_layer:
            get_layer.return_value.group_send = mock.AsyncMock(side_effect=RuntimeError('layer down'))
            client = APIClient()
            client.force_authenticate(self.teacher.user)
            response = client.post(reverse('communication:chat_send'), {
                'receiver_id': str(self.parent.user.pk),
                'student_id': str(self.student.pk),
                'content': 'Hello',
            }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(ChatMessage.objects.count(), 1)

    def test_user_group(self):
        self.assertEqual(user_group(42), 'user_42')


class ChatConsumerTestCase(SchoolFixtureMixin, TransactionTestCase):

    def setUp(self):
        cache.clear()
        self.create_school()
        self.application = URLRouter(websocket_urlpatterns)

    async def connect(self, user):
        communicator = WebsocketCommunicator(self.application, '/ws/chat/')
        communicator.scope['user'] = user
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        return communicator

    async def test_anonymous_is_rejected(self):
        communicator = WebsocketCommunicator(self.application, '/ws/chat/')
        communicator.scope['user'] = AnonymousUser()
        connected, _ = await communicator.connect()
        self.assertFalse(connected)

    async def test_user_without_role_is_rejected(self):
        communicator = WebsocketCommunicator(self.application, '/ws/chat/')
        communicator.scope['user'] = self.stranger
        connected, _ = await communicator.connect()
        self.assertFalse(connected)

    async def test_send_message_reaches_both_parties(self):
        teacher = await self.connect(self.teacher.user)
        parent = await self.connect(self.parent.user)

        await teacher.send_json_to({
            'type': 'send_message',
            'receiver_id': str(self.parent.user.pk),
            'student_id': str(self.student.pk),
            'content': 'Hello',
            'temp_id': 'tmp-1',
        })

        received = await parent.receive_json_from()
        self.assertEqual(received['type'], 'receive_message')
        self.assertEqual(received['message']['content'], 'Hello')
        self.assertEqual(received['message']['student_id'], str(self.student.pk))

        echoed = await teacher.receive_json_from()
        self.assertEqual(echoed['type'], 'message_sent')
        self.assertEqual(echoed['temp_id'], 'tmp-1')
        self.assertEqual(echoed['message']['id'], received['message']['id'])

        await teacher.disconnect()
        await parent.disconnect()

    async def test_failed_push_still_confirms_stored_message(self):
        teacher = await self.connect(self.teacher.user)
        group_send = InMemoryChannelLayer.group_send

        async def drop_deliveries(layer, group, message):
            if message['type'] == 'receive_message':
                raise RuntimeError('layer down')
            return await group_send(layer, group, message)

        with mock.patch.object(InMemoryChannelLayer, 'group_send', drop_deliveries):
            await teacher.send_json_to({
                'type': 'send_message',
                'receiver_id': str(self.parent.user.pk),
                'student_id': str(self.student.pk),
                'content': 'Hello',
                'temp_id': 'tmp-3',
            })
            echoed = await teacher.receive_json_from()

        self.assertEqual(echoed['type'], 'message_sent')
        self.assertEqual(echoed['temp_id'], 'tmp-3')
        stored = await database_sync_to_async(ChatMessage.objects.count)()
        self.assertEqual(stored, 1)
        await teacher.disconnect()

    async def test_rejected_send_reports_error(self):
        teacher = await self.connect(self.other_teacher.user)

        await teacher.send_json_to({
            'type': 'send_message',
            'receiver_id': str(self.parent.user.pk),
            'student_id': str(self.student.pk),
            'content': 'Hello',
            'temp_id': 'tmp-2',
        })

        error = await teacher.receive_json_from()
        self.assertEqual(error['type'], 'error')
        self.assertEqual(error['code'], 'unauthorized')
        self.assertEqual(error['temp_id'], 'tmp-2')
        await teacher.disconnect()

    async def test_typing_and_stop_on_disconnect(self):
        teacher = await self.connect(self.teacher.user)
        parent = await self.connect(self.parent.user)

        await teacher.send_json_to({
            'type': 'typing_start',
            'receiver_id': str(self.parent.user.pk),
            'student_id': str(self.student.pk),
        })
        typing = await parent.receive_json_from()
        self.assertEqual(typing['type'], 'user_typing')
        self.assertEqual(typing['user_id'], str(self.teacher.user.pk))
        self.assertEqual(typing['user_name'], 'Asha Nair')
        self.assertEqual(typing['expires_in'], 5)

        await teacher.disconnect()
        stopped = await parent.receive_json_from()
        self.assertEqual(stopped['type'], 'user_stop_typing')
        self.assertEqual(stopped['student_id'], str(self.student.pk))

        await parent.disconnect()

    async def test_mark_read_sends_receipts(self):
        teacher = await self.connect(self.teacher.user)
        parent = await self.connect(self.parent.user)

        await teacher.send_json_to({
            'type': 'send_message',
            'receiver_id': str(self.parent.user.pk),
            'student_id': str(self.student.pk),
            'content': 'Hello',
        })
        received = await parent.receive_json_from()
        await teacher.receive_json_from()

        await parent.send_json_to({
            'type': 'mark_read',
            'counterpart_id': str(self.teacher.user.pk),
            'student_id': str(self.student.pk),
        })

        receipt = await teacher.receive_json_from()
        self.assertEqual(receipt['type'], 'messages_read')
        self.assertEqual(receipt['reader_id'], str(self.parent.user.pk))
        self.assertEqual(receipt['message_ids'], [received['message']['id']])

        own = await parent.receive_json_from()
        self.assertEqual(own['type'], 'messages_read')

        await teacher.disconnect()
        await parent.disconnect()

    async def test_user_statuses(self):
        teacher = await self.connect(self.teacher.user)
        parent = await self.connect(self.parent.user)

        await teacher.send_json_to({
            'type': 'get_user_status',
            'user_ids': [str(self.parent.user.pk), str(self.other_parent.user.pk)],
        })
        response = await teacher.receive_json_from()

        self.assertEqual(response['type'], 'user_statuses')
        self.assertEqual(response['statuses'], {
            str(self.parent.user.pk): 'online',
            str(self.other_parent.user.pk): 'offline',
        })

        await parent.disconnect()
        await teacher.disconnect()

    async def test_malformed_frames(self):
        teacher = await self.connect(self.teacher.user)

        await teacher.send_to(text_data='not json')
        error = await teacher.receive_json_from()
        self.assertEqual(error['code'], 'invalid_json')

        await teacher.send_to(text_data=json.dumps({'type': 'dance'}))
        error = await teacher.receive_json_from()
        self.assertEqual(error['code'], 'unknown_type')

        await teacher.send_to(text_data=json.dumps({'type': 'get_user_status', 'user_ids': 'x'}))
        error = await teacher.receive_json_from()
        self.assertEqual(error['code'], 'invalid_input')

        await teacher.disconnect()
