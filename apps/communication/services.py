"""
Messaging core for teacher/parent threads.

Every thread is scoped to one student, so a parent with two children in
the same teacher's classes has two independent threads with that teacher.
HTTP views and the WebSocket consumer both go through ``MessagingService``;
live delivery happens only after the durable write succeeded.
"""

import logging
from datetime import datetime

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Max, Q
from django.utils import timezone

from apps.academics.services import RosterService
from apps.core.context import Role, resolve_role
from apps.core.exceptions import ConcurrencyConflict, InvalidInput, Unauthorized, UserNotFound

from .models import ChatMessage

logger = logging.getLogger(__name__)
User = get_user_model()

PREVIEW_LENGTH = 100
SEQUENCE_RETRIES = 5


class MessagingService:
    """
    Service class for chat threads, read state and unread aggregation.
    """

    @staticmethod
    def get_user(user_id):
        try:
            return User.objects.get(pk=user_id, is_active=True)
        except (User.DoesNotExist, ValidationError, ValueError):
            raise UserNotFound(f"No user with id {user_id}.")

    @staticmethod
    def authorize_thread(caller, counterpart, student):
        """
        Check that caller and counterpart are a teacher of the student's
        class and the student's guardian, in either order.

        Returns ``(caller_role, counterpart_role)``.
        """
        counterpart_role = resolve_role(counterpart)

        if caller.is_teacher and counterpart_role == Role.PARENT:
            teacher, parent = caller.teacher, counterpart.parent_profile
        elif caller.is_parent and counterpart_role == Role.TEACHER:
            teacher, parent = counterpart.teacher_profile, caller.parent
        else:
            raise Unauthorized("Messages can only be exchanged between a teacher and a parent.")

        if not RosterService.teaches_student(teacher, student):
            raise Unauthorized("The teacher is not assigned to this student's class.")
        if not student.is_child_of(parent):
            raise Unauthorized("The parent is not this student's guardian.")

        return caller.role, counterpart_role

    @staticmethod
    def _thread(caller, counterpart_id, student_id):
        counterpart = MessagingService.get_user(counterpart_id)
        student = RosterService.get_student(student_id)
        MessagingService.authorize_thread(caller, counterpart, student)
        return counterpart, student

    @staticmethod
    def _clean_text(text):
        if not isinstance(text, str) or not text.strip():
            raise InvalidInput("Message text is required.")
        text = text.strip()
        max_length = getattr(settings, 'CHAT_MESSAGE_MAX_LENGTH', 2000)
        if len(text) > max_length:
            raise InvalidInput(f"Message text is longer than {max_length} characters.")
        return text

    @staticmethod
    def send(caller, receiver_id, student_id, text):
        """
        Append a message to the thread. It is stored unread; pushing it to
        live connections is the caller's business.
        """
        text = MessagingService._clean_text(text)
        receiver = MessagingService.get_user(receiver_id)
        if receiver.pk == caller.user_id:
            raise Unauthorized("You cannot message yourself.")
        student = RosterService.get_student(student_id)
        sender_role, receiver_role = MessagingService.authorize_thread(caller, receiver, student)

        message = MessagingService._append(
            sender=caller.user,
            sender_role=sender_role,
            receiver=receiver,
            receiver_role=receiver_role,
            student=student,
            content=text,
        )
        logger.info(
            "Message %s sent by %s to %s about student %s",
            message.pk, caller.user_id, receiver.pk, student.admission_number
        )
        return message

    @staticmethod
    def _append(**fields):
        """Store a message under the next send-order number."""
        for attempt in range(1, SEQUENCE_RETRIES + 1):
            try:
                with transaction.atomic():
                    last = ChatMessage.objects.aggregate(last=Max('sequence'))['last'] or 0
                    return ChatMessage.objects.create(sequence=last + 1, **fields)
            except IntegrityError:
                logger.info("Message sequence taken, retrying (attempt %d/%d)", attempt, SEQUENCE_RETRIES)

        raise ConcurrencyConflict("The message could not be stored, please retry.")

    @staticmethod
    def thread_queryset(user_a, user_b, student):
        return ChatMessage.objects.filter(
            Q(sender=user_a, receiver=user_b) | Q(sender=user_b, receiver=user_a),
            student=student,
            is_deleted=False,
        )

    @staticmethod
    def history(caller, counterpart_id, student_id):
        """The whole thread, oldest first."""
        counterpart, student = MessagingService._thread(caller, counterpart_id, student_id)
        return list(
            MessagingService.thread_queryset(caller.user, counterpart, student)
            .select_related('sender', 'receiver')
            .order_by('sequence')
        )

    @staticmethod
    def acknowledge(caller, counterpart_id, student_id, up_to=None):
        """
        Mark read the messages of the thread addressed to the caller that
        are still unread and were created at or before ``up_to`` (default:
        now). Messages arriving later stay unread.

        Returns the ids of the messages this call transitioned and the
        read timestamp.
        """
        counterpart, student = MessagingService._thread(caller, counterpart_id, student_id)
        now = timezone.now()
        cutoff = up_to or now
        if not isinstance(cutoff, datetime):
            raise InvalidInput("up_to must be a timestamp.")

        with transaction.atomic():
            message_ids = list(
                ChatMessage.objects.select_for_update()
                .filter(
                    sender=counterpart,
                    receiver=caller.user,
                    student=student,
                    is_read=False,
                    created_at__lte=cutoff,
                )
                .values_list('id', flat=True)
            )
            if message_ids:
                ChatMessage.objects.filter(id__in=message_ids, is_read=False).update(
                    is_read=True, read_at=now, updated_at=now
                )

        if message_ids:
            logger.info(
                "User %s read %d messages from %s about student %s",
                caller.user_id, len(message_ids), counterpart.pk, student.admission_number
            )
        return message_ids, now

    @staticmethod
    def unread_summary(caller):
        """
        The caller's unread messages grouped by (counterpart, student),
        most recent first, with the total.
        """
        unread = (
            ChatMessage.objects.filter(receiver=caller.user, is_read=False, is_deleted=False)
            .select_related('sender', 'student')
            .order_by('sequence')
        )

        groups = {}
        for message in unread:
            key = (message.sender_id, message.student_id)
            group = groups.get(key)
            if group is None:
                group = groups[key] = {
                    'counterpart_id': message.sender_id,
                    'counterpart_name': message.sender.display_name,
                    'counterpart_role': message.sender_role,
                    'student_id': message.student_id,
                    'student_name': message.student.full_name,
                    'unread_count': 0,
                }
            group['unread_count'] += 1
            group['last_message'] = message.content[:PREVIEW_LENGTH]
            group['last_timestamp'] = message.created_at

        threads = sorted(groups.values(), key=lambda g: g['last_timestamp'], reverse=True)
        return {
            'total': sum(g['unread_count'] for g in threads),
            'threads': threads,
        }

    @staticmethod
    def _last_activity(user):
        activity = (
            ChatMessage.objects.filter(Q(sender=user) | Q(receiver=user), is_deleted=False)
            .values('sender_id', 'receiver_id', 'student_id')
            .annotate(last=Max('created_at'))
        )
        latest = {}
        for row in activity:
            counterpart = row['receiver_id'] if row['sender_id'] == user.pk else row['sender_id']
            key = (counterpart, row['student_id'])
            if key not in latest or row['last'] > latest[key]:
                latest[key] = row['last']
        return latest

    @staticmethod
    def list_contacts(caller):
        """
        Everyone the caller may message, one entry per (counterpart,
        student), sorted unread first, then by latest activity, then name.
        """
        contacts = []
        if caller.is_teacher:
            for student in RosterService.guardian_students_for_teacher(caller.teacher):
                parent = student.guardian
                contacts.append({
                    'user_id': parent.user_id,
                    'name': parent.full_name,
                    'role': Role.PARENT,
                    'student_id': student.pk,
                    'student_name': student.full_name,
                    'class_label': student.current_class.label,
                    'phone': parent.phone,
                })
        elif caller.is_parent:
            for student in caller.parent.children.filter(is_deleted=False).select_related(
                'current_class', 'current_class__class_teacher__user'
            ):
                class_obj = student.current_class
                if class_obj.is_deleted:
                    continue
                teachers = {}
                if class_obj.class_teacher is not None and not class_obj.class_teacher.is_deleted:
                    teachers[class_obj.class_teacher.pk] = (class_obj.class_teacher, [])
                assignments = class_obj.subject_assignments.filter(
                    is_deleted=False, teacher__is_deleted=False
                ).select_related('teacher__user')
                for assignment in assignments:
                    teachers.setdefault(assignment.teacher.pk, (assignment.teacher, []))[1].append(
                        assignment.subject
                    )
                for teacher, subjects in teachers.values():
                    contacts.append({
                        'user_id': teacher.user_id,
                        'name': teacher.full_name,
                        'role': Role.TEACHER,
                        'student_id': student.pk,
                        'student_name': student.full_name,
                        'class_label': class_obj.label,
                        'is_class_teacher': teacher.is_class_teacher_of(class_obj),
                        'subjects': sorted(subjects),
                    })
        else:
            raise Unauthorized("Only teachers and parents have chat contacts.")

        summary = {
            (g['counterpart_id'], g['student_id']): g
            for g in MessagingService.unread_summary(caller)['threads']
        }
        activity = MessagingService._last_activity(caller.user)

        for contact in contacts:
            key = (contact['user_id'], contact['student_id'])
            group = summary.get(key)
            contact['unread_count'] = group['unread_count'] if group else 0
            contact['last_message'] = group['last_message'] if group else None
            contact['last_activity'] = activity.get(key)

        contacts.sort(key=lambda c: (
            c['unread_count'] == 0,
            -c['last_activity'].timestamp() if c['last_activity'] else 0,
            c['name'].lower(),
            c['student_name'].lower(),
        ))
        return contacts
