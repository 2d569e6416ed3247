# apps/communication/models.py

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.models import CoreBaseModel


class ChatMessage(CoreBaseModel):
    """
    One message of a teacher/parent thread. A thread is the messages
    between two users about one student.
    """
    class Role(models.TextChoices):
        TEACHER = 'teacher', _('Teacher')
        PARENT = 'parent', _('Parent')

    sender = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='sent_chat_messages',
        verbose_name=_('sender')
    )
    sender_role = models.CharField(_('sender role'), max_length=10, choices=Role.choices)
    receiver = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='received_chat_messages',
        verbose_name=_('receiver')
    )
    receiver_role = models.CharField(_('receiver role'), max_length=10, choices=Role.choices)
    student = models.ForeignKey(
        'academics.Student',
        on_delete=models.CASCADE,
        related_name='chat_messages',
        verbose_name=_('student')
    )
    content = models.TextField(_('content'))
    # Send order; created_at alone can tie.
    sequence = models.PositiveBigIntegerField(_('sequence'), unique=True, editable=False)

    # Read status, flipped once by the receiver
    is_read = models.BooleanField(_('is read'), default=False, db_index=True)
    read_at = models.DateTimeField(_('read at'), null=True, blank=True)

    class Meta:
        verbose_name = _('Chat Message')
        verbose_name_plural = _('Chat Messages')
        ordering = ['sequence']
        indexes = [
            models.Index(fields=['receiver', 'is_read'], name='chat_receiver_unread_idx'),
            models.Index(fields=['student', 'sender', 'receiver', 'sequence'], name='chat_thread_idx'),
        ]

    def __str__(self):
        return f"{self.sender.display_name}: {self.content[:50]}"

    def counterpart_of(self, user_id):
        return self.receiver_id if self.sender_id == user_id else self.sender_id
