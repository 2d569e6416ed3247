# apps/communication/admin.py

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import ChatMessage


class UnreadMessagesFilter(admin.SimpleListFilter):
    title = _('read status')
    parameter_name = 'read'

    def lookups(self, request, model_admin):
        return (
            ('unread', _('Unread')),
            ('read', _('Read')),
        )

    def queryset(self, request, queryset):
        if self.value() == 'unread':
            return queryset.filter(is_read=False)
        elif self.value() == 'read':
            return queryset.filter(is_read=True)
        return queryset


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    """
    Read-only view of the teacher/parent threads; messages are only
    created through the messaging service.
    """
    list_display = [
        'sender', 'sender_role', 'receiver', 'receiver_role', 'student',
        'short_content', 'is_read', 'created_at'
    ]
    list_filter = [UnreadMessagesFilter, 'sender_role', 'created_at']
    search_fields = [
        'content', 'sender__email', 'receiver__email',
        'student__first_name', 'student__last_name', 'student__admission_number'
    ]
    readonly_fields = [
        'sender', 'sender_role', 'receiver', 'receiver_role', 'student', 'content', 'sequence',
        'is_read', 'read_at', 'created_at', 'updated_at'
    ]
    date_hierarchy = 'created_at'

    fieldsets = (
        (_('Thread'), {
            'fields': ('sender', 'sender_role', 'receiver', 'receiver_role', 'student')
        }),
        (_('Message'), {
            'fields': ('content', 'sequence')
        }),
        (_('Read Status'), {
            'fields': ('is_read', 'read_at', 'created_at', 'updated_at')
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('sender', 'receiver', 'student')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def short_content(self, obj):
        return obj.content[:50]
    short_content.short_description = _('Content')
