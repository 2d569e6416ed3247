# apps/core/models.py
import uuid
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class CoreBaseModel(models.Model):
    """
    Base model shared by every concrete model in the project:
    - UUID primary key
    - Created/updated timestamps
    - Status tracking with change timestamp
    - Soft delete functionality
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')
        PENDING = 'pending', _('Pending')
        SUSPENDED = 'suspended', _('Suspended')
        ARCHIVED = 'archived', _('Archived')

    # UUID Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Timestamp fields
    created_at = models.DateTimeField(_('created at'), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True, db_index=True)

    # Status fields
    status = models.CharField(
        _('status'),
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True
    )
    status_changed_at = models.DateTimeField(_('status changed at'), auto_now_add=True)

    # Soft delete fields
    is_deleted = models.BooleanField(_('is deleted'), default=False, db_index=True)
    deleted_at = models.DateTimeField(_('deleted at'), null=True, blank=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """Update status_changed_at when status changes."""
        if self.pk and not self._state.adding:
            original_status = (
                self.__class__.objects.filter(pk=self.pk)
                .values_list('status', flat=True)
                .first()
            )
            if original_status is not None and original_status != self.status:
                self.status_changed_at = timezone.now()

        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        """
        Soft delete by setting is_deleted flag and deleted_at timestamp.
        """
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save()

    def hard_delete(self, using=None, keep_parents=False):
        """
        Perform actual database deletion.
        """
        super().delete(using=using, keep_parents=keep_parents)

    def restore(self):
        """
        Restore a soft-deleted instance.
        """
        self.is_deleted = False
        self.deleted_at = None
        self.save()

    def __str__(self):
        return f"{self.__class__.__name__} {self.id}"
