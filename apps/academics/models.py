from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from apps.core.models import CoreBaseModel


class Class(CoreBaseModel):
    """
    A class and division (5-A, 5-B ...). Working-day calendars and
    attendance are keyed on it.
    """
    name = models.CharField(_('class name'), max_length=50)
    division = models.CharField(_('division'), max_length=10)
    class_teacher = models.ForeignKey(
        'academics.Teacher',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='homeroom_classes',
        verbose_name=_('class teacher')
    )

    class Meta:
        verbose_name = _('Class')
        verbose_name_plural = _('Classes')
        ordering = ['name', 'division']
        unique_together = ['name', 'division']

    def __str__(self):
        return self.label

    @property
    def label(self):
        return f"{self.name}-{self.division}"


class Teacher(CoreBaseModel):
    """
    Teacher profile extending the core User model
    """
    user = models.OneToOneField(
        'users.User',
        on_delete=models.CASCADE,
        related_name='teacher_profile',
        verbose_name=_('user account')
    )
    teacher_id = models.CharField(
        _('teacher ID'),
        max_length=20,
        unique=True,
        db_index=True
    )

    class Meta:
        verbose_name = _('Teacher')
        verbose_name_plural = _('Teachers')
        ordering = ['teacher_id']

    def __str__(self):
        return f"{self.full_name} ({self.teacher_id})"

    @property
    def full_name(self):
        return self.user.display_name

    def assigned_classes(self):
        """
        Classes this teacher is class teacher of or teaches a subject in.
        Soft-deleted classes, assignments and profiles count as removed.
        """
        if self.is_deleted:
            return Class.objects.none()
        return Class.objects.filter(
            Q(class_teacher=self)
            | Q(subject_assignments__teacher=self, subject_assignments__is_deleted=False),
            is_deleted=False,
        ).distinct()

    def teaches(self, class_obj):
        if class_obj is None or class_obj.is_deleted or self.is_deleted:
            return False
        if class_obj.class_teacher_id == self.pk:
            return True
        return self.subject_assignments.filter(class_assigned=class_obj, is_deleted=False).exists()

    def is_class_teacher_of(self, class_obj):
        return (
            class_obj is not None
            and not class_obj.is_deleted
            and not self.is_deleted
            and class_obj.class_teacher_id == self.pk
        )


class SubjectAssignment(CoreBaseModel):
    """
    Assignment of teachers to subjects in specific classes
    """
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.CASCADE,
        related_name='subject_assignments',
        verbose_name=_('teacher')
    )
    subject = models.CharField(_('subject'), max_length=100)
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='subject_assignments',
        verbose_name=_('class')
    )

    class Meta:
        verbose_name = _('Subject Assignment')
        verbose_name_plural = _('Subject Assignments')
        unique_together = ['teacher', 'subject', 'class_assigned']
        ordering = ['class_assigned', 'subject']

    def __str__(self):
        return f"{self.teacher} - {self.subject} - {self.class_assigned}"


class ParentGuardian(CoreBaseModel):
    """
    Parent or guardian account; a guardian may have several children.
    """
    class Relationship(models.TextChoices):
        FATHER = 'father', _('Father')
        MOTHER = 'mother', _('Mother')
        GUARDIAN = 'guardian', _('Guardian')
        OTHER = 'other', _('Other')

    user = models.OneToOneField(
        'users.User',
        on_delete=models.CASCADE,
        related_name='parent_profile',
        verbose_name=_('user account')
    )
    first_name = models.CharField(_('first name'), max_length=50)
    last_name = models.CharField(_('last name'), max_length=50)
    phone = models.CharField(_('phone'), max_length=20, blank=True)
    relationship = models.CharField(
        _('relationship'),
        max_length=20,
        choices=Relationship.choices,
        default=Relationship.GUARDIAN
    )

    class Meta:
        verbose_name = _('Parent/Guardian')
        verbose_name_plural = _('Parents/Guardians')
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='parent_name_idx'),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


class Student(CoreBaseModel):
    """
    Student enrolled in exactly one class, with an optional guardian.
    """
    admission_number = models.CharField(
        _('admission number'),
        max_length=20,
        unique=True,
        db_index=True
    )
    first_name = models.CharField(_('first name'), max_length=50)
    last_name = models.CharField(_('last name'), max_length=50)
    current_class = models.ForeignKey(
        Class,
        on_delete=models.PROTECT,
        related_name='students',
        verbose_name=_('class')
    )
    guardian = models.ForeignKey(
        ParentGuardian,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children',
        verbose_name=_('parent/guardian')
    )

    class Meta:
        verbose_name = _('Student')
        verbose_name_plural = _('Students')
        ordering = ['current_class', 'last_name', 'first_name']

    def __str__(self):
        return f"{self.full_name} ({self.admission_number})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def is_child_of(self, parent):
        return parent is not None and not parent.is_deleted and self.guardian_id == parent.pk
