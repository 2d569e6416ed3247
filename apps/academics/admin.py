# apps/academics/admin.py

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Class, ParentGuardian, Student, SubjectAssignment, Teacher


class SubjectAssignmentInline(admin.TabularInline):
    """
    Inline admin for the subject teachers of a class.
    """
    model = SubjectAssignment
    extra = 0
    fields = ('teacher', 'subject')
    raw_id_fields = ('teacher',)
    verbose_name_plural = _('Subject Teachers')


class StudentInline(admin.TabularInline):
    model = Student
    extra = 0
    fields = ('admission_number', 'first_name', 'last_name', 'guardian')
    raw_id_fields = ('guardian',)


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    """
    Admin interface for Class model.
    """
    list_display = ('label', 'class_teacher', 'student_count', 'status')
    list_filter = ('name', 'status')
    search_fields = ('name', 'division', 'class_teacher__user__email')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('class_teacher',)

    fieldsets = (
        (_('Class Information'), {
            'fields': ('name', 'division', 'class_teacher')
        }),
        (_('System Metadata'), {
            'fields': ('status', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    inlines = [SubjectAssignmentInline, StudentInline]

    def student_count(self, obj):
        return obj.students.count()
    student_count.short_description = _('Students')


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ('teacher_id', 'full_name', 'status')
    search_fields = ('teacher_id', 'user__email', 'user__first_name', 'user__last_name')
    raw_id_fields = ('user',)


@admin.register(SubjectAssignment)
class SubjectAssignmentAdmin(admin.ModelAdmin):
    list_display = ('teacher', 'subject', 'class_assigned')
    list_filter = ('class_assigned',)
    search_fields = ('subject', 'teacher__teacher_id')
    raw_id_fields = ('teacher', 'class_assigned')


@admin.register(ParentGuardian)
class ParentGuardianAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'relationship', 'phone', 'user')
    list_filter = ('relationship',)
    search_fields = ('first_name', 'last_name', 'phone', 'user__email')
    raw_id_fields = ('user',)


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    """
    Admin interface for Student model.
    """
    list_display = ('admission_number', 'full_name', 'current_class', 'guardian', 'status')
    list_filter = ('current_class', 'status')
    search_fields = ('admission_number', 'first_name', 'last_name', 'guardian__last_name')
    raw_id_fields = ('current_class', 'guardian')
