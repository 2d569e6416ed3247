import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def core_fields():
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
        ('updated_at', models.DateTimeField(auto_now=True, db_index=True, verbose_name='updated at')),
        ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('pending', 'Pending'), ('suspended', 'Suspended'), ('archived', 'Archived')], db_index=True, default='active', max_length=20, verbose_name='status')),
        ('status_changed_at', models.DateTimeField(auto_now_add=True, verbose_name='status changed at')),
        ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='is deleted')),
        ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='deleted at')),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Teacher',
            fields=core_fields() + [
                ('teacher_id', models.CharField(db_index=True, max_length=20, unique=True, verbose_name='teacher ID')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='teacher_profile', to=settings.AUTH_USER_MODEL, verbose_name='user account')),
            ],
            options={
                'verbose_name': 'Teacher',
                'verbose_name_plural': 'Teachers',
                'ordering': ['teacher_id'],
            },
        ),
        migrations.CreateModel(
            name='Class',
            fields=core_fields() + [
                ('name', models.CharField(max_length=50, verbose_name='class name')),
                ('division', models.CharField(max_length=10, verbose_name='division')),
                ('class_teacher', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='homeroom_classes', to='academics.teacher', verbose_name='class teacher')),
            ],
            options={
                'verbose_name': 'Class',
                'verbose_name_plural': 'Classes',
                'ordering': ['name', 'division'],
                'unique_together': {('name', 'division')},
            },
        ),
        migrations.CreateModel(
            name='SubjectAssignment',
            fields=core_fields() + [
                ('subject', models.CharField(max_length=100, verbose_name='subject')),
                ('class_assigned', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subject_assignments', to='academics.class', verbose_name='class')),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subject_assignments', to='academics.teacher', verbose_name='teacher')),
            ],
            options={
                'verbose_name': 'Subject Assignment',
                'verbose_name_plural': 'Subject Assignments',
                'ordering': ['class_assigned', 'subject'],
                'unique_together': {('teacher', 'subject', 'class_assigned')},
            },
        ),
        migrations.CreateModel(
            name='ParentGuardian',
            fields=core_fields() + [
                ('first_name', models.CharField(max_length=50, verbose_name='first name')),
                ('last_name', models.CharField(max_length=50, verbose_name='last name')),
                ('phone', models.CharField(blank=True, max_length=20, verbose_name='phone')),
                ('relationship', models.CharField(choices=[('father', 'Father'), ('mother', 'Mother'), ('guardian', 'Guardian'), ('other', 'Other')], default='guardian', max_length=20, verbose_name='relationship')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='parent_profile', to=settings.AUTH_USER_MODEL, verbose_name='user account')),
            ],
            options={
                'verbose_name': 'Parent/Guardian',
                'verbose_name_plural': 'Parents/Guardians',
                'ordering': ['last_name', 'first_name'],
                'indexes': [models.Index(fields=['last_name', 'first_name'], name='parent_name_idx')],
            },
        ),
        migrations.CreateModel(
            name='Student',
            fields=core_fields() + [
                ('admission_number', models.CharField(db_index=True, max_length=20, unique=True, verbose_name='admission number')),
                ('first_name', models.CharField(max_length=50, verbose_name='first name')),
                ('last_name', models.CharField(max_length=50, verbose_name='last name')),
                ('current_class', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='students', to='academics.class', verbose_name='class')),
                ('guardian', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='academics.parentguardian', verbose_name='parent/guardian')),
            ],
            options={
                'verbose_name': 'Student',
                'verbose_name_plural': 'Students',
                'ordering': ['current_class', 'last_name', 'first_name'],
            },
        ),
    ]
