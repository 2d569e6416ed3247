import uuid
from decimal import Decimal

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
        ('academics', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='WorkingDayCalendar',
            fields=core_fields() + [
                ('month', models.CharField(max_length=20, verbose_name='month')),
                ('working_days', models.JSONField(default=list, help_text='Sorted ISO dates (YYYY-MM-DD)', verbose_name='working days')),
                ('class_assigned', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='working_day_calendars', to='academics.class', verbose_name='class')),
                ('set_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='set by')),
            ],
            options={
                'verbose_name': 'Working Day Calendar',
                'verbose_name_plural': 'Working Day Calendars',
                'ordering': ['class_assigned', 'month'],
                'unique_together': {('class_assigned', 'month')},
            },
        ),
        migrations.CreateModel(
            name='AttendanceRecord',
            fields=core_fields() + [
                ('month', models.CharField(max_length=20, verbose_name='month')),
                ('present_dates', models.JSONField(default=list, verbose_name='present dates')),
                ('absent_dates', models.JSONField(default=list, verbose_name='absent dates')),
                ('percentage', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=7, verbose_name='attendance percentage')),
                ('version', models.PositiveIntegerField(default=1, verbose_name='version')),
                ('last_submitted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='last submitted by')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='monthly_attendance', to='academics.student', verbose_name='student')),
            ],
            options={
                'verbose_name': 'Attendance Record',
                'verbose_name_plural': 'Attendance Records',
                'ordering': ['student', 'created_at'],
                'unique_together': {('student', 'month')},
            },
        ),
    ]
