# Generated migration for scheduling app

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clinical', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Specialty',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Specialty',
                'verbose_name_plural': 'Specialties',
                'db_table': 'specialty',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ClinicSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('days_of_week', models.JSONField(default=list, help_text='ISO weekdays (1=Monday .. 7=Sunday) this schedule applies to')),
                ('opening_time', models.TimeField()),
                ('closing_time', models.TimeField()),
                ('is_active', models.BooleanField(default=True)),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Clinic Schedule',
                'verbose_name_plural': 'Clinic Schedules',
                'db_table': 'clinic_schedule',
                'ordering': ['opening_time'],
                'constraints': [
                    models.CheckConstraint(check=models.Q(('opening_time__lt', models.F('closing_time'))), name='ck_clinic_schedule_open_before_close'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TimeSlotTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('day_of_week', models.PositiveSmallIntegerField(choices=[(1, 'Lunes'), (2, 'Martes'), (3, 'Miércoles'), (4, 'Jueves'), (5, 'Viernes'), (6, 'Sábado'), (7, 'Domingo')])),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('appointment_duration_minutes', models.PositiveSmallIntegerField(default=30, validators=[django.core.validators.MinValueValidator(15), django.core.validators.MaxValueValidator(120)])),
                ('max_capacity', models.PositiveIntegerField(blank=True, help_text='Fixed capacity; computed from window/duration when empty', null=True)),
                ('status', models.CharField(choices=[('active', 'Activa'), ('inactive', 'Inactiva'), ('suspended', 'Suspendida')], default='active', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('responsible', models.ForeignKey(help_text='Staff member (teacher/student) in charge of this window', on_delete=django.db.models.deletion.PROTECT, related_name='time_slot_templates', to=settings.AUTH_USER_MODEL)),
                ('specialty', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='templates', to='scheduling.specialty')),
            ],
            options={
                'verbose_name': 'Time Slot Template',
                'verbose_name_plural': 'Time Slot Templates',
                'db_table': 'time_slot_template',
                'ordering': ['day_of_week', 'start_time'],
                'indexes': [
                    models.Index(fields=['day_of_week', 'specialty'], name='idx_template_day_specialty'),
                    models.Index(fields=['responsible', 'day_of_week'], name='idx_template_responsible_day'),
                    models.Index(fields=['status'], name='idx_template_status'),
                ],
                'constraints': [
                    models.CheckConstraint(check=models.Q(('start_time__lt', models.F('end_time'))), name='ck_template_start_before_end'),
                    models.CheckConstraint(check=models.Q(('day_of_week__gte', 1), ('day_of_week__lte', 7)), name='ck_template_day_of_week_range'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('state', models.CharField(choices=[('scheduled', 'Programada'), ('attended', 'Atendida'), ('cancelled', 'Cancelada'), ('no_show', 'No asistió'), ('rescheduled', 'Reagendada')], default='scheduled', max_length=20)),
                ('reason', models.TextField(blank=True, help_text='Reason for the visit')),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments_created', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='clinical.patient')),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='scheduling.timeslottemplate')),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'db_table': 'appointment',
                'ordering': ['date', 'start_time'],
                'indexes': [
                    models.Index(fields=['template', 'date'], name='idx_appointment_template_date'),
                    models.Index(fields=['patient', 'date'], name='idx_appointment_patient_date'),
                    models.Index(fields=['state'], name='idx_appointment_state'),
                ],
                'constraints': [
                    models.CheckConstraint(check=models.Q(('start_time__lt', models.F('end_time'))), name='ck_appointment_start_before_end'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Shift',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('starts_at', models.DateTimeField()),
                ('ends_at', models.DateTimeField()),
                ('state', models.CharField(choices=[('pending', 'Pendiente'), ('confirmed', 'Confirmado'), ('attended', 'Atendido'), ('cancelled', 'Cancelado')], default='pending', max_length=20)),
                ('room', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shifts', to='clinical.patient')),
                ('student', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='shifts_as_student', to=settings.AUTH_USER_MODEL)),
                ('supervisor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='shifts_as_supervisor', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Shift',
                'verbose_name_plural': 'Shifts',
                'db_table': 'shift',
                'ordering': ['starts_at'],
                'indexes': [
                    models.Index(fields=['starts_at'], name='idx_shift_starts_at'),
                ],
            },
        ),
    ]
