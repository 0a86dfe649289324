# Generated migration for clinical app

import apps.clinical.models
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(max_length=150)),
                ('last_name', models.CharField(max_length=150)),
                ('national_id', models.CharField(blank=True, help_text='National identity document number', max_length=50, null=True, unique=True)),
                ('birth_date', models.DateField(blank=True, null=True)),
                ('marital_status', models.CharField(blank=True, choices=[('single', 'Soltero/a'), ('married', 'Casado/a'), ('divorced', 'Divorciado/a'), ('widowed', 'Viudo/a'), ('other', 'Otro')], max_length=20)),
                ('sex', models.CharField(blank=True, choices=[('female', 'Femenino'), ('male', 'Masculino'), ('other', 'Otro')], max_length=10)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('email', models.EmailField(blank=True, max_length=200)),
                ('address', models.CharField(blank=True, max_length=200)),
                ('nationality', models.CharField(blank=True, max_length=50)),
                ('registered_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Patient',
                'verbose_name_plural': 'Patients',
                'db_table': 'patient',
                'ordering': ['last_name', 'first_name'],
                'indexes': [
                    models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ClinicalHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('recorded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('questionnaire', models.JSONField(default=dict)),
                ('dental_questionnaire', models.JSONField(blank=True, null=True)),
                ('observations', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clinical_histories_created', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='clinical_histories', to='clinical.patient')),
            ],
            options={
                'verbose_name': 'Clinical History',
                'verbose_name_plural': 'Clinical Histories',
                'db_table': 'clinical_history',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['patient', 'created_at'], name='idx_history_patient_created'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DentalChart',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('version', models.PositiveIntegerField()),
                ('teeth', models.JSONField(help_text='32 tooth records')),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, help_text='Null when seeded by the system', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dental_charts_created', to=settings.AUTH_USER_MODEL)),
                ('history', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='dental_charts', to='clinical.clinicalhistory')),
            ],
            options={
                'verbose_name': 'Dental Chart',
                'verbose_name_plural': 'Dental Charts',
                'db_table': 'dental_chart',
                'ordering': ['history', '-version'],
                'constraints': [
                    models.UniqueConstraint(fields=('history', 'version'), name='uq_dental_chart_history_version'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Attachment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file', models.FileField(max_length=255, upload_to=apps.clinical.models.attachment_upload_to)),
                ('original_name', models.CharField(max_length=255)),
                ('kind', models.CharField(choices=[('xray', 'Radiografía'), ('photo', 'Fotografía'), ('lab_result', 'Análisis'), ('document', 'Documento'), ('other', 'Otro')], default='document', max_length=50)),
                ('mime_type', models.CharField(max_length=100)),
                ('size_bytes', models.PositiveIntegerField()),
                ('description', models.TextField(blank=True)),
                ('uploaded_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='attachments_uploaded', to=settings.AUTH_USER_MODEL)),
                ('history', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attachments', to='clinical.clinicalhistory')),
            ],
            options={
                'verbose_name': 'Attachment',
                'verbose_name_plural': 'Attachments',
                'db_table': 'attachment',
                'ordering': ['-uploaded_at', '-id'],
                'indexes': [
                    models.Index(fields=['history', 'uploaded_at'], name='idx_attachment_history'),
                ],
            },
        ),
    ]
