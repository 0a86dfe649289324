# Generated migration for clinical app

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clinical', '0001_initial'),
        ('scheduling', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Encounter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('presumptive_diagnosis', models.TextField()),
                ('treatment_plan', models.TextField()),
                ('notes', models.TextField(blank=True)),
                ('oral_status', models.JSONField(default=dict)),
                ('attended_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='encounter', to='scheduling.appointment')),
                ('attended_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='encounters_attended', to=settings.AUTH_USER_MODEL)),
                ('history', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='encounters', to='clinical.clinicalhistory')),
            ],
            options={
                'verbose_name': 'Encounter',
                'verbose_name_plural': 'Encounters',
                'db_table': 'encounter',
                'ordering': ['-attended_at'],
                'indexes': [
                    models.Index(fields=['attended_by', 'attended_at'], name='idx_encounter_attended_by'),
                    models.Index(fields=['history'], name='idx_encounter_history'),
                ],
            },
        ),
    ]
