"""
Ops models: audit_log.
"""
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class AuditActionChoices(models.TextChoices):
    INSERT = 'insert', 'Insert'
    UPDATE = 'update', 'Update'
    DELETE = 'delete', 'Delete'


class AuditLog(models.Model):
    """
    Append-only before/after record of every mutation.

    Rows are written by `apps.ops.services.record_audit` and never updated.
    `actor` is null for system actions (e.g. the auto-seeded dental chart).
    """
    table_name = models.CharField(max_length=100)
    record_id = models.BigIntegerField()
    action = models.CharField(
        max_length=10,
        choices=AuditActionChoices.choices
    )
    before = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    after = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='audit_entries',
        help_text='User who performed the action (null for system actions)'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_log'
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['table_name', 'record_id'], name='idx_audit_table_record'),
            models.Index(fields=['created_at'], name='idx_audit_created_at'),
            models.Index(fields=['actor'], name='idx_audit_actor'),
        ]

    def __str__(self):
        actor = self.actor.email if self.actor else 'system'
        return f"{self.action} {self.table_name}#{self.record_id} by {actor}"
