"""
Audit recorder.

`record_audit` is called after every create/update/delete in the
scheduling and clinical services. It never raises: a failed write is
logged, counted and discarded so the business operation stands.
"""
import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models, transaction
from django.db.models.fields.files import FieldFile

from apps.core.observability import metrics

from .models import AuditActionChoices, AuditLog

logger = logging.getLogger(__name__)


def snapshot(instance):
    """JSON-safe dict of a model instance's concrete field values."""
    data = {}
    for field in instance._meta.concrete_fields:
        value = field.value_from_object(instance)
        if isinstance(value, FieldFile):
            value = value.name
        data[field.attname] = value
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def _actor_or_none(actor):
    if actor is None or not getattr(actor, 'is_authenticated', False):
        return None
    return actor


def _payload(value):
    if isinstance(value, models.Model):
        return snapshot(value)
    return value


def record_audit(table_name, record_id, action, before=None, after=None, actor=None):
    """
    Append an audit entry; returns it, or None if it could not be stored.

    `before`/`after` may be dicts or model instances (snapshotted here).
    The insert runs in its own savepoint so a failure does not poison an
    enclosing transaction.
    """
    try:
        with transaction.atomic():
            entry = AuditLog.objects.create(
                table_name=table_name,
                record_id=record_id,
                action=action,
                before=_payload(before),
                after=_payload(after),
                actor=_actor_or_none(actor),
            )
    except Exception:
        # Audit failures never propagate
        metrics.audit_write_failures_total.labels(table=table_name).inc()
        logger.exception(
            'Audit entry could not be written',
            extra={
                'event': 'audit_write_failed',
                'table_name': table_name,
                'record_id': record_id,
                'action': action,
            },
        )
        return None

    metrics.audit_entries_total.labels(table=table_name, action=action).inc()
    return entry


def audit_history(table_name, record_id):
    """Audit entries for one record, newest first."""
    return AuditLog.objects.filter(
        table_name=table_name, record_id=record_id
    ).select_related('actor').order_by('-created_at', '-id')


def audit_insert(instance, actor=None):
    return record_audit(instance._meta.db_table, instance.pk, AuditActionChoices.INSERT,
                        after=instance, actor=actor)


def audit_update(instance, before, actor=None):
    return record_audit(instance._meta.db_table, instance.pk, AuditActionChoices.UPDATE,
                        before=before, after=instance, actor=actor)


def audit_delete(table_name, record_id, before, actor=None):
    return record_audit(table_name, record_id, AuditActionChoices.DELETE,
                        before=before, actor=actor)
