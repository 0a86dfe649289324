"""
Audit log API (admin only, read only).
"""
from rest_framework import viewsets

from apps.authz.permissions import IsAdmin
from apps.core.params import parse_id

from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    - GET /api/v1/audit/ - list entries

    Query parameters:
    - ?table=appointment&record_id=12 - history of one record
    - ?actor=<user id>
    - ?action=insert|update|delete
    """
    serializer_class = AuditLogSerializer
    permission_classes = [IsAdmin]
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        queryset = AuditLog.objects.select_related('actor')
        params = self.request.query_params

        table = params.get('table')
        if table:
            queryset = queryset.filter(table_name=table)

        record_id = parse_id(params.get('record_id'), 'record_id')
        if record_id:
            queryset = queryset.filter(record_id=record_id)

        actor = parse_id(params.get('actor'), 'actor')
        if actor:
            queryset = queryset.filter(actor_id=actor)

        action = params.get('action')
        if action:
            queryset = queryset.filter(action=action)

        return queryset.order_by('-created_at', '-id')
