"""
Staff directory: lookup for every role, account management for admins.
"""
from django.db.models import Q
from rest_framework import viewsets

from apps.authz.models import User
from apps.authz.permissions import StaffDirectoryPermission
from apps.authz.serializers import UserSerializer, UserWriteSerializer


class UserViewSet(viewsets.ModelViewSet):
    """
    Endpoints:
    - GET /api/v1/users/ - List staff
    - GET /api/v1/users/{id}/ - Staff detail
    - POST /api/v1/users/ - Create account with roles (Admin only)
    - PATCH /api/v1/users/{id}/ - Update account/roles (Admin only)

    Query parameters:
    - ?role=admin|teacher|student|reception
    - ?include_inactive=true
    - ?q=search_term (email, first or last name)
    """
    permission_classes = [StaffDirectoryPermission]
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_queryset(self):
        queryset = User.objects.prefetch_related('user_roles__role')

        include_inactive = self.request.query_params.get('include_inactive', 'false').lower() == 'true'
        if not include_inactive:
            queryset = queryset.filter(is_active=True)

        role = self.request.query_params.get('role')
        if role:
            queryset = queryset.filter(user_roles__role__name=role)

        q = self.request.query_params.get('q')
        if q:
            queryset = queryset.filter(
                Q(email__icontains=q) | Q(first_name__icontains=q) | Q(last_name__icontains=q)
            )

        return queryset.distinct().order_by('last_name', 'first_name', 'email')

    def get_serializer_class(self):
        if self.action in ['list', 'retrieve']:
            return UserSerializer
        return UserWriteSerializer
