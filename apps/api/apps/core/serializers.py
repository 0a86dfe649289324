"""
Core serializers.
"""
from rest_framework import serializers


class UserProfileSerializer(serializers.Serializer):
    """Profile of the authenticated user, consumed by the frontend after login."""
    id = serializers.IntegerField()
    email = serializers.EmailField()
    first_name = serializers.CharField(allow_blank=True)
    last_name = serializers.CharField(allow_blank=True)
    is_active = serializers.BooleanField()
    roles = serializers.ListField(child=serializers.CharField())
