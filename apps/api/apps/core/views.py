"""
Core views - current user profile and Prometheus exposition.
"""
from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import UserProfileSerializer


class CurrentUserView(APIView):
    """
    GET /api/auth/me/ - profile of the authenticated user.

    Response format:
    {
        "id": 3,
        "email": "docente@clinica.edu",
        "first_name": "Ana",
        "last_name": "Ruiz",
        "is_active": true,
        "roles": ["teacher"]
    }
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        profile_data = {
            'id': user.id,
            'email': user.email,
            'first_name': user.first_name,
            'last_name': user.last_name,
            'is_active': user.is_active,
            'roles': sorted(user.role_names()),
        }
        serializer = UserProfileSerializer(profile_data)
        return Response(serializer.data, status=status.HTTP_200_OK)


def metrics_view(request):
    """Prometheus scrape endpoint."""
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
