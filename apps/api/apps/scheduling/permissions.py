"""
Scheduling permissions.

- Appointments and availability: every role reads; admin, teacher, student
  and reception book.
- Specialties and clinic hours: every role reads; admin writes.
- Time-slot templates: every role reads; admin and teacher write.
- Shifts: every role reads; admin, teacher and reception write.
"""
from apps.authz.models import RoleChoices
from apps.authz.permissions import ALL_ROLES, RoleBasedPermission


class AppointmentPermission(RoleBasedPermission):
    read_roles = ALL_ROLES
    write_roles = ALL_ROLES


class SchedulingCatalogPermission(RoleBasedPermission):
    read_roles = ALL_ROLES
    write_roles = frozenset({RoleChoices.ADMIN})


class TimeSlotTemplatePermission(RoleBasedPermission):
    read_roles = ALL_ROLES
    write_roles = frozenset({RoleChoices.ADMIN, RoleChoices.TEACHER})


class ShiftPermission(RoleBasedPermission):
    read_roles = ALL_ROLES
    write_roles = frozenset({RoleChoices.ADMIN, RoleChoices.TEACHER, RoleChoices.RECEPTION})
