"""
Clinical permissions.

- Patients: every role reads and writes.
- Clinical histories, dental charts, encounters, attachments: admin,
  teacher and student only. Reception has no access to clinical data.

Encounter ownership (only the recording user may change or remove it) is
enforced in `apps.clinical.services`.
"""
from apps.authz.permissions import ALL_ROLES, CLINICAL_ROLES, RoleBasedPermission


class PatientPermission(RoleBasedPermission):
    read_roles = ALL_ROLES
    write_roles = ALL_ROLES


class ClinicalRecordPermission(RoleBasedPermission):
    read_roles = CLINICAL_ROLES
    write_roles = CLINICAL_ROLES
