"""
Management command to ensure every clinic role exists.

Usage:
    python manage.py ensure_roles
    python manage.py ensure_roles --with-demo-users

Idempotent; safe to run on every deploy.
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from apps.authz.models import Role, RoleChoices, UserRole

DEMO_PASSWORD = 'clinica123dev'

DEMO_USERS = [
    {'email': 'admin@clinica.local', 'first_name': 'Admin', 'last_name': 'Clínica', 'role': RoleChoices.ADMIN},
    {'email': 'docente@clinica.local', 'first_name': 'Docente', 'last_name': 'Demo', 'role': RoleChoices.TEACHER},
    {'email': 'estudiante@clinica.local', 'first_name': 'Estudiante', 'last_name': 'Demo', 'role': RoleChoices.STUDENT},
    {'email': 'recepcion@clinica.local', 'first_name': 'Recepción', 'last_name': 'Demo', 'role': RoleChoices.RECEPTION},
]


class Command(BaseCommand):
    help = 'Ensure clinic roles exist (optionally seed one demo user per role)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--with-demo-users',
            action='store_true',
            help='Create one demo user per role if missing',
        )

    def handle(self, *args, **options):
        self.stdout.write('Ensuring roles exist...')
        for value in RoleChoices.values:
            role, created = Role.objects.get_or_create(name=value)
            if created:
                self.stdout.write(self.style.SUCCESS(f'  Created role: {role.name}'))
            else:
                self.stdout.write(f'  Role exists: {role.name}')

        if not options['with_demo_users']:
            return

        User = get_user_model()
        self.stdout.write('Ensuring demo users exist...')
        for data in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=data['email'],
                defaults={
                    'first_name': data['first_name'],
                    'last_name': data['last_name'],
                    'is_staff': data['role'] == RoleChoices.ADMIN,
                },
            )
            if created:
                user.set_password(DEMO_PASSWORD)
                user.save()
                self.stdout.write(self.style.SUCCESS(f'  Created user: {user.email}'))

            role = Role.objects.get(name=data['role'])
            UserRole.objects.get_or_create(user=user, role=role)
