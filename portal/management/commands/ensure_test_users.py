from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password

from portal.models import User
from portal.permissions import ADMIN_ROLES

# username, role, display name
TEST_SET = [
    ("admin1", "admin", "Ama Admin"),
    ("reviewer1", "reviewer", "Kofi Reviewer"),
    ("caregiver1", "caregiver", "Esi Caregiver"),
    ("patient1", "patient", "Yaw Patient"),
    ("super", "super", "Platform Operator"),
]


class Command(BaseCommand):
    help = "Create or reset one account per portal role (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="123456", help="Password given to every test account.")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, role, display_name in TEST_SET:
            fields = {
                "role": role,
                "password": password,
                "is_active": True,
                # Administrators may also browse the Django admin.
                "is_staff": role in ADMIN_ROLES,
                "first_name": display_name,
            }
            _, created = User.objects.update_or_create(username=username, defaults=fields)
            verb = "created" if created else "reset"
            self.stdout.write(self.style.SUCCESS(f"{verb}: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS(f"{len(TEST_SET)} test users ready."))
