# core/management/commands/ensure_test_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from core.models import User

TEST_SET = [
    ("admin1", "admin"),
    ("doctor1", "doctor"),
    ("staff1", "staff"),
    ("patient1", "patient"),
]
PASSWORD = "test123456"


class Command(BaseCommand):
    help = f"Ensure one test user per role exists with password={PASSWORD} (idempotent)."

    def handle(self, *args, **opts):
        for username, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "role": role,
                    "email": f"{username}@test.local",
                    "full_name": f"Test {role.title()}",
                    "password": make_password(PASSWORD),
                    "is_active": True,
                },
            )
            if not created:
                # reset password, role and active flag
                u.password = make_password(PASSWORD)
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
