from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from clientapp import directory
from clientapp.services import seed_default_plans


class Command(BaseCommand):
    help = "Ensure the admin anchor member and the default plans exist"

    def add_arguments(self, parser):
        parser.add_argument("--username", default=directory.DEFAULT_ADMIN_USERNAME)
        parser.add_argument("--password", help="required the first time the admin is created")
        parser.add_argument("--email", default=directory.DEFAULT_ADMIN_EMAIL)

    def handle(self, *args, **options):
        try:
            admin, created = directory.ensure_admin(
                username=options["username"],
                password=options["password"],
                email=options["email"],
            )
        except ValidationError as exc:
            raise CommandError("; ".join(exc.messages))

        if created:
            self.stdout.write(self.style.SUCCESS(f"✅ Admin {admin.member_id} created"))
        else:
            self.stdout.write(f"Admin {admin.member_id} already exists")

        plans = seed_default_plans()
        self.stdout.write(self.style.SUCCESS(f"✅ {plans} default plan(s) created"))
