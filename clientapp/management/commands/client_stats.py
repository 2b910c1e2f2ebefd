from django.core.management.base import BaseCommand

from clientapp.services import client_stats


class Command(BaseCommand):
    help = "Show client counts per package"

    def handle(self, *args, **options):
        stats = client_stats()
        self.stdout.write(f"Total   : {stats['total']}")
        self.stdout.write(f"Silver  : {stats['silver']}")
        self.stdout.write(f"Gold    : {stats['gold']}")
        self.stdout.write(f"Diamond : {stats['diamond']}")
