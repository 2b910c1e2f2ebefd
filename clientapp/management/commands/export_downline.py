from django.core.management.base import BaseCommand, CommandError

from clientapp import directory
from clientapp.utils.export import build_downline_workbook


class Command(BaseCommand):
    help = "Export a member's downline to an Excel workbook"

    def add_arguments(self, parser):
        parser.add_argument("member_id")
        parser.add_argument("--output", default=None, help="defaults to downline_<member_id>.xlsx")

    def handle(self, *args, **options):
        member = directory.get_member(options["member_id"])
        if member is None:
            raise CommandError(f"Member {options['member_id']} not found")

        output = options["output"] or f"downline_{member.member_id}.xlsx"
        wb = build_downline_workbook(member)
        wb.save(output)

        self.stdout.write(self.style.SUCCESS(f"✅ Downline of {member.member_id} written to {output}"))
