from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from clientapp import directory
from clientapp.exceptions import PlacementError
from clientapp.forms import ClientForm, PaymentConfirmationForm
from clientapp.services import create_and_place


class Command(BaseCommand):
    help = "Create a client and place it in the tree (spills over when the parent is full)"

    def add_arguments(self, parser):
        parser.add_argument("--name", required=True)
        parser.add_argument("--username", required=True)
        parser.add_argument("--password", required=True)
        parser.add_argument("--mobile", required=True)
        parser.add_argument("--email", required=True)
        parser.add_argument("--package", required=True, choices=["Silver", "Gold", "Diamond"])
        parser.add_argument("--parent", dest="parent_id", help="requested parent member_id (default: admin)")
        parser.add_argument("--position", choices=["left", "right"])
        parser.add_argument("--anchor", dest="anchor_id", help="fallback anchor member_id (default: admin)")
        parser.add_argument("--payment-confirmed", action="store_true")
        parser.add_argument("--require-payment", action="store_true",
                            help="reject the client unless --payment-confirmed is given")

    def handle(self, *args, **options):
        form_class = PaymentConfirmationForm if options["require_payment"] else ClientForm
        form = form_class(data={
            "name": options["name"],
            "username": options["username"],
            "password": options["password"],
            "mobile": options["mobile"],
            "email": options["email"],
            "package": options["package"],
            "parent_id": options["parent_id"] or "",
            "position": options["position"] or "",
            "payment_confirmed": options["payment_confirmed"],
        })
        if not form.is_valid():
            errors = "; ".join(
                f"{field}: {' '.join(messages)}" for field, messages in form.errors.items()
            )
            raise CommandError(f"Invalid input: {errors}")

        anchor = directory.get_admin_anchor()
        anchor_id = options["anchor_id"] or (anchor.member_id if anchor else None)
        parent_id = form.cleaned_data["parent_id"] or anchor_id
        if not parent_id:
            raise CommandError("No parent given and no admin anchor exists. Run init_directory first.")

        try:
            member = create_and_place(
                form.account_fields(),
                requested_parent_id=parent_id,
                requested_position=form.cleaned_data["position"],
                fallback_anchor_id=anchor_id,
            )
        except PlacementError as exc:
            raise CommandError(f"{exc.code}: {exc}")
        except ValidationError as exc:
            raise CommandError("; ".join(exc.messages))

        self.stdout.write(self.style.SUCCESS(
            f"✅ Client {member.member_id} placed under {member.parent_member_id} "
            f"on the {(member.position or '-').upper()} side"
        ))
