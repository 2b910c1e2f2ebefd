# clientapp/directory.py
# ----------------------------------------------------------
# Account directory: user records behind every tree member
# ----------------------------------------------------------

import logging

from django.contrib.auth import authenticate, get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction

from .models import Member

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_NAME = "System Admin"
DEFAULT_ADMIN_EMAIL = "admin@nappinghand.com"


def create_account(fields, role=Member.ROLE_CLIENT):
    """
    Create the auth user for a new account and return an unsaved Member
    carrying its fresh member_id.

    The Member row is inserted by the placement step, which fixes
    parent/position in the same INSERT.
    """
    User = get_user_model()
    username = fields["username"]

    if User.objects.filter(username=username).exists():
        raise ValidationError("Username already exists.")

    user = User.objects.create_user(
        username=username,
        password=fields["password"],
        email=fields.get("email") or "",
    )

    return Member(
        user=user,
        name=fields.get("name") or "",
        email=fields.get("email") or None,
        mobile=fields.get("mobile") or None,
        role=role,
        package=fields.get("package") or None,
    )


def exists(member_id):
    if not member_id:
        return False
    return Member.objects.filter(member_id=member_id).exists()


def get_member(member_id):
    if not member_id:
        return None
    return Member.objects.select_related("parent", "user").filter(member_id=member_id).first()


def all_client_ids():
    """Client member ids in creation order."""
    return list(
        Member.objects.filter(role=Member.ROLE_CLIENT)
        .order_by("id")
        .values_list("member_id", flat=True)
    )


def get_admin_anchor():
    """The first admin member; clients spill here when the tree is saturated."""
    return Member.objects.filter(role=Member.ROLE_ADMIN).order_by("id").first()


def validate_credentials(username, password, role):
    user = authenticate(username=username, password=password)
    if user is None:
        return None

    member = Member.objects.filter(user=user).first()
    if member is None or member.role != role:
        return None
    return member


@transaction.atomic
def ensure_admin(username=DEFAULT_ADMIN_USERNAME, password=None, email=DEFAULT_ADMIN_EMAIL,
                 name=DEFAULT_ADMIN_NAME):
    """
    Return the admin member for `username`, creating user + member if missing.
    Admins are not tree members: no parent, no position.
    """
    existing = Member.objects.filter(
        role=Member.ROLE_ADMIN, user__username=username
    ).first()
    if existing:
        return existing, False

    if not password:
        raise ValidationError("A password is required to create the admin account.")

    member = create_account(
        {"username": username, "password": password, "email": email, "name": name},
        role=Member.ROLE_ADMIN,
    )
    member.user.is_staff = True
    member.user.is_superuser = True
    member.user.save(update_fields=["is_staff", "is_superuser"])
    member.save()

    logger.info("Created admin member %s (%s)", member.member_id, username)
    return member, True
