import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

LEFT = "left"
RIGHT = "right"

# precedence order when more than one slot is free
POSITIONS = (LEFT, RIGHT)


def new_member_id():
    return str(uuid.uuid4())


# ==========================================================
# TREE LOCK (one row per tree, held with select_for_update)
# ==========================================================
class TreeLock(models.Model):
    """
    Row lock that serialises placements.
    Every check-then-insert on the member tree runs while holding
    select_for_update() on the row named settings.MEMBER_TREE["TREE_LOCK_NAME"].
    """
    name = models.CharField(max_length=50, unique=True)
    acquired_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return self.name


# ==========================================================
# MEMBER MODEL (MAIN CLIENT TREE)
# ==========================================================
class Member(models.Model):
    ROLE_ADMIN = "admin"
    ROLE_CLIENT = "client"
    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_CLIENT, "Client"),
    ]

    PACKAGE_CHOICES = [
        ("Silver", "Silver"),
        ("Gold", "Gold"),
        ("Diamond", "Diamond"),
    ]

    POSITION_CHOICES = [
        (LEFT, "Left"),
        (RIGHT, "Right"),
    ]

    # opaque public id; the auto "id" key keeps creation order
    member_id = models.CharField(
        max_length=36,
        unique=True,
        default=new_member_id,
        editable=False,
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="member",
    )
    name = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, null=True)
    mobile = models.CharField(max_length=10, blank=True, null=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_CLIENT)
    package = models.CharField(max_length=10, choices=PACKAGE_CHOICES, blank=True, null=True)

    # -------------------------
    # TREE STRUCTURE
    # -------------------------
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )
    position = models.CharField(max_length=5, choices=POSITION_CHOICES, blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["id"]
        constraints = [
            # at most one child per side, so at most two children per parent
            models.UniqueConstraint(
                fields=["parent", "position"],
                name="uniq_member_parent_position",
            ),
            models.CheckConstraint(
                condition=(
                    Q(parent__isnull=True, position__isnull=True)
                    | Q(parent__isnull=False, position__isnull=False, position__in=POSITIONS)
                ),
                name="member_parent_position_together",
            ),
        ]

    def __str__(self):
        label = self.name or (self.user.username if self.user_id else "")
        return f"{self.member_id} - {label}"

    # -------------------------
    # HELPERS
    # -------------------------
    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_client(self):
        return self.role == self.ROLE_CLIENT

    @property
    def parent_member_id(self):
        return self.parent.member_id if self.parent_id else None

    def save(self, *args, **kwargs):
        # parent/position are written once, by the placement step
        if not self._state.adding and self.pk is not None:
            stored = (
                Member.objects.filter(pk=self.pk)
                .values("parent_id", "position")
                .first()
            )
            if stored and (
                stored["parent_id"] != self.parent_id
                or stored["position"] != self.position
            ):
                raise ValidationError("Tree placement is fixed once a member is created.")
        super().save(*args, **kwargs)


# ==========================================================
# PLAN MODEL (subscription catalogue)
# ==========================================================
class Plan(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_DISABLED = "disabled"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_DISABLED, "Disabled"),
    ]

    name = models.CharField(max_length=50)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    business_volume = models.PositiveIntegerField(default=0)
    referral_commission = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tree_commission = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} - ₹{self.price} - BV: {self.business_volume}"
