# ==========================================================
# clientapp/admin.py
# ==========================================================
from django.contrib import admin

from .forms import PlanForm
from .models import Member, Plan, TreeLock


# ==========================================================
# MEMBER ADMIN (placement is read-only once created)
# ==========================================================
@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = (
        "member_id",
        "name",
        "role",
        "package",
        "parent",
        "position",
        "created_at",
    )
    search_fields = ("member_id", "name", "email", "mobile", "user__username")
    list_filter = ("role", "package", "position")
    ordering = ("id",)
    readonly_fields = ("member_id", "parent", "position", "created_at")

    def has_add_permission(self, request):
        # members join through services.create_and_place
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ==========================================================
# PLAN ADMIN
# ==========================================================
@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    form = PlanForm
    list_display = ["name", "price", "business_volume", "referral_commission", "tree_commission", "status"]
    list_filter = ["status"]
    search_fields = ["name"]


@admin.register(TreeLock)
class TreeLockAdmin(admin.ModelAdmin):
    list_display = ["name", "acquired_at"]
    readonly_fields = ["name", "acquired_at"]
