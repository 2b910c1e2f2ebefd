import clientapp.models
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Plan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=50)),
                ("price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("business_volume", models.PositiveIntegerField(default=0)),
                ("referral_commission", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("tree_commission", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("status", models.CharField(choices=[("active", "Active"), ("disabled", "Disabled")], default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="TreeLock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=50, unique=True)),
                ("acquired_at", models.DateTimeField(blank=True, null=True)),
            ],
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("member_id", models.CharField(default=clientapp.models.new_member_id, editable=False, max_length=36, unique=True)),
                ("name", models.CharField(blank=True, default="", max_length=50)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("mobile", models.CharField(blank=True, max_length=10, null=True)),
                ("role", models.CharField(choices=[("admin", "Admin"), ("client", "Client")], default="client", max_length=10)),
                ("package", models.CharField(blank=True, choices=[("Silver", "Silver"), ("Gold", "Gold"), ("Diamond", "Diamond")], max_length=10, null=True)),
                ("position", models.CharField(blank=True, choices=[("left", "Left"), ("right", "Right")], max_length=5, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="clientapp.member")),
                ("user", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="member", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.UniqueConstraint(fields=("parent", "position"), name="uniq_member_parent_position"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("parent__isnull", True), ("position__isnull", True)),
                            models.Q(
                                ("parent__isnull", False),
                                ("position__isnull", False),
                                ("position__in", ("left", "right")),
                            ),
                            _connector="OR",
                        ),
                        name="member_parent_position_together",
                    ),
                ],
            },
        ),
    ]
