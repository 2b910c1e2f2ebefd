import os
import tempfile
from io import StringIO

import openpyxl
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from clientapp.models import Member, Plan

from .factories import fill, make_admin, make_member

FAST_HASHER = ["django.contrib.auth.hashers.MD5PasswordHasher"]


def add_client(username, *extra):
    out = StringIO()
    call_command(
        "add_client",
        "--name", username.title(),
        "--username", username,
        "--password", "secret123",
        "--mobile", "9876543210",
        "--email", f"{username}@example.com",
        "--package", "Silver",
        *extra,
        stdout=out,
    )
    return out.getvalue()


@override_settings(PASSWORD_HASHERS=FAST_HASHER)
class InitDirectoryCommandTest(TestCase):
    def test_creates_admin_and_plans(self):
        out = StringIO()
        call_command("init_directory", "--password", "admin123", stdout=out)

        self.assertEqual(Member.objects.filter(role=Member.ROLE_ADMIN).count(), 1)
        self.assertEqual(Plan.objects.count(), 3)
        self.assertIn("created", out.getvalue())

    def test_missing_password(self):
        with self.assertRaises(CommandError):
            call_command("init_directory", stdout=StringIO())


@override_settings(PASSWORD_HASHERS=FAST_HASHER)
class AddClientCommandTest(TestCase):
    def setUp(self):
        call_command("init_directory", "--password", "admin123", stdout=StringIO())
        self.admin = Member.objects.get(role=Member.ROLE_ADMIN)

    def test_defaults_to_admin_parent(self):
        out = add_client("asha")
        member = Member.objects.get(user__username="asha")
        self.assertEqual((member.parent, member.position), (self.admin, "left"))
        self.assertIn(member.member_id, out)

    def test_spills_over(self):
        add_client("one")
        add_client("two")
        add_client("three")
        first = Member.objects.get(user__username="one")
        third = Member.objects.get(user__username="three")
        self.assertEqual((third.parent, third.position), (first, "left"))

    def test_explicit_parent_and_position(self):
        add_client("one")
        first = Member.objects.get(user__username="one")
        add_client("two", "--parent", first.member_id, "--position", "right")
        second = Member.objects.get(user__username="two")
        self.assertEqual((second.parent, second.position), (first, "right"))

    def test_invalid_input(self):
        with self.assertRaises(CommandError):
            add_client("x")  # username too short

    def test_unknown_parent(self):
        with self.assertRaises(CommandError):
            add_client("asha", "--parent", "ghost")

    def test_payment_required(self):
        with self.assertRaises(CommandError):
            add_client("asha", "--require-payment")
        add_client("asha", "--require-payment", "--payment-confirmed")
        self.assertTrue(Member.objects.filter(user__username="asha").exists())


class TreeCommandsTest(TestCase):
    def setUp(self):
        self.admin = make_admin("Root")
        self.left, self.right = fill(self.admin, "Lefty", "Righty")
        make_member(name="Grand", parent=self.left, position="right")

    def test_show_tree(self):
        out = StringIO()
        call_command("show_tree", stdout=out)
        lines = out.getvalue().splitlines()

        self.assertTrue(lines[0].endswith("Root"))
        self.assertIn("[L]", lines[1])
        self.assertIn("Lefty", lines[1])
        self.assertIn("Grand", lines[2])
        self.assertIn("Righty", lines[3])

    def test_show_tree_unknown(self):
        with self.assertRaises(CommandError):
            call_command("show_tree", "missing", stdout=StringIO())

    def test_client_stats(self):
        out = StringIO()
        call_command("client_stats", stdout=out)
        self.assertIn("Total   : 3", out.getvalue())

    def test_export_downline(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "downline.xlsx")
            call_command("export_downline", self.admin.member_id, "--output", path, stdout=StringIO())

            wb = openpyxl.load_workbook(path)
            rows = list(wb["Downline"].iter_rows(values_only=True))
            self.assertEqual(rows[0][0], "Member ID")
            self.assertEqual([row[1] for row in rows[1:]], ["Lefty", "Grand", "Righty"])
            self.assertEqual(rows[2][3], self.left.member_id)

            summary = {row[0]: row[1] for row in wb["Summary"].iter_rows(values_only=True)}
            self.assertEqual(summary["Left leg"], 2)
            self.assertEqual(summary["Right leg"], 1)

    def test_export_unknown_member(self):
        with self.assertRaises(CommandError):
            call_command("export_downline", "missing", stdout=StringIO())
