from unittest import mock

from django.core.exceptions import ImproperlyConfigured
from django.test import TestCase, override_settings

from clientapp.exceptions import InvalidPosition, ParentNotFound, TreeFull
from clientapp.models import LEFT, RIGHT, Member
from clientapp.services import Placement, place_node

from .factories import fill, make_admin, make_member

BREADTH_FIRST = {"FALLBACK_ORDER": "breadth_first"}


class DirectPlacementTest(TestCase):
    def setUp(self):
        self.admin = make_admin()

    def test_no_parent_means_no_placement(self):
        self.assertEqual(place_node(None), Placement(None, None))

    def test_both_free_prefers_left(self):
        self.assertEqual(place_node(self.admin.member_id), Placement(self.admin.member_id, LEFT))

    def test_one_free_slot_is_used(self):
        make_member(parent=self.admin, position=LEFT)
        self.assertEqual(place_node(self.admin.member_id).position, RIGHT)

        other = make_admin("Other")
        make_member(parent=other, position=RIGHT)
        self.assertEqual(place_node(other.member_id).position, LEFT)

    def test_explicit_right_honoured_when_free(self):
        self.assertEqual(place_node(self.admin.member_id, RIGHT).position, RIGHT)

        make_member(parent=self.admin, position=LEFT)
        self.assertEqual(place_node(self.admin.member_id, RIGHT).position, RIGHT)

    def test_explicit_but_occupied_takes_other_side(self):
        make_member(parent=self.admin, position=RIGHT)
        self.assertEqual(
            place_node(self.admin.member_id, RIGHT),
            Placement(self.admin.member_id, LEFT),
        )

    def test_invalid_position(self):
        with self.assertRaises(InvalidPosition):
            place_node(self.admin.member_id, "middle")

    def test_unknown_parent(self):
        with self.assertRaises(ParentNotFound):
            place_node("nonexistent")

    def test_decision_writes_nothing(self):
        before = Member.objects.count()
        place_node(self.admin.member_id)
        self.assertEqual(Member.objects.count(), before)


class SpilloverTest(TestCase):
    """
    A has B (left) and C (right); B has D, E and C has F, G.
    """

    def setUp(self):
        self.a = make_admin("A")
        self.b, self.c = fill(self.a, "B", "C")
        self.d, self.e = fill(self.b, "D", "E")
        self.f, self.g = fill(self.c, "F", "G")

    def test_full_parent_spills_to_first_open_client(self):
        result = place_node(self.a.member_id)
        self.assertEqual(result, Placement(self.d.member_id, LEFT))

    def test_explicit_position_ignored_on_spill(self):
        result = place_node(self.a.member_id, RIGHT)
        self.assertEqual(result, Placement(self.d.member_id, LEFT))

    def test_spill_takes_free_side_of_candidate(self):
        make_member(parent=self.d, position=LEFT)
        self.assertEqual(place_node(self.a.member_id), Placement(self.d.member_id, RIGHT))

    def test_creation_order_ignores_requested_subtree(self):
        # C's subtree has room but D (created earlier, under B) still wins
        self.assertEqual(place_node(self.c.member_id).parent_id, self.d.member_id)

    @override_settings(MEMBER_TREE=BREADTH_FIRST)
    def test_breadth_first_from_requested_parent(self):
        self.assertEqual(place_node(self.c.member_id), Placement(self.f.member_id, LEFT))

    @override_settings(MEMBER_TREE=BREADTH_FIRST)
    def test_breadth_first_prefers_shallow_open_slot(self):
        fill(self.d, "H", "I")
        fill(self.e, "J", "K")
        # level 2 under A: D, E full; F open
        self.assertEqual(place_node(self.a.member_id), Placement(self.f.member_id, LEFT))

    @override_settings(MEMBER_TREE={"FALLBACK_ORDER": "random"})
    def test_unknown_fallback_order(self):
        with self.assertRaises(ImproperlyConfigured):
            place_node(self.a.member_id)


class ParentlessClientTest(TestCase):
    def setUp(self):
        # oldest client row, but never placed in a tree
        self.stray = make_member(name="Stray")
        self.a = make_admin("A")
        self.b, self.c = fill(self.a, "B", "C")
        self.d, self.e = fill(self.b, "D", "E")
        fill(self.c, "F", "G")

    def test_unplaced_client_never_receives_spillover(self):
        result = place_node(self.a.member_id, fallback_anchor_id=self.a.member_id)
        self.assertNotEqual(result.parent_id, self.stray.member_id)
        self.assertEqual(result, Placement(self.d.member_id, LEFT))

    def test_unplaced_client_still_takes_direct_children(self):
        self.assertEqual(
            place_node(self.stray.member_id),
            Placement(self.stray.member_id, LEFT),
        )


class AnchorFallbackTest(TestCase):
    def setUp(self):
        self.parent = make_admin("Parent")
        fill(self.parent, "L", "R")
        self.anchor = make_admin("Anchor")

    @mock.patch("clientapp.services._fallback_candidate", return_value=(None, []))
    def test_anchor_used_when_no_candidate(self, _):
        result = place_node(self.parent.member_id, fallback_anchor_id=self.anchor.member_id)
        self.assertEqual(result, Placement(self.anchor.member_id, LEFT))

    @mock.patch("clientapp.services._fallback_candidate", return_value=(None, []))
    def test_anchor_full_is_tree_full(self, _):
        fill(self.anchor, "AL", "AR")
        with self.assertRaises(TreeFull):
            place_node(self.parent.member_id, fallback_anchor_id=self.anchor.member_id)

    @mock.patch("clientapp.services._fallback_candidate", return_value=(None, []))
    def test_no_anchor_is_tree_full(self, _):
        with self.assertRaises(TreeFull):
            place_node(self.parent.member_id)

    @mock.patch("clientapp.services._fallback_candidate", return_value=(None, []))
    def test_unknown_anchor(self, _):
        with self.assertRaises(ParentNotFound):
            place_node(self.parent.member_id, fallback_anchor_id="ghost")

    def test_tree_full_without_open_clients(self):
        # every client below is saturated and the leaves are admin rows
        Member.objects.filter(parent=self.parent).delete()
        left = make_member(name="L2", parent=self.parent, position=LEFT)
        right = make_member(name="R2", parent=self.parent, position=RIGHT)
        for node in (left, right):
            make_member(parent=node, position=LEFT, role=Member.ROLE_ADMIN)
            make_member(parent=node, position=RIGHT, role=Member.ROLE_ADMIN)
        fill(self.anchor, "AL", "AR")
        Member.objects.filter(parent=self.anchor).update(role=Member.ROLE_ADMIN)

        with self.assertRaises(TreeFull):
            place_node(self.parent.member_id, fallback_anchor_id=self.anchor.member_id)


class CapacityTest(TestCase):
    def test_repeated_placement_keeps_two_children_per_parent(self):
        admin = make_admin()
        for _ in range(20):
            result = place_node(admin.member_id)
            parent = Member.objects.get(member_id=result.parent_id)
            make_member(parent=parent, position=result.position)

        for member in Member.objects.all():
            positions = list(member.children.values_list("position", flat=True))
            self.assertLessEqual(len(positions), 2)
            self.assertEqual(len(positions), len(set(positions)))
