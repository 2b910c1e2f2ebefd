# clientapp/services.py
# ==========================================================
# CLIENT TREE SERVICE
# available slots, placement with spillover, downline reads,
# client stats and the plan catalogue
# ==========================================================

import logging
from collections import defaultdict, namedtuple
from decimal import Decimal

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from . import directory
from .exceptions import (
    InvalidPosition,
    MemberNotFound,
    ParentNotFound,
    PlacementContention,
    TreeCycleError,
    TreeFull,
)
from .models import POSITIONS, Member, Plan, TreeLock

logger = logging.getLogger(__name__)

Placement = namedtuple("Placement", ["parent_id", "position"])

FALLBACK_CREATION = "creation"
FALLBACK_BREADTH_FIRST = "breadth_first"

TREE_DEFAULTS = {
    "FALLBACK_ORDER": FALLBACK_CREATION,
    "STATS_CACHE_TIMEOUT": 300,
    "TREE_LOCK_NAME": "member-tree",
    "PLACEMENT_MAX_RETRIES": 3,
}

STATS_CACHE_KEY = "clientapp:client-stats"

# keeps parent__in lists under the SQLite variable limit
IN_QUERY_CHUNK = 500


def tree_setting(name):
    configured = getattr(settings, "MEMBER_TREE", {}) or {}
    return configured.get(name, TREE_DEFAULTS[name])


# -------------------------------------------------------------
#  LOOKUPS
# -------------------------------------------------------------
def _resolve(member_id, error=MemberNotFound):
    member = Member.objects.filter(member_id=member_id).first() if member_id else None
    if member is None:
        raise error(member_id)
    return member


def _free_positions(occupied):
    return [position for position in POSITIONS if position not in occupied]


def _slots_for(member_pk):
    occupied = set(
        Member.objects.filter(parent_id=member_pk).values_list("position", flat=True)
    )
    return _free_positions(occupied)


def _chunks(items, size=IN_QUERY_CHUNK):
    for start in range(0, len(items), size):
        yield items[start:start + size]


# -------------------------------------------------------------
#  AVAILABLE SLOTS
# -------------------------------------------------------------
def available_slots(parent_id):
    """
    Free positions under `parent_id`, left before right.
    Empty list when both sides are taken.
    """
    parent = _resolve(parent_id, ParentNotFound)
    return _slots_for(parent.pk)


def direct_children(parent_id):
    parent = _resolve(parent_id, ParentNotFound)
    return list(Member.objects.filter(parent_id=parent.pk).order_by("id"))


# -------------------------------------------------------------
#  FALLBACK SEARCH
# -------------------------------------------------------------
def _first_open_by_creation():
    """Oldest placed client that still has a free slot."""
    # parentless rows sit outside every tree
    candidate = (
        Member.objects.filter(role=Member.ROLE_CLIENT, parent__isnull=False)
        .annotate(child_count=Count("children"))
        .filter(child_count__lt=len(POSITIONS))
        .order_by("id")
        .first()
    )
    if candidate is None:
        return None, []
    return candidate, _slots_for(candidate.pk)


def _first_open_breadth_first(start):
    """Walk below `start` level by level, left child before right child."""
    frontier = [start.pk]
    seen = {start.pk}

    while frontier:
        by_parent = defaultdict(dict)
        for chunk in _chunks(frontier):
            rows = Member.objects.filter(parent_id__in=chunk).values_list(
                "pk", "parent_id", "position"
            )
            for pk, parent_pk, position in rows:
                if pk in seen:
                    raise TreeCycleError(pk)
                seen.add(pk)
                by_parent[parent_pk][position] = pk

        next_frontier = []
        for node_pk in frontier:
            taken = by_parent[node_pk]
            free = _free_positions(taken)
            if free:
                return Member.objects.get(pk=node_pk), free
            next_frontier.extend(taken[position] for position in POSITIONS)
        frontier = next_frontier

    return None, []


def _fallback_candidate(requested_parent):
    order = tree_setting("FALLBACK_ORDER")
    if order == FALLBACK_CREATION:
        return _first_open_by_creation()
    if order == FALLBACK_BREADTH_FIRST:
        return _first_open_breadth_first(requested_parent)
    raise ImproperlyConfigured(
        f"MEMBER_TREE['FALLBACK_ORDER'] must be {FALLBACK_CREATION!r} or "
        f"{FALLBACK_BREADTH_FIRST!r}, got {order!r}."
    )


# -------------------------------------------------------------
#  PLACEMENT DECISION
# -------------------------------------------------------------
def _decide(requested_parent_id, requested_position=None, fallback_anchor_id=None):
    """Return (parent Member or None, position or None). Reads only."""
    if requested_position is not None and requested_position not in POSITIONS:
        raise InvalidPosition(requested_position)

    if not requested_parent_id:
        return None, None

    parent = _resolve(requested_parent_id, ParentNotFound)
    slots = _slots_for(parent.pk)
    if slots:
        # an explicit side is honoured only when it is free
        if requested_position in slots:
            return parent, requested_position
        return parent, slots[0]

    candidate, slots = _fallback_candidate(parent)
    if candidate is not None:
        logger.info(
            "Parent %s is full, spilling over to %s (%s)",
            parent.member_id, candidate.member_id, slots[0],
        )
        return candidate, slots[0]

    if fallback_anchor_id:
        anchor = _resolve(fallback_anchor_id, ParentNotFound)
        slots = _slots_for(anchor.pk)
        if slots:
            logger.info("Tree saturated, placing under anchor %s (%s)", anchor.member_id, slots[0])
            return anchor, slots[0]

    logger.warning("No free slot for parent %s (anchor %s)", requested_parent_id, fallback_anchor_id)
    raise TreeFull()


def place_node(requested_parent_id, requested_position=None, fallback_anchor_id=None):
    """
    Decide where a new member goes.

    Returns Placement(parent_id, position) using member_id values.
    Raises InvalidPosition, ParentNotFound or TreeFull. Nothing is written;
    create_and_place() runs this under the tree lock and persists the result.
    """
    parent, position = _decide(requested_parent_id, requested_position, fallback_anchor_id)
    return Placement(parent.member_id if parent else None, position)


def _acquire_tree_lock():
    lock, _ = TreeLock.objects.select_for_update().get_or_create(
        name=tree_setting("TREE_LOCK_NAME")
    )
    lock.acquired_at = timezone.now()
    lock.save(update_fields=["acquired_at"])
    return lock


def create_and_place(fields, requested_parent_id=None, requested_position=None,
                     fallback_anchor_id=None):
    """
    Create the account and insert its member row in one transaction.

    The tree lock is held from the slot check until the INSERT commits, so
    two concurrent calls can never claim the same side of a parent. On any
    error nothing is written, the auth user included.
    """
    try:
        with transaction.atomic():
            _acquire_tree_lock()
            member = directory.create_account(fields)
            parent, position = _decide(requested_parent_id, requested_position, fallback_anchor_id)
            member.parent = parent
            member.position = position
            member.save()
    except IntegrityError as exc:
        logger.warning("Placement under %s lost a race: %s", requested_parent_id, exc)
        raise PlacementContention() from exc

    logger.info(
        "Placed %s under %s (%s)",
        member.member_id, parent.member_id if parent else None, position,
    )
    return member


# -------------------------------------------------------------
#  DOWNLINE
# -------------------------------------------------------------
def _collect_descendants(root, depth=None):
    """
    Fetch everything below `root` one level per query.
    Returns {parent_pk: [children in creation order]}.
    """
    children_of = defaultdict(list)
    frontier = [root.pk]
    seen = {root.pk}
    level = 0

    while frontier and (depth is None or level < depth):
        next_frontier = []
        for chunk in _chunks(frontier):
            for member in Member.objects.filter(parent_id__in=chunk).order_by("id"):
                if member.pk in seen:
                    raise TreeCycleError(member.member_id)
                seen.add(member.pk)
                children_of[member.parent_id].append(member)
                next_frontier.append(member.pk)
        frontier = next_frontier
        level += 1

    return children_of


def _pre_order(root, children_of):
    ordered = []
    stack = list(reversed(children_of[root.pk]))
    while stack:
        member = stack.pop()
        ordered.append(member)
        stack.extend(reversed(children_of[member.pk]))
    return ordered


def downline(member_id):
    """All descendants of `member_id`, each child before its own descendants."""
    root = _resolve(member_id)
    return _pre_order(root, _collect_descendants(root))


def leg_counts(member_id):
    root = _resolve(member_id)
    children_of = _collect_descendants(root)
    counts = {position: 0 for position in POSITIONS}
    for child in children_of[root.pk]:
        counts[child.position] = 1 + len(_pre_order(child, children_of))
    return counts


def tree_snapshot(member_id, depth=None):
    """
    Nested dict for a genealogy diagram:
    {member_id, name, package, position, children: [...]}
    """
    root = _resolve(member_id)
    children_of = _collect_descendants(root, depth=depth)

    def node(member):
        return {
            "member_id": member.member_id,
            "name": member.name,
            "package": member.package,
            "position": member.position,
            "children": [],
        }

    snapshot = node(root)
    stack = [(root, snapshot)]
    while stack:
        member, data = stack.pop()
        for child in children_of[member.pk]:
            child_data = node(child)
            data["children"].append(child_data)
            stack.append((child, child_data))
    return snapshot


# -------------------------------------------------------------
#  CLIENT STATS (cached)
# -------------------------------------------------------------
def client_stats():
    stats = cache.get(STATS_CACHE_KEY)
    if stats is not None:
        return stats

    stats = {"total": 0, "silver": 0, "gold": 0, "diamond": 0}
    rows = (
        Member.objects.filter(role=Member.ROLE_CLIENT)
        .values("package")
        .annotate(count=Count("id"))
    )
    for row in rows:
        stats["total"] += row["count"]
        key = (row["package"] or "").lower()
        if key in stats:
            stats[key] += row["count"]

    cache.set(STATS_CACHE_KEY, stats, tree_setting("STATS_CACHE_TIMEOUT"))
    return stats


def invalidate_client_stats():
    cache.delete(STATS_CACHE_KEY)


# -------------------------------------------------------------
#  PLANS
# -------------------------------------------------------------
DEFAULT_PLANS = [
    {
        "name": "Silver",
        "price": Decimal("510.00"),
        "business_volume": 100,
        "referral_commission": Decimal("100.00"),
        "tree_commission": Decimal("200.00"),
    },
    {
        "name": "Gold",
        "price": Decimal("1010.00"),
        "business_volume": 200,
        "referral_commission": Decimal("200.00"),
        "tree_commission": Decimal("400.00"),
    },
    {
        "name": "Diamond",
        "price": Decimal("1510.00"),
        "business_volume": 300,
        "referral_commission": Decimal("300.00"),
        "tree_commission": Decimal("600.00"),
    },
]


def seed_default_plans():
    created = 0
    for data in DEFAULT_PLANS:
        _, was_created = Plan.objects.get_or_create(
            name=data["name"],
            defaults={key: value for key, value in data.items() if key != "name"},
        )
        created += int(was_created)
    return created


def list_plans():
    return list(Plan.objects.order_by("id"))


def get_plan(plan_id):
    return Plan.objects.filter(pk=plan_id).first()


def create_plan(**fields):
    plan = Plan(**fields)
    plan.full_clean()
    plan.save()
    return plan


def update_plan(plan_id, **fields):
    plan = get_plan(plan_id)
    if plan is None:
        return None
    for key, value in fields.items():
        setattr(plan, key, value)
    plan.full_clean()
    plan.save()
    return plan


def delete_plan(plan_id):
    deleted, _ = Plan.objects.filter(pk=plan_id).delete()
    return deleted > 0
