# clientapp/tasks.py
# ----------------------------------------------------------
# Background placement with retry on slot contention
# ----------------------------------------------------------
import logging

from celery import shared_task
from django.core.exceptions import ValidationError

from .exceptions import PlacementContention, PlacementError
from .services import create_and_place, tree_setting

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(PlacementContention,),
    retry_backoff=True,
    retry_jitter=False,
    max_retries=tree_setting("PLACEMENT_MAX_RETRIES"),
)
def place_client_task(self, fields, parent_id=None, position=None, anchor_id=None):
    """
    Create and place a client. Contention is retried by celery; other
    failures come back as {"error", "message"}.
    """
    try:
        member = create_and_place(
            fields,
            requested_parent_id=parent_id,
            requested_position=position,
            fallback_anchor_id=anchor_id,
        )
    except PlacementContention:
        raise
    except PlacementError as exc:
        logger.warning("Placement task failed for %s: %s", fields.get("username"), exc)
        return exc.as_dict()
    except ValidationError as exc:
        return {"error": "invalid", "message": "; ".join(exc.messages)}

    return {
        "member_id": member.member_id,
        "parent_id": member.parent_member_id,
        "position": member.position,
    }
