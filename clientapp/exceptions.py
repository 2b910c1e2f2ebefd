# clientapp/exceptions.py
# ----------------------------------------------------------
# Placement failures reported to callers of the tree service
# ----------------------------------------------------------


class PlacementError(Exception):
    code = "placement_error"
    retryable = False

    def __init__(self, message=None):
        super().__init__(message or self.default_message())

    def default_message(self):
        return "Placement failed."

    def as_dict(self):
        return {"error": self.code, "message": str(self)}


class MemberNotFound(PlacementError):
    code = "member_not_found"

    def __init__(self, member_id=None, message=None):
        self.member_id = member_id
        super().__init__(message or f"Member {member_id} not found.")


class ParentNotFound(MemberNotFound):
    code = "parent_not_found"

    def __init__(self, member_id=None, message=None):
        super().__init__(member_id, message or f"Parent member {member_id} not found.")


class InvalidPosition(PlacementError):
    code = "invalid_position"

    def __init__(self, position=None, message=None):
        self.position = position
        super().__init__(message or f"Position must be 'left' or 'right', got {position!r}.")


class TreeFull(PlacementError):
    code = "tree_full"

    def default_message(self):
        return "No free slot under the requested parent, the tree or the anchor."


class PlacementContention(PlacementError):
    """Another placement claimed the same slot first; safe to retry."""
    code = "placement_contention"
    retryable = True

    def default_message(self):
        return "Slot was taken by a concurrent placement. Retry."


class TreeCycleError(PlacementError):
    code = "tree_cycle"

    def __init__(self, member_id=None, message=None):
        self.member_id = member_id
        super().__init__(message or f"Member {member_id} reached twice while walking the tree.")
