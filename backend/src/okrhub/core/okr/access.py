"""Objective access rules shared by every OKR repository.

Read access is broader than write access: team and organization objectives
are visible to every user (membership is not checked), while only the owner
may change any objective.
"""

from uuid import UUID

from okrhub.core.okr.types import Objective, ObjectiveType

SHARED_TYPES = frozenset({ObjectiveType.TEAM, ObjectiveType.ORGANIZATION})


def is_owner(objective: Objective | None, user_id: UUID) -> bool:
    """Check ownership; a missing objective has no owner."""
    return objective is not None and objective.owner_id == user_id


def can_access(objective: Objective | None, user_id: UUID) -> bool:
    """Check read access."""
    if objective is None:
        return False
    return objective.owner_id == user_id or objective.type in SHARED_TYPES


def can_edit(objective: Objective | None, user_id: UUID) -> bool:
    """Check write access."""
    return is_owner(objective, user_id)
