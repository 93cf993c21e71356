"""Tests for objective access rules."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest
from okrhub.core.okr import access
from okrhub.core.okr.types import Objective, ObjectiveStatus, ObjectiveType

NOW = datetime(2026, 1, 1, tzinfo=UTC)


def objective(owner_id: UUID, objective_type: ObjectiveType) -> Objective:
    """Build an objective of the given type."""
    return Objective(
        id=uuid4(),
        title="Objective",
        description=None,
        type=objective_type,
        owner_id=owner_id,
        team_id=None,
        parent_id=None,
        start_date=NOW,
        end_date=NOW,
        status=ObjectiveStatus.ACTIVE,
        created_at=NOW,
        updated_at=NOW,
    )


class TestOwner:
    """Tests for the owner's rights."""

    @pytest.mark.parametrize("objective_type", list(ObjectiveType))
    def test_owner_can_access_and_edit(self, objective_type: ObjectiveType) -> None:
        """The owner can read and change objectives of every type."""
        owner_id = uuid4()
        target = objective(owner_id, objective_type)

        assert access.is_owner(target, owner_id) is True
        assert access.can_access(target, owner_id) is True
        assert access.can_edit(target, owner_id) is True


class TestNonOwner:
    """Tests for everyone else."""

    @pytest.mark.parametrize("objective_type", [ObjectiveType.TEAM, ObjectiveType.ORGANIZATION])
    def test_shared_objectives_are_readable_not_editable(
        self, objective_type: ObjectiveType
    ) -> None:
        """Team and organization objectives are visible but read-only."""
        target = objective(uuid4(), objective_type)
        other = uuid4()

        assert access.can_access(target, other) is True
        assert access.can_edit(target, other) is False

    def test_personal_objective_is_isolated(self) -> None:
        """Personal objectives are neither readable nor editable by others."""
        target = objective(uuid4(), ObjectiveType.PERSONAL)
        other = uuid4()

        assert access.can_access(target, other) is False
        assert access.can_edit(target, other) is False


class TestMissingObjective:
    """Tests for a missing objective."""

    def test_all_predicates_are_false(self) -> None:
        """Nothing is granted on an objective that does not exist."""
        user_id = uuid4()

        assert access.is_owner(None, user_id) is False
        assert access.can_access(None, user_id) is False
        assert access.can_edit(None, user_id) is False
