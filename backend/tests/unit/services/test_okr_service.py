"""Tests for objective and key result use cases."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from uuid import UUID

import pytest
from okrhub.core.context import Context
from okrhub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from okrhub.core.ids import new_id
from okrhub.core.okr.types import (
    CreateKeyResultParams,
    CreateObjectiveParams,
    KeyResultStatus,
    KeyResultType,
    ListObjectivesQuery,
    Objective,
    ObjectiveType,
    UpdateKeyResultParams,
    UpdateObjectiveParams,
)
from okrhub.core.rbac.permissions import DefaultRole
from okrhub.core.teams.types import AddMemberParams, CreateTeamParams
from okrhub.core.users.types import User
from okrhub.services import okr
from pydantic import ValidationError as PydanticValidationError

JAN_1 = datetime(2026, 1, 1, tzinfo=UTC)
FEB_1 = datetime(2026, 2, 1, tzinfo=UTC)
MAR_31 = datetime(2026, 3, 31, tzinfo=UTC)
JUN_30 = datetime(2026, 6, 30, tzinfo=UTC)

MakeUser = Callable[..., Awaitable[User]]


def objective_params(**overrides: object) -> CreateObjectiveParams:
    """Personal Q1 objective, with overrides."""
    values: dict[str, object] = {
        "title": "Grow revenue",
        "type": ObjectiveType.PERSONAL,
        "start_date": JAN_1,
        "end_date": MAR_31,
    }
    values.update(overrides)
    return CreateObjectiveParams.model_validate(values)


def key_result_params(objective_id: UUID, **overrides: object) -> CreateKeyResultParams:
    """Percentage key result covering Q1, with overrides."""
    values: dict[str, object] = {
        "objective_id": objective_id,
        "title": "Close deals",
        "type": KeyResultType.PERCENTAGE,
        "target_value": 100,
        "start_date": JAN_1,
        "end_date": MAR_31,
    }
    values.update(overrides)
    return CreateKeyResultParams.model_validate(values)


async def create_objective(context: Context, owner: User, **overrides: object) -> Objective:
    """Create an objective through the use case."""
    return (await okr.create_objective(context, owner.id, objective_params(**overrides))).unwrap()


async def join_team(context: Context, user: User, role: DefaultRole) -> UUID:
    """Create a team owned by ``user`` with an active membership at ``role``."""
    team = await context.team_repository.create(user.id, CreateTeamParams(name="Growth"))
    found = await context.role_repository.find_role_by_name(role.value)
    assert found is not None
    await context.team_repository.add_member(
        AddMemberParams(team_id=team.id, user_id=user.id, role_id=found.id)
    )
    return team.id


class TestCreateObjective:
    """Tests for create_objective."""

    async def test_rejects_inverted_dates(self, context: Context, make_user: MakeUser) -> None:
        """start_date must come before end_date."""
        owner = await make_user("owner@example.com")

        result = await okr.create_objective(
            context, owner.id, objective_params(start_date=MAR_31, end_date=JAN_1)
        )

        assert isinstance(result.unwrap_err(), ValidationError)

    async def test_team_objective_needs_membership(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Only active members create objectives for a team."""
        owner = await make_user("owner@example.com")
        outsider = await make_user("outsider@example.com")
        team_id = await join_team(context, owner, DefaultRole.MEMBER)

        denied = await okr.create_objective(
            context, outsider.id, objective_params(type=ObjectiveType.TEAM, team_id=team_id)
        )
        allowed = await okr.create_objective(
            context, owner.id, objective_params(type=ObjectiveType.TEAM, team_id=team_id)
        )

        assert isinstance(denied.unwrap_err(), AuthorizationError)
        assert allowed.unwrap().team_id == team_id

    async def test_organization_objective_needs_permission(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Organization objectives need manage_organization_objectives."""
        member = await make_user("member@example.com")
        admin = await make_user("admin@example.com")
        await join_team(context, member, DefaultRole.MEMBER)
        await join_team(context, admin, DefaultRole.ADMIN)

        denied = await okr.create_objective(
            context, member.id, objective_params(type=ObjectiveType.ORGANIZATION)
        )
        allowed = await okr.create_objective(
            context, admin.id, objective_params(type=ObjectiveType.ORGANIZATION)
        )

        assert isinstance(denied.unwrap_err(), AuthorizationError)
        assert allowed.is_ok()

    async def test_parent_must_exist(self, context: Context, make_user: MakeUser) -> None:
        """An unknown parent is NotFound."""
        owner = await make_user("owner@example.com")

        result = await okr.create_objective(context, owner.id, objective_params(parent_id=new_id()))

        assert isinstance(result.unwrap_err(), NotFoundError)


class TestGetObjective:
    """Tests for get_objective."""

    async def test_hidden_personal_objective_is_not_found(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Another user's personal objective is reported as missing."""
        owner = await make_user("owner@example.com")
        other = await make_user("other@example.com")
        objective = await create_objective(context, owner)

        result = await okr.get_objective(context, objective.id, other.id)

        error = result.unwrap_err()
        assert isinstance(error, NotFoundError)
        assert error.message == "Objective not found"

    async def test_includes_key_results_and_progress(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """The owner sees key results and aggregate progress."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(context, owner.id, key_result_params(objective.id))
        ).unwrap()
        await okr.update_key_result_progress(context, key_result.id, owner.id, 40)

        loaded = (await okr.get_objective(context, objective.id, owner.id)).unwrap()

        assert [kr.id for kr in loaded.key_results] == [key_result.id]
        assert loaded.progress_percentage == 40


class TestListObjectives:
    """Tests for list_objectives."""

    async def test_every_item_reports_progress(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Items carry progress with or without their key results."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(context, owner.id, key_result_params(objective.id))
        ).unwrap()
        await okr.update_key_result_progress(context, key_result.id, owner.id, 60)

        bare = (await okr.list_objectives(context, owner.id, ListObjectivesQuery())).unwrap()
        full = (
            await okr.list_objectives(
                context, owner.id, ListObjectivesQuery(), include_key_results=True
            )
        ).unwrap()

        assert bare.items[0].progress_percentage == 60
        assert bare.items[0].key_results == []
        assert full.items[0].progress_percentage == 60
        assert len(full.items[0].key_results) == 1

    async def test_hides_other_users_personal_objectives(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Listing never reveals personal objectives of other users."""
        owner = await make_user("owner@example.com")
        other = await make_user("other@example.com")
        await create_objective(context, owner)

        page = (
            await okr.list_objectives(context, other.id, ListObjectivesQuery(owner_id=owner.id))
        ).unwrap()

        assert page.count == 0


class TestUpdateObjective:
    """Tests for update_objective."""

    async def test_only_owner_edits(self, context: Context, make_user: MakeUser) -> None:
        """Non-owners cannot edit even shared objectives."""
        owner = await make_user("owner@example.com")
        team_id = await join_team(context, owner, DefaultRole.MEMBER)
        other = await make_user("other@example.com")
        objective = await create_objective(context, owner, type=ObjectiveType.TEAM, team_id=team_id)

        result = await okr.update_objective(
            context, objective.id, other.id, UpdateObjectiveParams(title="Mine now")
        )

        assert isinstance(result.unwrap_err(), AuthorizationError)

    async def test_merged_dates_are_checked(self, context: Context, make_user: MakeUser) -> None:
        """A new end date before the existing start is rejected."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner, start_date=FEB_1)

        result = await okr.update_objective(
            context, objective.id, owner.id, UpdateObjectiveParams(end_date=JAN_1)
        )

        assert isinstance(result.unwrap_err(), ValidationError)

    async def test_cannot_parent_itself(self, context: Context, make_user: MakeUser) -> None:
        """An objective is never its own parent."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)

        result = await okr.update_objective(
            context, objective.id, owner.id, UpdateObjectiveParams(parent_id=objective.id)
        )

        assert isinstance(result.unwrap_err(), ValidationError)

    async def test_hidden_objective_looks_missing(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Editing someone's personal objective fails exactly like an unknown id."""
        owner = await make_user("owner@example.com")
        other = await make_user("other@example.com")
        objective = await create_objective(context, owner)
        params = UpdateObjectiveParams(title="Mine now")

        hidden = await okr.update_objective(context, objective.id, other.id, params)
        missing = await okr.update_objective(context, new_id(), other.id, params)
        deleted = await okr.delete_objective(context, objective.id, other.id)

        assert isinstance(hidden.unwrap_err(), NotFoundError)
        assert isinstance(missing.unwrap_err(), NotFoundError)
        assert hidden.unwrap_err().message == missing.unwrap_err().message
        assert isinstance(deleted.unwrap_err(), NotFoundError)


class TestDeleteObjective:
    """Tests for delete_objective."""

    async def test_cascades(self, context: Context, make_user: MakeUser) -> None:
        """Deleting an objective removes its key results."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_results = [
            (
                await okr.create_key_result(
                    context, owner.id, key_result_params(objective.id, title=f"KR {i}")
                )
            ).unwrap()
            for i in range(3)
        ]

        assert (await okr.delete_objective(context, objective.id, owner.id)).is_ok()

        for key_result in key_results:
            result = await okr.get_key_result(context, key_result.id, owner.id)
            assert isinstance(result.unwrap_err(), NotFoundError)


class TestKeyResultRules:
    """Tests for key result validation."""

    @pytest.mark.parametrize(
        ("kr_type", "target_value"),
        [
            (KeyResultType.PERCENTAGE, 101),
            (KeyResultType.PERCENTAGE, -1),
            (KeyResultType.BOOLEAN, 2),
            (KeyResultType.NUMBER, -5),
        ],
    )
    async def test_invalid_targets(
        self,
        context: Context,
        make_user: MakeUser,
        kr_type: KeyResultType,
        target_value: float,
    ) -> None:
        """Targets outside the type's range are rejected."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)

        result = await okr.create_key_result(
            context,
            owner.id,
            key_result_params(objective.id, type=kr_type, target_value=target_value),
        )

        assert isinstance(result.unwrap_err(), ValidationError)

    async def test_dates_within_objective(self, context: Context, make_user: MakeUser) -> None:
        """Key result dates must lie inside the objective's range."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)

        result = await okr.create_key_result(
            context, owner.id, key_result_params(objective.id, end_date=JUN_30)
        )

        assert isinstance(result.unwrap_err(), ValidationError)

    async def test_non_owner_cannot_add(self, context: Context, make_user: MakeUser) -> None:
        """Key results cannot be added to someone else's personal objective."""
        owner = await make_user("owner@example.com")
        other = await make_user("other@example.com")
        objective = await create_objective(context, owner)

        result = await okr.create_key_result(context, other.id, key_result_params(objective.id))

        assert isinstance(result.unwrap_err(), NotFoundError)

    async def test_update_rechecks_target_against_merged_type(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Switching to boolean with an old target of 100 is rejected."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(context, owner.id, key_result_params(objective.id))
        ).unwrap()

        result = await okr.update_key_result(
            context, key_result.id, owner.id, UpdateKeyResultParams(type=KeyResultType.BOOLEAN)
        )

        assert isinstance(result.unwrap_err(), ValidationError)

    async def test_type_change_rechecks_current_value(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """A number key result at 5 cannot become a boolean one."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(
                context,
                owner.id,
                key_result_params(objective.id, type=KeyResultType.NUMBER, target_value=10),
            )
        ).unwrap()
        await okr.update_key_result_progress(context, key_result.id, owner.id, 5)

        result = await okr.update_key_result(
            context,
            key_result.id,
            owner.id,
            UpdateKeyResultParams(type=KeyResultType.BOOLEAN, target_value=1),
        )

        assert isinstance(result.unwrap_err(), ValidationError)
        assert result.unwrap_err().field == "current_value"

    def test_current_value_not_editable(self) -> None:
        """The current value only changes through progress updates."""
        with pytest.raises(PydanticValidationError):
            UpdateKeyResultParams.model_validate({"current_value": 5})

    async def test_update_reports_progress(self, context: Context, make_user: MakeUser) -> None:
        """The updated key result carries its recomputed progress."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(
                context,
                owner.id,
                key_result_params(objective.id, type=KeyResultType.NUMBER, target_value=10),
            )
        ).unwrap()
        await okr.update_key_result_progress(context, key_result.id, owner.id, 5)

        updated = (
            await okr.update_key_result(
                context, key_result.id, owner.id, UpdateKeyResultParams(target_value=20)
            )
        ).unwrap()

        assert updated.progress_percentage == 25


class TestUpdateProgress:
    """Tests for update_key_result_progress."""

    @pytest.mark.parametrize(
        ("kr_type", "target_value", "current_value"),
        [
            (KeyResultType.PERCENTAGE, 100, 101),
            (KeyResultType.BOOLEAN, 1, 0.5),
            (KeyResultType.NUMBER, 10, -1),
        ],
    )
    async def test_invalid_values(
        self,
        context: Context,
        make_user: MakeUser,
        kr_type: KeyResultType,
        target_value: float,
        current_value: float,
    ) -> None:
        """Current values outside the type's range are rejected."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(
                context,
                owner.id,
                key_result_params(objective.id, type=kr_type, target_value=target_value),
            )
        ).unwrap()

        result = await okr.update_key_result_progress(
            context, key_result.id, owner.id, current_value
        )

        assert isinstance(result.unwrap_err(), ValidationError)

    async def test_reaching_target_does_not_complete(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Status only changes when set explicitly."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(
                context,
                owner.id,
                key_result_params(objective.id, type=KeyResultType.NUMBER, target_value=10),
            )
        ).unwrap()

        updated = (
            await okr.update_key_result_progress(context, key_result.id, owner.id, 10)
        ).unwrap()

        assert updated.current_value == 10
        assert updated.status == KeyResultStatus.ACTIVE
        assert updated.progress_percentage == 100

    async def test_readable_objective_non_owner_forbidden(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Shared objectives are visible, so non-owners get a permission error."""
        owner = await make_user("owner@example.com")
        other = await make_user("other@example.com")
        objective = await create_objective(context, owner, type=ObjectiveType.TEAM)
        key_result = (
            await okr.create_key_result(context, owner.id, key_result_params(objective.id))
        ).unwrap()

        result = await okr.update_key_result_progress(context, key_result.id, other.id, 50)

        assert isinstance(result.unwrap_err(), AuthorizationError)

    async def test_non_owner_denied(self, context: Context, make_user: MakeUser) -> None:
        """Progress on a hidden objective is reported as not found."""
        owner = await make_user("owner@example.com")
        other = await make_user("other@example.com")
        objective = await create_objective(context, owner)
        key_result = (
            await okr.create_key_result(context, owner.id, key_result_params(objective.id))
        ).unwrap()

        result = await okr.update_key_result_progress(context, key_result.id, other.id, 50)

        assert isinstance(result.unwrap_err(), NotFoundError)


class TestDashboard:
    """Tests for get_okr_dashboard."""

    async def test_team_filter_requires_membership(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Asking for another team's numbers is denied."""
        owner = await make_user("owner@example.com")
        outsider = await make_user("outsider@example.com")
        team_id = await join_team(context, owner, DefaultRole.MEMBER)

        result = await okr.get_okr_dashboard(context, outsider.id, team_id)

        assert isinstance(result.unwrap_err(), AuthorizationError)

    async def test_counts(self, context: Context, make_user: MakeUser) -> None:
        """Dashboard counts the user's objectives and key results."""
        owner = await make_user("owner@example.com")
        objective = await create_objective(context, owner)
        await okr.create_key_result(context, owner.id, key_result_params(objective.id))
        await create_objective(context, owner, title="Second")

        stats = (await okr.get_okr_dashboard(context, owner.id)).unwrap()

        assert stats.total_objectives == 2
        assert stats.total_key_results == 1
        assert stats.behind == 1
        assert stats.average_progress == 0

    async def test_averages_over_key_results(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Key results, not objectives, carry the average and the buckets."""
        owner = await make_user("owner@example.com")
        first = await create_objective(context, owner)
        second = await create_objective(context, owner, title="Second")
        done = (
            await okr.create_key_result(context, owner.id, key_result_params(first.id, title="Done"))
        ).unwrap()
        await okr.create_key_result(context, owner.id, key_result_params(first.id, title="Idle"))
        await okr.create_key_result(context, owner.id, key_result_params(second.id))
        await okr.update_key_result_progress(context, done.id, owner.id, 100)

        stats = (await okr.get_okr_dashboard(context, owner.id)).unwrap()

        assert stats.average_progress == 33
        assert (stats.on_track, stats.at_risk, stats.behind) == (1, 0, 2)
