"""Objective and key result use cases."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog

from okrhub.core.context import Context
from okrhub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from okrhub.core.okr.progress import progress_of
from okrhub.core.okr.types import (
    CreateKeyResultParams,
    CreateObjectiveParams,
    DashboardStats,
    KeyResult,
    KeyResultType,
    KeyResultWithProgress,
    ListObjectivesQuery,
    Objective,
    ObjectiveType,
    ObjectiveWithKeyResults,
    UpdateKeyResultParams,
    UpdateObjectiveParams,
)
from okrhub.core.pagination import Page
from okrhub.core.rbac.permissions import TeamPermission
from okrhub.services.base import use_case

logger = structlog.get_logger()

ORGANIZATION_PERMISSION = TeamPermission.MANAGE_ORGANIZATION_OBJECTIVES.value


def _check_date_range(start_date: datetime, end_date: datetime) -> None:
    if start_date >= end_date:
        raise ValidationError("Start date must be before end date", field="end_date")


def _check_target_value(kr_type: KeyResultType, target_value: float) -> None:
    if kr_type == KeyResultType.PERCENTAGE and not 0 <= target_value <= 100:
        raise ValidationError(
            "Percentage target value must be between 0 and 100", field="target_value"
        )
    if kr_type == KeyResultType.BOOLEAN and target_value != 1:
        raise ValidationError("Boolean target value must be 1", field="target_value")
    if kr_type == KeyResultType.NUMBER and target_value < 0:
        raise ValidationError("Number target value must be non-negative", field="target_value")


def _check_current_value(kr_type: KeyResultType, current_value: float) -> None:
    if current_value < 0:
        raise ValidationError("Current value must be non-negative", field="current_value")
    if kr_type == KeyResultType.PERCENTAGE and current_value > 100:
        raise ValidationError(
            "Percentage current value must be between 0 and 100", field="current_value"
        )
    if kr_type == KeyResultType.BOOLEAN and current_value not in (0, 1):
        raise ValidationError("Boolean current value must be 0 or 1", field="current_value")


def _with_progress(key_result: KeyResult) -> KeyResultWithProgress:
    return KeyResultWithProgress(**vars(key_result), progress_percentage=progress_of(key_result))


def _check_within_objective(objective: Objective, start_date: datetime, end_date: datetime) -> None:
    if start_date < objective.start_date or end_date > objective.end_date:
        raise ValidationError(
            "Key result dates must be within the objective date range", field="start_date"
        )


async def _require_editable(
    ctx: Context,
    objective_id: UUID,
    user_id: UUID,
    action: str,
    not_found: str = "Objective not found",
) -> Objective:
    """Objectives the user cannot read are NotFound; readable ones are 403."""
    objective = await ctx.okr_repository.find_objective_by_id(objective_id)
    if objective is None or not await ctx.okr_repository.can_user_access_objective(
        objective_id, user_id
    ):
        raise NotFoundError(not_found)
    if not await ctx.okr_repository.can_user_edit_objective(objective_id, user_id):
        raise AuthorizationError(f"No permission to {action}")
    return objective


async def _require_key_result(ctx: Context, key_result_id: UUID) -> KeyResultWithProgress:
    key_result = await ctx.okr_repository.find_key_result_by_id(key_result_id)
    if key_result is None:
        raise NotFoundError("Key result not found")
    return key_result


async def _check_team(ctx: Context, team_id: UUID, user_id: UUID) -> None:
    if not await ctx.team_repository.is_user_member(team_id, user_id):
        raise AuthorizationError("User is not a member of the team")


async def _check_organization_permission(ctx: Context, user_id: UUID) -> None:
    permissions = await ctx.role_repository.get_user_permissions(user_id)
    if not any(p.name == ORGANIZATION_PERMISSION for p in permissions):
        raise AuthorizationError("No permission to create organization objectives")


async def _check_parent(ctx: Context, parent_id: UUID, user_id: UUID) -> None:
    if await ctx.okr_repository.find_objective_by_id(parent_id) is None:
        raise NotFoundError("Parent objective not found")
    if not await ctx.okr_repository.can_user_access_objective(parent_id, user_id):
        raise AuthorizationError("No access to parent objective")


@use_case
async def create_objective(ctx: Context, user_id: UUID, params: CreateObjectiveParams) -> Objective:
    """Create an objective owned by ``user_id``, in draft status.

    Raises:
        ValidationError: If the date range is empty or inverted.
        AuthorizationError: If the user is not in the team, lacks the
            organization permission, or cannot see the parent.
        NotFoundError: If the parent objective does not exist.
    """
    _check_date_range(params.start_date, params.end_date)

    if params.type == ObjectiveType.TEAM and params.team_id is not None:
        await _check_team(ctx, params.team_id, user_id)
    if params.type == ObjectiveType.ORGANIZATION:
        await _check_organization_permission(ctx, user_id)
    if params.parent_id is not None:
        await _check_parent(ctx, params.parent_id, user_id)

    objective = await ctx.okr_repository.create_objective(user_id, params)
    logger.info("objective_created", objective_id=str(objective.id), owner_id=str(user_id))
    return objective


@use_case
async def get_objective(ctx: Context, objective_id: UUID, user_id: UUID) -> ObjectiveWithKeyResults:
    """Get an objective with its key results and progress.

    Objectives the user may not see are reported as not found, so their
    existence is not revealed.
    """
    if not await ctx.okr_repository.can_user_access_objective(objective_id, user_id):
        raise NotFoundError("Objective not found")
    objective = await ctx.okr_repository.find_objective_with_key_results(objective_id)
    if objective is None:
        raise NotFoundError("Objective not found")
    return objective


@use_case
async def list_objectives(
    ctx: Context,
    user_id: UUID,
    query: ListObjectivesQuery,
    include_key_results: bool = False,
) -> Page[ObjectiveWithKeyResults]:
    """List objectives, each with its aggregate progress.

    Only objectives the user may read are returned. Without
    ``include_key_results`` the items carry an empty key result list but
    still report progress.
    """
    query = query.model_copy(update={"visible_to": user_id})
    if include_key_results:
        return await ctx.okr_repository.list_objectives_with_key_results(query)

    page = await ctx.okr_repository.list_objectives(query)
    items = []
    for objective in page.items:
        progress = await ctx.okr_repository.get_objective_progress(objective.id)
        items.append(
            ObjectiveWithKeyResults(
                **vars(objective),
                key_results=[],
                progress_percentage=progress,
            )
        )
    return Page(items=items, count=page.count)


@use_case
async def update_objective(
    ctx: Context, objective_id: UUID, user_id: UUID, params: UpdateObjectiveParams
) -> Objective:
    """Update an objective. Owner only.

    Raises:
        NotFoundError: If the objective or new parent does not exist, or the
            objective is hidden from the user.
        AuthorizationError: If the user may not edit, or the new team or type
            is not allowed for them.
        ValidationError: If the resulting date range is invalid or the
            objective would become its own parent.
    """
    objective = await _require_editable(ctx, objective_id, user_id, "edit this objective")
    changes = params.changes()

    _check_date_range(
        changes.get("start_date") or objective.start_date,
        changes.get("end_date") or objective.end_date,
    )

    new_team_id = changes.get("team_id")
    if new_team_id is not None and new_team_id != objective.team_id:
        await _check_team(ctx, new_team_id, user_id)

    if params.type == ObjectiveType.ORGANIZATION and objective.type != ObjectiveType.ORGANIZATION:
        await _check_organization_permission(ctx, user_id)

    new_parent_id = changes.get("parent_id")
    if new_parent_id is not None and new_parent_id != objective.parent_id:
        if new_parent_id == objective_id:
            raise ValidationError("Objective cannot be its own parent", field="parent_id")
        await _check_parent(ctx, new_parent_id, user_id)

    updated = await ctx.okr_repository.update_objective(objective_id, params)
    logger.info("objective_updated", objective_id=str(objective_id), fields=sorted(changes))
    return updated


@use_case
async def delete_objective(ctx: Context, objective_id: UUID, user_id: UUID) -> None:
    """Delete an objective and its key results. Owner only."""
    await _require_editable(ctx, objective_id, user_id, "delete this objective")
    await ctx.okr_repository.delete_objective(objective_id)
    logger.info("objective_deleted", objective_id=str(objective_id), deleted_by=str(user_id))


@use_case
async def create_key_result(ctx: Context, user_id: UUID, params: CreateKeyResultParams) -> KeyResult:
    """Add a key result to an objective the user owns.

    Raises:
        NotFoundError: If the objective does not exist.
        AuthorizationError: If the user may not edit the objective.
        ValidationError: If dates or target value break the rules for the type.
    """
    objective = await _require_editable(
        ctx, params.objective_id, user_id, "add key results to this objective"
    )
    _check_date_range(params.start_date, params.end_date)
    _check_within_objective(objective, params.start_date, params.end_date)
    _check_target_value(params.type, params.target_value)

    key_result = await ctx.okr_repository.create_key_result(params)
    logger.info(
        "key_result_created",
        key_result_id=str(key_result.id),
        objective_id=str(params.objective_id),
    )
    return key_result


@use_case
async def get_key_result(ctx: Context, key_result_id: UUID, user_id: UUID) -> KeyResultWithProgress:
    """Get a key result with its progress, if the user can see its objective."""
    key_result = await _require_key_result(ctx, key_result_id)
    if not await ctx.okr_repository.can_user_access_objective(key_result.objective_id, user_id):
        raise NotFoundError("Key result not found")
    return key_result


@use_case
async def update_key_result(
    ctx: Context, key_result_id: UUID, user_id: UUID, params: UpdateKeyResultParams
) -> KeyResultWithProgress:
    """Update a key result, re-checking the rules against the merged values.

    A type change also re-validates the stored current value, so a number
    key result at 5 cannot become a boolean one.
    """
    key_result = await _require_key_result(ctx, key_result_id)
    objective = await _require_editable(
        ctx, key_result.objective_id, user_id, "edit this key result", "Key result not found"
    )
    changes = params.changes()

    start_date = changes.get("start_date") or key_result.start_date
    end_date = changes.get("end_date") or key_result.end_date
    _check_date_range(start_date, end_date)
    if "start_date" in changes or "end_date" in changes:
        _check_within_objective(objective, start_date, end_date)

    if "target_value" in changes or "type" in changes:
        kr_type = params.type or key_result.type
        _check_target_value(
            kr_type,
            params.target_value if params.target_value is not None else key_result.target_value,
        )
        _check_current_value(kr_type, key_result.current_value)

    updated = await ctx.okr_repository.update_key_result(key_result_id, params)
    logger.info("key_result_updated", key_result_id=str(key_result_id), fields=sorted(changes))
    return _with_progress(updated)


@use_case
async def update_key_result_progress(
    ctx: Context, key_result_id: UUID, user_id: UUID, current_value: float
) -> KeyResultWithProgress:
    """Record a new current value.

    Reaching the target does not complete the key result; status changes
    are always explicit.
    """
    key_result = await _require_key_result(ctx, key_result_id)
    await _require_editable(
        ctx,
        key_result.objective_id,
        user_id,
        "update this key result progress",
        "Key result not found",
    )
    _check_current_value(key_result.type, current_value)

    updated = await ctx.okr_repository.update_key_result_progress(key_result_id, current_value)
    logger.info(
        "key_result_progress_updated",
        key_result_id=str(key_result_id),
        current_value=current_value,
    )
    return _with_progress(updated)


@use_case
async def delete_key_result(ctx: Context, key_result_id: UUID, user_id: UUID) -> None:
    """Delete a key result. Objective owner only."""
    key_result = await _require_key_result(ctx, key_result_id)
    await _require_editable(
        ctx, key_result.objective_id, user_id, "delete this key result", "Key result not found"
    )
    await ctx.okr_repository.delete_key_result(key_result_id)
    logger.info("key_result_deleted", key_result_id=str(key_result_id))


@use_case
async def get_okr_dashboard(
    ctx: Context, user_id: UUID, team_id: UUID | None = None
) -> DashboardStats:
    """Dashboard counters for the user's objectives, optionally one team's."""
    if team_id is not None:
        await _check_team(ctx, team_id, user_id)
    return await ctx.okr_repository.get_dashboard_stats(user_id, team_id)
