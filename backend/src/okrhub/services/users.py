"""User account use cases."""

from __future__ import annotations

from uuid import UUID

import structlog

from okrhub.core.auth.tokens import hash_token
from okrhub.core.context import Context
from okrhub.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from okrhub.core.okr.types import ListObjectivesQuery
from okrhub.core.pagination import Page, Pagination
from okrhub.core.users.types import ChangePasswordParams, ListUsersQuery, UpdateUserParams, User
from okrhub.services.base import use_case

logger = structlog.get_logger()


async def _require_user(ctx: Context, user_id: UUID) -> User:
    user = await ctx.user_repository.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@use_case
async def get_user(ctx: Context, user_id: UUID) -> User:
    """Get a user by ID."""
    return await _require_user(ctx, user_id)


@use_case
async def list_users(ctx: Context, query: ListUsersQuery) -> Page[User]:
    """List users."""
    return await ctx.user_repository.list(query)


@use_case
async def update_profile(ctx: Context, user_id: UUID, params: UpdateUserParams) -> User:
    """Update name, email or avatar.

    Raises:
        NotFoundError: If the user does not exist.
        ConflictError: If the new email belongs to another account.
    """
    user = await _require_user(ctx, user_id)
    if params.email is not None and params.email != user.email:
        other = await ctx.user_repository.find_by_email(params.email)
        if other is not None and other.id != user_id:
            raise ConflictError("Email is already in use")

    updated = await ctx.user_repository.update(user_id, params)
    logger.info("profile_updated", user_id=str(user_id), fields=sorted(params.model_fields_set))
    return updated


@use_case
async def change_password(ctx: Context, user_id: UUID, params: ChangePasswordParams) -> None:
    """Replace the password after checking the current one.

    Raises:
        NotFoundError: If the user does not exist.
        AuthenticationError: If the current password is wrong.
    """
    user = await _require_user(ctx, user_id)
    with_password = await ctx.user_repository.find_by_email_for_auth(user.email)
    if with_password is None:
        raise NotFoundError("User not found")

    if not await ctx.password_hasher.verify(params.current_password, with_password.hashed_password):
        raise AuthenticationError("Current password is incorrect")

    hashed_password = await ctx.password_hasher.hash(params.new_password)
    await ctx.user_repository.change_password(user_id, hashed_password)
    logger.info("password_changed", user_id=str(user_id))


@use_case
async def delete_user(ctx: Context, user_id: UUID) -> None:
    """Delete an account, ending its sessions first.

    Raises:
        NotFoundError: If the user does not exist.
        ConflictError: If the user still owns objectives.
    """
    await _require_user(ctx, user_id)
    owned = await ctx.okr_repository.list_objectives(
        ListObjectivesQuery(owner_id=user_id, pagination=Pagination(limit=1))
    )
    if owned.count:
        raise ConflictError("Delete your objectives before deleting the account")

    await ctx.session_repository.delete_by_user_id(user_id)
    await ctx.user_repository.delete(user_id)
    logger.info("user_deleted", user_id=str(user_id))


@use_case
async def verify_email(ctx: Context, token: str) -> User:
    """Mark the address of the token's owner as verified.

    Raises:
        NotFoundError: If no user holds the token.
    """
    user = await ctx.user_repository.find_by_email_verification_token(hash_token(token))
    if user is None:
        raise NotFoundError("Invalid verification token")

    await ctx.user_repository.set_email_verified(user.id, True)
    await ctx.user_repository.set_email_verification_token(user.id, None)
    return await _require_user(ctx, user.id)
