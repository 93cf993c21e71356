"""Authentication use cases: registration, login, sessions and password reset."""

from __future__ import annotations

import structlog

from okrhub.core.auth.tokens import generate_token, get_expiry, hash_token, is_expired
from okrhub.core.auth.types import (
    LoginParams,
    LoginResult,
    RegisterParams,
    ResetPasswordParams,
    SessionWithUser,
)
from okrhub.core.context import Context
from okrhub.core.exceptions import AuthenticationError, ConflictError, EmailServiceError
from okrhub.core.users.types import CreateUserParams, User
from okrhub.services.base import use_case

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


@use_case
async def register(ctx: Context, params: RegisterParams) -> User:
    """Create an account and send the email verification link.

    A failed verification email is logged; the account is still created.

    Raises:
        ConflictError: If the email is already registered.
    """
    existing = await ctx.user_repository.find_by_email(params.email)
    if existing is not None:
        raise ConflictError("User already exists with this email")

    hashed_password = await ctx.password_hasher.hash(params.password)
    user = await ctx.user_repository.create(
        CreateUserParams(email=params.email, name=params.name, hashed_password=hashed_password)
    )

    token = generate_token()
    await ctx.user_repository.set_email_verification_token(user.id, hash_token(token))
    try:
        await ctx.email_service.send_email_verification(
            to=user.email,
            name=user.name,
            verification_url=ctx.settings.link("/verify-email", token),
        )
    except EmailServiceError as e:
        logger.warning("verification_email_failed", user_id=str(user.id), error=e.message)

    logger.info("user_registered", user_id=str(user.id))
    return user


@use_case
async def login(ctx: Context, params: LoginParams) -> LoginResult:
    """Verify credentials and open a session.

    Unknown emails and wrong passwords produce the same error so callers
    cannot discover which accounts exist.

    Raises:
        AuthenticationError: If the credentials do not match.
    """
    user = await ctx.user_repository.find_by_email_for_auth(params.email)
    if user is None:
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not await ctx.password_hasher.verify(params.password, user.hashed_password):
        logger.info("login_failed", user_id=str(user.id))
        raise AuthenticationError(INVALID_CREDENTIALS)

    session = await ctx.session_repository.create(
        user_id=user.id,
        token=generate_token(),
        expires_at=get_expiry(ctx.settings.session_ttl),
    )
    logger.info("login_succeeded", user_id=str(user.id), session_id=str(session.id))
    return LoginResult(user=user.to_user(), session=session)


@use_case
async def logout(ctx: Context, token: str) -> None:
    """End the session identified by ``token``."""
    await ctx.session_repository.delete_by_token(token)


@use_case
async def validate_session(ctx: Context, token: str | None) -> SessionWithUser:
    """Resolve a bearer token to its session and user.

    Expired sessions and sessions whose user vanished are deleted on sight.

    Raises:
        AuthenticationError: If the token is missing, unknown or expired.
    """
    if not token:
        raise AuthenticationError("Missing session token")

    session = await ctx.session_repository.find_by_token(token)
    if session is None:
        raise AuthenticationError("Invalid session")

    if is_expired(session.expires_at):
        await ctx.session_repository.delete(session.id)
        raise AuthenticationError("Session expired")

    user = await ctx.user_repository.find_by_id(session.user_id)
    if user is None:
        await ctx.session_repository.delete(session.id)
        raise AuthenticationError("User not found")

    return SessionWithUser(
        id=session.id,
        user_id=session.user_id,
        token=session.token,
        expires_at=session.expires_at,
        created_at=session.created_at,
        updated_at=session.updated_at,
        user=user,
    )


@use_case
async def request_password_reset(ctx: Context, email: str) -> None:
    """Store a reset token and email the reset link.

    Always succeeds for unknown addresses so the endpoint does not reveal
    which emails are registered.
    """
    user = await ctx.user_repository.find_by_email(email)
    if user is None:
        logger.info("password_reset_requested_unknown_email")
        return

    token = generate_token()
    await ctx.user_repository.set_password_reset_token(
        user.id, hash_token(token), get_expiry(ctx.settings.password_reset_ttl)
    )
    try:
        await ctx.email_service.send_password_reset(
            to=user.email,
            name=user.name,
            reset_url=ctx.settings.link("/reset-password", token),
        )
        logger.info("password_reset_email_sent", user_id=str(user.id))
    except EmailServiceError as e:
        logger.error("password_reset_email_failed", user_id=str(user.id), error=e.message)


@use_case
async def reset_password(ctx: Context, params: ResetPasswordParams) -> None:
    """Set a new password using a reset token and sign out everywhere.

    Raises:
        AuthenticationError: If the token is unknown or expired.
    """
    user = await ctx.user_repository.find_by_password_reset_token(
        hash_token(params.token)
    )
    if user is None:
        logger.warning("password_reset_invalid_token")
        raise AuthenticationError("Invalid or expired reset link")

    hashed_password = await ctx.password_hasher.hash(params.new_password)
    await ctx.user_repository.change_password(user.id, hashed_password)
    await ctx.user_repository.set_password_reset_token(user.id, None, None)
    await ctx.session_repository.delete_by_user_id(user.id)
    logger.info("password_reset_successful", user_id=str(user.id))
