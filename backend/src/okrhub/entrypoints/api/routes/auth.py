"""Authentication API routes: registration, login, sessions and password reset."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from okrhub.core.auth.types import LoginParams, RegisterParams, ResetPasswordParams
from okrhub.core.context import Context
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.errors import unwrap
from okrhub.entrypoints.api.middleware.auth import SessionDep
from okrhub.services import auth as auth_service
from okrhub.services import users as users_service

router = APIRouter(prefix="/auth", tags=["auth"])

ContextDep = Annotated[Context, Depends(get_context)]


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    avatar_url: str | None
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    """Issued session token and the authenticated user."""

    token: str
    expires_at: datetime
    user: UserResponse


class PasswordResetRequest(BaseModel):
    """Request a password reset link."""

    email: EmailStr


class VerifyEmailRequest(BaseModel):
    """Email verification token from the link."""

    token: str = Field(min_length=1)


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterParams, context: ContextDep) -> UserResponse:
    """Create an account. A verification link is emailed."""
    user = unwrap(await auth_service.register(context, body))
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginParams, context: ContextDep) -> LoginResponse:
    """Exchange credentials for a bearer session token."""
    result = unwrap(await auth_service.login(context, body))
    return LoginResponse(
        token=result.session.token,
        expires_at=result.session.expires_at,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(session: SessionDep, context: ContextDep) -> Response:
    """End the current session."""
    unwrap(await auth_service.logout(context, session.token))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
async def me(session: SessionDep) -> UserResponse:
    """The authenticated user."""
    return UserResponse.model_validate(session.user)


@router.post("/password-reset", response_model=MessageResponse)
async def request_password_reset(
    body: PasswordResetRequest, context: ContextDep
) -> MessageResponse:
    """Email a reset link.

    The response is the same whether or not the address is registered.
    """
    unwrap(await auth_service.request_password_reset(context, body.email))
    return MessageResponse(message="If the email exists, a reset link has been sent")


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(
    body: ResetPasswordParams, context: ContextDep
) -> MessageResponse:
    """Set a new password with a reset token. All sessions are ended."""
    unwrap(await auth_service.reset_password(context, body))
    return MessageResponse(message="Password has been reset")


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(body: VerifyEmailRequest, context: ContextDep) -> UserResponse:
    """Confirm an email address with the token from the verification link."""
    user = unwrap(await users_service.verify_email(context, body.token))
    return UserResponse.model_validate(user)
