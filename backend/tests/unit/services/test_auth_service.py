"""Tests for authentication use cases."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from okrhub.adapters.memory import MemoryStore
from okrhub.core.auth.tokens import hash_token
from okrhub.core.auth.types import LoginParams, RegisterParams, ResetPasswordParams
from okrhub.core.context import Context
from okrhub.core.exceptions import AuthenticationError, ConflictError, EmailServiceError
from okrhub.services import auth, users

PASSWORD = "correct-horse-battery"


async def register(context: Context, email: str = "ada@example.com") -> None:
    """Register a user with the shared test password."""
    result = await auth.register(
        context, RegisterParams(email=email, name="Ada", password=PASSWORD)
    )
    assert result.is_ok()


class TestRegister:
    """Tests for register."""

    async def test_creates_user_and_sends_verification(
        self, context: Context, email_service: AsyncMock
    ) -> None:
        """Registration stores a hashed password and emails a verification link."""
        result = await auth.register(
            context, RegisterParams(email="ada@example.com", name="Ada", password=PASSWORD)
        )

        user = result.unwrap()
        assert user.email_verified is False
        stored = await context.user_repository.find_by_email_for_auth("ada@example.com")
        assert stored is not None
        assert stored.hashed_password != PASSWORD
        email_service.send_email_verification.assert_awaited_once()
        url = email_service.send_email_verification.await_args.kwargs["verification_url"]
        assert url.startswith("http://localhost:3000/verify-email?token=")

    async def test_duplicate_email_conflicts(self, context: Context) -> None:
        """A second registration with the same email is a conflict."""
        await register(context)

        result = await auth.register(
            context, RegisterParams(email="ada@example.com", name="Other", password=PASSWORD)
        )

        assert isinstance(result.unwrap_err(), ConflictError)

    async def test_email_failure_does_not_fail_registration(
        self, context: Context, email_service: AsyncMock
    ) -> None:
        """The account exists even when the verification email bounces."""
        email_service.send_email_verification.side_effect = EmailServiceError("smtp down")

        result = await auth.register(
            context, RegisterParams(email="ada@example.com", name="Ada", password=PASSWORD)
        )

        assert result.is_ok()

    async def test_verification_token_verifies_email(
        self, context: Context, email_service: AsyncMock
    ) -> None:
        """The emailed token marks the address verified exactly once."""
        await register(context)
        url = email_service.send_email_verification.await_args.kwargs["verification_url"]
        token = url.split("token=")[1]

        verified = (await users.verify_email(context, token)).unwrap()
        again = await users.verify_email(context, token)

        assert verified.email_verified is True
        assert again.is_err()


class TestLogin:
    """Tests for login and sessions."""

    async def test_login_issues_valid_session(self, context: Context) -> None:
        """A successful login returns a token that validates to the user."""
        await register(context)

        login = (
            await auth.login(context, LoginParams(email="ada@example.com", password=PASSWORD))
        ).unwrap()
        session = (await auth.validate_session(context, login.session.token)).unwrap()

        assert session.user.id == login.user.id
        assert session.user.email == "ada@example.com"

    @pytest.mark.parametrize(
        ("email", "password"),
        [("ada@example.com", "wrong-password"), ("nobody@example.com", PASSWORD)],
    )
    async def test_bad_credentials_share_one_error(
        self, context: Context, email: str, password: str
    ) -> None:
        """Unknown email and wrong password look the same to the caller."""
        await register(context)

        result = await auth.login(context, LoginParams(email=email, password=password))

        error = result.unwrap_err()
        assert isinstance(error, AuthenticationError)
        assert error.message == "Invalid email or password"

    async def test_logout_invalidates_token(self, context: Context) -> None:
        """A logged out token no longer validates."""
        await register(context)
        login = (
            await auth.login(context, LoginParams(email="ada@example.com", password=PASSWORD))
        ).unwrap()

        await auth.logout(context, login.session.token)

        result = await auth.validate_session(context, login.session.token)
        assert isinstance(result.unwrap_err(), AuthenticationError)

    async def test_expired_session_is_rejected_and_removed(self, context: Context) -> None:
        """Expired sessions fail validation and are deleted."""
        await register(context)
        user = await context.user_repository.find_by_email("ada@example.com")
        assert user is not None
        session = await context.session_repository.create(
            user_id=user.id,
            token="expired-token",
            expires_at=datetime.now(UTC) - timedelta(minutes=1),
        )

        result = await auth.validate_session(context, "expired-token")

        assert result.unwrap_err().message == "Session expired"
        assert await context.session_repository.find_by_token(session.token) is None

    async def test_missing_token(self, context: Context) -> None:
        """No token is an authentication error."""
        result = await auth.validate_session(context, None)

        assert isinstance(result.unwrap_err(), AuthenticationError)


class TestPasswordReset:
    """Tests for the password reset flow."""

    async def test_reset_changes_password_and_ends_sessions(
        self, context: Context, email_service: AsyncMock
    ) -> None:
        """Resetting sets the new password, burns the token and signs out everywhere."""
        await register(context)
        login = (
            await auth.login(context, LoginParams(email="ada@example.com", password=PASSWORD))
        ).unwrap()

        assert (await auth.request_password_reset(context, "ada@example.com")).is_ok()
        url = email_service.send_password_reset.await_args.kwargs["reset_url"]
        token = url.split("token=")[1]

        params = ResetPasswordParams(token=token, new_password="a-brand-new-secret")
        assert (await auth.reset_password(context, params)).is_ok()

        assert (await auth.validate_session(context, login.session.token)).is_err()
        assert (await auth.reset_password(context, params)).is_err()
        relogin = await auth.login(
            context, LoginParams(email="ada@example.com", password="a-brand-new-secret")
        )
        assert relogin.is_ok()

    async def test_unknown_email_is_silent(
        self, context: Context, email_service: AsyncMock
    ) -> None:
        """Requests for unknown addresses succeed without sending anything."""
        result = await auth.request_password_reset(context, "nobody@example.com")

        assert result.is_ok()
        email_service.send_password_reset.assert_not_awaited()

    async def test_invalid_token(self, context: Context) -> None:
        """An unknown reset token is rejected."""
        result = await auth.reset_password(
            context, ResetPasswordParams(token="bogus", new_password="a-brand-new-secret")
        )

        assert isinstance(result.unwrap_err(), AuthenticationError)

    async def test_tokens_are_stored_hashed(
        self, context: Context, store: MemoryStore, email_service: AsyncMock
    ) -> None:
        """Only a digest of the emailed tokens reaches storage."""
        await register(context)
        assert (await auth.request_password_reset(context, "ada@example.com")).is_ok()

        verify_url = email_service.send_email_verification.await_args.kwargs["verification_url"]
        reset_url = email_service.send_password_reset.await_args.kwargs["reset_url"]
        verify_token = verify_url.split("token=")[1]
        reset_token = reset_url.split("token=")[1]

        assert list(store.verification_tokens.values()) == [hash_token(verify_token)]
        assert [stored for stored, _ in store.reset_tokens.values()] == [hash_token(reset_token)]
        assert verify_token not in store.verification_tokens.values()
