"""Tests for user account use cases."""

from collections.abc import Awaitable, Callable

from okrhub.core.auth.types import LoginParams, RegisterParams
from okrhub.core.context import Context
from okrhub.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from okrhub.core.ids import new_id
from okrhub.core.okr.types import Objective
from okrhub.core.users.types import ChangePasswordParams, ListUsersQuery, UpdateUserParams, User
from okrhub.services import auth, users

MakeUser = Callable[..., Awaitable[User]]
MakeObjective = Callable[..., Awaitable[Objective]]


class TestGetAndList:
    """Tests for get_user and list_users."""

    async def test_get_missing_user(self, context: Context) -> None:
        """An unknown ID is NotFound."""
        result = await users.get_user(context, new_id())

        assert isinstance(result.unwrap_err(), NotFoundError)

    async def test_list_with_search(self, context: Context, make_user: MakeUser) -> None:
        """Search matches name or email."""
        await make_user("ada@example.com", name="Ada Lovelace")
        await make_user("grace@example.com", name="Grace Hopper")

        page = (await users.list_users(context, ListUsersQuery(search="lovelace"))).unwrap()

        assert page.count == 1
        assert page.items[0].email == "ada@example.com"


class TestUpdateProfile:
    """Tests for update_profile."""

    async def test_updates_name_only(self, context: Context, make_user: MakeUser) -> None:
        """Unset fields keep their values."""
        user = await make_user("ada@example.com", name="Ada")

        updated = (
            await users.update_profile(context, user.id, UpdateUserParams(name="Countess"))
        ).unwrap()

        assert updated.name == "Countess"
        assert updated.email == "ada@example.com"

    async def test_email_taken(self, context: Context, make_user: MakeUser) -> None:
        """Moving to an address another account uses is a conflict."""
        user = await make_user("ada@example.com")
        await make_user("grace@example.com")

        result = await users.update_profile(
            context, user.id, UpdateUserParams(email="grace@example.com")
        )

        assert isinstance(result.unwrap_err(), ConflictError)


class TestChangePassword:
    """Tests for change_password."""

    async def test_requires_current_password(self, context: Context) -> None:
        """The current password must match before it can be replaced."""
        user = (
            await auth.register(
                context,
                RegisterParams(email="ada@example.com", name="Ada", password="first-password"),
            )
        ).unwrap()

        wrong = await users.change_password(
            context,
            user.id,
            ChangePasswordParams(current_password="nope", new_password="second-password"),
        )
        right = await users.change_password(
            context,
            user.id,
            ChangePasswordParams(current_password="first-password", new_password="second-password"),
        )

        assert isinstance(wrong.unwrap_err(), AuthenticationError)
        assert right.is_ok()
        login = await auth.login(
            context, LoginParams(email="ada@example.com", password="second-password")
        )
        assert login.is_ok()


class TestDeleteUser:
    """Tests for delete_user."""

    async def test_deletes_account(self, context: Context, make_user: MakeUser) -> None:
        """A user without objectives can be deleted."""
        user = await make_user("ada@example.com")

        assert (await users.delete_user(context, user.id)).is_ok()
        assert await context.user_repository.find_by_id(user.id) is None

    async def test_blocked_while_owning_objectives(
        self, context: Context, make_user: MakeUser, make_objective: MakeObjective
    ) -> None:
        """Objectives must be deleted before their owner."""
        user = await make_user("ada@example.com")
        await make_objective(user.id)

        result = await users.delete_user(context, user.id)

        assert isinstance(result.unwrap_err(), ConflictError)
        assert await context.user_repository.find_by_id(user.id) is not None
