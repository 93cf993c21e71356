"""Tests for team routes."""

from collections.abc import Awaitable, Callable

from httpx import AsyncClient

Login = Callable[..., Awaitable[dict[str, str]]]


async def create_team(client: AsyncClient, headers: dict[str, str], name: str = "Growth") -> dict:
    response = await client.post("/api/v1/teams/", json={"name": name}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestTeams:
    """Tests for team CRUD and membership routes."""

    async def test_creator_is_admin_member(self, client: AsyncClient, login: Login) -> None:
        """The creator is listed as an admin member."""
        ada = await login("ada@example.com", "Ada")
        team = await create_team(client, ada)

        listing = await client.get("/api/v1/teams/", headers=ada)
        members = await client.get(f"/api/v1/teams/{team['id']}/members", headers=ada)

        assert [t["id"] for t in listing.json()["teams"]] == [team["id"]]
        assert members.status_code == 200
        assert members.json()["total"] == 1

    async def test_non_member_is_forbidden(self, client: AsyncClient, login: Login) -> None:
        """Outsiders cannot read the team."""
        ada = await login("ada@example.com", "Ada")
        grace = await login("grace@example.com", "Grace")
        team = await create_team(client, ada)

        response = await client.get(f"/api/v1/teams/{team['id']}", headers=grace)

        assert response.status_code == 403

    async def test_unknown_team(self, client: AsyncClient, login: Login) -> None:
        """Missing teams are 404."""
        ada = await login("ada@example.com", "Ada")

        response = await client.get(
            "/api/v1/teams/00000000-0000-0000-0000-000000000000", headers=ada
        )

        assert response.status_code == 404

    async def test_only_creator_deletes(self, client: AsyncClient, login: Login) -> None:
        """Deleting is reserved for the creator."""
        ada = await login("ada@example.com", "Ada")
        grace = await login("grace@example.com", "Grace")
        team = await create_team(client, ada)

        denied = await client.delete(f"/api/v1/teams/{team['id']}", headers=grace)
        deleted = await client.delete(f"/api/v1/teams/{team['id']}", headers=ada)

        assert denied.status_code == 403
        assert deleted.status_code == 204

    async def test_invitation_hides_token(self, client: AsyncClient, login: Login) -> None:
        """Invitation tokens travel only by email."""
        ada = await login("ada@example.com", "Ada")
        team = await create_team(client, ada)

        response = await client.post(
            f"/api/v1/teams/{team['id']}/invitations",
            json={"email": "grace@example.com", "role": "member"},
            headers=ada,
        )

        assert response.status_code == 201
        assert "token" not in response.json()
        assert response.json()["email"] == "grace@example.com"
