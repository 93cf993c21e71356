"""Explicit dependency bundle passed to every use case."""

from dataclasses import dataclass, field
from datetime import timedelta

from okrhub.core.auth.repository import SessionRepository
from okrhub.core.interfaces import EmailService, PasswordHasher
from okrhub.core.okr.repository import OkrRepository
from okrhub.core.rbac.repository import RoleRepository
from okrhub.core.teams.authorization import TeamAuthorizer
from okrhub.core.teams.repository import TeamRepository
from okrhub.core.users.repository import UserRepository

SESSION_TTL = timedelta(days=30)
INVITATION_TTL = timedelta(days=7)
PASSWORD_RESET_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class ContextSettings:
    """Runtime knobs the use cases read."""

    public_url: str = "http://localhost:3000"
    session_ttl: timedelta = SESSION_TTL
    invitation_ttl: timedelta = INVITATION_TTL
    password_reset_ttl: timedelta = PASSWORD_RESET_TTL

    def link(self, path: str, token: str) -> str:
        """Build an absolute link carrying a token."""
        return f"{self.public_url.rstrip('/')}{path}?token={token}"


@dataclass(frozen=True)
class Context:
    """Repository handles and ports for one application instance.

    Built once by the entrypoint and passed explicitly as the first argument
    of every use case; nothing in the core looks it up globally.
    """

    user_repository: UserRepository
    session_repository: SessionRepository
    team_repository: TeamRepository
    role_repository: RoleRepository
    okr_repository: OkrRepository
    password_hasher: PasswordHasher
    email_service: EmailService
    settings: ContextSettings = field(default_factory=ContextSettings)

    @property
    def team_authorizer(self) -> TeamAuthorizer:
        """Authorizer bound to this context's team and role stores."""
        return TeamAuthorizer(self.team_repository, self.role_repository)
