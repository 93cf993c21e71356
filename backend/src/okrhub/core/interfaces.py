"""Protocol definitions for the non-storage collaborators of the core.

Repositories live beside their domain types (``okrhub.core.<domain>.repository``);
this module holds the remaining ports the use cases depend on. The core only
ever sees these protocols, never a concrete adapter.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PasswordHasher(Protocol):
    """Interface for password hashing.

    Implementations raise ``PasswordHashError`` when hashing or verification
    cannot be performed (as opposed to a simple mismatch).
    """

    async def hash(self, password: str) -> str:
        """Hash a plain text password.

        Args:
            password: Plain text password.

        Returns:
            The encoded hash.
        """
        ...

    async def verify(self, password: str, hashed_password: str) -> bool:
        """Check a plain text password against a stored hash.

        Args:
            password: Plain text password to check.
            hashed_password: Stored hash.

        Returns:
            True if the password matches.
        """
        ...


@runtime_checkable
class EmailService(Protocol):
    """Interface for outbound notification email.

    Sends are fire-and-forget from the caller's point of view: delivery
    failures raise ``EmailServiceError`` and callers decide whether to log
    and continue.
    """

    async def send_email(
        self,
        to: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> None:
        """Send a raw email."""
        ...

    async def send_email_verification(self, to: str, name: str, verification_url: str) -> None:
        """Send the address verification link after registration."""
        ...

    async def send_password_reset(self, to: str, name: str, reset_url: str) -> None:
        """Send a password reset link."""
        ...

    async def send_team_invitation(
        self,
        to: str,
        team_name: str,
        inviter_name: str,
        invitation_url: str,
    ) -> None:
        """Send a team invitation link."""
        ...
