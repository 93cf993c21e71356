"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog
from fastapi import Request

from okrhub.adapters.auth.password import BcryptPasswordHasher
from okrhub.adapters.db.app_db import AppDatabase
from okrhub.adapters.memory import (
    InMemoryOkrRepository,
    InMemoryRoleRepository,
    InMemorySessionRepository,
    InMemoryTeamRepository,
    InMemoryUserRepository,
    MemoryStore,
)
from okrhub.adapters.notifications.email import EmailConfig, LoggingEmailService, SmtpEmailService
from okrhub.adapters.postgres import (
    PostgresOkrRepository,
    PostgresRoleRepository,
    PostgresSessionRepository,
    PostgresTeamRepository,
    PostgresUserRepository,
)
from okrhub.core.context import Context, ContextSettings
from okrhub.core.interfaces import EmailService
from okrhub.core.rbac.permissions import ensure_default_roles
from okrhub.logging import configure_logging

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/okrhub")
        self.storage_backend = os.getenv("STORAGE_BACKEND", "postgres")
        self.auto_create_schema = _flag("AUTO_CREATE_SCHEMA", "true")
        self.public_url = os.getenv("PUBLIC_URL", "http://localhost:3000")

        # Token lifetimes
        self.session_ttl_days = int(os.getenv("SESSION_TTL_DAYS", "30"))
        self.invitation_ttl_days = int(os.getenv("INVITATION_TTL_DAYS", "7"))
        self.password_reset_ttl_hours = int(os.getenv("PASSWORD_RESET_TTL_HOURS", "1"))
        self.bcrypt_rounds = int(os.getenv("BCRYPT_ROUNDS", "12"))

        # Email; without an SMTP host messages are only logged
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER") or None
        self.smtp_password = os.getenv("SMTP_PASSWORD") or None
        self.email_from = os.getenv("EMAIL_FROM", "okrhub@example.com")

        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_json = _flag("LOG_JSON")

    def context_settings(self) -> ContextSettings:
        """Runtime knobs handed to the use cases."""
        return ContextSettings(
            public_url=self.public_url,
            session_ttl=timedelta(days=self.session_ttl_days),
            invitation_ttl=timedelta(days=self.invitation_ttl_days),
            password_reset_ttl=timedelta(hours=self.password_reset_ttl_hours),
        )


settings = Settings()


def build_email_service(config: Settings) -> EmailService:
    """SMTP delivery when configured, log-only otherwise."""
    if not config.smtp_host:
        return LoggingEmailService()
    return SmtpEmailService(
        EmailConfig(
            smtp_host=config.smtp_host,
            smtp_port=config.smtp_port,
            smtp_user=config.smtp_user,
            smtp_password=config.smtp_password,
            from_email=config.email_from,
        )
    )


def build_memory_context(config: Settings, email_service: EmailService) -> Context:
    """Context over one shared in-memory store."""
    store = MemoryStore()
    return Context(
        user_repository=InMemoryUserRepository(store),
        session_repository=InMemorySessionRepository(store),
        team_repository=InMemoryTeamRepository(store),
        role_repository=InMemoryRoleRepository(store),
        okr_repository=InMemoryOkrRepository(store),
        password_hasher=BcryptPasswordHasher(rounds=config.bcrypt_rounds),
        email_service=email_service,
        settings=config.context_settings(),
    )


def build_postgres_context(
    config: Settings, app_db: AppDatabase, email_service: EmailService
) -> Context:
    """Context over the PostgreSQL repositories."""
    return Context(
        user_repository=PostgresUserRepository(app_db),
        session_repository=PostgresSessionRepository(app_db),
        team_repository=PostgresTeamRepository(app_db),
        role_repository=PostgresRoleRepository(app_db),
        okr_repository=PostgresOkrRepository(app_db),
        password_hasher=BcryptPasswordHasher(rounds=config.bcrypt_rounds),
        email_service=email_service,
        settings=config.context_settings(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Logging configuration
    - Database connection pool setup and schema bootstrap
    - Seeding the default roles and permissions
    """
    configure_logging(settings.log_level, settings.log_json)
    email_service = build_email_service(settings)

    app_db = None
    if settings.storage_backend == "memory":
        context = build_memory_context(settings, email_service)
    else:
        app_db = AppDatabase(settings.database_url)
        await app_db.connect()
        if settings.auto_create_schema:
            await app_db.create_schema()
        context = build_postgres_context(settings, app_db, email_service)

    await ensure_default_roles(context.role_repository)
    expired = await context.session_repository.delete_expired()

    app.state.context = context
    app.state.app_db = app_db
    logger.info(
        "okrhub_started",
        storage_backend=settings.storage_backend,
        expired_sessions_removed=expired,
    )

    yield

    if app_db is not None:
        await app_db.close()


def get_context(request: Request) -> Context:
    """Get the application context from app state."""
    context: Context = request.app.state.context
    return context
