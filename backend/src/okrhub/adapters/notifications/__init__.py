"""Notification adapters."""

from .email import EmailConfig, LoggingEmailService, SmtpEmailService

__all__ = ["EmailConfig", "LoggingEmailService", "SmtpEmailService"]
