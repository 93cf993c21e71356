"""Email notification adapters."""

import asyncio
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import structlog

from okrhub.core.exceptions import EmailServiceError

logger = structlog.get_logger()

FOOTER_HTML = """
            <hr style="border: none; border-top: 1px solid #ddd; margin: 30px 0;">
            <p style="color: #666; font-size: 12px;">
                This email was sent by okrhub. Please do not reply to this email.
            </p>"""
FOOTER_TEXT = """
---
This email was sent by okrhub. Please do not reply to this email."""


@dataclass
class EmailConfig:
    """Email configuration."""

    smtp_host: str
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    from_email: str = "okrhub@example.com"
    from_name: str = "okrhub"
    use_tls: bool = True


def _button(url: str, label: str) -> str:
    return f"""
            <p style="text-align: center; margin: 30px 0;">
                <a href="{escape(url)}" style="background: #007bff; color: white;
                padding: 12px 24px; text-decoration: none; border-radius: 5px; font-weight: bold;">
                    {label}
                </a>
            </p>"""


class TemplatedEmailMixin:
    """Builds the okrhub notification emails on top of ``send_email``."""

    async def send_email(
        self,
        to: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> None:
        raise NotImplementedError

    async def send_email_verification(self, to: str, name: str, verification_url: str) -> None:
        """Send the address verification link."""
        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>Verify your email</h2>
            <p>Hi {escape(name)}, please confirm this address to finish setting up your
            account.</p>
            {_button(verification_url, "Verify email")}
            {FOOTER_HTML}
        </body>
        </html>
        """
        body_text = f"""
Verify your email

Hi {name}, please confirm this address to finish setting up your account:
{verification_url}
{FOOTER_TEXT}
        """
        await self.send_email(to, "Verify your email address", body_html, body_text)

    async def send_password_reset(self, to: str, name: str, reset_url: str) -> None:
        """Send a password reset link."""
        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>Reset your password</h2>
            <p>Hi {escape(name)}, we received a request to reset your password. The link
            expires in one hour. If you did not ask for this, ignore this email.</p>
            {_button(reset_url, "Reset password")}
            {FOOTER_HTML}
        </body>
        </html>
        """
        body_text = f"""
Reset your password

Hi {name}, reset your password at:
{reset_url}

The link expires in one hour. If you did not ask for this, ignore this email.
{FOOTER_TEXT}
        """
        await self.send_email(to, "Reset your password", body_html, body_text)

    async def send_team_invitation(
        self,
        to: str,
        team_name: str,
        inviter_name: str,
        invitation_url: str,
    ) -> None:
        """Send a team invitation link."""
        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>Join {escape(team_name)}</h2>
            <p>{escape(inviter_name)} invited you to the team
            <strong>{escape(team_name)}</strong> on okrhub.</p>
            {_button(invitation_url, "Accept invitation")}
            {FOOTER_HTML}
        </body>
        </html>
        """
        body_text = f"""
Join {team_name}

{inviter_name} invited you to the team {team_name} on okrhub. Accept at:
{invitation_url}
{FOOTER_TEXT}
        """
        await self.send_email(to, f"You're invited to join {team_name}", body_html, body_text)


class SmtpEmailService(TemplatedEmailMixin):
    """Delivers email via SMTP."""

    def __init__(self, config: EmailConfig):
        """Initialize the email service.

        Args:
            config: Email configuration settings.
        """
        self.config = config

    def _send(self, to: str, subject: str, body_html: str, body_text: str | None) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.config.from_name} <{self.config.from_email}>"
        msg["To"] = to

        # Add plain text version
        if body_text:
            msg.attach(MIMEText(body_text, "plain"))

        # Add HTML version
        msg.attach(MIMEText(body_html, "html"))

        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port) as server:
            if self.config.use_tls:
                server.starttls()

            if self.config.smtp_user and self.config.smtp_password:
                server.login(self.config.smtp_user, self.config.smtp_password)

            server.sendmail(self.config.from_email, [to], msg.as_string())

    async def send_email(
        self,
        to: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> None:
        """Send an email from a worker thread.

        Raises:
            EmailServiceError: If the SMTP exchange fails.
        """
        try:
            await asyncio.to_thread(self._send, to, subject, body_html, body_text)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_error", to=to, subject=subject, error=str(e))
            raise EmailServiceError(f"Failed to send email to {to}", cause=e) from e

        logger.info("email_sent", to=to, subject=subject)


class LoggingEmailService(TemplatedEmailMixin):
    """Development email service that logs messages instead of sending them."""

    async def send_email(
        self,
        to: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> None:
        """Log the message."""
        logger.info("email_logged", to=to, subject=subject, body=body_text or body_html)
