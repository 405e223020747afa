"""
Email Service

SMTP delivery for account emails (verification codes). When EMAIL_ENABLED
is off the message is logged instead of sent, so local sign-up still works.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from core.config import settings

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify your CalmTrack account"


class EmailService:
    """Service for sending emails"""

    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.FROM_NAME
        self.enabled = settings.EMAIL_ENABLED

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email.

        Returns True if sent (or logged while email is disabled), False on SMTP failure.
        """
        if not self.enabled:
            logger.info(f"Email disabled, would send to {to_email}: {subject}")
            if text_content:
                logger.info(text_content)
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        if text_content:
            msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=settings.EXTERNAL_API_TIMEOUT) as server:
                server.starttls()
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to_email}: {e}")
            return False

        logger.info(f"Email sent to {to_email}: {subject}")
        return True

    def send_verification_email(self, to_email: str, code: str) -> bool:
        ttl = settings.EMAIL_CODE_TTL_MINUTES
        html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #4F46E5;">CalmTrack Email Verification</h2>
            <p>Hello!</p>
            <p>Thank you for registering with CalmTrack. Please use the verification code below to complete your registration:</p>
            <div style="background-color: #F3F4F6; padding: 20px; text-align: center; margin: 20px 0; border-radius: 8px;">
                <h1 style="color: #4F46E5; font-size: 32px; margin: 0; letter-spacing: 4px;">{code}</h1>
            </div>
            <p><strong>This code will expire in {ttl} minutes.</strong></p>
            <p>If you didn't create an account with CalmTrack, please ignore this email.</p>
        </div>
        """
        text = (
            f"Your CalmTrack verification code is: {code}\n\n"
            f"This code will expire in {ttl} minutes.\n\n"
            "If you didn't create an account with CalmTrack, please ignore this email."
        )
        return self.send_email(to_email, VERIFICATION_SUBJECT, html, text)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
