"""
SMS Service

Twilio delivery for login OTP codes. Without Twilio credentials the code is
logged instead, which keeps phone login usable in development.
"""

import logging
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from core.config import settings

logger = logging.getLogger(__name__)


def otp_message(otp_code: str) -> str:
    return (
        f"Your CalmTrack verification code is: {otp_code}. "
        f"This code expires in {settings.OTP_TTL_MINUTES} minutes."
    )


class SmsService:
    def __init__(self, client: Optional[TwilioClient] = None):
        if client is not None:
            self.twilio_client = client
        elif settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            self.twilio_client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        else:
            self.twilio_client = None
        self.from_number = settings.TWILIO_PHONE_NUMBER

    @property
    def is_configured(self) -> bool:
        return self.twilio_client is not None and bool(self.from_number)

    def send_otp(self, phone_number: str, otp_code: str) -> bool:
        """
        Deliver the OTP. Returns False only when Twilio is configured and the
        send fails.
        """
        body = otp_message(otp_code)

        if not self.is_configured:
            logger.info(f"Twilio not configured; OTP for {phone_number[-4:].rjust(len(phone_number), '*')}: {otp_code}")
            return True

        try:
            message = self.twilio_client.messages.create(
                body=body,
                from_=self.from_number,
                to=phone_number,
            )
        except TwilioRestException as e:
            logger.error(f"Failed to send OTP SMS: {e}")
            return False

        logger.info("OTP SMS sent", extra={"extra_fields": {"sid": message.sid}})
        return True


_sms_service: Optional[SmsService] = None


def get_sms_service() -> SmsService:
    global _sms_service
    if _sms_service is None:
        _sms_service = SmsService()
    return _sms_service
