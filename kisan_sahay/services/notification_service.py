"""
Notification Dispatch Service

Sends SMS through MSG91 and WhatsApp messages through Twilio:
- OTP codes (login)
- Check-in reminders and follow-ups (scheduler and admin triggered)
- Counselor alerts for HIGH / CRITICAL check-ins

Dispatch never raises. Provider errors come back as an unsuccessful
``NotificationResult`` and are logged; when a provider has no credentials
configured the message is only logged and reported as a ``mock`` success.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from kisan_sahay.core.config import Settings, settings as default_settings
from kisan_sahay.models.otp_log import NotificationChannel
from kisan_sahay.utils.i18n import t_with_vars

logger = logging.getLogger(__name__)

MSG91_URL = "https://api.msg91.com/api/v5/flow/"
TWILIO_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
COUNTRY_CODE = "91"
REQUEST_TIMEOUT = 15.0


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    provider: str
    message_id: Optional[str] = None
    error: Optional[str] = None


class NotificationDispatcher(ABC):
    """Interface used by the services; tests swap in a recording fake."""

    @abstractmethod
    def send_reminder(self, farmer_id: int, mobile: str, message: str, channel: NotificationChannel) -> NotificationResult:
        ...

    @abstractmethod
    def send_alert(self, counselor_contact: str, farmer_name: str, risk_level: str, district: str) -> NotificationResult:
        ...

    @abstractmethod
    def send_otp(self, mobile: str, otp: str, channel: NotificationChannel, language: str = "mr") -> NotificationResult:
        ...


def _mask(mobile: str) -> str:
    return f"{mobile[:2]}******{mobile[-2:]}" if len(mobile) >= 4 else "****"


class ProviderNotificationDispatcher(NotificationDispatcher):
    def __init__(self, config: Optional[Settings] = None, client: Optional[httpx.Client] = None) -> None:
        self.config = config or default_settings
        self._client = client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send_reminder(self, farmer_id: int, mobile: str, message: str, channel: NotificationChannel) -> NotificationResult:
        result = self._send(mobile, message, NotificationChannel(channel))
        logger.info(
            "[notify] reminder to farmer %s via %s: success=%s provider=%s",
            farmer_id, NotificationChannel(channel).value, result.success, result.provider,
        )
        return result

    def send_alert(self, counselor_contact: str, farmer_name: str, risk_level: str, district: str) -> NotificationResult:
        message = t_with_vars(
            "alert.counselor",
            {"name": farmer_name, "district": district or "-", "level": risk_level},
            "en",
        )
        return self._send(counselor_contact, message, NotificationChannel.SMS)

    def send_otp(self, mobile: str, otp: str, channel: NotificationChannel, language: str = "mr") -> NotificationResult:
        message = t_with_vars(
            "otp.message",
            {"otp": otp, "minutes": self.config.OTP_EXPIRY_MINUTES},
            language,
        )
        return self._send(mobile, message, NotificationChannel(channel))

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def _send(self, mobile: str, message: str, channel: NotificationChannel) -> NotificationResult:
        try:
            if channel == NotificationChannel.WHATSAPP:
                return self._send_whatsapp(mobile, message)
            return self._send_sms(mobile, message)
        except Exception as exc:
            logger.warning("[notify] %s to %s failed: %s", channel.value, _mask(mobile), exc)
            provider = "twilio" if channel == NotificationChannel.WHATSAPP else "msg91"
            return NotificationResult(success=False, provider=provider, error=str(exc))

    def _post(self, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return self._client.post(url, **kwargs)
        with httpx.Client(timeout=REQUEST_TIMEOUT) as client:
            return client.post(url, **kwargs)

    def _send_sms(self, mobile: str, message: str) -> NotificationResult:
        if not self.config.MSG91_AUTH_KEY:
            logger.info("[notify] [MOCK SMS] to %s: %s", _mask(mobile), message)
            return NotificationResult(success=True, provider="mock", message_id=f"mock_sms_{mobile[-4:]}")

        response = self._post(
            MSG91_URL,
            headers={"authkey": self.config.MSG91_AUTH_KEY, "Content-Type": "application/json"},
            json={
                "template_id": self.config.MSG91_TEMPLATE_ID,
                "short_url": "0",
                "recipients": [{"mobiles": COUNTRY_CODE + mobile, "message": message}],
            },
        )
        data = response.json() if response.content else {}
        if response.is_success and data.get("type") == "success":
            return NotificationResult(success=True, provider="msg91", message_id=data.get("request_id"))
        error = data.get("message") or f"HTTP {response.status_code}"
        logger.warning("[notify] MSG91 rejected SMS to %s: %s", _mask(mobile), error)
        return NotificationResult(success=False, provider="msg91", error=error)

    def _send_whatsapp(self, mobile: str, message: str) -> NotificationResult:
        sid = self.config.TWILIO_ACCOUNT_SID
        if not sid or not self.config.TWILIO_AUTH_TOKEN:
            logger.info("[notify] [MOCK WHATSAPP] to %s: %s", _mask(mobile), message)
            return NotificationResult(success=True, provider="mock", message_id=f"mock_wa_{mobile[-4:]}")

        response = self._post(
            TWILIO_URL.format(sid=sid),
            auth=(sid, self.config.TWILIO_AUTH_TOKEN),
            data={
                "From": self.config.TWILIO_WHATSAPP_FROM,
                "To": f"whatsapp:+{COUNTRY_CODE}{mobile}",
                "Body": message,
            },
        )
        data = response.json() if response.content else {}
        if response.is_success:
            return NotificationResult(success=True, provider="twilio", message_id=data.get("sid"))
        error = data.get("message") or f"HTTP {response.status_code}"
        logger.warning("[notify] Twilio rejected WhatsApp to %s: %s", _mask(mobile), error)
        return NotificationResult(success=False, provider="twilio", error=error)


_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = ProviderNotificationDispatcher()
    return _dispatcher
