"""SMS client - outbound text messages through the Twilio REST API.

Handles HTTP calls to the provider with timeout & fault tolerance.
"""

import logging

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
DRY_RUN_SID = "dry-run"


class SmsClient:
    """Fire-and-forget SMS sender. Returns the provider message SID, or None."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        timeout: float | None = None,
        dry_run: bool | None = None,
    ) -> None:
        config = settings.SCHEDULING
        self._account_sid = account_sid or config["TWILIO_ACCOUNT_SID"]
        self._auth_token = auth_token or config["TWILIO_AUTH_TOKEN"]
        self._from_number = from_number or config["TWILIO_PHONE_NUMBER"]
        self._timeout = timeout or config["SMS_TIMEOUT"]
        self._dry_run = config["SMS_DRY_RUN"] if dry_run is None else dry_run

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def send(self, phone: str, message: str) -> str | None:
        """Send a text message. Failures are logged but never raised."""
        if not self.configured:
            if self._dry_run:
                logger.info("SMS dry run: to=%s, chars=%d", phone, len(message))
                return DRY_RUN_SID
            logger.error("SMS not sent: Twilio credentials not configured")
            return None

        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"
        try:
            with httpx.Client(
                timeout=self._timeout, auth=(self._account_sid, self._auth_token)
            ) as client:
                resp = client.post(
                    url,
                    data={"To": phone, "From": self._from_number, "Body": message},
                )
            resp.raise_for_status()
            sid = resp.json().get("sid")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("SMS failed: to=%s, error=%s", phone, exc)
            return None

        logger.info("SMS sent: to=%s, sid=%s, status=%d", phone, sid, resp.status_code)
        return sid
