import logging
from typing import List, Optional, Union

import httpx

from aquamanager.config import settings
from aquamanager.notifications.schemas import EmailSendResult

logger = logging.getLogger(__name__)


class EmailAdapter:
    """Thin client for the Resend email API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        api_base_url: Optional[str] = None,
    ):
        self.api_key = api_key or settings.RESEND_API_KEY
        self.from_address = from_address or settings.REMINDER_FROM_ADDRESS
        self.api_base_url = (api_base_url or settings.RESEND_API_URL).rstrip("/")

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
    ) -> EmailSendResult:

        if not self.api_key:
            # Tests mock this; without a key nothing is sent
            return EmailSendResult(ok=False, error="RESEND_API_KEY is not configured")

        url = f"{self.api_base_url}/emails"
        payload = {
            "from": self.from_address,
            "to": [to] if isinstance(to, str) else list(to),
            "subject": subject,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(url, json=payload, headers=headers, timeout=10.0)
                response.raise_for_status()
                data = response.json()
                return EmailSendResult(ok=True, id=data.get("id") if isinstance(data, dict) else None)
            except (httpx.HTTPError, ValueError) as e:
                # Return error result instead of raising
                logger.error("Failed to send reminder email: %s", e)
                return EmailSendResult(ok=False, error=str(e))
