"""Transactional email client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class EmailClient(Protocol):
    """Best-effort email sender."""

    @property
    def enabled(self) -> bool:
        """Return True when the client is configured to send."""

    async def send_email(self, to: str, subject: str, text: str, html: str) -> None:
        """Send an email, raising on transport failure."""


@dataclass
class HttpxEmailClient:
    """Email client for a Resend-compatible HTTP API."""

    api_key: str | None
    sender: str | None
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str | None, sender: str | None, base_url: str
    ) -> "HttpxEmailClient":
        """Create an email client with a managed httpx session."""
        return cls(
            api_key=api_key,
            sender=sender,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
        )

    @property
    def enabled(self) -> bool:
        """Return True when both the API key and sender are configured."""
        return bool(self.api_key and self.sender)

    async def send_email(self, to: str, subject: str, text: str, html: str) -> None:
        """Send an email through the provider's /emails endpoint."""
        if not self.enabled:
            raise RuntimeError("Email is not configured")
        response = await self.http_client.post(
            f"{self.base_url}/emails",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "from": self.sender,
                "to": [to],
                "subject": subject,
                "text": text,
                "html": html,
            },
            timeout=10,
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
