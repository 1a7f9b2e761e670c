"""WhatsApp gateway client for the Evolution API.

Every send operation returns a ``SendResult``. HTTP errors, transport errors
and non-2xx responses are reported through ``success=False`` and never raised,
so callers can record the failure. No call is retried.
"""

import re
from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from app.config import WhatsAppConfig, get_whatsapp_config

logger = structlog.get_logger(__name__)

UNKNOWN_ERROR = "Unknown error"


class SendResult(BaseModel):
    """Outcome of a gateway send call."""

    success: bool
    message_id: str | None = None
    error: str | None = None


def _error_message(response: httpx.Response) -> str:
    """Extract the provider's error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(payload, dict):
        message = payload.get("message")
        if message is None and isinstance(payload.get("response"), dict):
            message = payload["response"].get("message")
        if isinstance(message, list):
            message = "; ".join(str(item) for item in message)
        if message:
            return str(message)
    return f"HTTP {response.status_code}"


class WhatsAppClient:
    """Outbound WhatsApp messaging through an Evolution API instance."""

    def __init__(
        self,
        config: WhatsAppConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client with gateway configuration and optional transport."""
        self.config = config
        self._transport = transport

    def format_number(self, phone: str) -> str:
        """
        Format a phone number into the international form the provider expects.

        Non-digits are stripped and the default country code is prefixed unless
        the number already starts with it, e.g. ``(11) 99999-9999`` becomes
        ``5511999999999``.
        """
        number = re.sub(r"\D", "", phone)
        if not number.startswith(self.config.default_country_code):
            number = self.config.default_country_code + number
        return number

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            headers={"apikey": self.config.api_key},
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )

    async def _send(self, endpoint: str, payload: dict[str, Any]) -> SendResult:
        path = f"/message/{endpoint}/{self.config.instance_name}"
        try:
            async with self._client() as client:
                response = await client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error("whatsapp_request_failed", endpoint=endpoint, error=str(e))
            return SendResult(success=False, error=str(e) or UNKNOWN_ERROR)

        if not response.is_success:
            error = _error_message(response)
            logger.error(
                "whatsapp_send_failed",
                endpoint=endpoint,
                status_code=response.status_code,
                error=error,
            )
            return SendResult(success=False, error=error)

        try:
            data = response.json()
        except ValueError:
            data = {}
        key = data.get("key") if isinstance(data, dict) else None
        message_id = key.get("id") if isinstance(key, dict) else None

        logger.info("whatsapp_message_sent", endpoint=endpoint, message_id=message_id)
        return SendResult(success=True, message_id=message_id)

    async def send_text(self, number: str, message: str) -> SendResult:
        """Send a plain text message."""
        return await self._send(
            "sendText",
            {"number": self.format_number(number), "text": message},
        )

    async def send_template(
        self,
        number: str,
        template: str,
        components: list[dict[str, Any]] | None = None,
    ) -> SendResult:
        """Send a template message, used for numbers that never messaged the clinic."""
        payload: dict[str, Any] = {"number": self.format_number(number), "text": template}
        if components:
            payload["components"] = components
        return await self._send("sendTemplate", payload)

    async def send_image(
        self,
        number: str,
        image_url: str,
        caption: str | None = None,
    ) -> SendResult:
        """Send an image by URL with an optional caption."""
        return await self._send(
            "sendMedia",
            {
                "number": self.format_number(number),
                "mediatype": "image",
                "media": image_url,
                "caption": caption or "",
            },
        )

    async def check_message_status(self, message_id: str) -> dict[str, Any] | None:
        """Fetch the delivery status of a sent message, or None on failure."""
        try:
            async with self._client() as client:
                response = await client.get(
                    f"/message/fetchStatus/{self.config.instance_name}",
                    params={"messageId": message_id},
                )
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("whatsapp_status_check_failed", message_id=message_id, error=str(e))
            return None

    async def check_instance(self) -> bool:
        """Check whether the configured instance exists on the gateway."""
        try:
            async with self._client() as client:
                response = await client.get("/instance/fetchInstances")
                response.raise_for_status()
                instances = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("whatsapp_instance_check_failed", error=str(e))
            return False

        if not isinstance(instances, list):
            return False
        return any(
            (item.get("instance") or {}).get("instanceName") == self.config.instance_name
            for item in instances
            if isinstance(item, dict)
        )


def get_whatsapp_client() -> WhatsAppClient:
    """Dependency returning a gateway client built from the shared configuration."""
    return WhatsAppClient(get_whatsapp_config())
