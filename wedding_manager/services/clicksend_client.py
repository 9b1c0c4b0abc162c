"""
ClickSend MMS/SMS gateway client
"""

import asyncio
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import httpx

from wedding_manager.core.config import settings
from wedding_manager.utils.errors import MessagingConfigError
from wedding_manager.utils.phone import format_au_phone

logger = logging.getLogger(__name__)

@dataclass
class MMSMessage:
    to: str
    body: str
    media_url: str
    subject: str = ""

@dataclass
class SMSMessage:
    to: str
    body: str

@dataclass
class SendResult:
    success: bool
    to: str
    message_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

def summarize(results) -> Dict[str, int]:
    """Aggregate counts for a batch"""
    success = sum(1 for r in results if r.success)
    return {"total": len(results), "success": success, "failed": len(results) - success}

def _mask(value: str, keep: int) -> str:
    return f"{value[:keep]}..." if value else "NOT SET"

def _error_text(error: Exception) -> str:
    """Prefer the gateway's own message over the transport's"""
    if isinstance(error, httpx.HTTPStatusError):
        try:
            payload = error.response.json()
        except ValueError:
            payload = {}
        if isinstance(payload, dict):
            message = payload.get("response_msg") or payload.get("message")
            if message:
                return str(message)
        return f"Gateway returned HTTP {error.response.status_code}"
    return str(error) or error.__class__.__name__

def _recipient_result(payload: Dict[str, Any], index: int, to: str) -> SendResult:
    """Per-recipient outcome from a 2xx gateway response"""
    messages = (payload.get("data") or {}).get("messages") or []
    entry = messages[index] if index < len(messages) else {}
    status = entry.get("status")
    if status and status != "SUCCESS":
        return SendResult(success=False, to=to, error=status)
    return SendResult(success=True, to=to, message_id=entry.get("message_id"))

class ClickSendClient:
    """Basic-auth client for the ClickSend REST API.

    Per-recipient failures are returned as failed SendResults and never raised;
    only missing credentials raise (on construction).
    """

    def __init__(
        self,
        username: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        send_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.username = username if username is not None else settings.CLICKSEND_USERNAME
        self.api_key = api_key if api_key is not None else settings.CLICKSEND_API_KEY
        self.base_url = base_url or settings.CLICKSEND_API_URL
        self.send_delay = settings.MMS_SEND_DELAY_SECONDS if send_delay is None else send_delay
        self._transport = transport

        logger.info(f"ClickSend username: {_mask(self.username, 3)}, API key: {_mask(self.api_key, 5)}")

        if not self.username or not self.api_key:
            raise MessagingConfigError("ClickSend credentials not configured")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=httpx.BasicAuth(self.username, self.api_key),
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.post(path, json=body)
            response.raise_for_status()
            return response.json()

    async def send_mms(self, message: MMSMessage) -> SendResult:
        """Send one MMS with a single media attachment"""
        body = {
            "media_file": message.media_url,
            "messages": [
                {
                    "to": format_au_phone(message.to),
                    "body": message.body,
                    "subject": message.subject,
                }
            ],
        }
        logger.info(f"ClickSend MMS request to {body['messages'][0]['to']} with media {message.media_url}")

        try:
            payload = await self._post("/mms/send", body)
        except (httpx.HTTPError, ValueError) as e:
            error = _error_text(e)
            logger.warning(f"ClickSend MMS to {message.to} failed: {error}")
            return SendResult(success=False, to=message.to, error=error)

        result = _recipient_result(payload, 0, message.to)
        logger.info(f"ClickSend MMS response for {message.to}: success={result.success} id={result.message_id}")
        return result

    async def send_bulk_mms(self, messages: List[MMSMessage]) -> List[SendResult]:
        """Send one at a time (each may carry different media), pausing between sends"""
        results: List[SendResult] = []
        for index, message in enumerate(messages):
            if index:
                await asyncio.sleep(self.send_delay)
            results.append(await self.send_mms(message))
        return results

    async def send_sms(self, message: SMSMessage) -> SendResult:
        results = await self.send_bulk_sms([message])
        return results[0]

    async def send_bulk_sms(self, messages: List[SMSMessage]) -> List[SendResult]:
        """Text-only messages go to the gateway in a single call"""
        if not messages:
            return []

        body = {
            "messages": [
                {"to": format_au_phone(m.to), "body": m.body, "from": settings.CLICKSEND_SENDER_ID}
                for m in messages
            ]
        }
        logger.info(f"ClickSend SMS request for {len(messages)} recipient(s)")

        try:
            payload = await self._post("/sms/send", body)
        except (httpx.HTTPError, ValueError) as e:
            error = _error_text(e)
            logger.warning(f"ClickSend SMS batch failed: {error}")
            return [SendResult(success=False, to=m.to, error=error) for m in messages]

        return [_recipient_result(payload, i, m.to) for i, m in enumerate(messages)]

    async def get_account_balance(self) -> Optional[Dict[str, Any]]:
        """Remaining gateway credit, or None if it can't be fetched"""
        try:
            async with self._client() as client:
                response = await client.get("/account")
                response.raise_for_status()
                data = response.json().get("data") or {}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"ClickSend balance error: {_error_text(e)}")
            return None

        return {
            "balance": float(data.get("balance") or 0),
            "currency": data.get("currency_symbol") or "AUD",
        }

def get_messaging_client() -> ClickSendClient:
    """FastAPI dependency; fails fast when credentials are missing"""
    return ClickSendClient()
