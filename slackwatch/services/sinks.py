"""Destinations for enriched message records"""

import asyncio
import hashlib
import hmac
import json
import logging
from typing import Any, Optional, Protocol

import httpx
from pyairtable import Api

from slackwatch.models import MessageRecord

logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    """Receives one record per new channel message"""

    async def emit(self, record: MessageRecord) -> None: ...


class LoggingSink:
    """Writes records to the log"""

    async def emit(self, record: MessageRecord) -> None:
        logger.info(
            f"New message in #{record['channel_name']} "
            f"from {record['user_name']}: {record['text']}"
        )
        logger.info(f"Message data: {record}")


class WebhookSink:
    """Forwards records to HTTP endpoints as signed JSON.

    Delivery runs in background tasks so emitting never waits on the
    receivers.
    """

    def __init__(
        self,
        urls: list[str],
        secret: str,
        max_attempts: int = 3,
        retry_delay: float = 5,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.urls = urls
        self.secret = secret
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.transport = transport
        self._tasks: set[asyncio.Task[None]] = set()

    def _sign(self, body_bytes: bytes) -> str:
        return hmac.new(self.secret.encode(), body_bytes, hashlib.sha256).hexdigest()

    async def _deliver(
        self,
        url: str,
        body_bytes: bytes,
        headers: dict[str, str],
        client: httpx.AsyncClient,
    ) -> bool:
        attempt = 0
        while attempt < self.max_attempts:
            try:
                resp = await client.post(url, content=body_bytes, headers=headers)
                if 200 <= resp.status_code < 300:
                    return True
                logger.warning(
                    f"Unexpected status code {resp.status_code} from {url}, attempt {attempt + 1}"
                )
            except httpx.HTTPError as err:
                logger.warning(
                    f"Error delivering webhook to {url}, attempt {attempt + 1}: {err}"
                )
            attempt += 1
            if attempt < self.max_attempts:
                await asyncio.sleep(self.retry_delay)
        logger.error(
            f"Failed to deliver webhook to {url} after {self.max_attempts} attempts"
        )
        return False

    async def dispatch(self, event_type: str, data: dict[str, Any]) -> None:
        """Deliver one payload to every configured URL"""
        if not self.urls:
            return
        payload: dict[str, Any] = {"event_type": event_type, "data": data}
        body_bytes = json.dumps(payload, separators=(",", ":")).encode()
        headers = {
            "Content-Type": "application/json",
            "X-Slackwatch-Signature": self._sign(body_bytes),
        }
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout), transport=self.transport
        ) as client:
            results = await asyncio.gather(
                *(self._deliver(url, body_bytes, headers, client) for url in self.urls),
                return_exceptions=True,
            )
        for url, result in zip(self.urls, results):
            if isinstance(result, Exception):
                logger.error(f"Webhook delivery to {url} failed: {result}")

    async def emit(self, record: MessageRecord) -> None:
        task = asyncio.create_task(self.dispatch("message.new", dict(record)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight deliveries"""
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} webhook deliveries")
        for result in await asyncio.gather(*self._tasks, return_exceptions=True):
            if isinstance(result, Exception):
                logger.error(f"Webhook delivery failed: {result}")


class AirtableSink:
    """Appends records to an Airtable table"""

    def __init__(self, api_key: str, base_id: str, table_name: str):
        self.table = Api(api_key).base(base_id).table(table_name)

    async def emit(self, record: MessageRecord) -> None:
        await asyncio.to_thread(self.table.create, dict(record))


class CompositeSink:
    """Emits to several sinks in order"""

    def __init__(self, sinks: list[MessageSink]):
        self.sinks = sinks

    async def emit(self, record: MessageRecord) -> None:
        for sink in self.sinks:
            await sink.emit(record)

    async def drain(self) -> None:
        """Wait for in-flight work in every sink that has any"""
        for sink in self.sinks:
            drain = getattr(sink, "drain", None)
            if drain is not None:
                await drain()


def build_sink(
    webhook_urls: Optional[list[str]] = None,
    webhook_secret: str = "",
    airtable_api_key: str = "",
    airtable_base_id: str = "",
    airtable_table: str = "Messages",
    max_attempts: int = 3,
    retry_delay: float = 5,
) -> CompositeSink:
    """Logging sink plus whatever destinations are configured"""
    sinks: list[MessageSink] = [LoggingSink()]
    if webhook_urls:
        sinks.append(
            WebhookSink(webhook_urls, webhook_secret, max_attempts, retry_delay)
        )
    if airtable_api_key and airtable_base_id:
        sinks.append(AirtableSink(airtable_api_key, airtable_base_id, airtable_table))
    return CompositeSink(sinks)
