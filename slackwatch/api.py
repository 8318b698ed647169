"""HTTP endpoints for slackwatch"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from slack_sdk.signature import SignatureVerifier
from slack_sdk.web.async_client import AsyncWebClient

from slackwatch import config
from slackwatch.services.directory import (
    DirectoryError,
    RemoteDirectory,
    SlackDirectory,
)
from slackwatch.services.enricher import Enricher
from slackwatch.services.history import HistoryCrawler, HistoryQuery
from slackwatch.services.ingestor import EventIngestor
from slackwatch.services.profile_cache import ProfileCache
from slackwatch.services.sinks import MessageSink, build_sink

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message, **extra}, status_code=status_code
    )


def create_app(
    directory: RemoteDirectory,
    cache: Optional[ProfileCache] = None,
    sink: Optional[MessageSink] = None,
    *,
    signing_secret: str = "",
    api_key: Optional[str] = None,
    channel_types: str = "public_channel,private_channel",
    max_concurrency: int = 10,
) -> FastAPI:
    """Wire the service components into a FastAPI app"""
    cache = cache if cache is not None else ProfileCache()
    enricher = Enricher(directory, cache, max_concurrency)
    crawler = HistoryCrawler(directory, cache)
    sink = sink or build_sink()
    ingestor = EventIngestor(enricher, cache, sink)
    verifier: Optional[SignatureVerifier] = (
        SignatureVerifier(signing_secret) if signing_secret else None
    )

    if not api_key:
        logger.warning("SLACKWATCH_API_KEY not set; REST endpoints are unauthenticated")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        drain = getattr(sink, "drain", None)
        if drain is not None:
            await drain()

    app = FastAPI(lifespan=lifespan)
    app.state.cache = cache
    app.state.enricher = enricher
    app.state.crawler = crawler
    app.state.ingestor = ingestor

    def require_api_key(request: Request) -> None:
        """Validate Bearer token from Authorization header"""
        if not api_key:
            return
        auth: Optional[str] = request.headers.get("Authorization")
        if not auth or not auth.startswith("Bearer "):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
            )
        token: str = auth.split(" ", 1)[1].strip()
        if token != api_key:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
            )

    @app.exception_handler(DirectoryError)
    async def directory_error_handler(
        request: Request, exc: DirectoryError
    ) -> JSONResponse:
        logger.error(f"Slack error on {request.url.path}: {exc}")
        return _error(500, str(exc), slack_error_code=exc.code)

    @app.post("/slack/events")
    async def slack_events(request: Request) -> JSONResponse:
        """Receive Events API deliveries"""
        body_bytes = await request.body()
        if verifier and not verifier.is_valid_request(
            body_bytes, dict(request.headers)
        ):
            return _error(401, "Invalid request signature")
        try:
            payload = json.loads(body_bytes)
        except ValueError:
            return _error(400, "Invalid JSON body")
        if not isinstance(payload, dict):
            return _error(400, "Invalid JSON body")

        ack = await ingestor.handle(payload)
        return JSONResponse(ack.body, status_code=ack.status_code)

    @app.get("/users/{channel_id}")
    async def list_users(
        channel_id: str, _: None = Depends(require_api_key)
    ) -> dict[str, Any]:
        """List a channel's members with their profiles"""
        users = await enricher.list_members(channel_id)
        return {
            "success": True,
            "channel": channel_id,
            "users": users,
            "total": len(users),
        }

    @app.get("/crawl/{channel_id}")
    async def crawl_channel(
        channel_id: str,
        limit: Optional[str] = None,
        oldest: Optional[str] = None,
        latest: Optional[str] = None,
        inclusive: Optional[str] = None,
        cursor: Optional[str] = None,
        _: None = Depends(require_api_key),
    ) -> dict[str, Any]:
        """Get one page of channel history"""
        query = HistoryQuery.from_params(limit, oldest, latest, inclusive, cursor)
        page = await crawler.crawl(channel_id, query)
        return {
            "success": True,
            "channel": channel_id,
            "messages": page["messages"],
            "total": len(page["messages"]),
            "has_more": page["has_more"],
            "next_cursor": page["next_cursor"],
        }

    @app.get("/channels")
    async def list_channels(_: None = Depends(require_api_key)) -> dict[str, Any]:
        """List channels visible to the bot"""
        channels = await directory.list_channels(channel_types)
        return {
            "success": True,
            "channels": [{"id": c["id"], "name": c.get("name")} for c in channels],
        }

    @app.post("/send/{channel_id}")
    async def send_message(
        channel_id: str, request: Request, _: None = Depends(require_api_key)
    ) -> Any:
        """Post a message to a channel"""
        try:
            body: Any = await request.json()
        except ValueError:
            body = {}
        text: Any = body.get("text") if isinstance(body, dict) else None
        if not text or not isinstance(text, str):
            return _error(400, "Text is required in the request body")

        ts = await directory.post_message(channel_id, text)
        return {
            "success": True,
            "message": "Message sent successfully",
            "channel": channel_id,
            "timestamp": ts,
        }

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "cached_profiles": len(cache)}

    return app


def build_app() -> FastAPI:
    """Create the app from environment configuration"""
    client = AsyncWebClient(token=config.SLACK_BOT_TOKEN)
    directory = SlackDirectory(client, timeout=config.SLACK_TIMEOUT_SECONDS)
    sink = build_sink(
        config.MESSAGE_WEBHOOK_URLS,
        config.MESSAGE_WEBHOOK_SECRET,
        config.AIRTABLE_API_KEY,
        config.AIRTABLE_BASE_ID,
        config.AIRTABLE_MESSAGES_TABLE,
        config.MAX_ATTEMPTS,
        config.RETRY_DELAY,
    )
    return create_app(
        directory,
        ProfileCache(),
        sink,
        signing_secret=config.SLACK_SIGNING_SECRET,
        api_key=config.SLACKWATCH_API_KEY,
        channel_types=config.CHANNEL_TYPES,
        max_concurrency=config.MEMBER_LOOKUP_CONCURRENCY,
    )
