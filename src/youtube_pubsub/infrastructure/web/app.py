"""FastAPI application serving the hub callback and the live status reads."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, Body, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from youtube_pubsub import __version__
from youtube_pubsub.application.services.pubsub_service import PubSubHubService
from youtube_pubsub.infrastructure.config.models import PushSettings
from youtube_pubsub.infrastructure.websub.signature import verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature"
VERIFIED_MODES = frozenset({"subscribe", "unsubscribe"})


class WebhookHandlers:
    """Request handlers bound to one service instance."""

    def __init__(self, service: PubSubHubService, secret: str | None = None) -> None:
        self.service = service
        self.secret = secret

    async def verify(self, request: Request) -> Response:
        """Answer the hub's intent verification."""
        params = request.query_params
        mode = params.get("hub.mode")
        topic = params.get("hub.topic")

        if mode == "denied":
            logger.warning(f"Hub denied subscription for {topic}: {params.get('hub.reason')}")
            return Response(status_code=HTTPStatus.OK)

        if mode not in VERIFIED_MODES:
            logger.warning(f"Rejected intent verification with mode {mode!r}")
            return Response(status_code=HTTPStatus.NOT_FOUND)

        challenge = params.get("hub.challenge")
        if challenge is None:
            return Response(status_code=HTTPStatus.BAD_REQUEST)

        logger.debug(f"Hub verified {mode} for {topic}")
        return PlainTextResponse(challenge)

    async def notify(self, request: Request) -> Response:
        """Accept a pushed feed document."""
        body = await request.body()

        if self.secret and not verify_signature(
            self.secret, body, request.headers.get(SIGNATURE_HEADER)
        ):
            logger.warning("Rejected delivery with a missing or invalid signature")
            return Response(status_code=HTTPStatus.FORBIDDEN)

        self.service.handle_delivery(body)
        return Response(status_code=HTTPStatus.NO_CONTENT)

    async def is_live(self, channel_id: str) -> dict[str, Any]:
        streams = await self.service.get_live_streams([channel_id])
        return {"channelId": channel_id, "streams": [feed.to_dict() for feed in streams]}

    async def are_live(self, channel_ids: list[str] = Body(...)) -> dict[str, Any]:
        streams = await self.service.get_live_streams(channel_ids)
        return {"streams": [feed.to_dict() for feed in streams]}

    async def healthz(self) -> dict[str, Any]:
        queue = self.service.ingestion_queue
        return {
            "status": "ok",
            "version": __version__,
            "ingestion": {"running": queue.is_running, "pending": queue.pending_count},
            "scheduler": {"running": self.service.scheduler.is_running},
        }


def create_app(
    service: PubSubHubService,
    push_settings: PushSettings,
    manage_lifecycle: bool = True,
) -> FastAPI:
    """
    Build the webhook application.

    Args:
        service: Service receiving deliveries and answering reads
        push_settings: Callback route and delivery secret
        manage_lifecycle: Start and stop the service with the application

    Returns:
        Configured FastAPI application
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not manage_lifecycle:
            yield
            return
        await service.start()
        try:
            yield
        finally:
            await service.stop()

    handlers = WebhookHandlers(service, push_settings.secret)
    callback_path = push_settings.callback_path

    router = APIRouter()
    router.add_api_route(callback_path, handlers.verify, methods=["GET"])
    router.add_api_route(
        callback_path, handlers.notify, methods=["POST"], status_code=HTTPStatus.NO_CONTENT
    )
    router.add_api_route("/isLive/{channel_id}", handlers.is_live, methods=["GET"])
    router.add_api_route("/isLive", handlers.are_live, methods=["POST"])
    router.add_api_route("/healthz", handlers.healthz, methods=["GET"])

    app = FastAPI(title="YouTube PubSub", version=__version__, lifespan=lifespan)
    app.include_router(router)
    app.state.service = service
    logger.debug(f"Hub callback served at {callback_path}")
    return app
