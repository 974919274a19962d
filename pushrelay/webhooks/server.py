"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

from aiohttp import web

from pushrelay.config import ServerConfig
from pushrelay.core.dispatcher import Dispatcher
from pushrelay.utils.logging import get_logger
from pushrelay.webhooks.handlers import NotificationError, decode_notification

log = get_logger(__name__)


class WebhookServer:
    """Receives registry notifications and hands pushed repositories to the dispatcher."""

    def __init__(self, config: ServerConfig, dispatcher: Dispatcher) -> None:
        self._config = config
        self._dispatcher = dispatcher
        self._runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        app = self.build_app()
        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._config.bind,
            port=self._config.port,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/webhook", self._handle_webhook)
        app.router.add_get("/health", self._handle_health)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        body = await request.read()

        try:
            notification = decode_notification(body)
        except NotificationError as exc:
            log.warning("webhook_rejected", reason=str(exc))
            return web.Response(status=400, text="Invalid notification")

        repositories = notification.push_repositories()
        log.debug(
            "webhook_received",
            events=len(notification.events),
            pushes=len(repositories),
        )

        # Downstream outcomes never change the status; the registry would retry
        report = await self._dispatcher.dispatch(repositories)

        return web.json_response({"status": "ok", **report.as_dict()})

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.Response(status=200)
