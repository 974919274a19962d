"""pushrelay entry point: wires everything together and runs the server."""

from __future__ import annotations

import asyncio
import signal
import sys

import click
import httpx
from pydantic import ValidationError

from pushrelay import __version__
from pushrelay.actions import BaseAction, create_action
from pushrelay.config import ActionMode, Settings, load_settings
from pushrelay.core.discovery import DiscoveryCache
from pushrelay.core.dispatcher import Dispatcher
from pushrelay.core.runtime import ContainerRuntime, DockerRuntime
from pushrelay.errors import ConfigError, PushRelayError
from pushrelay.utils.logging import get_logger, setup_logging
from pushrelay.webhooks.server import WebhookServer

log = get_logger(__name__)


class PushRelay:
    """Owns the process-wide handles and the components built on them."""

    def __init__(
        self,
        settings: Settings,
        dry_run: bool = False,
        runtime: ContainerRuntime | None = None,
    ) -> None:
        self.settings = settings
        self.dry_run = dry_run
        self.runtime = runtime
        self.http: httpx.AsyncClient | None = None
        self.discovery: DiscoveryCache | None = None
        self.action: BaseAction | None = None
        self.dispatcher: Dispatcher | None = None
        self.server: WebhookServer | None = None

    def build(self) -> None:
        """Construct components; raises StartupError if Docker is unreachable."""
        if self.runtime is None:
            self.runtime = DockerRuntime.connect()
        # verify_tls only governs the Portainer API; forwarded URLs are always verified
        verify = True
        if self.settings.action is ActionMode.REDEPLOY:
            verify = self.settings.portainer.verify_tls
        self.http = httpx.AsyncClient(verify=verify)
        self.discovery = DiscoveryCache(self.runtime, self.settings.discovery)
        self.action = create_action(self.settings, self.http, dry_run=self.dry_run)
        self.dispatcher = Dispatcher(self.discovery, self.action)
        self.server = WebhookServer(self.settings.server, self.dispatcher)

    async def start(self) -> None:
        if self.server is None:
            self.build()
        assert self.discovery is not None and self.server is not None and self.action is not None

        log.info(
            "pushrelay_starting",
            version=__version__,
            action=self.action.name,
            cache_ttl=self.settings.discovery.cache_ttl_seconds,
        )

        try:
            # Warm the cache so the first push doesn't pay for the scan
            await self.discovery.refresh()
            await self.server.start()
        except BaseException:
            await self.stop()
            raise

        log.info("pushrelay_ready")

    async def stop(self) -> None:
        log.info("pushrelay_stopping")
        if self.server is not None:
            await self.server.stop()
        if self.http is not None:
            await self.http.aclose()
        if isinstance(self.runtime, DockerRuntime):
            self.runtime.close()
        log.info("pushrelay_stopped")


async def run(settings: Settings, dry_run: bool = False) -> None:
    app = PushRelay(settings, dry_run=dry_run)
    app.build()

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--dry-run", is_flag=True, help="Log routed pushes instead of triggering actions")
def cli(config_path: str | None, log_level: str | None, dry_run: bool) -> None:
    """Relay registry push notifications to container redeploys."""
    try:
        settings = load_settings(config_path)
        settings.check()
    except ValidationError as exc:
        raise click.ClickException(f"invalid configuration: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if log_level:
        settings.log_level = log_level
    setup_logging(level=settings.log_level, json_output=settings.log_json)

    try:
        asyncio.run(run(settings, dry_run=dry_run))
    except PushRelayError as exc:
        raise click.ClickException(str(exc)) from exc


if __name__ == "__main__":
    cli()
