"""Scanweave application entrypoint."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from scanweave.alerts.webhook import WebhookListener
from scanweave.config import Settings, load_config, settings
from scanweave.radio.base import (
    PermissionChecker,
    RootPermissionChecker,
    StaticPermissionChecker,
    WifiRadio,
)
from scanweave.scanner.dispatcher import CallbackListener
from scanweave.scanner.manager import WifiScanManager
from scanweave.scanner.models import ErrorKind, ScanBatch

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


def _create_radio(mode: str, cfg: Settings) -> tuple[WifiRadio, PermissionChecker] | None:
    """Factory: instantiate the configured radio backend and its permission check."""
    if mode == "iw":
        from scanweave.radio.iw import IwRadio

        if not cfg.wifi_interface:
            logger.warning("iw mode selected but wifi_interface not configured")
            return None
        return IwRadio(interface=cfg.wifi_interface), RootPermissionChecker()
    if mode == "mock":
        from scanweave.radio.mock import MockRadio

        return MockRadio(failure_rate=cfg.mock_failure_rate), StaticPermissionChecker(True)
    if mode == "none":
        return None
    logger.warning("Unknown radio mode '%s', skipping", mode)
    return None


def _log_batch(batch: ScanBatch) -> None:
    logger.info("Scan batch: %d networks", len(batch))


def _log_error(kind: ErrorKind, message: str) -> None:
    logger.warning("Scan error (%s): %s", kind, message)


async def _start_manager(app: FastAPI) -> None:
    cfg = load_config()
    app.state.manager = None
    app.state.webhook = None

    created = _create_radio(cfg.radio_mode, cfg)
    if created is None:
        logger.info("No radio configured")
        return

    radio, permissions = created
    manager = WifiScanManager(
        radio,
        permissions,
        loop=asyncio.get_running_loop(),
        scan_timeout_ms=cfg.scan_timeout_ms,
    )
    manager.add_listener(CallbackListener(on_batch=_log_batch, on_error=_log_error))

    if cfg.webhook_url:
        webhook = WebhookListener(cfg.webhook_url)
        manager.add_listener(webhook)
        app.state.webhook = webhook
        logger.info("Webhook listener attached: %s", cfg.webhook_url)

    app.state.manager = manager
    logger.info("Radio ready: %s", cfg.radio_mode)

    if cfg.autostart:
        manager.start(cfg.scan_interval_ms)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    await _start_manager(app)

    yield

    manager = getattr(app.state, "manager", None)
    if manager is not None:
        await manager.aclose()
        logger.info("Radio stopped")
    webhook = getattr(app.state, "webhook", None)
    if webhook is not None:
        await webhook.aclose()


app = FastAPI(
    title="Scanweave",
    description="Periodic WiFi scan orchestration",
    version="0.1.0",
    lifespan=lifespan,
)


# Register routers
from scanweave.api.routes import router as api_router  # noqa: E402

app.include_router(api_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def main() -> None:
    import uvicorn

    logger.info("Starting Scanweave on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
