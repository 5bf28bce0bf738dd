"""Facade wiring the trigger loop and dispatcher to one radio."""

import asyncio
import logging
from typing import Any

from scanweave.radio.base import PermissionChecker, WifiRadio
from scanweave.scanner.dispatcher import Normalizer, ResultDispatcher, ScanListener
from scanweave.scanner.models import ScanBatch
from scanweave.scanner.normalize import normalize
from scanweave.scanner.trigger import ScanTriggerLoop

logger = logging.getLogger(__name__)


class WifiScanManager:
    """Public scanning surface for the surrounding application.

    Control methods must be called on the event loop thread.
    ``notify_scan_completed`` may be called from any thread.
    """

    def __init__(
        self,
        radio: WifiRadio,
        permissions: PermissionChecker,
        loop: asyncio.AbstractEventLoop | None = None,
        scan_timeout_ms: int | None = None,
        normalizer: Normalizer = normalize,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._radio = radio
        self.dispatcher = ResultDispatcher(radio, permissions, normalizer=normalizer)
        self.trigger = ScanTriggerLoop(
            radio,
            permissions,
            report_error=self.dispatcher.emit_error,
            scheduler=self._loop,
            scan_timeout_ms=scan_timeout_ms,
            on_timeout=self.dispatcher.on_scan_timeout,
        )
        self.dispatcher.attach(self.trigger)
        radio.on_scan_completed(self.notify_scan_completed)
        self._closed = False

    @property
    def radio(self) -> WifiRadio:
        return self._radio

    def notify_scan_completed(self, success: bool) -> None:
        """Entry point for the radio's completion channel."""
        self._loop.call_soon_threadsafe(self.dispatcher.on_scan_completed, success)

    def start(self, interval_ms: int) -> bool:
        return self.trigger.start(interval_ms)

    def stop(self) -> None:
        self.trigger.stop()

    def pause(self) -> None:
        self.trigger.pause()

    def resume(self) -> None:
        self.trigger.resume()

    def trigger_once(self) -> bool:
        return self.trigger.trigger_once()

    def is_active(self) -> bool:
        return self.trigger.is_active()

    def get_last_batch(self) -> ScanBatch:
        return self.dispatcher.get_last_batch()

    def add_listener(self, listener: ScanListener) -> None:
        self.dispatcher.add_listener(listener)

    def remove_listener(self, listener: ScanListener) -> None:
        self.dispatcher.remove_listener(listener)

    def status(self) -> dict[str, Any]:
        state = self.trigger.state
        batch = self.get_last_batch()
        return {
            "armed": state.armed,
            "paused": state.paused,
            "active": self.is_active(),
            "interval_ms": state.interval_ms,
            "scan_outstanding": state.scan_outstanding,
            "last_batch_size": len(batch),
            "last_batch_at": batch.completed_at.isoformat() if batch.completed_at else None,
            "listeners": self.dispatcher.listener_count,
        }

    def close(self) -> None:
        """Stop scanning and detach from the radio."""
        if self._closed:
            return
        self.stop()
        self._radio.remove_scan_callback(self.notify_scan_completed)
        self._closed = True
        logger.info("Scan manager closed")

    async def aclose(self) -> None:
        """Close, then cancel the radio's in-flight scan."""
        self.close()
        await self._radio.aclose()
