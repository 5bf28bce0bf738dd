"""Result dispatcher: turns scan completions into batches and errors.

Every completion produces exactly one notification per listener (a batch
or an error), and every outcome is followed by re-arming the trigger loop
while it is active, so a bad cycle never ends continuous scanning.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from scanweave.radio.base import PermissionChecker, WifiRadio
from scanweave.scanner.models import ErrorKind, ScanBatch, ScanRecord
from scanweave.scanner.normalize import PlatformCapabilities, normalize
from scanweave.scanner.trigger import ScanTriggerLoop

logger = logging.getLogger(__name__)

Normalizer = Callable[[Mapping[str, Any], PlatformCapabilities], ScanRecord]


class ScanListener(ABC):
    """Subscriber for scan batches and scan errors."""

    @abstractmethod
    def on_batch(self, batch: ScanBatch) -> None:
        """Called with each completed batch. The batch is shared; do not mutate it."""

    @abstractmethod
    def on_error(self, kind: ErrorKind, message: str) -> None:
        """Called for each scan error."""


class CallbackListener(ScanListener):
    """Adapts plain callables to the listener interface."""

    def __init__(
        self,
        on_batch: Callable[[ScanBatch], None] | None = None,
        on_error: Callable[[ErrorKind, str], None] | None = None,
    ) -> None:
        self._on_batch = on_batch
        self._on_error = on_error

    def on_batch(self, batch: ScanBatch) -> None:
        if self._on_batch is not None:
            self._on_batch(batch)

    def on_error(self, kind: ErrorKind, message: str) -> None:
        if self._on_error is not None:
            self._on_error(kind, message)


class ResultDispatcher:
    """Owns the last-batch cache and the listener registry."""

    def __init__(
        self,
        radio: WifiRadio,
        permissions: PermissionChecker,
        normalizer: Normalizer = normalize,
    ) -> None:
        self._radio = radio
        self._permissions = permissions
        self._normalizer = normalizer
        self._trigger: ScanTriggerLoop | None = None
        self._lock = threading.Lock()
        self._listeners: set[ScanListener] = set()
        self._last_batch = ScanBatch.empty()

    def attach(self, trigger: ScanTriggerLoop) -> None:
        """Bind the trigger loop that completions re-arm."""
        self._trigger = trigger

    # --- Listeners ---

    def add_listener(self, listener: ScanListener) -> None:
        with self._lock:
            self._listeners.add(listener)

    def remove_listener(self, listener: ScanListener) -> None:
        with self._lock:
            self._listeners.discard(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _snapshot_listeners(self) -> list[ScanListener]:
        with self._lock:
            return list(self._listeners)

    # --- Cache ---

    def get_last_batch(self) -> ScanBatch:
        with self._lock:
            return self._last_batch

    # --- Notifications ---

    def emit_error(self, kind: ErrorKind, message: str) -> None:
        for listener in self._snapshot_listeners():
            try:
                listener.on_error(kind, message)
            except Exception:
                logger.exception("Listener %r failed handling %s", listener, kind)

    def _emit_batch(self, batch: ScanBatch) -> None:
        for listener in self._snapshot_listeners():
            try:
                listener.on_batch(batch)
            except Exception:
                logger.exception("Listener %r failed handling batch", listener)

    # --- Completion path ---

    def on_scan_completed(self, success: bool) -> None:
        """Handle one completion notification from the radio."""
        if self._trigger is not None and not self._trigger.mark_completed():
            # Already reported as timed out; the cycle has been closed.
            return
        try:
            if success:
                self._handle_success()
            else:
                logger.warning("Scan failed")
                self.emit_error(ErrorKind.scan_failed, "WiFi scan failed")
        finally:
            self._continue_schedule()

    def on_scan_timeout(self) -> None:
        timeout = self._trigger.scan_timeout_ms if self._trigger is not None else None
        try:
            self.emit_error(ErrorKind.scan_failed, f"Scan timed out after {timeout}ms")
        finally:
            self._continue_schedule()

    def _handle_success(self) -> None:
        if not self._permissions.has_scan_permission():
            logger.warning("Scan permission revoked before results could be read")
            self.emit_error(
                ErrorKind.permission_denied, "Missing required permissions during scan"
            )
            return

        try:
            raw_results = self._radio.fetch_raw_results() or ()
            capabilities = self._radio.capabilities
            records = tuple(self._normalizer(raw, capabilities) for raw in raw_results)
        except Exception as e:
            logger.exception("Error processing scan results")
            self.emit_error(
                ErrorKind.processing_error, f"Error processing scan results: {e}"
            )
            return

        batch = ScanBatch(records=records, completed_at=datetime.now(UTC))
        with self._lock:
            self._last_batch = batch
        logger.debug("Scan successful: %d networks found", len(batch))
        self._emit_batch(batch)

    def _continue_schedule(self) -> None:
        if self._trigger is not None and self._trigger.is_active():
            self._trigger.schedule_next()
