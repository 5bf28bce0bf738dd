"""Scan trigger loop: decides when to ask the radio for a scan.

States are Idle, Armed-Active and Armed-Paused. Timers are one-shot and
are only armed from ``start``, ``resume``, a rejected trigger, or the
completion path via ``schedule_next``, so at most one scan is ever
outstanding. All methods must run on the event loop thread.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from scanweave.radio.base import PermissionChecker, WifiRadio
from scanweave.scanner.models import ErrorKind, ScannerState, TimerHandle

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[ErrorKind, str], None]


class Scheduler(Protocol):
    """The subset of ``asyncio.AbstractEventLoop`` the loop relies on."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ScanTriggerLoop:
    """Owns the scheduling timer and the armed/paused state."""

    def __init__(
        self,
        radio: WifiRadio,
        permissions: PermissionChecker,
        report_error: ErrorReporter,
        scheduler: Scheduler | None = None,
        scan_timeout_ms: int | None = None,
        on_timeout: Callable[[], None] | None = None,
    ) -> None:
        if scan_timeout_ms is not None and scan_timeout_ms <= 0:
            raise ValueError(f"scan_timeout_ms must be positive, got {scan_timeout_ms}")
        self._radio = radio
        self._permissions = permissions
        self._report_error = report_error
        self._scheduler = scheduler
        self.scan_timeout_ms = scan_timeout_ms
        self.on_timeout = on_timeout
        self._state = ScannerState()
        self._watchdog: TimerHandle | None = None
        # Timed-out scans whose completion has not arrived yet
        self._expired = 0

    @property
    def state(self) -> ScannerState:
        """Snapshot of the scheduling state."""
        return replace(self._state)

    def _get_scheduler(self) -> Scheduler:
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()
        return self._scheduler

    # --- Public contract ---

    def start(self, interval_ms: int) -> bool:
        """Arm continuous scanning, or reconfigure it if already armed."""
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
            raise ValueError(f"interval_ms must be a positive integer, got {interval_ms!r}")
        if not self._check_preconditions():
            return False

        reconfigure = self._state.armed
        self._state.armed = True
        self._state.paused = False
        self._state.interval_ms = interval_ms
        self._arm_timer()

        if reconfigure:
            logger.info("Reconfigured continuous scanning to %dms interval", interval_ms)
        else:
            logger.info("Started continuous scanning with %dms interval", interval_ms)
        return True

    def stop(self) -> None:
        was_armed = self._state.armed
        self._state.armed = False
        self._state.paused = False
        self._cancel_timer()
        if was_armed:
            logger.info("Stopped continuous scanning")

    def pause(self) -> None:
        if not self._state.armed or self._state.paused:
            return
        self._state.paused = True
        self._cancel_timer()
        logger.info("Scanning paused")

    def resume(self) -> None:
        if not self._state.armed or not self._state.paused:
            return
        self._state.paused = False
        self._arm_timer()
        logger.info("Scanning resumed")

    def trigger_once(self) -> bool:
        """Request one scan now, independent of the continuous schedule."""
        if not self._check_preconditions():
            return False
        if not self._request_scan():
            self._report_error(ErrorKind.trigger_rejected, "Platform declined to start a scan")
            return False
        return True

    def is_active(self) -> bool:
        return self._state.armed and not self._state.paused

    # --- Completion path ---

    def schedule_next(self) -> None:
        """Arm the next timer after a completed cycle, if still active."""
        if self.is_active():
            self._arm_timer()

    def mark_completed(self) -> bool:
        """Record a radio completion.

        Returns False when the completion belongs to a scan the watchdog
        already gave up on. The radio reports completions in order, so the
        oldest expired scan is the one completing.
        """
        if self._expired:
            self._expired -= 1
            logger.info("Ignoring late completion of a timed-out scan")
            return False
        self._state.scan_outstanding = False
        self._cancel_watchdog()
        return True

    # --- Internals ---

    def _check_preconditions(self) -> bool:
        if not self._permissions.has_scan_permission():
            logger.warning("Scan permission missing")
            self._report_error(ErrorKind.permission_denied, "Missing required permissions")
            return False
        if not self._radio.is_radio_enabled():
            logger.warning("WiFi radio is disabled")
            self._report_error(ErrorKind.radio_disabled, "WiFi is disabled")
            return False
        return True

    def _arm_timer(self) -> None:
        self._cancel_timer()
        if not self.is_active() or self._state.scan_outstanding:
            return
        delay = self._state.interval_ms / 1000
        self._state.pending_timer = self._get_scheduler().call_later(delay, self._on_timer)

    def _cancel_timer(self) -> None:
        handle = self._state.pending_timer
        if handle is not None:
            handle.cancel()
            self._state.pending_timer = None

    def _on_timer(self) -> None:
        self._state.pending_timer = None
        if not self.is_active():
            return
        if self._state.scan_outstanding:
            logger.debug("Scan still outstanding, completion will re-arm")
            return

        logger.debug("Starting scheduled scan")
        if not self._request_scan():
            logger.warning("Failed to start scan, retrying in %dms", self._state.interval_ms)
            self._report_error(ErrorKind.trigger_rejected, "Platform declined to start a scan")
            self._arm_timer()

    def _request_scan(self) -> bool:
        try:
            accepted = self._radio.start_scan()
        except Exception:
            logger.exception("Radio raised while starting a scan")
            accepted = False
        if accepted:
            self._state.scan_outstanding = True
            self._arm_watchdog()
        return accepted

    def _arm_watchdog(self) -> None:
        self._cancel_watchdog()
        if self.scan_timeout_ms is None:
            return
        self._watchdog = self._get_scheduler().call_later(
            self.scan_timeout_ms / 1000, self._on_watchdog
        )

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _on_watchdog(self) -> None:
        self._watchdog = None
        if not self._state.scan_outstanding:
            return
        logger.warning("Scan did not complete within %dms", self.scan_timeout_ms)
        self._state.scan_outstanding = False
        self._expired += 1
        if self.on_timeout is not None:
            self.on_timeout()
        else:
            self.schedule_next()
