"""Base interfaces for WiFi radio backends and scan permission checks."""

import asyncio
import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from scanweave.scanner.normalize import PlatformCapabilities

RawScanRecord = Mapping[str, Any]
ScanCompletedCallback = Callable[[bool], None]


class WifiRadio(ABC):
    """Abstract base for all platform scan backends.

    ``start_scan`` only requests a scan. The outcome arrives later through
    the callbacks registered with ``on_scan_completed``, possibly from
    another thread.
    """

    capabilities: PlatformCapabilities = PlatformCapabilities()

    def __init__(self) -> None:
        self._callbacks: list[ScanCompletedCallback] = []
        self._scan_task: asyncio.Task[None] | None = None

    @abstractmethod
    def is_radio_enabled(self) -> bool:
        """Whether the WiFi radio is switched on."""

    @abstractmethod
    def start_scan(self) -> bool:
        """Request a scan. Returns True if the platform accepted it."""

    @abstractmethod
    def fetch_raw_results(self) -> Sequence[RawScanRecord]:
        """Results of the most recent successful scan."""

    def on_scan_completed(self, callback: ScanCompletedCallback) -> None:
        """Register a callback for scan completion notifications."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def remove_scan_callback(self, callback: ScanCompletedCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_completed(self, success: bool) -> None:
        for cb in list(self._callbacks):
            cb(success)

    async def aclose(self) -> None:
        """Cancel an in-flight scan task without notifying callbacks."""
        if self._scan_task:
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass


class PermissionChecker(ABC):
    @abstractmethod
    def has_scan_permission(self) -> bool:
        """Whether the process may currently request scans and read results."""


class StaticPermissionChecker(PermissionChecker):
    """Permission fixed at construction; flip ``granted`` to simulate revocation."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted

    def has_scan_permission(self) -> bool:
        return self.granted


class RootPermissionChecker(PermissionChecker):
    """Active scans through nl80211 need root (or CAP_NET_ADMIN)."""

    def has_scan_permission(self) -> bool:
        return os.geteuid() == 0
