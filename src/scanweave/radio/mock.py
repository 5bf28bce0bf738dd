"""Mock radio for development and testing.

Accepts scan requests and completes them after a short delay with fake
access points spread over all three bands, some of which only show up
in a fraction of scans. A configurable share of scans fails the way a
busy radio does.
"""

import asyncio
import logging
import random
import time
from collections.abc import Sequence
from typing import Any

from scanweave.radio.base import RawScanRecord, WifiRadio

logger = logging.getLogger(__name__)

# (bssid, ssid, capabilities, frequency MHz, base dBm)
_STABLE_APS = [
    ("AA:BB:CC:11:22:33", "HomeNetwork", "[WPA2-PSK-CCMP][RSN-PSK-CCMP][ESS]", 2437, -42),
    ("AA:BB:CC:11:22:34", "HomeNetwork", "[WPA2-PSK-CCMP][RSN-PSK-CCMP][ESS]", 5180, -51),
    ("AA:BB:CC:44:55:66", "Neighbor-5G", "[WPA3-SAE-CCMP][ESS]", 5500, -70),
    ("AA:BB:CC:77:88:99", "Office-6E", "[WPA3-SAE-CCMP][ESS]", 5955, -63),
]

_VISITOR_APS = [
    ("DD:EE:FF:11:22:33", "Phone-Hotspot", "[WPA2-PSK-CCMP][ESS]", 2462, -60),
    ("DD:EE:FF:44:55:66", "CafeGuest", "[ESS]", 2412, -78),
]

# Vendor specific IE (id 221) with a fake OUI
_VENDOR_IE = (221, bytes.fromhex("0050f204104a0001"))


class MockRadio(WifiRadio):
    """Generates fake scan results on request."""

    def __init__(
        self,
        scan_duration: float = 0.5,
        failure_rate: float = 0.0,
        enabled: bool = True,
    ) -> None:
        super().__init__()
        self.scan_duration = scan_duration
        self.failure_rate = failure_rate
        self.enabled = enabled
        self._results: list[RawScanRecord] = []

    def is_radio_enabled(self) -> bool:
        return self.enabled

    @property
    def scanning(self) -> bool:
        return self._scan_task is not None and not self._scan_task.done()

    def start_scan(self) -> bool:
        if not self.enabled or self.scanning:
            return False
        logger.debug("Mock scan started (duration=%.2fs)", self.scan_duration)
        self._scan_task = asyncio.get_running_loop().create_task(self._run_scan())
        return True

    def fetch_raw_results(self) -> Sequence[RawScanRecord]:
        return list(self._results)

    async def _run_scan(self) -> None:
        await asyncio.sleep(self.scan_duration)
        success = random.random() >= self.failure_rate
        if success:
            self._results = self._generate_results(time.time_ns() // 1000)
        self._notify_completed(success)

    def _generate_results(self, now_us: int) -> list[RawScanRecord]:
        results: list[RawScanRecord] = []

        for bssid, ssid, caps, freq, base_rssi in _STABLE_APS:
            results.append(
                self._record(bssid, ssid, caps, freq, base_rssi + random.randint(-5, 5), now_us)
            )

        # Visitors: appear intermittently (roughly 40% of scans)
        for bssid, ssid, caps, freq, base_rssi in _VISITOR_APS:
            if random.random() < 0.4:
                results.append(
                    self._record(
                        bssid, ssid, caps, freq, base_rssi + random.randint(-8, 8), now_us
                    )
                )

        return results

    @staticmethod
    def _record(
        bssid: str, ssid: str, caps: str, freq: int, level: int, now_us: int
    ) -> dict[str, Any]:
        return {
            "ssid": ssid,
            "bssid": bssid,
            "capabilities": caps,
            "level": level,
            "frequency": freq,
            "timestamp_us": now_us,
            "channel_width": 20 if freq < 5000 else 80,
            "center_freq0": freq,
            "is_80211mc_responder": False,
            "is_passpoint_network": False,
            "information_elements": [(0, ssid.encode()), _VENDOR_IE],
        }
