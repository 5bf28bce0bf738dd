"""Scan result value types: records, batches, bands and error kinds."""

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


class Band(enum.StrEnum):
    ghz_2_4 = "2.4GHz"
    ghz_5 = "5GHz"
    ghz_6 = "6GHz"
    unknown = "Unknown"


class ErrorKind(enum.StrEnum):
    permission_denied = "permission_denied"
    radio_disabled = "radio_disabled"
    scan_failed = "scan_failed"
    processing_error = "processing_error"
    trigger_rejected = "trigger_rejected"


# Inclusive MHz ranges; they must never overlap.
_BAND_RANGES: tuple[tuple[int, int, Band], ...] = (
    (2412, 2484, Band.ghz_2_4),
    (5170, 5825, Band.ghz_5),
    (5925, 7125, Band.ghz_6),
)


def band_for_frequency(frequency: int | None) -> Band:
    """Classify a center frequency (MHz) into its WiFi band."""
    if frequency is None:
        return Band.unknown
    for low, high, band in _BAND_RANGES:
        if low <= frequency <= high:
            return band
    return Band.unknown


def channel_for_frequency(frequency: int | None) -> int:
    """Map a center frequency (MHz) to its channel number, or -1."""
    band = band_for_frequency(frequency)
    if band is Band.ghz_2_4:
        return (frequency - 2412) // 5 + 1  # type: ignore[operator]
    if band is Band.ghz_5:
        return (frequency - 5000) // 5  # type: ignore[operator]
    if band is Band.ghz_6:
        return (frequency - 5950) // 5 + 1  # type: ignore[operator]
    return -1


@dataclass(frozen=True)
class InformationElement:
    """Raw 802.11 information element carried through unmodified."""

    id: int
    data: bytes

    def to_hex(self) -> str:
        return self.data.hex()


@dataclass(frozen=True)
class ScanRecord:
    """One network observed in one scan batch."""

    ssid: str
    bssid: str
    capabilities: str
    level: int  # dBm
    frequency: int | None  # MHz
    timestamp: datetime

    # Extended fields; None when the platform cannot report them
    channel_width: int | None = None  # MHz
    center_freq0: int | None = None
    center_freq1: int | None = None
    is_80211mc_responder: bool | None = None
    is_passpoint_network: bool | None = None
    operator_friendly_name: str | None = None
    venue_name: str | None = None

    information_elements: tuple[InformationElement, ...] = ()

    @property
    def band(self) -> Band:
        return band_for_frequency(self.frequency)

    @property
    def channel(self) -> int:
        return channel_for_frequency(self.frequency)

    @property
    def is_2_4ghz(self) -> bool:
        return self.band is Band.ghz_2_4

    @property
    def is_5ghz(self) -> bool:
        return self.band is Band.ghz_5

    @property
    def is_6ghz(self) -> bool:
        return self.band is Band.ghz_6

    @property
    def security_type(self) -> str:
        """Strongest security suite named in the capability string."""
        for suite in ("WPA3", "WPA2", "WPA", "WEP"):
            if suite in self.capabilities:
                return suite
        return "Open"

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation; information elements as hex."""
        return {
            "ssid": self.ssid,
            "bssid": self.bssid,
            "capabilities": self.capabilities,
            "level": self.level,
            "frequency": self.frequency,
            "channel": self.channel,
            "band": str(self.band),
            "security": self.security_type,
            "timestamp": self.timestamp.isoformat(),
            "channel_width": self.channel_width,
            "center_freq0": self.center_freq0,
            "center_freq1": self.center_freq1,
            "is_80211mc_responder": self.is_80211mc_responder,
            "is_passpoint_network": self.is_passpoint_network,
            "operator_friendly_name": self.operator_friendly_name,
            "venue_name": self.venue_name,
            "information_elements": [
                {"id": ie.id, "data": ie.to_hex()} for ie in self.information_elements
            ],
        }

    def to_debug_string(self) -> str:
        """Render a multi-line human readable summary for export."""
        lines = [
            f"SSID: {self.ssid}",
            f"BSSID: {self.bssid}",
            f"Signal: {self.level}dBm",
            f"Frequency: {self.frequency}MHz (Channel {self.channel}, {self.band})",
            f"Security: {self.security_type}",
            f"Capabilities: {self.capabilities}",
        ]
        if self.channel_width is not None:
            lines.append(f"Channel Width: {self.channel_width}")
        if self.center_freq0 is not None:
            lines.append(f"Center Freq 0: {self.center_freq0}")
        if self.center_freq1 is not None:
            lines.append(f"Center Freq 1: {self.center_freq1}")
        if self.is_80211mc_responder is not None:
            lines.append(f"802.11mc Responder: {str(self.is_80211mc_responder).lower()}")
        if self.is_passpoint_network is not None:
            lines.append(f"Passpoint Network: {str(self.is_passpoint_network).lower()}")
        if self.operator_friendly_name:
            lines.append(f"Operator: {self.operator_friendly_name}")
        if self.venue_name:
            lines.append(f"Venue: {self.venue_name}")
        lines.append(f"Timestamp: {self.timestamp.isoformat()}")
        lines.append(f"Information Elements: {len(self.information_elements)}")
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class ScanBatch:
    """All networks observed in a single completed scan cycle."""

    records: tuple[ScanRecord, ...] = ()
    completed_at: datetime | None = None

    @classmethod
    def empty(cls) -> "ScanBatch":
        return _EMPTY_BATCH

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ScanRecord]:
        return iter(self.records)

    def by_band(self) -> dict[Band, tuple[ScanRecord, ...]]:
        """Group records by band, keeping scan order within each group."""
        groups: dict[Band, list[ScanRecord]] = {}
        for record in self.records:
            groups.setdefault(record.band, []).append(record)
        return {band: tuple(records) for band, records in groups.items()}


_EMPTY_BATCH = ScanBatch()


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@dataclass
class ScannerState:
    """Scheduling state owned by the trigger loop.

    A pending timer exists only while armed, not paused and no scan is
    outstanding.
    """

    armed: bool = False
    paused: bool = False
    interval_ms: int = 5000
    pending_timer: TimerHandle | None = field(default=None, repr=False)
    scan_outstanding: bool = False
