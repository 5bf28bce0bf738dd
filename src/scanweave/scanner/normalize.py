"""Map platform scan records into ScanRecord values.

A platform record is any mapping produced by a radio backend. Fields the
platform cannot report are resolved to None here, once, so nothing past
this boundary needs to know which platform produced a record.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from scanweave.scanner.models import InformationElement, ScanRecord


class NormalizationError(ValueError):
    """A platform record could not be mapped into a ScanRecord."""


@dataclass(frozen=True)
class PlatformCapabilities:
    """Which optional record fields the platform populates."""

    channel_info: bool = True  # channel width and center frequencies
    extended_info: bool = True  # 802.11mc, passpoint, hotspot metadata


def _optional_int(raw: Mapping[str, Any], key: str) -> int | None:
    value = raw.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise NormalizationError(f"Field {key!r} is not an integer: {value!r}") from e


def _optional_bool(raw: Mapping[str, Any], key: str) -> bool | None:
    value = raw.get(key)
    return None if value is None else bool(value)


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return None if value is None else str(value)


def _information_elements(items: Iterable[Any] | None) -> tuple[InformationElement, ...]:
    if not items:
        return ()
    elements: list[InformationElement] = []
    for item in items:
        if isinstance(item, Mapping):
            ie_id, data = item.get("id"), item.get("data")
        else:
            try:
                ie_id, data = item
            except (TypeError, ValueError) as e:
                raise NormalizationError(f"Malformed information element: {item!r}") from e
        if not isinstance(ie_id, int) or not isinstance(data, (bytes, bytearray, memoryview)):
            raise NormalizationError(f"Malformed information element: {item!r}")
        elements.append(InformationElement(id=ie_id, data=bytes(data)))
    return tuple(elements)


def _timestamp(raw: Mapping[str, Any]) -> datetime:
    value = raw.get("timestamp_us")
    if value is None:
        return datetime.now(UTC)
    try:
        return datetime.fromtimestamp(int(value) / 1_000_000, tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise NormalizationError(f"Invalid timestamp: {value!r}") from e


def normalize(
    raw: Mapping[str, Any],
    capabilities: PlatformCapabilities = PlatformCapabilities(),
) -> ScanRecord:
    """Build a ScanRecord from one platform scan record.

    Raises NormalizationError when a required field is missing or
    malformed.
    """
    if not isinstance(raw, Mapping):
        raise NormalizationError(f"Expected a mapping, got {type(raw).__name__}")

    level = raw.get("level")
    if isinstance(level, bool) or not isinstance(level, int):
        raise NormalizationError(f"Missing or invalid signal level: {level!r}")

    channel_info = capabilities.channel_info
    extended_info = capabilities.extended_info

    return ScanRecord(
        ssid=raw.get("ssid") or "",
        bssid=raw.get("bssid") or "",
        capabilities=raw.get("capabilities") or "",
        level=level,
        frequency=_optional_int(raw, "frequency"),
        timestamp=_timestamp(raw),
        channel_width=_optional_int(raw, "channel_width") if channel_info else None,
        center_freq0=_optional_int(raw, "center_freq0") if channel_info else None,
        center_freq1=_optional_int(raw, "center_freq1") if channel_info else None,
        is_80211mc_responder=(
            _optional_bool(raw, "is_80211mc_responder") if extended_info else None
        ),
        is_passpoint_network=(
            _optional_bool(raw, "is_passpoint_network") if extended_info else None
        ),
        operator_friendly_name=(
            _optional_str(raw, "operator_friendly_name") if extended_info else None
        ),
        venue_name=_optional_str(raw, "venue_name") if extended_info else None,
        information_elements=_information_elements(raw.get("information_elements")),
    )
