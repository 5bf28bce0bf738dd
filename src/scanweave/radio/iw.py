"""Linux radio backend using ``iw dev <iface> scan``.

Requires root (or CAP_NET_ADMIN) to trigger a fresh scan. The scan runs
as a subprocess on the event loop; its parsed output becomes the raw
result set for the completion notification.
"""

import asyncio
import logging
import re
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from scanweave.radio.base import RawScanRecord, WifiRadio
from scanweave.scanner.normalize import PlatformCapabilities

logger = logging.getLogger(__name__)

_VALID_INTERFACE_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
_SYS_CLASS_NET = Path("/sys/class/net")
_WIDTH_MHZ_RE = re.compile(r"\((\d+)(?:\+\d+)? MHz\)")


def _validate_interface_name(name: str) -> str:
    """Validate WiFi interface name to prevent command injection."""
    if not name or len(name) > 15:
        raise ValueError(f"Invalid interface name: {name!r}")
    if not _VALID_INTERFACE_RE.match(name):
        raise ValueError(f"Interface name contains invalid characters: {name!r}")
    return name


def _capabilities_string(bss: dict[str, Any]) -> str:
    """Compose a bracketed capability string, e.g. ``[WPA2-PSK-CCMP][ESS]``."""
    parts: list[str] = []
    for proto, label in (("rsn", "WPA2"), ("wpa", "WPA")):
        info = bss.get(proto)
        if info is None:
            continue
        ciphers = info.get("ciphers") or "CCMP"
        for suite in info.get("suites") or ["PSK"]:
            name = "WPA3" if suite == "SAE" else label
            parts.append(f"{name}-{suite}-{ciphers}")
    if not parts and bss.get("privacy"):
        parts.append("WEP")
    if bss.get("ess"):
        parts.append("ESS")
    return "".join(f"[{p}]" for p in parts)


def _finish(bss: dict[str, Any], now_us: int) -> dict[str, Any]:
    last_seen_ms = bss.get("last_seen_ms") or 0
    return {
        "ssid": bss.get("ssid", ""),
        "bssid": bss["bssid"],
        "capabilities": _capabilities_string(bss),
        "level": bss.get("level", -100),
        "frequency": bss.get("frequency"),
        "timestamp_us": now_us - last_seen_ms * 1000,
        "channel_width": bss.get("channel_width"),
    }


def parse_iw_scan(output: str, now_us: int | None = None) -> list[dict[str, Any]]:
    """Parse ``iw dev <iface> scan`` output into raw scan records."""
    if now_us is None:
        now_us = time.time_ns() // 1000

    records: list[dict[str, Any]] = []
    bss: dict[str, Any] | None = None
    section: str | None = None

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if raw_line.startswith("BSS "):
            if bss is not None:
                records.append(_finish(bss, now_us))
            bssid = line.split()[1].split("(")[0].upper()
            bss = {"bssid": bssid}
            section = None
            continue
        if bss is None or not line:
            continue

        if line.startswith("*"):
            item = line.lstrip("* ").strip()
        else:
            key, _, value = line.partition(":")
            value = value.strip()
            section = None
            if key == "freq":
                try:
                    bss["frequency"] = int(float(value))
                except ValueError:
                    logger.debug("Unparseable frequency %r", value)
            elif key == "signal":
                try:
                    bss["level"] = int(float(value.split()[0]))
                except (ValueError, IndexError):
                    logger.debug("Unparseable signal %r", value)
            elif key == "SSID":
                bss["ssid"] = value
            elif key == "last seen":
                try:
                    bss["last_seen_ms"] = int(value.split()[0])
                except (ValueError, IndexError):
                    pass
            elif key == "capability":
                flags = value.split()
                bss["ess"] = "ESS" in flags
                bss["privacy"] = "Privacy" in flags
            elif key in ("RSN", "WPA"):
                section = key.lower()
                bss[section] = {}
            elif key == "HT operation":
                section = "ht"
                bss.setdefault("channel_width", 20)
            elif key == "VHT operation":
                section = "vht"
            # "RSN:\t * Version: 1" carries the first item on the same line
            if section is None or "*" not in value:
                continue
            item = value.lstrip("* ").strip()

        if section in ("rsn", "wpa"):
            name, _, detail = item.partition(":")
            detail = detail.strip()
            if name == "Authentication suites":
                bss[section]["suites"] = detail.split()
            elif name == "Pairwise ciphers":
                bss[section]["ciphers"] = "+".join(detail.split())
        elif section == "ht" and item.startswith("secondary channel offset:"):
            if item.split(":", 1)[1].strip() in ("above", "below"):
                bss["channel_width"] = 40
        elif section == "vht" and item.startswith("channel width:"):
            m = _WIDTH_MHZ_RE.search(item)
            if m and int(m.group(1)) >= 80:
                bss["channel_width"] = int(m.group(1))

    if bss is not None:
        records.append(_finish(bss, now_us))
    return records


class IwRadio(WifiRadio):
    """Scans a local interface through the ``iw`` command line tool."""

    capabilities = PlatformCapabilities(channel_info=True, extended_info=False)

    def __init__(self, interface: str, iw_path: str = "iw", timeout: float = 30.0) -> None:
        super().__init__()
        self.interface = _validate_interface_name(interface)
        self.iw_path = iw_path
        self.timeout = timeout
        self._results: list[RawScanRecord] = []

    def is_radio_enabled(self) -> bool:
        iface_dir = _SYS_CLASS_NET / self.interface
        if not iface_dir.exists():
            return False
        try:
            state = (iface_dir / "operstate").read_text(encoding="utf-8").strip()
        except OSError:
            return False
        return state != "down"

    def start_scan(self) -> bool:
        if self._scan_task is not None and not self._scan_task.done():
            logger.debug("iw scan already running on %s", self.interface)
            return False
        self._scan_task = asyncio.get_running_loop().create_task(self._run_scan())
        return True

    def fetch_raw_results(self) -> Sequence[RawScanRecord]:
        return list(self._results)

    async def _run_scan(self) -> None:
        success = False
        proc: asyncio.subprocess.Process | None = None
        try:
            proc = await asyncio.create_subprocess_exec(
                self.iw_path,
                "dev",
                self.interface,
                "scan",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), self.timeout)
            except TimeoutError:
                proc.kill()
                await proc.wait()
                logger.warning("iw scan on %s timed out after %.0fs", self.interface, self.timeout)
            else:
                if proc.returncode == 0:
                    self._results = parse_iw_scan(stdout.decode("utf-8", errors="replace"))
                    success = True
                else:
                    logger.warning(
                        "iw scan on %s failed (exit %d): %s",
                        self.interface,
                        proc.returncode,
                        stderr.decode("utf-8", errors="replace").strip(),
                    )
        except asyncio.CancelledError:
            if proc is not None and proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        except Exception:
            logger.exception("iw scan error on %s", self.interface)
        self._notify_completed(success)
