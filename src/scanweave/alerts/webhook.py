"""Webhook listener: forwards scan batches and errors as HTTP POSTs."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from scanweave.scanner.dispatcher import ScanListener
from scanweave.scanner.models import ErrorKind, ScanBatch

logger = logging.getLogger(__name__)


def build_batch_payload(batch: ScanBatch) -> dict[str, Any]:
    completed = batch.completed_at or datetime.now(UTC)
    return {
        "event": "batch",
        "timestamp": completed.isoformat(),
        "count": len(batch),
        "networks": [r.to_dict() for r in batch],
    }


def build_error_payload(kind: ErrorKind, message: str) -> dict[str, Any]:
    return {
        "event": "error",
        "timestamp": datetime.now(UTC).isoformat(),
        "kind": str(kind),
        "message": message,
    }


class WebhookListener(ScanListener):
    """Posts every notification to a webhook URL.

    Posts run as tasks on the event loop so delivery never blocks the
    dispatcher. Failures are logged and dropped.
    """

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self.url = url
        self.timeout = timeout
        self._pending: set[asyncio.Task[dict[str, Any]]] = set()

    def on_batch(self, batch: ScanBatch) -> None:
        self._schedule(build_batch_payload(batch))

    def on_error(self, kind: ErrorKind, message: str) -> None:
        self._schedule(build_error_payload(kind, message))

    def _schedule(self, payload: dict[str, Any]) -> None:
        task = asyncio.get_running_loop().create_task(self.post(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST one payload. Returns a result dict with status_code and success."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload)
        except Exception as e:
            logger.error("Webhook dispatch error: %s → %s: %s", payload["event"], self.url, e)
            return {"url": self.url, "status_code": None, "success": False, "error": str(e)}

        if response.is_success:
            logger.debug(
                "Webhook delivered: %s → %s (HTTP %d)",
                payload["event"],
                self.url,
                response.status_code,
            )
        else:
            logger.warning(
                "Webhook failed: %s → %s (HTTP %d)",
                payload["event"],
                self.url,
                response.status_code,
            )
        return {
            "url": self.url,
            "status_code": response.status_code,
            "success": response.is_success,
        }

    async def aclose(self) -> None:
        """Wait for in-flight posts to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
