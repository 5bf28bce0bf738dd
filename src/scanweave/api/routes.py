"""REST API endpoints for controlling and reading the scanner.

Handlers are ``async def`` so they run on the event loop thread that
owns the scan manager.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from scanweave.config import settings
from scanweave.scanner.manager import WifiScanManager
from scanweave.scanner.models import Band

router = APIRouter(prefix="/api/scan")


class StartScanRequest(BaseModel):
    interval_ms: int | None = Field(default=None, gt=0)


def get_manager(request: Request) -> WifiScanManager:
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="No radio configured")
    return manager


@router.get("/status")
async def scan_status(manager: WifiScanManager = Depends(get_manager)) -> dict[str, Any]:
    return manager.status()


@router.get("/results")
async def scan_results(
    band: Band | None = None,
    manager: WifiScanManager = Depends(get_manager),
) -> dict[str, Any]:
    batch = manager.get_last_batch()
    records = [r for r in batch if band is None or r.band == band]
    return {
        "completed_at": batch.completed_at.isoformat() if batch.completed_at else None,
        "count": len(records),
        "networks": [r.to_dict() for r in records],
    }


@router.post("/start")
async def start_scanning(
    body: StartScanRequest | None = None,
    manager: WifiScanManager = Depends(get_manager),
) -> dict[str, Any]:
    interval = body.interval_ms if body and body.interval_ms else None
    if not manager.start(interval or settings.scan_interval_ms):
        raise HTTPException(status_code=409, detail="Scanning preconditions not met")
    return manager.status()


@router.post("/stop")
async def stop_scanning(manager: WifiScanManager = Depends(get_manager)) -> dict[str, Any]:
    manager.stop()
    return manager.status()


@router.post("/pause")
async def pause_scanning(manager: WifiScanManager = Depends(get_manager)) -> dict[str, Any]:
    manager.pause()
    return manager.status()


@router.post("/resume")
async def resume_scanning(manager: WifiScanManager = Depends(get_manager)) -> dict[str, Any]:
    manager.resume()
    return manager.status()


@router.post("/trigger")
async def trigger_scan(manager: WifiScanManager = Depends(get_manager)) -> dict[str, bool]:
    return {"accepted": manager.trigger_once()}
