"""In-process handlers for the allow-listed endpoints served by this app."""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(prefix="/api")

_STARTED = time.monotonic()


@router.get("/health")
def health() -> dict:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED, 3),
    }


@router.get("/uuid")
def uuid_info() -> dict:
    return {"endpoints": ["/api/uuid/generate"]}


@router.post("/uuid/generate")
def generate_uuid() -> dict:
    return {"uuid": str(uuid.uuid4()), "timestamp": int(time.time() * 1000)}
