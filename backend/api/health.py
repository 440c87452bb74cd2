import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status

from errors import OdooError
from odoo_client import get_odoo_client
from schemas import HealthResponse, OdooHealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def read_health() -> HealthResponse:
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc))


@router.get("/odoo", response_model=OdooHealthResponse)
async def read_odoo_health() -> OdooHealthResponse:
    try:
        details = await asyncio.to_thread(get_odoo_client().version)
    except OdooError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return OdooHealthResponse(
        status="OK",
        server_version=details.get("server_version"),
        details=details,
    )
