# This project was developed with assistance from AI tools.
"""Liveness/readiness endpoint."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends

router = APIRouter()


@router.get("/")
async def health(db_service: DatabaseService = Depends(get_db_service)) -> dict[str, str]:
    """Report API status and database reachability."""
    database_ok = await db_service.health_check()
    return {"status": "ok" if database_ok else "degraded", "database": "ok" if database_ok else "unavailable"}
