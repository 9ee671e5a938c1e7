"""
Aviation weather proxy: METAR/TAF/PIREP/SIGMET/AIRMET from aviationweather.gov.

The batch endpoint always answers 200 when the request itself is well formed;
individual lookups carry their own success flag and error message.
"""
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends, Query

from api.dependencies import get_http_client
from api.models.aviation import WeatherBatchRequest
from api.services.aviation import fetch_weather, fetch_weather_batch

router = APIRouter()


@router.get("/")
async def get_weather(
    type: str = Query("metar", description="metar, taf, pirep, sigmet or airmet"),
    ids: str | None = Query(None, description="Station ids, e.g. KSFO,KJFK"),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    result = await fetch_weather(client, type, ids)
    return {**result, "timestamp": datetime.now(timezone.utc).isoformat(), "success": True}


@router.post("/batch")
async def get_weather_batch(
    body: WeatherBatchRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
):
    results = await fetch_weather_batch(client, [r.model_dump() for r in body.requests])
    return {"timestamp": datetime.now(timezone.utc).isoformat(), "results": results}
