"""
Flight tracking proxy over the OpenSky Network.

Flight numbers ("UA456") are converted to ADS-B callsigns ("UAL456") before
matching. A flight that isn't airborne right now comes back found=False,
not as an error.
"""
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends, Query

from api.dependencies import get_http_client
from api.models.aviation import FlightBatchRequest
from api.services.aviation import track_flight, track_flights

router = APIRouter()


@router.get("/track")
async def track(
    flight: str = Query(..., min_length=2, description="Airline flight number, e.g. UA456"),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    result = await track_flight(client, flight)
    return {**result, "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/batch")
async def track_batch(
    body: FlightBatchRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
):
    result = await track_flights(client, body.flights)
    return {**result, "timestamp": datetime.now(timezone.utc).isoformat()}
