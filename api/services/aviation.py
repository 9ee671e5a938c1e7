"""
Thin proxies for the two public aviation data sources the companion can lean on.

- Aviation Weather API (aviationweather.gov): METAR, TAF, PIREP, SIGMET, AIRMET
- OpenSky Network: live state vectors, looked up by airline flight number

Single lookups raise UpstreamError on any network or non-2xx failure. Batch
lookups fan out concurrently and report each item on its own, so one bad
station or a timed-out request never sinks the rest of the batch.
"""
import asyncio
import logging
import re

import httpx

from api.config import settings
from api.errors import InputValidationError, UpstreamError

logger = logging.getLogger("companion-api.aviation")

WEATHER_KINDS = ("metar", "taf", "pirep", "sigmet", "airmet")

# IATA airline code → ICAO callsign prefix used in ADS-B callsigns
AIRLINE_CALLSIGNS = {
    # US
    "AA": "AAL", "DL": "DAL", "UA": "UAL", "WN": "SWA", "B6": "JBU",
    "AS": "ASA", "NK": "NKS", "F9": "FFT", "G4": "AAY", "SY": "SCX", "HA": "HAL",
    # International
    "BA": "BAW", "LH": "DLH", "AF": "AFR", "KL": "KLM", "EK": "UAE",
    "QF": "QFA", "AC": "ACA", "VS": "VIR", "IB": "IBE", "QR": "QTR",
    "SQ": "SIA", "CX": "CPA", "JL": "JAL", "NH": "ANA", "TK": "THY",
    "EY": "ETD", "AI": "AIC", "LX": "SWR", "OS": "AUA", "SK": "SAS",
    "AY": "FIN", "TP": "TAP", "U2": "EZY", "FR": "RYR", "W6": "WZZ",
}

_FLIGHT_NUMBER = re.compile(r"^([A-Z0-9]{2})(\d+)$", re.IGNORECASE)

# OpenSky state vector column order
_STATE_FIELDS = (
    "icao24", "callsign", "origin_country", "time_position", "last_contact",
    "longitude", "latitude", "baro_altitude", "on_ground", "velocity",
    "true_track", "vertical_rate", "sensors", "geo_altitude", "squawk",
    "spi", "position_source", "category",
)

M_TO_FT = 3.28084
MS_TO_KT = 1.94384
MS_TO_FPM = 196.85


def new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        headers={"Accept": "application/json", "User-Agent": settings.http_user_agent},
    )


# ─────────────────────────────────────────────────────────────
# Weather
# ─────────────────────────────────────────────────────────────

def weather_request(kind: str, ids: str | None = None) -> tuple[str, dict]:
    """Resolve a weather kind into (url, query params)."""
    kind = (kind or "").lower()
    base = settings.aviation_weather_base_url
    params = {"format": "json"}

    if kind in ("metar", "taf"):
        if ids:
            params["ids"] = ids
        return f"{base}/{kind}", params
    if kind == "pirep":
        return f"{base}/pirep", params
    if kind in ("sigmet", "airmet"):
        params["type"] = kind
        return f"{base}/airsigmet", params

    raise InputValidationError(f"Invalid weather type: {kind or 'missing'}")


async def _get(client: httpx.AsyncClient, url: str, params: dict | None = None) -> httpx.Response:
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise UpstreamError(f"Unable to reach {httpx.URL(url).host}: {type(e).__name__}") from e
    if response.status_code >= 400:
        raise UpstreamError(f"Upstream returned {response.status_code}", status_code=response.status_code)
    return response


def _body(response: httpx.Response):
    # Some weather endpoints answer with XML or plain text despite format=json
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            pass
    return {"raw": response.text}


async def fetch_weather(client: httpx.AsyncClient, kind: str, ids: str | None = None) -> dict:
    url, params = weather_request(kind, ids)
    response = await _get(client, url, params)
    return {"type": kind.lower(), "ids": ids, "data": _body(response)}


async def fetch_weather_batch(client: httpx.AsyncClient, requests: list[dict]) -> list[dict]:
    """Run every request concurrently; each gets its own success/error entry."""
    outcomes = await asyncio.gather(
        *(fetch_weather(client, r.get("type"), r.get("ids")) for r in requests),
        return_exceptions=True,
    )

    results = []
    for req, outcome in zip(requests, outcomes):
        if isinstance(outcome, Exception):
            logger.warning("Weather batch item %s/%s failed: %s", req.get("type"), req.get("ids"), outcome)
            results.append({
                "type": req.get("type"),
                "ids": req.get("ids"),
                "success": False,
                "error": str(outcome),
            })
        else:
            results.append({**outcome, "success": True})
    return results


# ─────────────────────────────────────────────────────────────
# Flight tracking
# ─────────────────────────────────────────────────────────────

def flight_number_to_callsign(flight_number: str) -> str:
    """'UA456' → 'UAL456'. Unknown airlines pass through upper-cased."""
    flight_number = flight_number.strip()
    match = _FLIGHT_NUMBER.match(flight_number)
    if match:
        prefix = AIRLINE_CALLSIGNS.get(match.group(1).upper())
        if prefix:
            return f"{prefix}{match.group(2)}"
    return flight_number.upper()


def parse_state_vector(vector: list) -> dict:
    """Name the OpenSky columns and add aviation units (ft, kt, fpm)."""
    state = dict(zip(_STATE_FIELDS, vector))
    state.setdefault("category", 0)
    if state.get("callsign"):
        state["callsign"] = state["callsign"].strip()

    def convert(value, factor):
        return round(value * factor) if value is not None else None

    state["altitude_ft"] = convert(state.get("baro_altitude"), M_TO_FT)
    state["geo_altitude_ft"] = convert(state.get("geo_altitude"), M_TO_FT)
    state["velocity_kts"] = convert(state.get("velocity"), MS_TO_KT)
    state["vertical_rate_fpm"] = convert(state.get("vertical_rate"), MS_TO_FPM)
    return state


async def fetch_states(client: httpx.AsyncClient, params: dict | None = None) -> list[dict]:
    response = await _get(client, f"{settings.opensky_base_url}/states/all", params)
    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamError("OpenSky returned a malformed response") from e
    return [parse_state_vector(v) for v in (payload or {}).get("states") or []]


def find_flight(states: list[dict], flight_number: str) -> dict:
    callsign = flight_number_to_callsign(flight_number)
    found = next(
        (s for s in states if s.get("callsign") and callsign in s["callsign"].upper()),
        None,
    )
    return {"flight": flight_number, "callsign": callsign, "found": found is not None, "data": found}


async def track_flight(client: httpx.AsyncClient, flight_number: str) -> dict:
    return find_flight(await fetch_states(client), flight_number)


async def track_flights(client: httpx.AsyncClient, flight_numbers: list[str]) -> dict:
    """One OpenSky fetch shared across every requested flight.

    A failed fetch is reported on every item instead of failing the batch.
    """
    try:
        states = await fetch_states(client)
    except UpstreamError as e:
        logger.warning("Flight batch of %d failed: %s", len(flight_numbers), e)
        return {
            "results": [
                {"flight": f, "callsign": flight_number_to_callsign(f), "success": False, "error": str(e)}
                for f in flight_numbers
            ],
            "total_tracked": 0,
        }
    return {
        "results": [{**find_flight(states, f), "success": True} for f in flight_numbers],
        "total_tracked": len(states),
    }
