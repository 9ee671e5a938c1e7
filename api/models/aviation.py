"""
Pydantic models for the weather and flight-tracking proxies.
"""
from pydantic import BaseModel, Field


class WeatherQuery(BaseModel):
    type: str = Field(..., description="metar, taf, pirep, sigmet or airmet")
    ids: str | None = Field(default=None, description="Comma-separated station ids, e.g. KSFO,KJFK")


class WeatherBatchRequest(BaseModel):
    requests: list[WeatherQuery] = Field(..., min_length=1, max_length=20)


class FlightBatchRequest(BaseModel):
    flights: list[str] = Field(..., min_length=1, max_length=50)
