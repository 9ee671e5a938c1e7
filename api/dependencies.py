"""
FastAPI dependencies for the long-lived objects created in the app lifespan.

Tests swap these out with app.dependency_overrides instead of patching globals.
"""
import httpx
from fastapi import Request

from api.companion import CompanionOrchestrator


def get_orchestrator(request: Request) -> CompanionOrchestrator:
    return request.app.state.orchestrator


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client
