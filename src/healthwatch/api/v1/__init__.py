"""API v1 module."""

from fastapi import APIRouter

from healthwatch.api.v1.endpoints import health, websocket

api_router = APIRouter()

# Include routers
api_router.include_router(health.router)
api_router.include_router(websocket.router)
