"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import pickups, users, drivers, health

router = APIRouter()

# Pickups (key-value store)
router.include_router(pickups.router)

# Account profiles (relational store)
router.include_router(users.router)
router.include_router(drivers.router)

# Store health probes
router.include_router(health.router)
