"""
Backend API package initialization.

This package contains FastAPI router modules for the Business Logic Helper:
- health: Load balancer health probe
- reference_data: Chunked reference data uploads that trigger bulk loads
- identities: Identity snapshot download and replacement
- queries: Manager hierarchy and dashboard report queries

All routes sit at the root path to match the front end's existing endpoints.
"""

from fastapi import APIRouter

# Import router modules
from bizlogic.api.health import router as health_router
from bizlogic.api.identities import router as identities_router
from bizlogic.api.queries import router as queries_router
from bizlogic.api.reference_data import router as reference_data_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(reference_data_router, tags=["reference-data"])
api_router.include_router(identities_router, tags=["identities"])
api_router.include_router(queries_router, tags=["queries"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "health_router",
    "identities_router",
    "queries_router",
    "reference_data_router",
]
