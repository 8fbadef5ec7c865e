"""
Health check endpoint for monitoring and load balancer probes.

GET /health answers text/html "HEALTH_OK" (200) or
"HEALTH_NOT_OK:<CHECK>[:<CHECK>...]" (500). No authentication.
"""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from bizlogic.core.dependencies import ContextDep
from bizlogic.services.health import check_health


router = APIRouter()


@router.get("/health", response_class=HTMLResponse)
async def health(context: ContextDep) -> HTMLResponse:
    report = await check_health(context)
    return HTMLResponse(report.render(), status_code=200 if report.healthy else 500)
