"""
FastAPI router for the dashboard and report queries.

Key Endpoints:
- GET /getManagerQuery - Filter expression listing managers under a manager
- GET /getSTSManagerDashboardSummary - Solution engineers under an STS manager
- GET /getECALAccountQuery - ECAL accounts (all for admins, hierarchy otherwise)
- GET /getECALOpportunityQuery - ECAL opportunities, same scoping as accounts
- GET /getECALArtifactQuery - Artifacts uploaded in the last 180 days
- GET /getECALDataQuery - Workload health data with R/Y/G color

Every endpoint needs instanceEnvironment, which selects the schema. List
endpoints answer {"items": [...]}. Any failure is logged with its detail and
answered with a 500 carrying a generic plaintext message.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from bizlogic.core.dependencies import ContextDep, require_basic_auth
from bizlogic.services.queries import (
    ECAL_ARTIFACTS,
    ECAL_DATA,
    STS_MANAGER_DASHBOARD_SUMMARY,
    QueryDefinition,
    QueryError,
    ecal_account_definition,
    ecal_opportunity_definition,
    get_manager_query,
    is_admin,
    run_query,
)


logger = logging.getLogger(__name__)

QUERY_ERROR_MESSAGE = (
    "Error in input parameters or processing; please contact your service administrator"
)

router = APIRouter(dependencies=[Depends(require_basic_auth)])


def _query_error(exc: QueryError) -> PlainTextResponse:
    logger.error(f"***ERROR: {exc}")
    return PlainTextResponse(QUERY_ERROR_MESSAGE, status_code=500)


async def _items(
    context: ContextDep,
    definition: QueryDefinition,
    instance_env: Optional[str],
    *args: Any,
) -> Any:
    try:
        items = await run_query(context.pool, context.schema_map, definition, instance_env, *args)
    except QueryError as exc:
        return _query_error(exc)
    return {"items": items}


@router.get("/getManagerQuery")
async def manager_query(
    context: ContextDep,
    managerEmail: str = Query(default=''),
    instanceEnvironment: Optional[str] = Query(default=None),
) -> Any:
    """Return {"query": "manager = 'a' or manager = 'b'"} for the manager's hierarchy."""
    settings = context.settings
    try:
        query = await get_manager_query(
            context.pool,
            context.schema_map,
            managerEmail,
            instanceEnvironment,
            settings.ecal_manager_hierarchy_query,
            settings.sts_manager_hierarchy_query,
        )
    except QueryError as exc:
        return _query_error(exc)
    return {"query": query}


@router.get("/getSTSManagerDashboardSummary")
async def sts_manager_dashboard_summary(
    context: ContextDep,
    managerEmail: str = Query(default=''),
    instanceEnvironment: Optional[str] = Query(default=None),
) -> Any:
    return await _items(context, STS_MANAGER_DASHBOARD_SUMMARY, instanceEnvironment, managerEmail)


@router.get("/getECALAccountQuery")
async def ecal_account_query(
    context: ContextDep,
    instanceEnvironment: Optional[str] = Query(default=None),
    userEmail: str = Query(default=''),
    isAdmin: Optional[str] = Query(default=None),
) -> Any:
    admin = is_admin(isAdmin)
    args = () if admin else (userEmail,)
    return await _items(context, ecal_account_definition(admin), instanceEnvironment, *args)


@router.get("/getECALOpportunityQuery")
async def ecal_opportunity_query(
    context: ContextDep,
    instanceEnvironment: Optional[str] = Query(default=None),
    userEmail: str = Query(default=''),
    isAdmin: Optional[str] = Query(default=None),
) -> Any:
    admin = is_admin(isAdmin)
    args = () if admin else (userEmail,)
    return await _items(context, ecal_opportunity_definition(admin), instanceEnvironment, *args)


@router.get("/getECALArtifactQuery")
async def ecal_artifact_query(
    context: ContextDep,
    instanceEnvironment: Optional[str] = Query(default=None),
) -> Any:
    return await _items(context, ECAL_ARTIFACTS, instanceEnvironment)


@router.get("/getECALDataQuery")
async def ecal_data_query(
    context: ContextDep,
    instanceEnvironment: Optional[str] = Query(default=None),
) -> Any:
    return await _items(context, ECAL_DATA, instanceEnvironment)
