"""
FastAPI router for the identity snapshot file.

Key Endpoints:
- GET /getIdentities - Return the snapshot written by the last identity load
- POST /postIdentities - Replace the snapshot with the request body

The file is served and stored byte for byte; no JSON validation happens here.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Request, Response

from bizlogic.core.dependencies import ContextDep, require_basic_auth
from bizlogic.services.identity_loader import replace_file


logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_basic_auth)])


@router.get("/getIdentities")
async def get_identities(context: ContextDep) -> Response:
    path = Path(context.settings.identity_filename)
    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.error(f"Error reading identity file [{path}]: {exc}")
        return Response(status_code=500)
    return Response(content=data, media_type="application/json")


@router.post("/postIdentities")
async def post_identities(request: Request, context: ContextDep) -> Response:
    path = Path(context.settings.identity_filename)
    try:
        body = await request.body()
        replace_file(path, body)
    except OSError as exc:
        logger.error(f"Error writing identity file [{path}]: {exc}")
        return Response(status_code=500)
    logger.info(f"Replaced identity file [{path}] with {len(body)} bytes")
    return Response(status_code=200)
