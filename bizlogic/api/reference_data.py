"""
FastAPI router for chunked reference data uploads.

Key Endpoints:
- POST /postReferenceData?position=first|middle|last|reprocess&type=identity|opportunity|account

The body is one raw chunk of a larger {"items": [...]} document. Responses are
plaintext: 200 with an empty body once the chunk is on disk (and, for last or
reprocess, the load has been queued), or 500 with a short message. Loads run in
the background and never delay the response.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import PlainTextResponse

from bizlogic.core.dependencies import require_basic_auth
from bizlogic.services.chunk_assembler import ChunkWriteError
from bizlogic.services.ingestion import IngestionCoordinator, InvalidParameterError


logger = logging.getLogger(__name__)

PROCESSING_ERROR = "Processing Error"

router = APIRouter(dependencies=[Depends(require_basic_auth)])


def get_coordinator(request: Request) -> IngestionCoordinator:
    """Return the IngestionCoordinator built at startup."""
    return request.app.state.coordinator


CoordinatorDep = Annotated[IngestionCoordinator, Depends(get_coordinator)]


@router.post("/postReferenceData")
async def post_reference_data(
    request: Request,
    coordinator: CoordinatorDep,
    position: Optional[str] = Query(default=None),
    type: Optional[str] = Query(default=None),
) -> Response:
    """
    Accept one chunk of a reference data upload.

    Returns:
        200 with an empty body, or 500 with one of:
        "Missing or invalid position query string parameter",
        "Missing or invalid type query string parameter",
        "Processing Error".
    """
    try:
        body = await request.body()
    except OSError as exc:
        logger.error(f"Unable to read body: {exc}")
        return PlainTextResponse(PROCESSING_ERROR, status_code=500)

    try:
        await coordinator.accept(position, type, body)
    except InvalidParameterError as exc:
        return PlainTextResponse(str(exc), status_code=500)
    except ChunkWriteError:
        return PlainTextResponse(PROCESSING_ERROR, status_code=500)

    return Response(status_code=200)
