"""
FastAPI dependency injection module for the Business Logic Helper backend.

The application context, ingestion coordinator and load dispatcher are built
once in the lifespan handler and stored on app.state. These dependencies hand
them to endpoint handlers, so handlers never reach for module globals and tests
can swap in their own objects by setting app.state directly.

Key Dependencies Provided:
- get_app_context / ContextDep: The AppContext (settings, pool, schema map)
- require_basic_auth: HTTP basic auth against the configured service credentials

Usage Examples:
    @router.get("/getIdentities", dependencies=[Depends(require_basic_auth)])
    async def get_identities(context: ContextDep):
        ...
"""

import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from bizlogic.core.context import AppContext


logger = logging.getLogger(__name__)

AUTHORIZATION_FAILED = "Authorization failed"

# auto_error=False so a missing header gets the same 401 as bad credentials.
basic_security = HTTPBasic(auto_error=False)


# =============================================================================
# Application State Dependencies
# =============================================================================

def get_app_context(request: Request) -> AppContext:
    """Return the AppContext built at startup."""
    return request.app.state.context


ContextDep = Annotated[AppContext, Depends(get_app_context)]


# =============================================================================
# Authentication
# =============================================================================

def require_basic_auth(
    context: ContextDep,
    credentials: Annotated[Optional[HTTPBasicCredentials], Depends(basic_security)],
) -> str:
    """
    Check HTTP basic credentials against service_username / service_password.

    Comparison is constant-time over the UTF-8 bytes of both fields.

    Returns:
        The authenticated username.

    Raises:
        HTTPException 401: If credentials are missing or do not match.
    """
    settings = context.settings
    if credentials is not None:
        username_ok = secrets.compare_digest(
            credentials.username.encode('utf-8'),
            settings.service_username.encode('utf-8'),
        )
        password_ok = secrets.compare_digest(
            credentials.password.encode('utf-8'),
            settings.service_password.get_secret_value().encode('utf-8'),
        )
        if username_ok and password_ok:
            return credentials.username

    logger.warning("Rejected request with missing or invalid basic auth credentials")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=AUTHORIZATION_FAILED,
        headers={"WWW-Authenticate": "Basic"},
    )


BasicAuthDep = Annotated[str, Depends(require_basic_auth)]
