"""
Core infrastructure package for the Business Logic Helper backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connection pool lifecycle via asyncpg
- The application context passed to loaders, coordinator and handlers
- FastAPI dependency injection utilities (app state access, basic auth)

Usage Examples:
    from bizlogic.core import get_settings, create_db_pool, AppContext

    settings = get_settings()
    pool = await create_db_pool(settings)
    context = AppContext.from_settings(settings, pool)
"""

# =============================================================================
# Re-exports from bizlogic.core.config
# =============================================================================
from bizlogic.core.config import Settings, get_settings

# =============================================================================
# Re-exports from bizlogic.core.database
# =============================================================================
from bizlogic.core.database import close_db_pool, create_db_pool

# =============================================================================
# Re-exports from bizlogic.core.context
# =============================================================================
from bizlogic.core.context import AppContext

# =============================================================================
# Re-exports from bizlogic.core.dependencies
# =============================================================================
from bizlogic.core.dependencies import (
    BasicAuthDep,
    ContextDep,
    get_app_context,
    require_basic_auth,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'create_db_pool',
    'close_db_pool',
    # Application context (from context.py)
    'AppContext',
    # FastAPI dependency injection (from dependencies.py)
    'BasicAuthDep',
    'ContextDep',
    'get_app_context',
    'require_basic_auth',
]
