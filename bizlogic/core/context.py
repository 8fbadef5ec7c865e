"""
Application context shared by request handlers and background loaders.

Built once at startup from Settings and the connection pool, then passed by
reference into the Ingestion Coordinator, the Streaming Bulk Loaders and the
query helpers. Nothing in the service reads the schema map, manager-lead list or
pool from module globals.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from asyncpg import Pool

from bizlogic.core.config import Settings


@dataclass
class AppContext:
    """
    Process-wide state constructed at startup.

    Attributes:
        settings: Loaded application settings.
        pool: asyncpg pool (or a compatible stand-in in tests).
        schema_map: Instance-environment key -> schema name.
        manager_leads: Ordered (manager email, app-map tag) pairs.
    """
    settings: Settings
    pool: Pool
    schema_map: Dict[str, str] = field(default_factory=dict)
    manager_leads: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: Settings, pool: Pool) -> "AppContext":
        """Build a context, validating the parallel lists in settings."""
        return cls(
            settings=settings,
            pool=pool,
            schema_map=settings.build_schema_map(),
            manager_leads=settings.build_manager_leads(),
        )

    def schema_for(self, instance_env: str) -> Optional[str]:
        """Return the schema mapped to an instance environment, or None if unmapped."""
        if not instance_env:
            return None
        return self.schema_map.get(instance_env) or None

    @property
    def reference_schema(self) -> Optional[str]:
        """Schema the reference data loaders write to."""
        return self.schema_for(self.settings.reference_sync_target)
