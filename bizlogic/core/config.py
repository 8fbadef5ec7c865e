"""
Settings and environment management module for the Business Logic Helper backend.

This module provides centralized configuration management using pydantic-settings,
which loads settings from init arguments, environment variables, a .env file and
an optional config.json file (highest priority first).

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for local development
- Singleton pattern via @lru_cache for efficient access
- Schema routing map built from two parallel comma-separated lists
- Manager-lead allow-list paired with app-map tags for identity synchronization

Environment Variables:
- DATABASE_URL: PostgreSQL connection string (Required)
- SERVICE_USERNAME / SERVICE_PASSWORD: Basic auth credentials (Required)
- IDENTITY_FILENAME: Path of the identity snapshot file
- INSTANCE_ENVIRONMENTS / SCHEMA_NAMES: Parallel comma lists forming the schema map
- REFERENCE_SYNC_TARGET: Instance environment the reference data loaders write to
- IDENTITY_MGR_LEADS / IDENTITY_APP_MAPS: Parallel comma lists of manager emails and tags

Usage:
    from bizlogic.core.config import get_settings

    settings = get_settings()
    schema_map = settings.build_schema_map()
"""

from functools import lru_cache
from typing import Dict, List, Tuple, Type

from pydantic import SecretStr
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


# Recursive manager hierarchy templates. %SCHEMA% is replaced with the schema
# mapped to the caller's instance environment; $1 is the manager email.
DEFAULT_ECAL_MANAGER_HIERARCHY_QUERY = """
    WITH RECURSIVE hierarchy AS (
        SELECT u.useremail FROM %SCHEMA%.User1 u WHERE u.useremail = $1
        UNION
        SELECT u.useremail FROM %SCHEMA%.User1 u
        INNER JOIN hierarchy h ON u.manager = h.useremail
    )
    SELECT u.useremail
    FROM hierarchy h
    INNER JOIN %SCHEMA%.User1 u ON u.useremail = h.useremail
    INNER JOIN %SCHEMA%.RoleType r ON u.rolename = r.id
    WHERE r.rolename = 'Manager'
"""

DEFAULT_STS_MANAGER_HIERARCHY_QUERY = """
    WITH RECURSIVE hierarchy AS (
        SELECT u.useremail FROM %SCHEMA%.STSUser u WHERE u.useremail = $1
        UNION
        SELECT u.useremail FROM %SCHEMA%.STSUser u
        INNER JOIN hierarchy h ON u.manager = h.useremail
    )
    SELECT u.useremail
    FROM hierarchy h
    INNER JOIN %SCHEMA%.STSUser u ON u.useremail = h.useremail
    INNER JOIN %SCHEMA%.STSRole r ON u.rolename = r.id
    WHERE r.rolename = 'Manager'
"""


def _split_list(value: str) -> List[str]:
    """Split a comma-separated setting, dropping surrounding whitespace."""
    if not value or not value.strip():
        return []
    return [item.strip() for item in value.split(',')]


class Settings(BaseSettings):
    """
    Application settings loaded from init kwargs, environment, .env and config.json.

    Attributes:
        database_url: PostgreSQL connection string. Required.
        db_pool_min_size: Minimum idle connections kept in the pool.
        db_pool_max_size: Maximum connections in the pool.
        db_command_timeout: Per-statement timeout in seconds.
        service_host: Interface uvicorn binds to.
        service_listen_port: Port uvicorn listens on.
        service_username: Basic auth user for protected endpoints.
        service_password: Basic auth password for protected endpoints.
        identity_filename: Path of the identity snapshot written after identity loads.
        chunk_directory: Directory holding the <type>.json chunk files.
        instance_environments: Comma list of instance-environment keys.
        schema_names: Comma list of schema names, parallel to instance_environments.
        reference_sync_target: Instance-environment key the reference loaders resolve.
        identity_mgr_leads: Comma list of top-level manager emails.
        identity_app_maps: Comma list of app-map tags, parallel to identity_mgr_leads.
        ecal_manager_hierarchy_query: Hierarchy template for ecal-* environments.
        sts_manager_hierarchy_query: Hierarchy template for every other environment.
        log_level: Root logging level.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        json_file='config.json',
        json_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Database
    # =========================================================================

    database_url: str
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_command_timeout: float = 60

    # =========================================================================
    # HTTP listener and basic auth
    # =========================================================================

    service_host: str = '0.0.0.0'
    service_listen_port: int = 8000
    service_username: str
    service_password: SecretStr

    # =========================================================================
    # Files
    # =========================================================================

    identity_filename: str = 'identities.json'
    chunk_directory: str = '.'

    # =========================================================================
    # Schema routing
    # =========================================================================

    instance_environments: str = ''
    schema_names: str = ''
    reference_sync_target: str = ''

    # =========================================================================
    # Identity synchronization
    # =========================================================================

    identity_mgr_leads: str = ''
    identity_app_maps: str = ''

    # =========================================================================
    # Query templates
    # =========================================================================

    ecal_manager_hierarchy_query: str = DEFAULT_ECAL_MANAGER_HIERARCHY_QUERY
    sts_manager_hierarchy_query: str = DEFAULT_STS_MANAGER_HIERARCHY_QUERY

    log_level: str = 'INFO'

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def build_schema_map(self) -> Dict[str, str]:
        """
        Map each instance-environment key to its schema name.

        Raises:
            ValueError: If the two lists have different lengths.
        """
        keys = _split_list(self.instance_environments)
        schemas = _split_list(self.schema_names)
        if len(keys) != len(schemas):
            raise ValueError(
                "InstanceEnvironments count doesn't match SchemaNames count. "
                f"Got {len(keys)} environments and {len(schemas)} schemas"
            )
        return dict(zip(keys, schemas))

    def build_manager_leads(self) -> List[Tuple[str, str]]:
        """
        Pair each top-level manager email with its app-map tag, in configured order.

        Raises:
            ValueError: If the two lists have different lengths.
        """
        leads = _split_list(self.identity_mgr_leads)
        tags = _split_list(self.identity_app_maps)
        if len(leads) != len(tags):
            raise ValueError(
                "IdentityMgrLeads count doesn't match IdentityAppMaps count. "
                f"Got {len(leads)} leads and {len(tags)} tags"
            )
        return list(zip(leads, tags))


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Raises:
        pydantic.ValidationError: If required values (DATABASE_URL, SERVICE_USERNAME,
            SERVICE_PASSWORD) are missing.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
