"""
Dashboard Query Helper

One execution path for every read-only report endpoint:

1. Validate the instance environment and resolve its schema
2. Substitute %SCHEMA% in the query template
3. Fetch rows with positional parameters
4. Project each row into a JSON-ready dict

Query definitions pair a template with a row projection, so adding an endpoint
means adding a definition rather than another copy of the fetch loop.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

import asyncpg
from asyncpg import Pool

from bizlogic.sql.dashboard_queries import (
    ECAL_ARTIFACT_QUERY,
    ECAL_DATA_COLOR_INPUTS,
    ECAL_DATA_QUERY,
    STS_MANAGER_DASHBOARD_SUMMARY_QUERY,
    get_ecal_account_query,
    get_ecal_opportunity_query,
)


logger = logging.getLogger(__name__)

SCHEMA_PLACEHOLDER = '%SCHEMA%'
ECAL_PREFIX = 'ecal-'

Row = Mapping[str, Any]


class QueryError(Exception):
    """Raised when a dashboard query cannot be run for the given parameters."""


@dataclass(frozen=True)
class QueryDefinition:
    """
    A named report query.

    Attributes:
        name: Name used in log lines.
        template: SQL with %SCHEMA% and $n placeholders.
        projection: Converts one fetched row into a response item.
    """
    name: str
    template: str
    projection: Callable[[Row], Dict[str, Any]] = dict


def resolve_schema(schema_map: Mapping[str, str], instance_env: Optional[str]) -> str:
    if not instance_env:
        raise QueryError("instanceEnvironment query parameter is invalid")
    schema = schema_map.get(instance_env)
    if not schema:
        raise QueryError(f"instanceEnvironment [{instance_env}] is not mapped to a schema")
    return schema


def render(template: str, schema: str) -> str:
    return template.replace(SCHEMA_PLACEHOLDER, schema)


async def run_query(
    pool: Pool,
    schema_map: Mapping[str, str],
    definition: QueryDefinition,
    instance_env: Optional[str],
    *args: Any,
) -> List[Dict[str, Any]]:
    """
    Run a report query against the schema mapped to `instance_env`.

    Raises:
        QueryError: If the instance environment is missing or unmapped, or the
            database rejects the query.
    """
    schema = resolve_schema(schema_map, instance_env)
    query = render(definition.template, schema)
    try:
        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        raise QueryError(f"[{instance_env}] {definition.name}: Error running query: {exc}") from exc

    items = [definition.projection(row) for row in rows]
    logger.info(f"[{instance_env}] {definition.name}: results={len(items)}")
    return items


# =============================================================================
# Manager hierarchy
# =============================================================================

def manager_hierarchy_template(instance_env: str, ecal_template: str, sts_template: str) -> str:
    """ECAL environments (ecal-*) use the ECAL hierarchy; all others use STS."""
    if instance_env.startswith(ECAL_PREFIX):
        return ecal_template
    return sts_template


def format_manager_filter(manager_emails: List[str], fallback_email: str) -> str:
    """
    Build a front-end filter expression from a list of manager emails.

    ["a@x.com", "b@x.com"] -> "manager = 'a@x.com' or manager = 'b@x.com'"
    An empty list falls back to the requesting manager alone.
    """
    if not manager_emails:
        return f"manager = '{fallback_email}'"
    return ' or '.join(f"manager = '{email}'" for email in manager_emails)


async def get_manager_query(
    pool: Pool,
    schema_map: Mapping[str, str],
    manager_email: str,
    instance_env: Optional[str],
    ecal_template: str,
    sts_template: str,
) -> str:
    """Return the filter listing every manager at or below `manager_email`."""
    template = manager_hierarchy_template(instance_env or '', ecal_template, sts_template)
    definition = QueryDefinition('getManagerQuery', template, lambda row: {'email': row[0]})
    rows = await run_query(pool, schema_map, definition, instance_env, manager_email)
    query = format_manager_filter([row['email'] for row in rows], manager_email)
    logger.info(f"[{instance_env}] [{manager_email}] Query: {query}")
    return query


# =============================================================================
# Row projections
# =============================================================================

def is_admin(value: Optional[str]) -> bool:
    """Interpret the isAdmin query parameter: "true" or "yes", case-insensitive."""
    return (value or '').lower() in ('true', 'yes')


def _flag(value: Any) -> bool:
    return value is not None and int(value) == 1


def _as_int(value: Any) -> int:
    return int(value) if value is not None else 0


def _as_text(value: Any) -> str:
    return '' if value is None else str(value)


def calculate_color(
    csa: int,
    consumption_plan: int,
    current_state: int,
    future_state: int,
    security: int,
    technical: int,
    poc: int,
    cc_involved: int,
    cc_sar: int,
) -> str:
    """
    Rate a workload's technical health Red / Yellow / Green.

    Six checks always count. A required POC and Cloud@Customer involvement each
    add one more check (scored by the POC flag and the SAR flag respectively).
    A score of 2 or less is R; anything short of every check done is Y.
    """
    total = 6
    score = csa + consumption_plan + current_state + future_state + security + technical
    if poc == 1:
        total += 1
        score += poc
    if cc_involved == 1:
        total += 1
        score += cc_sar
    if score <= 2:
        return 'R'
    if score < total:
        return 'Y'
    return 'G'


def project_ecal_opportunity(row: Row) -> Dict[str, Any]:
    item = dict(row)
    commercial = item.pop('CommercialBlockers')
    technical = item.pop('TechnicalBlockers')
    item['POC'] = _flag(item['POC'])
    item['Blockers'] = _flag(commercial) or _flag(technical)
    return item


def project_ecal_artifact(row: Row) -> Dict[str, Any]:
    return {key: _as_text(value) for key, value in dict(row).items()}


def project_ecal_data(row: Row) -> Dict[str, Any]:
    values = dict(row)
    # Missing artifact rows count as not done.
    inputs = [_as_int(values.pop(name)) for name in ECAL_DATA_COLOR_INPUTS]
    item = {key: _as_text(value) for key, value in values.items()}
    item['color'] = calculate_color(*inputs)
    return item


# =============================================================================
# Definitions
# =============================================================================

STS_MANAGER_DASHBOARD_SUMMARY = QueryDefinition(
    'getSTSManagerDashboardSummary', STS_MANAGER_DASHBOARD_SUMMARY_QUERY,
)

ECAL_ARTIFACTS = QueryDefinition('getECALArtifactQuery', ECAL_ARTIFACT_QUERY, project_ecal_artifact)

ECAL_DATA = QueryDefinition('getECALDataQuery', ECAL_DATA_QUERY, project_ecal_data)


def ecal_account_definition(admin: bool) -> QueryDefinition:
    return QueryDefinition('getECALAccountQuery', get_ecal_account_query(admin))


def ecal_opportunity_definition(admin: bool) -> QueryDefinition:
    return QueryDefinition(
        'getECALOpportunityQuery', get_ecal_opportunity_query(admin), project_ecal_opportunity,
    )
