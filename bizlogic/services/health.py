"""
Health checks for load balancer probes.

Every check runs on each probe so one response names every failure:

- CONFIG: the reference sync target maps to a schema
- DB_ACCESS: the database answers a trivial query
- ACCOUNT_DATA / ACCOUNT_COUNT: LookupAccount is queryable / non-empty
- OPPORTUNITY_DATA / OPPORTUNITY_COUNT: LookupOpportunity is queryable / non-empty
- IDENTITY_DATA: the identity snapshot file exists and is readable
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import asyncpg

from bizlogic.core.context import AppContext
from bizlogic.sql.dashboard_queries import HEALTH_COUNT_QUERY, HEALTH_DB_QUERY
from bizlogic.sql.loader_statements import ACCOUNT_STAGING_TABLE, OPPORTUNITY_STAGING_TABLE


logger = logging.getLogger(__name__)

HEALTH_OK = 'HEALTH_OK'
HEALTH_NOT_OK = 'HEALTH_NOT_OK'

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


@dataclass
class HealthReport:
    failures: List[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.failures

    def fail(self, code: str, message: str) -> None:
        logger.error(f"{code} healthcheck failed: {message}")
        self.failures.append(code)

    def render(self) -> str:
        if self.healthy:
            return HEALTH_OK
        return ':'.join([HEALTH_NOT_OK, *self.failures])


async def _check_table(
    context: AppContext,
    report: HealthReport,
    schema: Optional[str],
    table: str,
    prefix: str,
) -> None:
    if not schema:
        report.fail(f"{prefix}_DATA", f"no schema to query {table}")
        return
    try:
        async with context.pool.acquire() as conn:
            count = await conn.fetchval(HEALTH_COUNT_QUERY.format(schema=schema, table=table))
    except _DB_ERRORS as exc:
        report.fail(f"{prefix}_DATA", str(exc))
        return
    if not count:
        report.fail(f"{prefix}_COUNT", f"{table} has 0 rows")


async def check_health(context: AppContext) -> HealthReport:
    report = HealthReport()
    settings = context.settings

    schema = context.reference_schema
    if not schema:
        report.fail('CONFIG', f"Schema identifier [{settings.reference_sync_target}] not mappable")

    try:
        async with context.pool.acquire() as conn:
            await conn.fetchval(HEALTH_DB_QUERY)
    except _DB_ERRORS as exc:
        report.fail('DB_ACCESS', str(exc))

    await _check_table(context, report, schema, ACCOUNT_STAGING_TABLE, 'ACCOUNT')
    await _check_table(context, report, schema, OPPORTUNITY_STAGING_TABLE, 'OPPORTUNITY')

    try:
        with open(settings.identity_filename, 'rb') as fp:
            fp.read(1)
    except OSError as exc:
        report.fail('IDENTITY_DATA', str(exc))

    return report
