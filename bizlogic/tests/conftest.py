"""
Pytest Configuration and Shared Fixtures for Business Logic Helper Tests.

This module provides fixtures for all backend tests, supporting:
- Async test execution with pytest-asyncio (registered through its entry point)
- A real Settings object built from init kwargs (no environment needed)
- An in-memory asyncpg stand-in with transaction rollback, so loader tests can
  assert on staging table contents before and after a run
- An httpx AsyncClient bound to the FastAPI app through ASGITransport
- Helpers for writing {"items": [...]} chunk files

Dependency References:
- bizlogic/core/config.py: Settings
- bizlogic/core/context.py: AppContext
- bizlogic/main.py: FastAPI app and loader wiring
"""

import copy
import json
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple

import asyncpg
import httpx
import pytest
import pytest_asyncio

from bizlogic.core.config import Settings
from bizlogic.core.context import AppContext


# ============================================================
# CONSTANTS
# ============================================================

REFERENCE_ENV = 'ecal-dev'
REFERENCE_SCHEMA = 'REF'
SERVICE_USER = 'svc'
SERVICE_PASSWORD = 'secret'


# ============================================================
# IN-MEMORY DATABASE
# ============================================================

_TABLE_RE = re.compile(r'(?:INSERT INTO|UPDATE|DELETE FROM)\s+([\w.]+)', re.IGNORECASE)
_COUNT_RE = re.compile(r'SELECT count\(\*\) FROM\s+([\w.]+)', re.IGNORECASE)


def _table_of(sql: str, pattern: re.Pattern = _TABLE_RE) -> Optional[str]:
    match = pattern.search(sql)
    return match.group(1).lower() if match else None


class FakeDatabase:
    """
    Minimal asyncpg pool stand-in.

    Inserted rows are stored per lowercased "<schema>.<table>" as argument
    tuples; UPDATE arguments are recorded separately. Leaving a transaction
    with an exception restores both to their state at BEGIN.

    Attributes:
        fail_when: Optional predicate (sql, args) -> bool. When it returns True
            the statement raises asyncpg.InterfaceError.
        fetch_rows: Rows returned by conn.fetch().
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Tuple[Any, ...]]] = {}
        self.updates: Dict[str, List[Tuple[Any, ...]]] = {}
        self.prepared: List[str] = []
        self.fetched: List[Tuple[str, Tuple[Any, ...]]] = []
        self.fetch_rows: List[Any] = []
        self.fail_when: Optional[Callable[[str, Tuple[Any, ...]], bool]] = None
        self.acquire_error: Optional[BaseException] = None
        self.active_transactions = 0
        self.max_active_transactions = 0

    # --- inspection helpers ---

    def rows(self, table: str) -> List[Tuple[Any, ...]]:
        return self.tables.get(table.lower(), [])

    def updated(self, table: str) -> List[Tuple[Any, ...]]:
        return self.updates.get(table.lower(), [])

    def seed(self, table: str, rows: List[Tuple[Any, ...]]) -> None:
        self.tables[table.lower()] = list(rows)

    # --- statement execution ---

    def apply(self, sql: str, args: Tuple[Any, ...]) -> None:
        if self.fail_when is not None and self.fail_when(sql, args):
            raise asyncpg.InterfaceError(f"injected failure for {sql.split()[0]}")
        table = _table_of(sql)
        verb = sql.strip().split()[0].upper()
        if verb == 'INSERT':
            self.tables.setdefault(table, []).append(args)
        elif verb == 'UPDATE':
            self.updates.setdefault(table, []).append(args)
        elif verb == 'DELETE':
            self.tables[table] = []

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator['FakeConnection', None]:
        if self.acquire_error is not None:
            raise self.acquire_error
        yield FakeConnection(self)

    async def close(self) -> None:
        pass


class FakeStatement:
    def __init__(self, db: FakeDatabase, sql: str):
        self.db = db
        self.sql = sql

    async def fetch(self, *args: Any) -> List[Any]:
        self.db.apply(self.sql, args)
        return []


class FakeTransaction:
    def __init__(self, db: FakeDatabase):
        self.db = db
        self._saved: Tuple[Dict, Dict] = ({}, {})

    async def __aenter__(self) -> 'FakeTransaction':
        self._saved = (copy.deepcopy(self.db.tables), copy.deepcopy(self.db.updates))
        self.db.active_transactions += 1
        self.db.max_active_transactions = max(self.db.max_active_transactions, self.db.active_transactions)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.db.active_transactions -= 1
        if exc_type is not None:
            self.db.tables, self.db.updates = self._saved
        return False


class FakeConnection:
    def __init__(self, db: FakeDatabase):
        self.db = db

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self.db)

    async def execute(self, sql: str, *args: Any) -> str:
        self.db.apply(sql, args)
        return 'OK'

    async def prepare(self, sql: str) -> FakeStatement:
        self.db.prepared.append(sql)
        return FakeStatement(self.db, sql)

    async def fetch(self, sql: str, *args: Any) -> List[Any]:
        if self.db.fail_when is not None and self.db.fail_when(sql, args):
            raise asyncpg.InterfaceError("injected failure for fetch")
        self.db.fetched.append((sql, args))
        return list(self.db.fetch_rows)

    async def fetchval(self, sql: str, *args: Any) -> Any:
        if self.db.fail_when is not None and self.db.fail_when(sql, args):
            raise asyncpg.InterfaceError("injected failure for fetchval")
        table = _table_of(sql, _COUNT_RE)
        if table is not None:
            return len(self.db.rows(table))
        return 1


# ============================================================
# SETTINGS / CONTEXT FIXTURES
# ============================================================

@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Real Settings with a temporary chunk directory and snapshot path."""
    return Settings(
        database_url='postgresql://bizlogic:pw@localhost:5432/bizlogic',
        service_username=SERVICE_USER,
        service_password=SERVICE_PASSWORD,
        identity_filename=str(tmp_path / 'identities.json'),
        chunk_directory=str(tmp_path),
        instance_environments=f'{REFERENCE_ENV},sts-dev',
        schema_names=f'{REFERENCE_SCHEMA},STS',
        reference_sync_target=REFERENCE_ENV,
        identity_mgr_leads='mgr1@x.com,mgr2@x.com',
        identity_app_maps='cto,ecal',
    )


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def app_context(settings: Settings, fake_db: FakeDatabase) -> AppContext:
    return AppContext.from_settings(settings, fake_db)


# ============================================================
# HTTP CLIENT FIXTURE
# ============================================================

@pytest_asyncio.fixture
async def client(app_context: AppContext) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    AsyncClient against the real app with app.state populated by hand.

    ASGITransport does not run the lifespan handler, so no database is needed.
    The dispatcher is reachable as client.dispatcher for tests that need to
    wait on background loads.
    """
    from bizlogic.main import app, build_dispatcher
    from bizlogic.services.chunk_assembler import ChunkAssembler
    from bizlogic.services.ingestion import IngestionCoordinator

    dispatcher = build_dispatcher(app_context)
    dispatcher.start()
    app.state.context = app_context
    app.state.dispatcher = dispatcher
    app.state.coordinator = IngestionCoordinator(
        ChunkAssembler(app_context.settings.chunk_directory), dispatcher,
    )

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url='http://testserver',
        auth=(SERVICE_USER, SERVICE_PASSWORD),
    ) as http_client:
        http_client.dispatcher = dispatcher
        yield http_client

    await dispatcher.stop()


# ============================================================
# DATA HELPERS
# ============================================================

def write_items(path: Path, items: List[Dict[str, Any]], indent: Optional[int] = None) -> Path:
    """Write a chunk file shaped {"items": [...]}."""
    path.write_text(json.dumps({'items': items}, indent=indent), encoding='utf-8')
    return path


def employee(**overrides: Any) -> Dict[str, Any]:
    record = {
        'id': '1001',
        'employee_email_address': 'jane.doe@x.com',
        'employee_full_name': 'Jane Doe',
        'mgr': 'mgr1@x.com',
        'lob': 'CTO',
        'mgr_chain': 'jane.doe@x.com // mgr1@x.com // ceo@x.com',
        'start_date': '2019-04-01T00:00:00Z',
        'num_directs': '3',
        'lob_tag': 'NACI',
        'lob_tag_parent': '',
    }
    record.update(overrides)
    return record


def opportunity(**overrides: Any) -> Dict[str, Any]:
    record = {
        'opportunity_id': 'O1',
        'opportunity_name': 'Cloud migration',
        'opportunity_owner': 'rep@x.com',
        'territory_owner': 'terr@x.com',
        'opportunity_status': 'Open',
        'close_date': '2021-06-30T00:00:00Z',
        'opp_probability': '40',
        'oppty_amount_k': '250',
        'revenue_line_id': 'RL1',
        'rev_sales_stage': 'Qualify',
        'rev_pipeline_k': '120',
        'rev_tcv_k': '150',
        'rev_probability': '60',
        'product_group': 'Compute',
        'product_description': 'VM shapes',
        'opp_total_workload_k': '10',
        'consumption_start_date': '2021-07-01T00:00:00Z',
        'cons_ramp_months': '6',
    }
    record.update(overrides)
    return record


def account(**overrides: Any) -> Dict[str, Any]:
    record = {
        'cim_id': 'C1',
        'cim_id_parent': 'CP1',
        'cim_id_reg': 'CR1',
        'account_name': 'Acme',
        'bus_segment_str': 'NATD ISV:NATD Public Sector',
        'end_user_registry_id': 'R1',
        'end_user_orcl_glb_ult_reg_id': 'G1',
        'end_user_registry_id_str': 'R1,R2',
        'nac_SE_Team': 'a@x.com - ECA, b@y.com - Hub SE',
        'nat_SE_Team': 'null',
    }
    record.update(overrides)
    return record
