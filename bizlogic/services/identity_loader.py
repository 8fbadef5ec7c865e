"""
Identity Loader

Loads the corporate employee feed into <schema>.ORACLE_EMPLOYEES and writes the
identity snapshot consumed by directory synchronization.

Two independent gates apply per employee:
- Staging insert: every employee except departed ones (LOB "X-LEFT ORACLE" /
  "P-LEFT ORACLE") and placeholder rows with neither an id nor an email.
- Snapshot inclusion: inserted employees whose management chain contains one of
  the configured manager leads, tagged with that lead's app map.

The snapshot is only written once the transaction has committed, via a temp
file renamed over the configured path so readers never see a partial file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import List

from asyncpg import Connection

from bizlogic.models.enums import DataType
from bizlogic.models.schemas import EmployeeRecord, IdentitySnapshotEntry
from bizlogic.services.bulk_loader import StreamingBulkLoader
from bizlogic.services.transforms import (
    convert_email_to_dn,
    match_management_chain,
    parse_int,
    split_full_name,
    truncate_date,
)
from bizlogic.sql.loader_statements import EMPLOYEE_INSERT, EMPLOYEE_STAGING_TABLE


DEPARTED_LOBS = frozenset({'X-LEFT ORACLE', 'P-LEFT ORACLE'})

DATE_FIELDS = ('start_date', 'end_date', 'created_on', 'updated_on', 'left_company_on', 'inactive')


def is_placeholder(person: EmployeeRecord) -> bool:
    """A placeholder row carries neither an employee id nor an email address."""
    return not person.id.strip() and not person.employee_email_address.strip()


def should_load(person: EmployeeRecord) -> bool:
    return person.lob not in DEPARTED_LOBS and not is_placeholder(person)


class IdentityLoader(StreamingBulkLoader):
    kind = DataType.IDENTITY
    staging_table = EMPLOYEE_STAGING_TABLE
    record_model = EmployeeRecord

    def __init__(self, context):
        super().__init__(context)
        self.snapshot: List[IdentitySnapshotEntry] = []
        self._insert = None

    def reset(self) -> None:
        super().reset()
        self.snapshot = []

    async def prepare(self, conn: Connection, schema: str) -> None:
        self._insert = await conn.prepare(EMPLOYEE_INSERT.format(schema=schema))

    async def process(self, person: EmployeeRecord, ordinal: int) -> None:
        for name in DATE_FIELDS:
            setattr(person, name, truncate_date(getattr(person, name)))
        if not person.lob_tag_parent:
            person.lob_tag_parent = person.lob_tag

        if not should_load(person):
            return

        await self._insert.fetch(
            person.id, person.employee_email_address, person.role, person.status, person.record_type,
            person.title, person.mgr, person.lob, person.cost_center, person.region,
            person.country, person.start_date, person.end_date, person.created_on, person.created_by,
            person.updated_on, person.updated_by, person.employee_full_name, person.ldap_status, person.evp,
            person.evp_direct, person.never_process_ldap, person.do_not_update_from_ldap, person.lock_region,
            person.left_company_on, person.inactive, person.mgr_level, person.state, person.city,
            person.mgr_chain, person.top_mgr_dir_minus_1, person.top_mgr_dir_minus_2,
            person.top_mgr_dir_minus_3, person.top_mgr_dir_minus_4, person.num_directs,
            person.num_users, person.olduid, person.chain_level, person.oracle_uid, person.lob_detail,
            person.hier_level, person.top_mgr_seq, person.lob_tag, person.lob_tag_parent,
        )
        self.rows_loaded += 1

        app_map = match_management_chain(person.mgr_chain, self.context.manager_leads)
        if app_map is not None:
            self.snapshot.append(self.snapshot_entry(person, app_map, ordinal))

    def snapshot_entry(self, person: EmployeeRecord, app_map: str, ordinal: int) -> IdentitySnapshotEntry:
        given, surname = split_full_name(person.employee_full_name)
        return IdentitySnapshotEntry(
            id=person.employee_email_address,
            sn=surname,
            manager=convert_email_to_dn(person.mgr),
            mail=person.employee_email_address,
            givenname=given,
            displayname=person.employee_full_name,
            mgr_chain=person.mgr_chain,
            lob=person.lob_tag,
            lob_parent=person.lob_tag_parent,
            num_directs=parse_int(person.num_directs, 'num_directs', ordinal),
            app_map=app_map,
        )

    async def after_commit(self) -> None:
        path = Path(self.context.settings.identity_filename)
        try:
            write_snapshot(path, self.snapshot)
        except OSError as exc:
            # The load itself committed; only the snapshot is stale.
            self.logger.error(f"Error writing identity snapshot [{path}]: {exc}")

    def summary(self) -> str:
        return (
            f"processed {self.records_read} employees, loaded {self.rows_loaded} current employees "
            f"and wrote {len(self.snapshot)} employees to {self.context.settings.identity_filename}"
        )


def write_snapshot(path: Path, entries: List[IdentitySnapshotEntry]) -> None:
    """Atomically replace the snapshot file with {"items": [...]}."""
    document = {'items': [entry.model_dump() for entry in entries]}
    replace_file(path, json.dumps(document).encode('utf-8'))


def replace_file(path: Path, data: bytes) -> None:
    """Write `data` to a temp file beside `path`, then rename it over `path`."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, 'wb') as fp:
            fp.write(data)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
