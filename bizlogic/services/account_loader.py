"""
Account Loader

Loads the account feed into <schema>.LookupAccount. The business segment string
is collapsed to one canonical segment and PAYGO (NAC HQ) accounts are skipped.
Both SE team lists are tokenized into "email-role" pairs for the front end.
"""

from asyncpg import Connection

from bizlogic.models.enums import BusinessSegment, DataType
from bizlogic.models.schemas import AccountRecord
from bizlogic.services.bulk_loader import StreamingBulkLoader
from bizlogic.services.transforms import collapse_business_segment, tokenize_se_list
from bizlogic.sql.loader_statements import ACCOUNT_INSERT, ACCOUNT_STAGING_TABLE


class AccountLoader(StreamingBulkLoader):
    kind = DataType.ACCOUNT
    staging_table = ACCOUNT_STAGING_TABLE
    record_model = AccountRecord

    def __init__(self, context):
        super().__init__(context)
        self._insert = None

    async def prepare(self, conn: Connection, schema: str) -> None:
        self._insert = await conn.prepare(ACCOUNT_INSERT.format(schema=schema))

    async def process(self, account: AccountRecord, ordinal: int) -> None:
        segment = collapse_business_segment(account.bus_segment_str)
        if segment == BusinessSegment.PAYGO:
            return

        await self._insert.fetch(
            ordinal,
            account.cim_id,
            account.cim_id_parent,
            account.account_name,
            segment.value,
            account.end_user_registry_id,
            account.end_user_orcl_glb_ult_reg_id,
            account.end_user_registry_id_str,
            tokenize_se_list(account.nac_SE_Team),
            tokenize_se_list(account.nat_SE_Team),
            account.cim_id_reg,
        )
        self.rows_loaded += 1

    def summary(self) -> str:
        return f"processed {self.records_read} accounts and loaded {self.rows_loaded}"
