"""
Opportunity Loader

Loads the opportunity export into <schema>.LookupOpportunity and pushes the
latest values onto the master Opportunity and OpportunityWorkload rows.

Per record:
- Close and consumption start dates are truncated to YYYY-MM-DD
- A blank owner falls back to the territory owner
- A zero workload probability falls back to the win probability
- A blank product description becomes "Unspecified"
- Amounts arrive in thousands and are stored ×1000

Only Open and Won opportunities are staged. The master updates run for every
record, which is how previously open opportunities get closed out.
"""

from decimal import Decimal

from asyncpg import Connection

from bizlogic.models.enums import DataType, OpportunityStatus
from bizlogic.models.schemas import OpportunityRecord
from bizlogic.services.bulk_loader import StreamingBulkLoader
from bizlogic.services.transforms import parse_decimal, parse_int, scale_amount, truncate_date
from bizlogic.sql.loader_statements import (
    OPPORTUNITY_INSERT,
    OPPORTUNITY_STAGING_TABLE,
    OPPORTUNITY_UPDATE,
    OPPORTUNITY_WORKLOAD_UPDATE,
)


STAGED_STATUSES = frozenset(status.value for status in OpportunityStatus)

UNSPECIFIED_PRODUCT = 'Unspecified'


class OpportunityLoader(StreamingBulkLoader):
    kind = DataType.OPPORTUNITY
    staging_table = OPPORTUNITY_STAGING_TABLE
    record_model = OpportunityRecord

    def __init__(self, context):
        super().__init__(context)
        self._insert = None
        self._update_opportunity = None
        self._update_workload = None

    async def prepare(self, conn: Connection, schema: str) -> None:
        self._insert = await conn.prepare(OPPORTUNITY_INSERT.format(schema=schema))
        self._update_opportunity = await conn.prepare(OPPORTUNITY_UPDATE.format(schema=schema))
        self._update_workload = await conn.prepare(OPPORTUNITY_WORKLOAD_UPDATE.format(schema=schema))

    async def process(self, opp: OpportunityRecord, ordinal: int) -> None:
        opportunity_value = scale_amount(opp.oppty_amount_k, 'oppty_amount_k', ordinal)
        pipeline = scale_amount(opp.rev_pipeline_k, 'rev_pipeline_k', ordinal)
        tcv = scale_amount(opp.rev_tcv_k, 'rev_tcv_k', ordinal)
        workload_amount = scale_amount(opp.opp_total_workload_k, 'opp_total_workload_k', ordinal)
        ramp_months: Decimal = parse_decimal(opp.cons_ramp_months, 'cons_ramp_months', ordinal)
        win_probability = parse_int(opp.opp_probability, 'opp_probability', ordinal)
        workload_probability = parse_int(opp.rev_probability, 'rev_probability', ordinal)

        close_date = truncate_date(opp.close_date)
        consumption_start = truncate_date(opp.consumption_start_date)
        owner = opp.opportunity_owner or opp.territory_owner
        if workload_probability == 0:
            workload_probability = win_probability
        product_description = opp.product_description or UNSPECIFIED_PRODUCT

        if opp.opportunity_status in STAGED_STATUSES:
            await self._insert.fetch(
                ordinal, opp.opportunity_id, opp.opportunity_name, owner, pipeline, close_date, win_probability,
                tcv, opp.opty_int_id, opp.registry_id, opp.cim_id, opp.opportunity_status, opp.customer_name,
                opp.territory_owner, opportunity_value, opp.forecast_type_group, opp.revenue_line_id,
                opp.revenue_type, opp.revenue_type_group, opp.revenue_line_status, opp.rev_sales_stage,
                pipeline, tcv, workload_probability, opp.product_class, opp.product_pillar, opp.product_line,
                opp.product_group, opp.product_name, product_description, workload_amount, consumption_start,
                ramp_months, opp.level_2_territory_name, opp.level_3_territory_name,
                opp.level_2_territory_owner_email, opp.level_3_territory_owner_email,
            )
            self.rows_loaded += 1

        await self._update_opportunity.fetch(
            opp.opportunity_name, owner, pipeline, tcv, opp.opportunity_status, close_date, win_probability,
            opp.opportunity_id,
        )
        await self._update_workload.fetch(
            product_description, consumption_start, ramp_months, opp.product_group,
            opp.opportunity_id, opp.revenue_line_id,
        )

    def summary(self) -> str:
        return f"processed {self.records_read} opportunities with {self.rows_loaded} in Open/Won state"
