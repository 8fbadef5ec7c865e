"""
Pydantic models for externally sourced reference data feeds.

Field names match the JSON keys emitted by the upstream feeds so elements decoded
from the chunk files validate directly with `model_validate`. Every feed field is
string-typed upstream (dates as ISO strings, numbers as strings); normalization
and numeric parsing happen in bizlogic.services.transforms, not here.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeedRecord(BaseModel):
    """
    Base for all feed records.

    JSON null becomes "" and scalar numbers/booleans become their string form, so
    a sparse or loosely typed feed still decodes. Nested objects or arrays in a
    string field fail validation and abort the load as a decode error.
    """

    model_config = ConfigDict(extra='ignore')

    @field_validator('*', mode='before')
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        if value is None:
            return ''
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, (int, float)):
            return str(value)
        return value


class EmployeeRecord(FeedRecord):
    """One employee from the corporate identity feed."""

    id: str = ''
    employee_email_address: str = ''
    role: str = ''
    status: str = ''
    record_type: str = ''
    title: str = ''
    mgr: str = ''
    lob: str = ''
    cost_center: str = ''
    region: str = ''
    country: str = ''
    start_date: str = ''
    end_date: str = ''
    created_on: str = ''
    created_by: str = ''
    updated_on: str = ''
    updated_by: str = ''
    employee_full_name: str = ''
    ldap_status: str = ''
    evp: str = ''
    evp_direct: str = ''
    never_process_ldap: str = ''
    do_not_update_from_ldap: str = ''
    lock_region: str = ''
    left_company_on: str = ''
    inactive: str = ''
    mgr_level: str = ''
    state: str = ''
    city: str = ''
    mgr_chain: str = ''
    top_mgr_dir_minus_1: str = ''
    top_mgr_dir_minus_2: str = ''
    top_mgr_dir_minus_3: str = ''
    top_mgr_dir_minus_4: str = ''
    num_directs: str = ''
    num_users: str = ''
    olduid: str = ''
    chain_level: str = ''
    oracle_uid: str = ''
    lob_detail: str = ''
    hier_level: str = ''
    top_mgr_seq: str = ''
    lob_tag: str = ''
    lob_tag_parent: str = ''


class OpportunityRecord(FeedRecord):
    """One sales opportunity revenue line from the opportunity export."""

    opportunity_id: str = ''
    opportunity_name: str = ''
    opportunity_owner: str = ''
    territory_owner: str = ''
    opportunity_status: str = ''
    close_date: str = ''
    customer_name: str = ''
    opp_probability: str = ''
    opty_int_id: str = ''
    registry_id: str = ''
    cim_id: str = ''
    oppty_amount_k: str = ''
    forecast_type_group: str = ''
    revenue_line_id: str = ''
    revenue_type: str = ''
    revenue_type_group: str = ''
    revenue_line_status: str = ''
    rev_sales_stage: str = ''
    rev_pipeline_k: str = ''
    rev_tcv_k: str = ''
    rev_probability: str = ''
    product_class: str = ''
    product_pillar: str = ''
    product_line: str = ''
    product_group: str = ''
    product_name: str = ''
    product_description: str = ''
    opp_total_workload_k: str = ''
    consumption_start_date: str = ''
    cons_ramp_months: str = ''
    level_2_territory_name: str = ''
    level_3_territory_name: str = ''
    level_2_territory_owner_email: str = ''
    level_3_territory_owner_email: str = ''


class AccountRecord(FeedRecord):
    """One customer account from the account feed."""

    cim_id: str = ''
    cim_id_parent: str = ''
    cim_id_reg: str = ''
    account_name: str = ''
    bus_segment_str: str = ''
    end_user_registry_id: str = ''
    end_user_orcl_glb_ult_reg_id: str = ''
    end_user_registry_id_str: str = ''
    nac_SE_Team: str = ''
    nat_SE_Team: str = ''


class IdentitySnapshotEntry(BaseModel):
    """One employee in the identity snapshot consumed by directory synchronization."""

    id: str
    sn: str
    manager: str
    mail: str
    givenname: str
    displayname: str
    mgr_chain: str
    lob: str
    lob_parent: str
    num_directs: int = Field(default=0)
    app_map: str
