"""
SQL statements used by the streaming bulk loaders.

Each template carries a {schema} placeholder filled with the schema resolved
from the reference sync target. Every value is bound positionally ($n); feed
dates arrive as YYYY-MM-DD strings and blank strings are stored as NULL.
"""

# Audit user written to createdby / lastupdatedby on rows the loaders touch.
LOADER_USER = 'cto_bizlogic_helper'

# Convert a bound text parameter to a DATE, NULL when blank.
_DATE = "TO_DATE(NULLIF(${n}, ''), 'YYYY-MM-DD')"
# Convert a bound text parameter to NUMERIC, NULL when blank.
_NUMBER = "NULLIF(${n}, '')::numeric"


def _date(n: int) -> str:
    return _DATE.format(n=n)


def _number(n: int) -> str:
    return _NUMBER.format(n=n)


# =============================================================================
# IDENTITY
# =============================================================================

EMPLOYEE_STAGING_TABLE = 'ORACLE_EMPLOYEES'

EMPLOYEE_INSERT = f"""
    INSERT INTO {{schema}}.ORACLE_EMPLOYEES (
        ID, EMPLOYEE_EMAIL_ADDRESS, ROLE, STATUS, RECORD_TYPE,
        TITLE, MGR, LOB, COST_CENTER, REGION,
        COUNTRY, START_DATE, END_DATE, CREATED_ON, CREATED_BY,
        UPDATED_ON, UPDATED_BY, EMPLOYEE_FULL_NAME, LDAP_STATUS, EVP,
        EVP_DIRECT, NEVER_PROCESS_LDAP, DO_NOT_UPDATE_FROM_LDAP, LOCK_REGION, LEFT_COMPANY_ON,
        INACTIVE, MGR_LEVEL, STATE, CITY, MGR_CHAIN,
        TOP_MGR_DIR_MINUS_1, TOP_MGR_DIR_MINUS_2, TOP_MGR_DIR_MINUS_3, TOP_MGR_DIR_MINUS_4, NUM_DIRECTS,
        NUM_USERS, OLDUID, CHAIN_LEVEL, ORACLE_UID, LOB_DETAIL,
        HIER_LEVEL, TOP_MGR_SEQ, LOB_TAG, LOB_TAG_PARENT
    ) VALUES (
        {_number(1)}, $2, $3, $4, $5,
        $6, $7, $8, $9, $10,
        $11, {_date(12)}, {_date(13)}, {_date(14)}, $15,
        {_date(16)}, $17, $18, $19, $20,
        $21, $22, $23, $24, {_date(25)},
        {_date(26)}, $27, $28, $29, $30,
        $31, $32, $33, $34, {_number(35)},
        {_number(36)}, $37, {_number(38)}, $39, $40,
        {_number(41)}, {_number(42)}, $43, $44
    )
"""


# =============================================================================
# OPPORTUNITY
# =============================================================================

OPPORTUNITY_STAGING_TABLE = 'LookupOpportunity'

OPPORTUNITY_INSERT = f"""
    INSERT INTO {{schema}}.LookupOpportunity (
        id, creationdate, lastupdatedate, createdby, lastupdatedby, abcschangenumber,
        opportunityid, summary, salesrep, projectedarr, anticipatedclosedate, winprobability,
        projectedtcv, integrationid, registryid, cimid, opportunitystatus, customername, territoryowner,
        opportunityvalue, forecasttypegroup, revenuelineid, revenuetype, revenuetypegroup,
        revenuelinestatus, revenuesalesstage, revenuepipelinek, revenuetcvk, revenueprobability,
        productclass, productpillar, productline, productgroup, productname, productdescription,
        workloadamount, consumptionstartdate, consumptionrampmonths,
        l2territoryname, l3territoryname, l2territoryemail, l3territoryemail
    ) VALUES (
        $1, NOW(), NOW(), '{LOADER_USER}', '{LOADER_USER}', NULL,
        $2, $3, $4, $5, {_date(6)}, $7,
        $8, $9, $10, $11, $12, $13, $14,
        $15, $16, $17, $18, $19,
        $20, $21, $22, $23, $24,
        $25, $26, $27, $28, $29, $30,
        $31, {_date(32)}, $33,
        $34, $35, $36, $37
    )
"""

# Applied to every feed record regardless of status so closed/lost
# opportunities are closed out in the master table too.
OPPORTUNITY_UPDATE = f"""
    UPDATE {{schema}}.Opportunity SET
        summary = $1,
        salesRep = $2,
        projectedARR = $3,
        projectedTCV = $4,
        opportunityStatus = $5,
        anticipatedCloseDate = {_date(6)},
        winProbability = $7,
        lastUpdatedBy = '{LOADER_USER}',
        lastUpdateDate = NOW()
    WHERE opportunityID = $8
"""

OPPORTUNITY_WORKLOAD_UPDATE = f"""
    UPDATE {{schema}}.OpportunityWorkload SET
        WorkloadDescription = $1,
        ConsumptionStartDate = {_date(2)},
        ConsumptionRampMonths = $3,
        WorkloadType = $4,
        lastUpdatedBy = '{LOADER_USER}',
        lastUpdateDate = NOW()
    WHERE id IN (
        SELECT w.id
        FROM {{schema}}.OpportunityWorkload w
        INNER JOIN {{schema}}.Opportunity o ON o.id = w.opportunity
        WHERE o.opportunityid = $5 AND w.workloadidentifier = $6
    )
"""


# =============================================================================
# ACCOUNT
# =============================================================================

ACCOUNT_STAGING_TABLE = 'LookupAccount'

ACCOUNT_INSERT = f"""
    INSERT INTO {{schema}}.LookupAccount (
        id, creationdate, lastupdatedate, createdby, lastupdatedby, abcschangenumber,
        CimId, CimParentId, AccountName, BusinessSegment, EndUserRegistryId,
        GlobalRegistryId, RegistryIdList, NacSeTeam, NatSeTeam, CimIDReg
    ) VALUES (
        $1, NOW(), NOW(), '{LOADER_USER}', '{LOADER_USER}', NULL,
        $2, $3, $4, $5, $6,
        $7, $8, $9, $10, $11
    )
"""
