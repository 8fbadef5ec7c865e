"""
Parameterized SQL for the dashboard and report endpoints.

Every template uses %SCHEMA% for the schema mapped to the caller's instance
environment and positional $n parameters. Column aliases are double-quoted where
the JSON key is mixed case, so rows convert to response items with dict(row).

Queries:
    - STS manager dashboard summary (solution engineers under a manager)
    - ECAL account list (all accounts for admins, hierarchy-scoped otherwise)
    - ECAL opportunity list (same scoping as accounts)
    - ECAL artifact curation list (artifacts uploaded in the last 180 days)
    - ECAL workload data (one row per opportunity with health inputs)
"""

# Managers at or below $1 in the ECAL reporting structure.
ECAL_MANAGER_SCOPE_CTE = """
    WITH RECURSIVE reports AS (
        SELECT u.useremail, u.rolename FROM %SCHEMA%.User1 u WHERE u.useremail = $1
        UNION
        SELECT u.useremail, u.rolename FROM %SCHEMA%.User1 u
        INNER JOIN reports rep ON u.manager = rep.useremail
    ),
    managers AS (
        SELECT rep.useremail
        FROM reports rep
        INNER JOIN %SCHEMA%.RoleType r ON rep.rolename = r.id
        WHERE r.rolename = 'Manager'
    )
"""

ECAL_MANAGER_SCOPE_FILTER = """
    WHERE u.useremail = $1 OR u.manager IN (SELECT useremail FROM managers)
"""


# =============================================================================
# STS
# =============================================================================

STS_MANAGER_DASHBOARD_SUMMARY_QUERY = """
    WITH RECURSIVE reports AS (
        SELECT u.useremail, u.rolename FROM %SCHEMA%.STSUser u WHERE u.useremail = $1
        UNION
        SELECT u.useremail, u.rolename FROM %SCHEMA%.STSUser u
        INNER JOIN reports rep ON u.manager = rep.useremail
    )
    SELECT su.id AS "id",
        su.firstname || ' ' || su.lastname AS "name",
        su.useremail AS "email",
        p.id AS "pathId",
        p.pathname AS "pathName",
        (
            SELECT count(pr.id)
            FROM %SCHEMA%.STSAPathReq pr
            WHERE pr.pathname = su.path
        ) AS "totalTasksInPath",
        (
            SELECT count(stat.id)
            FROM %SCHEMA%.STSAUserStatus stat
            INNER JOIN %SCHEMA%.STSPath sp ON su.path = sp.id
            INNER JOIN %SCHEMA%.STSTask t ON stat.taskname = t.id
            INNER JOIN %SCHEMA%.STSAPathReq pr ON t.id = pr.taskname AND sp.id = pr.pathname
            WHERE stat.useremail = su.id AND stat.taskstatus = 2
        ) AS "tasksCompleted",
        (
            SELECT count(stat.id)
            FROM %SCHEMA%.STSAUserStatus stat
            INNER JOIN %SCHEMA%.STSPath sp ON su.path = sp.id
            INNER JOIN %SCHEMA%.STSTask t ON stat.taskname = t.id
            INNER JOIN %SCHEMA%.STSAPathReq pr ON t.id = pr.taskname AND sp.id = pr.pathname
            WHERE stat.useremail = su.id AND stat.taskstatus = 3
        ) AS "tasksValidated",
        TO_CHAR(COALESCE(
            (SELECT max(stat.lastupdatedate) FROM %SCHEMA%.STSAUserStatus stat WHERE stat.useremail = su.id),
            su.lastupdatedate), 'MM/DD/YYYY') AS "lastActivity"
    FROM %SCHEMA%.STSUser su
    INNER JOIN %SCHEMA%.STSPath p ON su.path = p.id
    WHERE su.manager IN (
        SELECT rep.useremail
        FROM reports rep
        INNER JOIN %SCHEMA%.STSRole r ON rep.rolename = r.id
        WHERE r.rolename = 'Manager'
    )
    ORDER BY "name" ASC
"""


# =============================================================================
# ECAL
# =============================================================================

ECAL_ACCOUNT_SELECT = """
    SELECT DISTINCT a.id AS "AccountID",
        l.lookupdescription AS "LOB",
        a.accountname AS "AccountName",
        a.createdby AS "SolutionEngineer",
        (SELECT count(*) FROM %SCHEMA%.Opportunity o WHERE o.account = a.id) AS "NumOpportunities"
    FROM %SCHEMA%.User1 u
    INNER JOIN %SCHEMA%.UserAccount ua ON ua.user1 = u.id
    INNER JOIN %SCHEMA%.Account a ON a.id = ua.account
    INNER JOIN %SCHEMA%.Lookup l ON l.id = a.accountlob AND l.lookuptype = 'LOB'
"""

ECAL_OPPORTUNITY_SELECT = """
    SELECT DISTINCT o.id AS "ID",
        a.id AS "AccountID",
        a.accountname AS "AccountName",
        o.opportunityid AS "OpportunityID",
        o.summary AS "Summary",
        COALESCE(o.projectedARR, 0) AS "ARR",
        COALESCE(o.ecalPercentComplete, 0) AS "ECALPercent",
        COALESCE(stg.stage, 'None') AS "LatestECALStage",
        TO_CHAR(o.lastupdatedate, 'MM/DD/YYYY') AS "LastActivity",
        COALESCE(o.pocRequired, 0) AS "POC",
        COALESCE(l.lookupdescription, 'None') AS "POCStatus",
        COALESCE(o.commercialBlockers, 0) AS "CommercialBlockers",
        COALESCE(o.technicalBlockers, 0) AS "TechnicalBlockers"
    FROM %SCHEMA%.User1 u
    INNER JOIN %SCHEMA%.UserAccount ua ON ua.user1 = u.id
    INNER JOIN %SCHEMA%.Account a ON a.id = ua.account
    INNER JOIN %SCHEMA%.Opportunity o ON o.account = a.id
    LEFT OUTER JOIN %SCHEMA%.ECALStage stg ON stg.id = o.lateststagedone
    LEFT OUTER JOIN %SCHEMA%.Lookup l ON l.id = o.pocstatus AND l.lookuptype = 'POC_STATUS'
"""


def scoped_query(select: str, order_by: str, is_admin: bool) -> str:
    """
    Build an ECAL list query.

    Admins see every row. Everyone else sees rows for themselves ($1) and for
    users whose manager sits at or below them in the hierarchy.
    """
    if is_admin:
        return f"{select}\n    ORDER BY {order_by}"
    return f"{ECAL_MANAGER_SCOPE_CTE}{select}{ECAL_MANAGER_SCOPE_FILTER}    ORDER BY {order_by}"


def get_ecal_account_query(is_admin: bool) -> str:
    return scoped_query(ECAL_ACCOUNT_SELECT, '"AccountName" ASC', is_admin)


def get_ecal_opportunity_query(is_admin: bool) -> str:
    return scoped_query(ECAL_OPPORTUNITY_SELECT, '"AccountName" ASC, "OpportunityID" ASC', is_admin)


ECAL_ARTIFACT_QUERY = """
    SELECT art.id AS id,
        acc.accountname AS account,
        o.opportunityid AS opp_id,
        sf.name AS solution_focus,
        ra.name AS artifact_type,
        art.lastupdatedby AS ce,
        TO_CHAR(art.lastupdatedate, 'MM-DD-YYYY') AS uploaded,
        art.location AS location
    FROM %SCHEMA%.opportunityartifacts art
    INNER JOIN %SCHEMA%.opportunity o ON art.opportunity = o.id
    INNER JOIN %SCHEMA%.account acc ON o.account = acc.id
    INNER JOIN %SCHEMA%.opportunitysolutionfocu osf ON osf.opportunity = o.id
    INNER JOIN %SCHEMA%.solutionfocus sf ON sf.id = osf.solutionfocus
    INNER JOIN %SCHEMA%.requiredartifacts ra ON art.artifact = ra.id
    WHERE CURRENT_DATE - art.lastupdatedate::date < 180
    ORDER BY art.lastupdatedate DESC
"""


def _artifact_done(alias: str, artifact_name: str) -> str:
    return (
        f"(SELECT {alias}.done FROM %SCHEMA%.OpportunityRequiredArti {alias} "
        f"INNER JOIN %SCHEMA%.RequiredArtifacts r{alias} ON {alias}.requiredartifact = r{alias}.id "
        f"WHERE o.id = {alias}.opportunity AND r{alias}.name = '{artifact_name}')"
    )


_LOGICAL_ARCHITECTURE = _artifact_done('ora1', 'Logical Architecture')
_ARCHITECTURE_DIAGRAM = _artifact_done('ora2', 'Architecture Diagram')
_INVENTORY_SPREADSHEET = _artifact_done('ora21', 'Inventory Spreadsheet')
_CONSUMPTION_PLAN = _artifact_done('ora3', 'Consumption Plan')

# The color_* columns feed calculate_color and are dropped from the response.
ECAL_DATA_QUERY = f"""
    SELECT DISTINCT o.id AS ecal_workload_id,
        a.id AS ecal_account_id,
        o.opportunityid AS opportunity_id,
        COALESCE(w.workloadtype, 'None') AS workload_type,
        w.workloadidentifier AS workload_identifier,
        a.accountname AS account_name,
        a.cimid AS cim_id,
        o.summary AS workload_summary,
        COALESCE(a.currentcsaexecuted, 0) AS color_csa,
        {_CONSUMPTION_PLAN} AS color_cp,
        {_ARCHITECTURE_DIAGRAM} AS color_cs,
        {_LOGICAL_ARCHITECTURE} AS color_fs,
        COALESCE(th.securitysignoffdone, 0) AS color_sec,
        COALESCE(th.technicalsignoffdone, 0) AS color_tech,
        COALESCE(th.pocrequired, 0) AS color_poc,
        COALESCE(th.cloudatcustomerinvolved, 0) AS color_cc_involved,
        COALESCE(th.cloudatcustomersardone, 0) AS color_cc_sar,
        COALESCE((SELECT stage FROM %SCHEMA%.EcalStage WHERE id = o.lateststagedone), 'None') AS latest_ecal_stage_done,
        COALESCE(a.currentcsaexecuted, 0) AS csa_executed,
        o.technicallead AS tech_lead,
        u.manager AS tech_manager,
        COALESCE(th.pocrequired, 0) AS poc_required,
        TO_CHAR(th.pocenddate, 'MM-DD-YYYY') AS poc_enddate,
        COALESCE(th.pocstatus, 'Not Started') AS poc_status,
        COALESCE(th.pocresolution, 'None') AS poc_resolution,
        COALESCE(th.securitysignoffdone, 0) AS security_signoff,
        COALESCE(th.technicalsignoffdone, 0) AS technical_signoff,
        COALESCE(th.consumptionplansignoff, 0) AS cons_plan_signoff,
        COALESCE(th.cloudatcustomerinvolved, 0) AS cc_involved,
        COALESCE(th.cloudatcustomersardone, 0) AS cc_done,
        COALESCE(th.technicalblockers, 0) AS tech_blockers,
        COALESCE(th.commercialblockers, 0) AS commercial_blockers,
        COALESCE(th.coronavirusimpact, 0) AS covid_impact,
        COALESCE(th.oracleconsultingengaged, 0) AS ocs_engaged,
        COALESCE(th.expansion, 0) AS expansion,
        th.technicaldecisionmakern AS tech_decider,
        TO_CHAR(th.technicalsignoffdate, 'MM-DD-YYYY') AS tech_signoff_date,
        th.migrationrunby AS migration_by,
        th.tigerseemail AS tiger_se_email,
        th.partnername AS partner_name,
        th.workloadprogressionstage AS workload_progression,
        th.adoptionowneremail AS adopter_email,
        th.adoptionownernametitle AS adopter_name,
        th.implementeremail AS implementer_email,
        th.implementernametitle AS implementer_name,
        {_LOGICAL_ARCHITECTURE} AS future_state_complete,
        COALESCE((
            SELECT ora2.done FROM %SCHEMA%.OpportunityRequiredArti ora2
            INNER JOIN %SCHEMA%.RequiredArtifacts rora2 ON ora2.requiredartifact = rora2.id
            WHERE o.id = ora2.opportunity AND rora2.name = 'Architecture Diagram'
            INTERSECT
            SELECT ora21.done FROM %SCHEMA%.OpportunityRequiredArti ora21
            INNER JOIN %SCHEMA%.RequiredArtifacts rora21 ON ora21.requiredartifact = rora21.id
            WHERE o.id = ora21.opportunity AND rora21.name = 'Inventory Spreadsheet'
        ), 0) AS current_state_complete,
        {_CONSUMPTION_PLAN} AS consumption_plan_complete,
        COALESCE(os.status, 'No Status Entered') AS latest_status,
        TO_CHAR(os.creationdate, 'MM-DD-YYYY') AS latest_status_date,
        os.lastupdatedby AS latest_status_author
    FROM %SCHEMA%.Opportunity o
    INNER JOIN %SCHEMA%.Account a ON a.id = o.account
    LEFT OUTER JOIN %SCHEMA%.OpportunityTechHealth th ON th.opportunity = o.id
    LEFT OUTER JOIN %SCHEMA%.OpportunityWorkload w ON w.opportunity = o.id
    LEFT OUTER JOIN %SCHEMA%.User1 u ON o.createdby = u.useremail
    LEFT OUTER JOIN %SCHEMA%.OpportunityStatus os ON o.id = os.opportunity
        AND NOT EXISTS (
            SELECT 1 FROM %SCHEMA%.OpportunityStatus os1
            WHERE os1.opportunity = o.id AND os1.creationdate > os.creationdate
        )
"""

ECAL_DATA_COLOR_INPUTS = (
    'color_csa', 'color_cp', 'color_cs', 'color_fs', 'color_sec',
    'color_tech', 'color_poc', 'color_cc_involved', 'color_cc_sar',
)


# =============================================================================
# HEALTH
# =============================================================================

HEALTH_DB_QUERY = "SELECT now()"

HEALTH_COUNT_QUERY = "SELECT count(*) FROM {schema}.{table}"
