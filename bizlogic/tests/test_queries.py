"""
Test suite for the dashboard query helper and its endpoints.

The tests verify:
1. Workload color rating (R/Y/G) including the optional POC and C@C checks
2. isAdmin parsing and manager filter formatting
3. Schema resolution and error wrapping in run_query
4. Row projections for the ECAL endpoints
5. Endpoint wiring: schema substitution, admin scoping and the generic 500
"""

import httpx
import pytest

from bizlogic.api.queries import QUERY_ERROR_MESSAGE
from bizlogic.services.queries import (
    ECAL_DATA,
    QueryDefinition,
    QueryError,
    calculate_color,
    format_manager_filter,
    is_admin,
    manager_hierarchy_template,
    project_ecal_artifact,
    project_ecal_data,
    project_ecal_opportunity,
    run_query,
)
from bizlogic.tests.conftest import FakeDatabase


SCHEMA_MAP = {'ecal-dev': 'REF', 'sts-dev': 'STS'}


# =============================================================================
# PURE HELPERS
# =============================================================================


class TestCalculateColor:

    @pytest.mark.parametrize('inputs, expected', [
        ((1, 1, 1, 1, 1, 1, 0, 0, 0), 'G'),
        ((1, 1, 1, 1, 1, 0, 0, 0, 0), 'Y'),
        ((1, 1, 1, 0, 0, 0, 0, 0, 0), 'Y'),
        ((1, 1, 0, 0, 0, 0, 0, 0, 0), 'R'),
        ((0, 0, 0, 0, 0, 0, 0, 0, 0), 'R'),
        # POC required and done counts as one more passed check.
        ((1, 1, 1, 1, 1, 1, 1, 0, 0), 'G'),
        # Cloud@Customer involved without a SAR leaves a check open.
        ((1, 1, 1, 1, 1, 1, 0, 1, 0), 'Y'),
        ((1, 1, 1, 1, 1, 1, 0, 1, 1), 'G'),
        ((1, 1, 0, 0, 0, 0, 1, 0, 0), 'Y'),
    ])
    def test_color(self, inputs: tuple, expected: str) -> None:
        assert calculate_color(*inputs) == expected


class TestParameterHelpers:

    @pytest.mark.parametrize('value, expected', [
        ('true', True), ('TRUE', True), ('yes', True), ('Yes', True),
        ('false', False), ('1', False), ('', False), (None, False),
    ])
    def test_is_admin(self, value, expected: bool) -> None:
        assert is_admin(value) is expected

    def test_manager_filter(self) -> None:
        assert format_manager_filter(['a@x.com', 'b@x.com'], 'boss@x.com') == (
            "manager = 'a@x.com' or manager = 'b@x.com'"
        )

    def test_manager_filter_falls_back_to_requester(self) -> None:
        assert format_manager_filter([], 'boss@x.com') == "manager = 'boss@x.com'"

    def test_hierarchy_template_by_environment(self) -> None:
        assert manager_hierarchy_template('ecal-prod', 'ECAL', 'STS') == 'ECAL'
        assert manager_hierarchy_template('sts-prod', 'ECAL', 'STS') == 'STS'
        assert manager_hierarchy_template('', 'ECAL', 'STS') == 'STS'


class TestProjections:

    def test_ecal_opportunity_flags(self) -> None:
        row = {'OpportunityID': 'O1', 'POC': 1, 'CommercialBlockers': 0, 'TechnicalBlockers': 1}
        assert project_ecal_opportunity(row) == {'OpportunityID': 'O1', 'POC': True, 'Blockers': True}

    def test_ecal_opportunity_null_flags(self) -> None:
        row = {'OpportunityID': 'O1', 'POC': None, 'CommercialBlockers': None, 'TechnicalBlockers': 0}
        assert project_ecal_opportunity(row) == {'OpportunityID': 'O1', 'POC': False, 'Blockers': False}

    def test_ecal_artifact_stringifies(self) -> None:
        row = {'id': 12, 'account': 'Acme', 'location': None}
        assert project_ecal_artifact(row) == {'id': '12', 'account': 'Acme', 'location': ''}

    def test_ecal_data_adds_color(self) -> None:
        row = {
            'opp_id': 'O1', 'amount': 2500,
            'color_csa': 1, 'color_cp': 1, 'color_cs': 1, 'color_fs': None, 'color_sec': 0,
            'color_tech': 0, 'color_poc': 0, 'color_cc_involved': 0, 'color_cc_sar': None,
        }
        assert project_ecal_data(row) == {'opp_id': 'O1', 'amount': '2500', 'color': 'Y'}


# =============================================================================
# run_query
# =============================================================================


@pytest.mark.asyncio
class TestRunQuery:

    async def test_substitutes_schema_and_binds_args(self, fake_db: FakeDatabase) -> None:
        fake_db.fetch_rows = [{'a': 1}, {'a': 2}]
        definition = QueryDefinition('test', 'SELECT a FROM %SCHEMA%.T WHERE x = $1 AND y = %SCHEMA%.f()')

        items = await run_query(fake_db, SCHEMA_MAP, definition, 'sts-dev', 'X')

        assert items == [{'a': 1}, {'a': 2}]
        assert fake_db.fetched == [('SELECT a FROM STS.T WHERE x = $1 AND y = STS.f()', ('X',))]

    @pytest.mark.parametrize('instance_env', [None, '', 'prod'])
    async def test_invalid_environment(self, fake_db: FakeDatabase, instance_env) -> None:
        with pytest.raises(QueryError):
            await run_query(fake_db, SCHEMA_MAP, ECAL_DATA, instance_env)
        assert fake_db.fetched == []

    async def test_database_error_is_wrapped(self, fake_db: FakeDatabase) -> None:
        fake_db.fail_when = lambda sql, args: True

        with pytest.raises(QueryError, match='getECALDataQuery'):
            await run_query(fake_db, SCHEMA_MAP, ECAL_DATA, 'ecal-dev')


# =============================================================================
# ENDPOINTS
# =============================================================================


@pytest.mark.asyncio
class TestQueryEndpoints:

    async def test_manager_query_ecal(self, client: httpx.AsyncClient, fake_db: FakeDatabase) -> None:
        fake_db.fetch_rows = [('m1@x.com',), ('m2@x.com',)]

        response = await client.get(
            '/getManagerQuery', params={'managerEmail': 'boss@x.com', 'instanceEnvironment': 'ecal-dev'},
        )

        assert response.status_code == 200
        assert response.json() == {'query': "manager = 'm1@x.com' or manager = 'm2@x.com'"}
        sql, args = fake_db.fetched[0]
        assert 'REF.User1' in sql
        assert args == ('boss@x.com',)

    async def test_manager_query_sts_without_results(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase,
    ) -> None:
        response = await client.get(
            '/getManagerQuery', params={'managerEmail': 'boss@x.com', 'instanceEnvironment': 'sts-dev'},
        )

        assert response.json() == {'query': "manager = 'boss@x.com'"}
        assert 'STS.STSUser' in fake_db.fetched[0][0]

    async def test_sts_dashboard_summary(self, client: httpx.AsyncClient, fake_db: FakeDatabase) -> None:
        fake_db.fetch_rows = [{'id': 'se@x.com', 'pathName': 'Cloud', 'tasksCompleted': 3}]

        response = await client.get(
            '/getSTSManagerDashboardSummary',
            params={'managerEmail': 'boss@x.com', 'instanceEnvironment': 'sts-dev'},
        )

        assert response.json() == {'items': [{'id': 'se@x.com', 'pathName': 'Cloud', 'tasksCompleted': 3}]}
        assert fake_db.fetched[0][1] == ('boss@x.com',)

    @pytest.mark.parametrize('url', ['/getECALAccountQuery', '/getECALOpportunityQuery'])
    async def test_admin_sees_everything(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase, url: str,
    ) -> None:
        await client.get(url, params={'instanceEnvironment': 'ecal-dev', 'userEmail': 'u@x.com', 'isAdmin': 'Yes'})

        sql, args = fake_db.fetched[0]
        assert args == ()
        assert 'WITH RECURSIVE' not in sql

    @pytest.mark.parametrize('url', ['/getECALAccountQuery', '/getECALOpportunityQuery'])
    async def test_non_admin_is_scoped_to_hierarchy(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase, url: str,
    ) -> None:
        await client.get(url, params={'instanceEnvironment': 'ecal-dev', 'userEmail': 'u@x.com'})

        sql, args = fake_db.fetched[0]
        assert args == ('u@x.com',)
        assert 'WITH RECURSIVE' in sql
        assert '%SCHEMA%' not in sql

    async def test_ecal_opportunity_projection(self, client: httpx.AsyncClient, fake_db: FakeDatabase) -> None:
        fake_db.fetch_rows = [
            {'OpportunityID': 'O1', 'POC': 1, 'CommercialBlockers': 1, 'TechnicalBlockers': 0},
        ]

        response = await client.get(
            '/getECALOpportunityQuery', params={'instanceEnvironment': 'ecal-dev', 'isAdmin': 'true'},
        )

        assert response.json() == {'items': [{'OpportunityID': 'O1', 'POC': True, 'Blockers': True}]}

    async def test_ecal_artifacts_and_data(self, client: httpx.AsyncClient, fake_db: FakeDatabase) -> None:
        response = await client.get('/getECALArtifactQuery', params={'instanceEnvironment': 'ecal-dev'})
        assert response.json() == {'items': []}

        response = await client.get('/getECALDataQuery', params={'instanceEnvironment': 'ecal-dev'})
        assert response.json() == {'items': []}

    @pytest.mark.parametrize('url', [
        '/getManagerQuery',
        '/getSTSManagerDashboardSummary',
        '/getECALAccountQuery',
        '/getECALOpportunityQuery',
        '/getECALArtifactQuery',
        '/getECALDataQuery',
    ])
    async def test_unmapped_environment_is_500(self, client: httpx.AsyncClient, url: str) -> None:
        response = await client.get(url, params={'instanceEnvironment': 'prod'})

        assert response.status_code == 500
        assert response.text == QUERY_ERROR_MESSAGE

    async def test_database_error_is_500(self, client: httpx.AsyncClient, fake_db: FakeDatabase) -> None:
        fake_db.fail_when = lambda sql, args: True

        response = await client.get('/getECALDataQuery', params={'instanceEnvironment': 'ecal-dev'})

        assert response.status_code == 500
        assert response.text == QUERY_ERROR_MESSAGE

    async def test_requires_basic_auth(self, client: httpx.AsyncClient) -> None:
        response = await client.get('/getECALDataQuery', params={'instanceEnvironment': 'ecal-dev'}, auth=None)

        assert response.status_code == 401
