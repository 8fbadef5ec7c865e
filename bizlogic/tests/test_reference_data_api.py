"""
Integration tests for POST /postReferenceData.

Requests go through the real FastAPI app via httpx.ASGITransport, with the
in-memory database from conftest behind the loaders.

The tests verify:
1. A first/middle/last upload is assembled on disk and loaded in the background
2. reprocess reloads whatever is on disk without writing
3. Invalid parameters and write failures answer 500 with the documented messages
4. Basic auth is enforced before anything else happens
"""

import json
import threading
from pathlib import Path

import httpx
import pytest

from bizlogic.services.ingestion import INVALID_POSITION_MESSAGE, INVALID_TYPE_MESSAGE
from bizlogic.tests.conftest import FakeDatabase, account, opportunity


pytestmark = pytest.mark.asyncio

URL = '/postReferenceData'


def _split(document: bytes, parts: int) -> list:
    size = len(document) // parts + 1
    return [document[i:i + size] for i in range(0, len(document), size)]


async def _upload(client: httpx.AsyncClient, data_type: str, document: bytes, parts: int = 3) -> None:
    chunks = _split(document, parts)
    positions = ['first'] + ['middle'] * (len(chunks) - 2) + ['last']
    for position, chunk in zip(positions, chunks):
        response = await client.post(URL, params={'position': position, 'type': data_type}, content=chunk)
        assert response.status_code == 200
        assert response.text == ''


class TestChunkedUpload:

    async def test_upload_is_assembled_and_loaded(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase, tmp_path: Path,
    ) -> None:
        document = json.dumps({'items': [account(cim_id=f'C{n}') for n in range(1, 6)]}).encode('utf-8')

        await _upload(client, 'account', document, parts=4)
        await client.dispatcher.join()

        assert (tmp_path / 'account.json').read_bytes() == document
        assert [row[1] for row in fake_db.rows('REF.LookupAccount')] == ['C1', 'C2', 'C3', 'C4', 'C5']

    async def test_opportunity_upload_end_to_end(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase,
    ) -> None:
        document = json.dumps({'items': [opportunity(opportunity_id='O1', opportunity_status='Open')]})
        head, tail = document[:40], document[40:]

        first = await client.post(URL, params={'position': 'first', 'type': 'opportunity'}, content=head)
        last = await client.post(URL, params={'position': 'last', 'type': 'opportunity'}, content=tail)
        await client.dispatcher.join()

        assert first.status_code == last.status_code == 200
        assert [row[1] for row in fake_db.rows('REF.LookupOpportunity')] == ['O1']
        assert [args[-1] for args in fake_db.updated('REF.Opportunity')] == ['O1']

        health = await client.get('/health', auth=None)
        assert 'OPPORTUNITY' not in health.text

    async def test_first_and_middle_do_not_trigger_a_load(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase,
    ) -> None:
        await client.post(URL, params={'position': 'first', 'type': 'account'}, content=b'{"items": [')
        await client.post(URL, params={'position': 'middle', 'type': 'account'}, content=b'{"cim_id": "C1"}')
        await client.dispatcher.join()

        assert fake_db.prepared == []

    async def test_reprocess_loads_file_on_disk(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase, tmp_path: Path,
    ) -> None:
        document = json.dumps({'items': [opportunity()]})
        (tmp_path / 'opportunity.json').write_text(document, encoding='utf-8')

        response = await client.post(
            URL, params={'position': 'reprocess', 'type': 'opportunity'}, content=b'ignored',
        )
        await client.dispatcher.join()

        assert response.status_code == 200
        assert (tmp_path / 'opportunity.json').read_text(encoding='utf-8') == document
        assert len(fake_db.rows('REF.LookupOpportunity')) == 1

    async def test_malformed_upload_leaves_staging_table_untouched(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase,
    ) -> None:
        fake_db.seed('REF.LookupAccount', [('previous',)])

        await _upload(client, 'account', b'{"items": [{"cim_id": "C1"}, {"cim_id": ', parts=2)
        await client.dispatcher.join()

        assert fake_db.rows('REF.LookupAccount') == [('previous',)]

    async def test_chunk_write_runs_off_the_event_loop(
        self, client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from bizlogic.main import app

        assembler = app.state.coordinator.assembler
        original = assembler.write
        threads = []

        def recording_write(*args, **kwargs):
            threads.append(threading.current_thread())
            return original(*args, **kwargs)

        monkeypatch.setattr(assembler, 'write', recording_write)

        response = await client.post(URL, params={'position': 'first', 'type': 'account'}, content=b'{"items": [')

        assert response.status_code == 200
        assert threads and threads[0] is not threading.main_thread()


class TestParameterValidation:

    @pytest.mark.parametrize('params, message', [
        ({'type': 'account'}, INVALID_POSITION_MESSAGE),
        ({'position': 'start', 'type': 'account'}, INVALID_POSITION_MESSAGE),
        ({'position': 'first'}, INVALID_TYPE_MESSAGE),
        ({'position': 'first', 'type': 'employees'}, INVALID_TYPE_MESSAGE),
        ({}, INVALID_POSITION_MESSAGE),
    ])
    async def test_invalid_parameters(
        self, client: httpx.AsyncClient, tmp_path: Path, params: dict, message: str,
    ) -> None:
        response = await client.post(URL, params=params, content=b'{}')

        assert response.status_code == 500
        assert response.text == message
        assert not (tmp_path / 'account.json').exists()

    async def test_append_without_first_is_a_processing_error(
        self, client: httpx.AsyncClient, fake_db: FakeDatabase,
    ) -> None:
        response = await client.post(URL, params={'position': 'last', 'type': 'identity'}, content=b']}')
        await client.dispatcher.join()

        assert response.status_code == 500
        assert response.text == 'Processing Error'
        assert fake_db.prepared == []


class TestAuthentication:

    async def test_missing_credentials(self, client: httpx.AsyncClient, tmp_path: Path) -> None:
        response = await client.post(
            URL, params={'position': 'first', 'type': 'account'}, content=b'{}', auth=None,
        )

        assert response.status_code == 401
        assert response.headers['www-authenticate'] == 'Basic'
        assert not (tmp_path / 'account.json').exists()

    async def test_wrong_password(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            URL, params={'position': 'first', 'type': 'account'}, content=b'{}', auth=('svc', 'wrong'),
        )

        assert response.status_code == 401

    async def test_wrong_username(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            URL, params={'position': 'first', 'type': 'account'}, content=b'{}', auth=('admin', 'secret'),
        )

        assert response.status_code == 401
