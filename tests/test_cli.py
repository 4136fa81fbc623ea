"""Tests for the inceptiondb command line interface."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from inceptiondb.cli import main as cli
from inceptiondb.client import InceptionDBClient
from tests.conftest import BASE_URL

runner = CliRunner()

type Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def serve(monkeypatch: pytest.MonkeyPatch) -> Callable[[Handler], list[httpx.Request]]:
    """Route CLI requests to a MockTransport handler; returns the list of requests seen."""

    def install(handler: Handler) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            request.read()
            seen.append(request)
            return handler(request)

        def create_client(options: cli.CLIOptions) -> InceptionDBClient:
            http_client = httpx.Client(transport=httpx.MockTransport(recording_handler))
            return InceptionDBClient(
                options.base_url or BASE_URL,
                api_key=options.api_key,
                http_client=http_client,
                logger=cli.CLILogger(verbose=options.verbose),
            )

        monkeypatch.setattr(cli, '_create_client', create_client)
        return seen

    return install


def test_collections(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    serve(lambda request: httpx.Response(200, json=[{'name': 'users', 'total': 1, 'indexes': 0}]))

    result = runner.invoke(cli.app, ['collections'])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout.strip()) == {'name': 'users', 'total': 1, 'indexes': 0, 'defaults': None}


def test_global_options_reach_client(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    seen = serve(lambda request: httpx.Response(200, json=[]))

    result = runner.invoke(cli.app, ['--base-url', 'http://other.test', '--api-key', 'k', 'collections'])

    assert result.exit_code == 0, result.output
    assert seen[0].url.host == 'other.test'
    assert seen[0].headers['Api-Key'] == 'k'


def test_find_prints_json_lines(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    seen = serve(lambda request: httpx.Response(200, content=b'{"id":1}\n{"id":2,"name":"\xc3\xb1"}\n'))

    result = runner.invoke(cli.app, ['find', 'users', '--filter', '{"active": true}', '--limit', '2'])

    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ['{"id":1}', '{"id":2,"name":"ñ"}']
    assert json.loads(seen[0].content) == {'filter': {'active': True}, 'limit': 2}


@pytest.mark.parametrize('value', ['{not json', '[1, 2]'])
def test_find_rejects_invalid_filter(serve: Callable[[Handler], list[httpx.Request]], value: str) -> None:
    seen = serve(lambda request: httpx.Response(200))

    result = runner.invoke(cli.app, ['find', 'users', '--filter', value])

    assert result.exit_code != 0
    assert seen == []


def test_insert_from_stdin(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    seen = serve(lambda request: httpx.Response(201, content=request.content))

    result = runner.invoke(cli.app, ['insert', 'users'], input='{"id":1}\n{"id":2}\n')

    assert result.exit_code == 0, result.output
    assert seen[0].url.path == '/v1/collections/users:insert'
    assert seen[0].content == b'{"id":1}\n{"id":2}\n'
    assert result.stdout.splitlines() == ['{"id":1}', '{"id":2}']


def test_insert_from_file(serve: Callable[[Handler], list[httpx.Request]], tmp_path: Path) -> None:
    seen = serve(lambda request: httpx.Response(201, content=request.content))
    documents = tmp_path / 'docs.jsonl'
    documents.write_bytes(b'{"id":7}\n')

    result = runner.invoke(cli.app, ['insert', 'users', str(documents)])

    assert result.exit_code == 0, result.output
    assert seen[0].content == b'{"id":7}\n'


def test_remove(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    seen = serve(lambda request: httpx.Response(200, content=b'{"id":1}\n'))

    result = runner.invoke(cli.app, ['remove', 'users', '--filter', '{"id": 1}'])

    assert result.exit_code == 0, result.output
    assert seen[0].url.path == '/v1/collections/users:remove'
    assert json.loads(seen[0].content) == {'filter': {'id': 1}}


def test_indexes(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    serve(lambda request: httpx.Response(200, json=[{'name': 'by-id', 'type': 'map', 'field': 'id'}]))

    result = runner.invoke(cli.app, ['indexes', 'users'])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout.strip()) == {'name': 'by-id', 'type': 'map', 'field': 'id'}


def test_create_and_drop_collection(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    seen = serve(lambda request: httpx.Response(200, json={'name': 'users', 'total': 0, 'indexes': 0}))

    created = runner.invoke(cli.app, ['create-collection', 'users'])
    dropped = runner.invoke(cli.app, ['drop-collection', 'users'])

    assert created.exit_code == 0, created.output
    assert dropped.exit_code == 0, dropped.output
    assert json.loads(seen[0].content) == {'name': 'users'}
    assert seen[1].url.path == '/v1/collections/users:dropCollection'


def test_api_error_exits_with_code_1(serve: Callable[[Handler], list[httpx.Request]]) -> None:
    serve(lambda request: httpx.Response(404, json={'error': {'message': 'collection not found'}}))

    result = runner.invoke(cli.app, ['find', 'missing'])

    assert result.exit_code == 1
    assert 'collection not found' in result.output


def test_cli_logger_writes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    quiet = cli.CLILogger(verbose=False)
    quiet.info('hidden')
    quiet.warning('careful')
    cli.CLILogger(verbose=True).info('POST /v1/collections/users:find')

    captured = capsys.readouterr()
    assert captured.out == ''
    assert captured.err.splitlines() == ['[WARNING] careful', '[INFO] POST /v1/collections/users:find']
