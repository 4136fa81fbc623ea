#!/usr/bin/env python3
"""
Command-line interface for the InceptionDB client.

Every command prints its results as JSON Lines on stdout, so output can be piped
straight back into `inceptiondb insert`. Connection options default to the
INCEPTIONDB_* environment variables.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import attrs
import httpx
import typer

from inceptiondb.cli.logger import CLILogger
from inceptiondb.client import InceptionDBClient
from inceptiondb.config.client import settings
from inceptiondb.exceptions import InceptionDBError
from inceptiondb.schemas.collections import CreateCollectionRequest
from inceptiondb.schemas.queries import FindRequest, RemoveRequest
from inceptiondb.stream import JsonStream, iterate

app = typer.Typer(
    name='inceptiondb',
    help='Query and manage InceptionDB collections',
    add_completion=False,
)


@attrs.define(frozen=True)
class CLIOptions:
    """Connection options shared by every command."""

    base_url: str | None
    api_key: str | None
    api_secret: str | None
    verbose: bool


def _parse_filter(value: str | None) -> dict[str, Any] | None:
    """Parse a --filter option as a JSON object."""
    if value is None:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f'Invalid JSON: {e}')
    if not isinstance(parsed, dict):
        raise typer.BadParameter('Must be a JSON object')
    return parsed


def _create_client(options: CLIOptions) -> InceptionDBClient:
    """Build a client from CLI options, falling back to settings."""
    return InceptionDBClient(
        options.base_url or settings.BASE_URL,
        api_key=options.api_key or settings.API_KEY,
        api_secret=options.api_secret or settings.API_SECRET,
        timeout=settings.TIMEOUT,
        logger=CLILogger(verbose=options.verbose or settings.VERBOSE),
    )


@contextmanager
def _client(ctx: typer.Context) -> Iterator[InceptionDBClient]:
    """Open a client and turn client errors into a red message and exit code 1."""
    options: CLIOptions = ctx.obj
    try:
        with _create_client(options) as client:
            yield client
    except (InceptionDBError, httpx.HTTPError) as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ValueError as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(2)


def _echo_record(record: Any) -> None:
    typer.echo(json.dumps(record, separators=(',', ':'), ensure_ascii=False))


def _echo_stream(stream: JsonStream) -> None:
    iterate(stream, _echo_record)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: str | None = typer.Option(None, '--base-url', help='Server URL (or INCEPTIONDB_BASE_URL env)'),
    api_key: str | None = typer.Option(None, '--api-key', help='API key (or INCEPTIONDB_API_KEY env)'),
    api_secret: str | None = typer.Option(None, '--api-secret', help='API secret (or INCEPTIONDB_API_SECRET env)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Log requests to stderr'),
) -> None:
    """Query and manage InceptionDB collections."""
    ctx.obj = CLIOptions(base_url=base_url, api_key=api_key, api_secret=api_secret, verbose=verbose)


# ==============================================================================
# Collections
# ==============================================================================


@app.command()
def collections(ctx: typer.Context) -> None:
    """List collections."""
    with _client(ctx) as client:
        for collection in client.list_collections():
            typer.echo(collection.model_dump_json())


@app.command('create-collection')
def create_collection(ctx: typer.Context, name: str = typer.Argument(..., help='Collection name')) -> None:
    """Create a collection."""
    with _client(ctx) as client:
        collection = client.create_collection(CreateCollectionRequest(name=name))
        typer.echo(collection.model_dump_json())


@app.command('drop-collection')
def drop_collection(ctx: typer.Context, name: str = typer.Argument(..., help='Collection name')) -> None:
    """Drop a collection and its indexes."""
    with _client(ctx) as client:
        client.drop_collection(name)
    typer.echo(f'Dropped collection {name}', err=True)


@app.command()
def indexes(ctx: typer.Context, collection: str = typer.Argument(..., help='Collection name')) -> None:
    """List the indexes of a collection."""
    with _client(ctx) as client:
        for index in client.list_indexes(collection):
            typer.echo(index.model_dump_json())


# ==============================================================================
# Documents
# ==============================================================================


@app.command()
def find(
    ctx: typer.Context,
    collection: str = typer.Argument(..., help='Collection name'),
    filter: str | None = typer.Option(None, '--filter', '-f', help='Filter as a JSON object'),
    index: str = typer.Option('', '--index', '-i', help='Index to traverse'),
    limit: int = typer.Option(0, '--limit', '-n', help='Maximum number of documents (0: server default)'),
    skip: int = typer.Option(0, '--skip', help='Documents to skip'),
    reverse: bool = typer.Option(False, '--reverse', help='Traverse the index backwards'),
) -> None:
    """Find documents and print them as JSON Lines."""
    request = FindRequest(filter=_parse_filter(filter), index=index, limit=limit, skip=skip, reverse=reverse)
    with _client(ctx) as client:
        _echo_stream(client.find(collection, request))


@app.command()
def insert(
    ctx: typer.Context,
    collection: str = typer.Argument(..., help='Collection name'),
    file: Path | None = typer.Argument(None, help='JSON Lines file (default: stdin)', exists=True, dir_okay=False),
) -> None:
    """Insert JSON Lines documents and print the inserted documents."""
    content = file.read_bytes() if file is not None else typer.get_binary_stream('stdin').read()
    with _client(ctx) as client:
        _echo_stream(client.insert_stream(collection, content))


@app.command()
def remove(
    ctx: typer.Context,
    collection: str = typer.Argument(..., help='Collection name'),
    filter: str | None = typer.Option(None, '--filter', '-f', help='Filter as a JSON object'),
    limit: int = typer.Option(0, '--limit', '-n', help='Maximum number of documents (0: server default)'),
) -> None:
    """Remove matching documents and print them as JSON Lines."""
    request = RemoveRequest(filter=_parse_filter(filter), limit=limit)
    with _client(ctx) as client:
        _echo_stream(client.remove(collection, request))


if __name__ == '__main__':
    app()
