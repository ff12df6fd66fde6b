"""Command-line interface for PubMiner."""

import asyncio
import json
import logging
from pathlib import Path

import click

from pubminer.config import get_settings
from pubminer.data_sources.base_client import DataSourceError
from pubminer.data_sources.eutils import EUtilsClient
from pubminer.models.model_eutils import ErrorResponse


def _client(page_size: int | None = None) -> EUtilsClient:
    client = EUtilsClient.from_settings(get_settings())
    if page_size:
        client.page_size = page_size
    return client


async def _search(term: str, page_size: int | None):
    async with _client(page_size) as client:
        return await client.search(term)


async def _fetch(pmcids: tuple[str, ...], concurrency: int | None):
    async with _client() as client:
        return await client.fetch_details(pmcids, concurrency=concurrency)


@click.group()
@click.version_option(package_name="pubminer")
def main():
    """PubMiner: search PubMed therapy literature and read PMC abstracts."""
    logging.basicConfig(level=get_settings().log_level)


@main.command()
@click.argument("term")
@click.option(
    "-n",
    "--page-size",
    type=int,
    default=None,
    help="Maximum number of summary records to return",
)
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def search(term: str, page_size: int | None, output: str | None):
    """Search PubMed for TERM and list the linked PMC records."""
    try:
        results = asyncio.run(_search(term, page_size))
    except DataSourceError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Search term: {results.search_term}")
    click.echo(f"Found {results.items_found}, returned {results.items_returned}")
    for i, item in enumerate(results.items, 1):
        pmid = item.linked_id or "-"
        click.echo(f"  {i}. PMC{item.uid} (PMID {pmid}) {item.title}")

    if output:
        Path(output).write_text(
            json.dumps(results.model_dump(by_alias=True), indent=2)
        )
        click.echo(f"\nResults saved to: {output}")


@main.command()
@click.argument("pmcids", nargs=-1, required=True)
@click.option(
    "-c",
    "--concurrency",
    type=int,
    default=None,
    help="Maximum number of concurrent fetches",
)
def abstract(pmcids: tuple[str, ...], concurrency: int | None):
    """Fetch and print the abstract of each PMC id."""
    details = asyncio.run(_fetch(pmcids, concurrency))

    for pmcid, sections in details.items():
        click.echo(f"== {pmcid}")
        if isinstance(sections, ErrorResponse):
            click.echo(f"  error: {sections.error}")
            continue
        for label, text in sections.items():
            click.echo(f"  [{label}] {text}")


if __name__ == "__main__":
    main()
