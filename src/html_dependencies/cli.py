"""HTML dependencies CLI."""

import asyncio
import logging
import sys
from pathlib import Path

import typer

from html_dependencies.extraction.document import Document
from html_dependencies.extraction.settings import ExtractionSettings
from html_dependencies.http.client import FetchError, HttpxClient
from html_dependencies.http.settings import HttpSettings
from html_dependencies.uri.errors import UriError
from html_dependencies.uri.value import Uri

app = typer.Typer()


def _parse_origin(url: str) -> Uri:
    try:
        origin = Uri.parse(url)
    except UriError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if not origin.scheme:
        typer.echo("Error: URL scheme must be http or https", err=True)
        raise typer.Exit(code=1)
    if not origin.host:
        typer.echo("Error: URL must include a hostname", err=True)
        raise typer.Exit(code=1)
    return origin


def _parse_cookies(cookies: list[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for cookie in cookies:
        name, sep, value = cookie.partition("=")
        if not sep or not name:
            raise typer.BadParameter(
                f"cookie must look like NAME=VALUE, got '{cookie}'",
                param_hint="--cookie",
            )
        parsed[name] = value
    return parsed


@app.command()
def main(
    url: str = typer.Argument(..., help="Page URL, used as origin for resolution"),
    file: Path | None = typer.Option(
        None, "--file", exists=True, dir_okay=False, help="Read markup from a file"
    ),
    links: bool = typer.Option(True, "--links/--no-links", help="Include <a> links"),
    assets: bool = typer.Option(
        True, "--assets/--no-assets", help="Include images, stylesheets and scripts"
    ),
    internal_only: bool = typer.Option(
        False, help="Drop links outside the origin's domain"
    ),
    repair: bool | None = typer.Option(
        None, "--repair/--no-repair", help="Repair whitespace-mangled URLs"
    ),
    encode: bool | None = typer.Option(
        None, "--encode/--no-encode", help="Percent-encode raw URLs before parsing"
    ),
    unordered: bool = typer.Option(
        False, help="Print in hash order (ignored with --internal-only)"
    ),
    cookie: list[str] = typer.Option(
        [], "--cookie", help="NAME=VALUE cookie sent with the request"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    """Print every URI the page depends on."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    origin = _parse_origin(url)
    origin.add_cookies(_parse_cookies(cookie))

    if file is not None:
        html = file.read_text(encoding="utf-8")
    else:
        try:
            html, origin = asyncio.run(_fetch(origin))
        except FetchError as exc:
            typer.echo(f"Error: failed to fetch {origin}: {exc}", err=True)
            raise typer.Exit(code=1) from exc

    settings = ExtractionSettings()
    document = Document(
        html,
        repair_urls=settings.repair_urls if repair is None else repair,
        encode_urls=settings.encode_urls if encode is None else encode,
    )
    if internal_only:
        uris = document.get_outgoing_links(origin, include_external=False) if links else []
        if assets:
            uris += document.get_images(origin)
            uris += document.get_css_files(origin)
            uris += document.get_js_files(origin)
    elif unordered:
        uris = document.get_unordered_dependencies(origin, links, assets)
    else:
        uris = document.get_dependencies(origin, links, assets)

    for line in dict.fromkeys(str(uri) for uri in uris):
        typer.echo(line)


async def _fetch(origin: Uri) -> tuple[str, Uri]:
    async with HttpxClient(settings=HttpSettings()) as client:
        response = await client.fetch(origin)
    if response.status_code != 200:
        raise FetchError(f"HTTP {response.status_code}")
    return response.body, Uri.parse(response.url)
