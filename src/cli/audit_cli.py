"""Typer-based command line for running audits from a terminal."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent.parent
from dotenv import load_dotenv

load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

import asyncio
from typing import Optional

import httpx
import questionary
import typer

from src.models.analysis_models import AnalysisRequest, ProviderKind
from src.services.analysis_dispatcher import AnalysisDispatcher, InputError
from src.services.page_fetcher import fetch_page_html
from src.services.providers import ProviderUnavailableError, UpstreamError
from src.services.signal_extractor import extract_signals

app = typer.Typer(help="Usability audits of web pages, streamed from an LLM.")

PROVIDER_CHOICES = [kind.value for kind in ProviderKind]


def _read_html(html_file: Optional[Path]) -> str:
    if html_file is None:
        return ""
    try:
        return html_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        typer.echo(f"✗ Cannot read {html_file}: {e}", err=True)
        raise typer.Exit(1)


def _select_provider() -> str:
    """Arrow-key selection for the provider. Returns the discriminator."""
    choice = questionary.select("Select a provider", choices=PROVIDER_CHOICES).ask()
    if choice is None:
        raise typer.Exit(0)
    return choice


async def _stream_answer(request: AnalysisRequest) -> None:
    dispatcher = AnalysisDispatcher()
    source = await dispatcher.dispatch(request)
    try:
        async for fragment in source.deltas():
            typer.echo(fragment, nl=False)
    finally:
        await source.aclose()
    typer.echo("")


@app.command()
def analyze(
    url: Optional[str] = typer.Option(None, "--url", help="Page URL to fetch"),
    html_file: Optional[Path] = typer.Option(
        None, "--html-file", help="Read page markup from a file"
    ),
    provider: Optional[str] = typer.Option(
        None, "--provider", help="local, chat or content"
    ),
    key: Optional[str] = typer.Option(None, "--key", help="Provider API key"),
    model: Optional[str] = typer.Option(None, "--model", help="Provider model name"),
):
    """Audit a page and print the model's findings as they stream in."""
    request = AnalysisRequest(
        url=url,
        html=_read_html(html_file),
        provider=provider or _select_provider(),
        key=key,
        model=model,
    )
    try:
        asyncio.run(_stream_answer(request))
    except InputError as e:
        typer.echo(f"✗ {e}", err=True)
        raise typer.Exit(1)
    except UpstreamError as e:
        typer.echo(f"✗ {e}", err=True)
        typer.echo(e.body.decode("utf-8", errors="replace"), err=True)
        raise typer.Exit(1)
    except (ProviderUnavailableError, httpx.HTTPError) as e:
        typer.echo(f"✗ {e}", err=True)
        raise typer.Exit(1)


@app.command()
def signals(
    url: Optional[str] = typer.Option(None, "--url", help="Page URL to fetch"),
    html_file: Optional[Path] = typer.Option(
        None, "--html-file", help="Read page markup from a file"
    ),
):
    """Print the usability signals extracted from a page as JSON."""
    html = _read_html(html_file)
    if not html and url:
        html = asyncio.run(fetch_page_html(url))
    if not html:
        typer.echo("✗ No URL/HTML provided.", err=True)
        raise typer.Exit(1)
    typer.echo(extract_signals(html).model_dump_json(by_alias=True, indent=2))


if __name__ == "__main__":
    app()
