"""Command line entry point for the transliteration suites."""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import typer
from playwright.async_api import async_playwright

from . import config
from .harness import RunOptions, format_summary, run_suites
from .scenarios import get_suite, latest_suites, list_suites

app = typer.Typer(help="Run Singlish to Sinhala transliteration E2E suites.")


def _select_suites(names, revision, tag):
    if names:
        suites = [get_suite(name, revision) for name in names]
    elif revision:
        suites = [s for s in list_suites() if s.revision == revision]
    else:
        suites = latest_suites()
    if tag:
        suites = [s.with_tag(tag) for s in suites]
        suites = [s for s in suites if len(s)]
    return suites


async def _run(suites, base_url, headless, options, max_parallel):
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            return await run_suites(
                browser, suites, base_url=base_url, options=options, max_parallel=max_parallel
            )
        finally:
            await browser.close()


@app.command()
def run(
    suite: List[str] = typer.Option(
        [], "--suite", "-s", help="Suite name, repeatable. Defaults to every suite."
    ),
    revision: Optional[str] = typer.Option(
        None, "--revision", "-r", help="Suite revision. Defaults to the latest one."
    ),
    tag: Optional[str] = typer.Option(None, "--tag", help="Only run scenarios with this tag."),
    base_url: str = typer.Option(config.TARGET_URL, "--base-url", help="Page under test."),
    headed: bool = typer.Option(not config.HEADLESS, "--headed", help="Show the browser window."),
    screenshots: Optional[Path] = typer.Option(
        None, "--screenshots", help="Save a screenshot of every failed scenario here."
    ),
    max_parallel: int = typer.Option(
        config.MAX_PARALLEL_SUITES, "--max-parallel", min=1, help="Suites run at the same time."
    ),
):
    """Run suites against the page and exit non-zero if any scenario fails."""
    try:
        suites = _select_suites(suite, revision, tag)
    except KeyError as e:
        typer.echo(e.args[0], err=True)
        raise typer.Exit(code=2)
    if not suites:
        typer.echo("No scenarios selected.", err=True)
        raise typer.Exit(code=2)

    options = RunOptions(screenshot_dir=screenshots)
    results = asyncio.run(_run(suites, base_url, not headed, options, max_parallel))

    print()
    print(format_summary(results))
    if all(result.passed for result in results):
        print("\nAll scenarios passed.")
        return
    print("\nOne or more scenarios failed.")
    raise typer.Exit(code=1)


@app.command("list")
def list_command(
    all_revisions: bool = typer.Option(False, "--all", help="Include older revisions."),
):
    """List suites and how many scenarios each has."""
    suites = list_suites() if all_revisions else latest_suites()
    for suite in suites:
        mode = "strict" if suite.strict else "isolated"
        print(f"{suite.name:<22} {suite.revision:<4} {len(suite):>3} scenarios  ({mode})")


@app.command()
def serve(
    host: str = typer.Option(config.STANDIN_HOST, "--host"),
    port: int = typer.Option(config.STANDIN_PORT, "--port"),
    latency_ms: int = typer.Option(0, "--latency-ms", help="Delay added to every conversion."),
):
    """Serve the local stand-in page."""
    from .server import run as run_server

    run_server(host=host, port=port, latency_ms=latency_ms)


def main():
    # Sinhala output on consoles that default to a legacy code page
    sys.stdout.reconfigure(encoding="utf-8", line_buffering=True)
    sys.stderr.reconfigure(encoding="utf-8")
    app()


if __name__ == "__main__":
    main()
