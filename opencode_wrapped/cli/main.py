"""
CLI interface for OpenCode Wrapped.

Scans the local OpenCode history, prints a summary and produces the
wrapped image.
"""

import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer
import yaml
from loguru import logger
from rich.console import Console

from opencode_wrapped import __version__
from opencode_wrapped.agents.detector import detect_installed_agents, display_agent_suggestions
from opencode_wrapped.clipboard import copy_image_to_clipboard
from opencode_wrapped.config.loader import WrappedConfig, load_config
from opencode_wrapped.core.dates import is_valid_year, is_wrapped_available
from opencode_wrapped.core.pricing import PricingResolver
from opencode_wrapped.core.stats import YearlyStats, compute_yearly_stats
from opencode_wrapped.image.generator import generate_image
from opencode_wrapped.storage.repository import CorpusNotFoundError, CorpusRepository, get_repository
from opencode_wrapped.terminal.display import display_in_terminal, get_terminal_name
from opencode_wrapped.terminal.summary import render_summary
from opencode_wrapped.utils.logger import setup_logging

app = typer.Typer()
console = Console()

# No data for the year and a closed release gate are not failures
EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _version_callback(value: bool):
    if value:
        console.print(f"opencode-wrapped v{__version__}")
        raise typer.Exit()


def image_filename(year: int) -> str:
    return f"opencode-wrapped-{year}.png"


def collect_stats(
    year: int,
    repository: CorpusRepository,
    pricing: PricingResolver,
    config: WrappedConfig,
    now: Optional[datetime] = None,
) -> YearlyStats:
    """Read the whole corpus and aggregate it for ``year``.

    Raises:
        CorpusNotFoundError: If the storage root cannot be read
    """
    sessions = repository.list_sessions()
    messages = repository.list_messages()
    projects = repository.list_projects()
    logger.debug(
        "Read {} sessions, {} messages, {} projects",
        len(sessions), len(messages), len(projects),
    )
    return compute_yearly_stats(
        year,
        sessions,
        messages,
        projects,
        pricing,
        first_party_provider=config.first_party_provider,
        now=now,
    )


def _print_no_data(path: Path) -> None:
    console.print(f"\n[bold yellow]OpenCode data not found at {path}[/]")
    console.print("\nMake sure you have used OpenCode at least once.\n")


@app.command()
def main(
    year: Optional[int] = typer.Option(
        None,
        "--year",
        "-y",
        help="Generate wrapped for a specific year (default: current year)"
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML configuration file"
    ),
    save: Optional[bool] = typer.Option(
        None,
        "--save/--no-save",
        help="Save the image without asking (default: ask)"
    ),
    copy: Optional[bool] = typer.Option(
        None,
        "--copy/--no-copy",
        help="Copy the image to the clipboard without asking (default: ask)"
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory to save the image in (default: home directory)"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Generate the current year before December 20th"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show debug logging"
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version number"
    ),
):
    """
    Generate your OpenCode year in review stats card.
    """
    setup_logging(verbose)
    today = date.today()
    requested_year = year if year is not None else today.year

    if not is_valid_year(requested_year, today):
        console.print(f"[red]Invalid year:[/] {requested_year}")
        sys.exit(EXIT_CODE_FAIL)

    availability = is_wrapped_available(requested_year, today)
    if not availability.available and not force:
        console.print(f"\n[bold yellow]{availability.message}[/]\n")
        sys.exit(EXIT_CODE_PASS)

    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    repository = get_repository(config.storage_path, max_workers=config.max_workers)
    if not repository.exists():
        _print_no_data(repository.storage_path)
        sys.exit(EXIT_CODE_PASS)

    pricing = PricingResolver(url=config.pricing_url, timeout=config.pricing_timeout)

    try:
        with console.status("Scanning your OpenCode history..."):
            stats = collect_stats(requested_year, repository, pricing, config)
    except CorpusNotFoundError:
        _print_no_data(repository.storage_path)
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        logger.exception("Failed to collect stats")
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if not stats.has_activity:
        console.print(f"\n[bold yellow]No OpenCode activity found for {requested_year}[/]\n")
        sys.exit(EXIT_CODE_PASS)

    render_summary(console, stats)

    try:
        with console.status("Generating your wrapped image..."):
            png = generate_image(stats, today)
    except Exception as e:
        logger.exception("Failed to generate image")
        console.print(f"[red]Error generating image:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if not display_in_terminal(png):
        console.print(f"[dim]Terminal ({get_terminal_name()}) doesn't support inline images[/]")

    filename = image_filename(requested_year)
    target = (output_dir or config.output_dir) / filename

    if save is None:
        save = typer.confirm(f"Save image to {target}?", default=True)
    if save:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(png)
            console.print(f"[green]✓[/] Saved to {target}")
        except OSError as e:
            console.print(f"[red]Failed to save:[/] {str(e)}")

    if copy is None:
        copy = typer.confirm("Copy to clipboard?", default=True)
    if copy:
        result = copy_image_to_clipboard(png, filename)
        if result.success:
            console.print("[green]✓[/] Copied to clipboard!")
        else:
            console.print(f"[red]Failed to copy:[/] {result.error}")

    display_agent_suggestions(console, detect_installed_agents())
    console.print("\nShare your wrapped! 🎉")
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
