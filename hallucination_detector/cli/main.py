"""Command-line interface for the hallucination detector using Typer and Rich."""

import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from hallucination_detector.config.logging import configure_logging, get_logger
from hallucination_detector.config.settings import get_settings
from hallucination_detector.pipeline import run_detection
from hallucination_detector.utils.logging import configure_structured_logging
from hallucination_detector.verification.credentials import mask_key
from hallucination_detector.verification.errors import (
    ExtractionFailed,
    InvalidInput,
    MissingCredentials,
)
from hallucination_detector.verification.provider_policy import PROVIDER_PAIRS
from hallucination_detector.verification.schemas import DetectionResult

__version__ = "0.1.0"

app = typer.Typer(
    help="Hallucination detector - extract claims, gather evidence, judge each claim",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

logger = get_logger("cli")

ASSESSMENT_STYLES = {
    "True": "green",
    "False": "red",
    "Partially True": "yellow",
    "Insufficient Information": "blue",
    "Error": "bold red",
}


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(settings)
    configure_structured_logging(settings.log_level, settings.log_format)


def _print_progress(event_name: str, payload: dict[str, Any]) -> None:
    err_console.print(f"[dim]{payload['progress']:>3}%[/dim] [cyan]{event_name}[/cyan] {payload['message']}")


def _render_result(result: DetectionResult) -> None:
    if not result.claims:
        console.print("[yellow]No verifiable claims found.[/yellow]")
        return

    table = Table(title="Claim Verification", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=3)
    table.add_column("Claim", style="cyan")
    table.add_column("Assessment", width=24)
    table.add_column("Confidence", justify="right", width=10)
    table.add_column("Summary")

    for index, verification in enumerate(result.verifications, start=1):
        style = ASSESSMENT_STYLES.get(verification.assessment, "white")
        summary = verification.summary
        if verification.time_sensitivity_note:
            summary = f"{summary}\n[italic dim]{verification.time_sensitivity_note}[/italic dim]"
        table.add_row(
            str(index),
            verification.claim,
            f"[{style}]{verification.assessment}[/{style}]",
            f"{verification.confidence_score:g}",
            summary,
        )
    console.print(table)

    s = result.summary
    console.print(
        f"\n[bold]Claims:[/bold] {s.total_claims}  "
        f"[green]True:[/green] {s.true_claims}  "
        f"[red]False:[/red] {s.false_claims}  "
        f"[yellow]Partially true:[/yellow] {s.partially_true_claims}  "
        f"[blue]Insufficient:[/blue] {s.insufficient_claims}  "
        f"[dim]Unknown:[/dim] {s.unknown_claims}"
    )
    console.print(
        f"[bold]Accuracy rate:[/bold] {s.accuracy_rate}%  "
        f"[bold]High confidence:[/bold] {s.high_confidence_claims}"
    )


@app.command()
def detect(
    text: Optional[str] = typer.Argument(None, help="Text to check"),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", exists=True, dir_okay=False, help="Read text from a file"
    ),
    domestic: bool = typer.Option(
        False, "--domestic", help="Use the domestic provider pair (DeepSeek + Bocha)"
    ),
    max_sources: Optional[int] = typer.Option(
        None, "--max-sources", min=1, help="Evidence items passed to adjudication"
    ),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", min=0, max=100, help="High-confidence threshold"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """
    Detect hallucinations in TEXT (or the contents of --file).

    Progress is written to stderr; the result table or JSON to stdout.
    """
    if file is not None:
        text = file.read_text(encoding="utf-8")
    elif text is None and not sys.stdin.isatty():
        text = sys.stdin.read()

    if not text or not text.strip():
        err_console.print("[red]✗[/red] No text given. Pass TEXT, --file or pipe via stdin.")
        raise typer.Exit(2)

    _setup_logging()
    settings = get_settings()

    overrides: dict[str, Any] = {}
    if domestic:
        overrides["use_domestic_providers"] = True
    if max_sources is not None:
        overrides["max_search_results"] = max_sources
    if threshold is not None:
        overrides["confidence_threshold"] = threshold
    config = settings.detection_config(**overrides)

    logger.info(f"Detect command invoked ({len(text)} chars, domestic={config.use_domestic_providers})")

    on_progress = None if json_output else _print_progress
    try:
        result = asyncio.run(run_detection(text, config, on_progress, settings=settings))
    except MissingCredentials as e:
        err_console.print(f"[red]✗[/red] {e}")
        err_console.print("[dim]Set the keys in the environment or a .env file.[/dim]")
        raise typer.Exit(2)
    except InvalidInput as e:
        err_console.print(f"[red]✗[/red] Invalid input: {e}")
        raise typer.Exit(2)
    except ExtractionFailed as e:
        err_console.print(f"[red]✗[/red] {e}")
        logger.error(f"Detection failed during extraction: {e}")
        raise typer.Exit(1)

    if json_output:
        typer.echo(result.model_dump_json(indent=2))
    else:
        _render_result(result)


@app.command()
def status() -> None:
    """
    Display provider configuration.

    Shows both provider pairs, their credentials (masked) and run defaults.
    """
    settings = get_settings()
    credentials = settings.credentials()
    default_pair = "domestic" if settings.use_domestic_providers else "international"

    table = Table(title="Hallucination Detector Status", show_header=True, header_style="bold magenta")
    table.add_column("Provider pair", style="cyan", width=15)
    table.add_column("Backends", width=30)
    table.add_column("Status", style="green", width=16)
    table.add_column("Credentials", style="yellow")

    for pair, selection in PROVIDER_PAIRS.items():
        configured = all(credentials.has(name) for name in selection.required_credentials)
        label = pair.value + (" (default)" if pair.value == default_pair else "")
        table.add_row(
            label,
            f"{selection.extraction_provider} / {selection.search_provider} / "
            f"{selection.adjudication_provider}",
            "✓ Configured" if configured else "⚠ Missing keys",
            "\n".join(
                f"{name}: {mask_key(getattr(credentials, name))}"
                for name in selection.required_credentials
            ),
        )
    console.print(table)

    console.print(
        f"\n[bold]Defaults:[/bold] max sources {settings.max_search_results}, "
        f"confidence threshold {settings.confidence_threshold:g}, "
        f"search limit {settings.search_result_limit}"
    )
    console.print(
        f"[bold]Timeouts:[/bold] extraction {settings.extraction_timeout:g}s, "
        f"search {settings.search_timeout:g}s, adjudication {settings.adjudication_timeout:g}s"
    )
    console.print(f"[bold]Logging:[/bold] level {settings.log_level}, format {settings.log_format}")


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]Hallucination Detector[/bold]")
    console.print(f"Version: {__version__}")


if __name__ == "__main__":
    app()
