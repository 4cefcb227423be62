"""Main CLI interface using Typer."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from videospeak.core.exceptions import VideoSpeakError, user_friendly_message
from videospeak.core.models import SUPPORTED_LANGUAGES, JobStatus, TranslationMethod
from videospeak.service import VideoSpeakService
from videospeak.translation.providers import ProviderRegistry
from videospeak.utils.config_loader import load_config
from videospeak.utils.logger import setup_logger

app = typer.Typer(
    name="videospeak",
    help="VideoSpeak: translation jobs for Indian languages",
    add_completion=False
)

console = Console()


def _load(config_path: Optional[Path], log_level: Optional[str] = None):
    try:
        config = load_config(str(config_path) if config_path else None)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    log_config = config.get("logging", {})
    setup_logger(log_level or log_config.get("level", "WARNING"), log_config.get("file"))
    return config


async def _run_translation(service: VideoSpeakService, text: str, target: str, source: Optional[str], method: Optional[str]):
    async with service:
        submitted = await service.process_text(text, target, source_language=source, method=method)
        job_id = submitted["job_id"]

        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=30),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=False
        ) as progress:
            task = progress.add_task("[cyan]Queued...", total=100)
            while True:
                status = service.job_status(job_id)
                progress.update(task, completed=status["progress"], description=f"[cyan]{status['stage']}")
                if status["status"] in (JobStatus.COMPLETED.value, JobStatus.FAILED.value):
                    break
                await asyncio.sleep(0.2)

            if status["status"] == JobStatus.COMPLETED.value:
                progress.update(task, completed=100, description="[green]✓ Translation complete")
            else:
                progress.update(task, description="[red]✗ Translation failed")
        return status


@app.command()
def translate(
    text: Optional[str] = typer.Argument(None, help="Text to translate (omit to use --file)"),
    input_file: Optional[Path] = typer.Option(None, "-f", "--file", help="Read the text from a file"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write the translation to a file"),
    target_lang: str = typer.Option("hi-IN", "-t", "--target", help="Target language code"),
    source_lang: Optional[str] = typer.Option(None, "-s", "--source", help="Source language code (auto-detected if omitted)"),
    method: Optional[str] = typer.Option(None, "-m", "--method", help="Translation method (regional/llm)"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file path"),
    debug_mode: bool = typer.Option(False, "--debug/--no-debug", help="Enable debug logging"),
):
    """Translate text through a background job."""

    if input_file is not None:
        if not input_file.exists():
            console.print(f"[red]Error: Input file not found: {input_file}[/red]")
            raise typer.Exit(1)
        text = input_file.read_text(encoding="utf-8")
    if not text:
        console.print("[red]Error: Provide text or --file[/red]")
        raise typer.Exit(1)

    config = _load(config_path, "DEBUG" if debug_mode else None)

    console.print("[bold blue]VideoSpeak Translation[/bold blue]")
    console.print(f"Translation: {source_lang or 'auto'} → {target_lang}")
    console.print(f"Method: {method or config['translation']['default_method']}\n")

    try:
        service = VideoSpeakService.from_config(config)
        status = asyncio.run(_run_translation(service, text, target_lang, source_lang, method))
    except VideoSpeakError as e:
        console.print(f"[red]Error: {user_friendly_message(e)}[/red]")
        if debug_mode:
            console.print(f"[dim]{e.code}: {e.message}[/dim]")
        raise typer.Exit(1)

    if status["status"] != JobStatus.COMPLETED.value:
        console.print(f"[red]Error: {status['error']}[/red]")
        if status.get("retryable"):
            console.print("[dim]This error is retryable; run the command again.[/dim]")
        raise typer.Exit(1)

    translation = status["result"]["translation"]
    metrics = translation["quality_metrics"]

    console.print(Panel(translation["translated_text"], title="Translation", border_style="green"))

    table = Table(title="Quality", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan")
    table.add_column("Score", justify="right")
    table.add_row("Fluency", f"{metrics['fluency']:.2f}")
    table.add_row("Adequacy", f"{metrics['adequacy']:.2f}")
    table.add_row("Semantic similarity", f"{metrics['semantic_similarity']:.2f}")
    table.add_row("Grammar", f"{metrics['grammar_score']:.2f}")
    table.add_row("[bold]Overall accuracy[/bold]", f"[bold]{metrics['overall_accuracy']:.2f}[/bold]")
    table.add_row("Confidence", f"{metrics['confidence_score']:.2f}")
    console.print(table)

    meta = translation.get("provider_metadata") or {}
    if meta:
        fallback = " (fallback)" if meta.get("fallback_used") else ""
        console.print(
            f"[dim]{meta['provider']} / {meta['model']}{fallback} · "
            f"{meta['chunk_count']} chunk(s) · {meta['total_tokens']} tokens · "
            f"${meta['estimated_cost']:.4f}[/dim]"
        )
    if status.get("warning"):
        console.print(f"[yellow]⚠ {status['warning']}[/yellow]")

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(translation["translated_text"], encoding="utf-8")
        console.print(f"[green]✓ Saved to {output}[/green]")


@app.command()
def languages():
    """List supported target languages."""
    table = Table(title="Supported Languages", show_header=True, header_style="bold cyan")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Native name")
    for lang in SUPPORTED_LANGUAGES:
        if lang.is_supported:
            table.add_row(lang.code, lang.name, lang.native_name)
    console.print(table)


@app.command()
def providers(
    config_path: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file path"),
    check: bool = typer.Option(False, "--check", help="Validate credentials against each provider"),
):
    """List configured translation providers."""
    config = _load(config_path)
    registry = ProviderRegistry.from_config(config)

    console.print("\n[bold]Translation Providers[/bold]\n")

    health = {}
    if check:
        async def validate_all():
            try:
                return {name: await registry.get(name).validate_credentials() for name in registry.names()}
            finally:
                await registry.aclose()
        health = asyncio.run(validate_all())

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="cyan")
    table.add_column("Method")
    table.add_column("Model")
    table.add_column("Free")
    table.add_column("Status")
    for info in registry.get_info():
        if check:
            ok = health.get(info["name"], False)
            status = "[green]✓ Credentials OK[/green]" if ok else "[red]✗ Credentials rejected[/red]"
        else:
            status = "[green]✓ Available[/green]" if info["available"] else "[yellow]✗ Not configured[/yellow]"
        table.add_row(info["name"], info["method"], info["model"] or "-", "yes" if info["free"] else "no", status)
    console.print(table)

    for method in TranslationMethod:
        if not registry.has_method(method):
            console.print(f"[yellow]No provider configured for the {method.value} method[/yellow]")

    console.print("\n[dim]💡 Set SARVAM_API_KEY, OPENAI_API_KEY or ANTHROPIC_API_KEY to enable more providers[/dim]")


def cli():
    """Main CLI entry point."""
    if len(sys.argv) == 1:
        console.print("[bold blue]VideoSpeak[/bold blue]")
        console.print("\n[dim]Type 'videospeak --help' for usage information[/dim]\n")
        return

    app()


if __name__ == "__main__":
    cli()
