"""CLI commands for tiktap using Typer and Rich.

Implements:
- generate: Run one video job in the foreground with live progress
- serve: Start the HTTP API
- sweep: Delete expired job artifacts once
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tiktap import validate_dependencies
from tiktap.config import AssemblyStrategy, settings
from tiktap.orchestrator.pipeline import run_pipeline
from tiktap.schemas.job import JobParams, JobStatus
from tiktap.services.job_store import JobStore
from tiktap.services.providers import build_providers
from tiktap.services.retention import sweep_expired_files

app = typer.Typer(name="tiktap", help="Prompt-to-short-video generation pipeline")
console = Console()


@app.command()
def generate(
    topic: str = typer.Argument(..., help="What the video should be about"),
    template: Optional[str] = typer.Option(None, "--template", "-t", help="Footage template (fitness, travel, ...)"),
    voice: str = typer.Option("female_1", "--voice", "-v", help="Voice key (female_1, female_2, male_1)"),
    duration: str = typer.Option("30", "--duration", "-d", help="Duration bucket (30, 60, 90 or short/medium/long)"),
    strategy: Optional[AssemblyStrategy] = typer.Option(
        None, "--strategy", "-s", help="Assembly strategy (defaults to config)"
    ),
):
    """Generate a video from a topic and wait for the result.

    Runs the full pipeline in this process: script, voiceover, stock
    footage and assembly.
    """
    resolved = strategy or settings.pipeline.assembly_strategy
    if resolved == AssemblyStrategy.LOCAL:
        # Fail-fast dependency validation
        try:
            validate_dependencies()
        except RuntimeError as e:
            console.print(f"[red]Error:[/red] {str(e)}")
            raise typer.Exit(code=1)

    params = JobParams(input_topic=topic, template=template, voice=voice, duration=duration)
    job_status = asyncio.run(_generate_async(params, resolved))
    if job_status != JobStatus.COMPLETED:
        raise typer.Exit(code=1)


async def _generate_async(params: JobParams, strategy: AssemblyStrategy) -> JobStatus:
    """Async implementation of generate command."""
    store = JobStore()
    providers = build_providers(settings, strategy=strategy)
    job = store.create(params)
    console.print(f"[green]Created job:[/green] {job.id}")
    console.print()

    try:
        with console.status("[bold green]Starting pipeline...") as status:
            def callback_wrapper(msg: str):
                status.update(f"[bold green]{msg}")

            await run_pipeline(job.id, store, providers, progress_callback=callback_wrapper)
    finally:
        await providers.aclose()

    job = store.get(job.id)
    if job.generated_script:
        console.print(Panel(job.generated_script, title="Script", expand=False))

    if job.status == JobStatus.COMPLETED:
        console.print(f"[green]✓[/green] Video generation complete!")
        console.print(f"[green]Output:[/green] {job.final_path or job.video_url}")
    else:
        console.print(f"[red]✗ Pipeline failed:[/red] {job.status_message}")
    return job.status


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (defaults to config)"),
):
    """Start the HTTP API server."""
    import uvicorn

    uvicorn.run(
        "tiktap.api.app:app",
        host=host or settings.server.host,
        port=port or settings.server.port,
        reload=False,
    )


@app.command()
def sweep(
    max_age: Optional[int] = typer.Option(
        None, "--max-age", help="Delete files older than this many seconds (defaults to config)"
    ),
    directory: Optional[Path] = typer.Option(None, "--dir", help="Artifact directory (defaults to config)"),
):
    """Delete expired job artifacts once and list what was removed."""
    base_dir = directory or settings.storage.tmp_dir
    age = max_age if max_age is not None else settings.storage.retention_max_age_seconds
    removed = sweep_expired_files(base_dir, age)

    if not removed:
        console.print(f"[dim]Nothing older than {age}s in {base_dir}[/dim]")
        return

    table = Table(title=f"Removed {len(removed)} file(s)")
    table.add_column("File")
    for path in removed:
        table.add_row(str(path))
    console.print(table)
