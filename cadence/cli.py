"""
cadence.cli - Typer CLI entry point.

Provides subcommands for analyzing clips, converting audio to raw PCM,
writing a config file, and checking the environment.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cadence import __version__
from cadence.config import (
    BUILTIN_PROFILES,
    CONFIG_FILENAME,
    AnalysisConfig,
    create_default_config,
    find_config_file,
    load_config,
    write_config,
)
from cadence.exceptions import CadenceError
from cadence.logging import configure_logging

app = typer.Typer(
    name="cadence",
    help="Speech delivery metrics from raw audio.\n\n"
    "Scores pace, volume, clarity, pauses and tonal variation of a recorded "
    "clip, and derives confidence and enthusiasm from them.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"cadence {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Cadence - speech delivery metrics from raw audio."""
    configure_logging(verbose)


def resolve_config(config_path: Path | None) -> AnalysisConfig:
    """Load the given config, or the nearest cadence.yaml, or defaults."""
    path = config_path or find_config_file()
    if path is None:
        return AnalysisConfig()
    try:
        return load_config(path)
    except (FileNotFoundError, ValueError, CadenceError) as e:
        console.print(f"[red]Error: Invalid config: {e}[/red]")
        raise typer.Exit(1)


@app.command("analyze")
def analyze_cmd(
    files: list[Path] = typer.Argument(
        ..., help="Audio clips (.pcm/.raw, or any format to convert)"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help=f"Path to {CONFIG_FILENAME}"
    ),
    output_dir: Path | None = typer.Option(
        None, "--output", "-o", help="Write one JSON metrics file per clip to this directory"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
    strict: bool = typer.Option(
        False, "--strict", help="Exit with status 1 if any clip fell back to default scores"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Re-analyze clips that already have a record in --output"
    ),
) -> None:
    """Analyze delivery metrics for one or more clips."""
    from cadence.analyze.delivery import analyze_all_clips
    from cadence.extract.audio import is_raw_pcm
    from cadence.validation import validate_pcm_size

    config = resolve_config(config_path)

    if not as_json:
        for path in files:
            if is_raw_pcm(path) and path.is_file():
                check = validate_pcm_size(path.stat().st_size, config.sample_rate)
                for warning in check["warnings"]:
                    console.print(f"[yellow]⚠ {path.name}: {warning}[/yellow]")

    results = analyze_all_clips(
        paths=files,
        config=config,
        output_dir=output_dir,
        force=force,
        console=None if as_json else console,
    )

    if as_json:
        typer.echo(json.dumps(results["clips"], indent=2))
    else:
        console.print(
            f"\n[green]✓[/green] Analyzed {results['analyzed']} clip(s), "
            f"skipped {results['skipped']}, fallback {results['fallback']}, "
            f"failed {results['failed']}"
        )
        for err in results["errors"]:
            console.print(f"[dim]  {err['clip_id']}: {err['error']}[/dim]")

    fell_back = any(clip.get("fallback") for clip in results["clips"])
    if results["failed"] > 0 or (strict and fell_back):
        raise typer.Exit(1)


@app.command("extract")
def extract_cmd(
    source: Path = typer.Argument(..., help="Audio file to convert"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output .pcm path (default: next to source)"
    ),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Conversion backend: ffmpeg or librosa"
    ),
    sample_rate: int | None = typer.Option(None, "--sample-rate", "-r", help="Target sample rate"),
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help=f"Path to {CONFIG_FILENAME}"
    ),
) -> None:
    """Convert an audio file to raw 16-bit mono PCM."""
    from cadence.extract.audio import extract_pcm
    from cadence.utils import format_duration
    from cadence.validation import validate_audio_file

    config = resolve_config(config_path)
    backend = backend or config.extract_backend
    sample_rate = sample_rate or config.sample_rate
    output = output or source.with_suffix(".pcm")

    if backend not in ("ffmpeg", "librosa"):
        console.print(f"[red]Error: Unknown backend '{backend}'[/red]")
        raise typer.Exit(1)

    try:
        validate_audio_file(source)
        result = extract_pcm(
            source, output, sample_rate=sample_rate, backend=backend, console=console
        )
    except CadenceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]✓[/green] Wrote {result['output']} "
        f"({format_duration(result['duration_seconds'])} at {sample_rate} Hz)"
    )


@app.command("init")
def init_config(
    profile: str = typer.Option(
        "standard",
        "--profile",
        "-p",
        help=f"Analysis profile: {', '.join(BUILTIN_PROFILES)}",
    ),
    directory: Path = typer.Option(Path("."), "--dir", "-d", help="Directory to write into"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Write a cadence.yaml with profile defaults."""
    if profile not in BUILTIN_PROFILES:
        console.print(f"[red]Error: Unknown profile '{profile}'[/red]")
        raise typer.Exit(1)

    config_file = directory / CONFIG_FILENAME
    if config_file.exists() and not force:
        console.print(f"[red]Error: {config_file} already exists (use --force)[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(profile), config_file)
    console.print(f"[green]✓[/green] Created {config_file} ({profile} profile)")


@app.command("doctor")
def run_doctor() -> None:
    """Check dependencies and environment setup."""
    console.print("[cyan]Running preflight checks...[/cyan]\n")

    from cadence.exceptions import DependencyError
    from cadence.validation import check_ffmpeg, check_librosa

    table = Table(title="Dependency Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Version/Details")

    config = resolve_config(None)
    all_passed = True

    try:
        versions = check_ffmpeg()
        table.add_row("FFmpeg", "✓ Installed", versions.get("ffmpeg_version", "unknown"))
    except DependencyError as e:
        table.add_row("FFmpeg", "✗ Missing", e.install_hint or "")
        if config.extract_backend == "ffmpeg":
            all_passed = False

    try:
        versions = check_librosa()
        table.add_row("librosa", "✓ Installed", versions.get("librosa_version", "unknown"))
    except DependencyError as e:
        table.add_row("librosa", "✗ Missing", e.install_hint or "")
        if config.extract_backend == "librosa":
            all_passed = False

    source = str(config.config_path) if config.config_path else "defaults"
    table.add_row("Config", config.profile, source)

    console.print(table)

    if all_passed:
        console.print("\n[green]✓ All checks passed[/green]")
    else:
        console.print("\n[yellow]⚠ Some checks failed[/yellow]")
        console.print("[dim]Raw .pcm clips can still be analyzed without a converter[/dim]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
