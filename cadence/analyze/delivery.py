"""
cadence.analyze.delivery - Clip-level delivery analysis.

Runs the full pipeline on one clip (decode, segmentation, spectral
analysis, pitch tracking, metric derivation) and owns the fallback
contract: a clip that cannot be analyzed still gets a usable metrics
record, and the cause is only logged.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from cadence.analyze.decoder import SampleBuffer, decode
from cadence.analyze.pitch import score_tonal_variation
from cadence.analyze.scoring import FALLBACK_METRICS, DeliveryMetrics, derive_metrics
from cadence.analyze.segmentation import score_pace, score_pauses
from cadence.analyze.spectral import score_clarity, score_volume
from cadence.config import AnalysisConfig
from cadence.exceptions import AnalysisError, CadenceError, DecodeError
from cadence.io import read_json, read_pcm, write_json
from cadence.logging import logger
from cadence.utils import format_duration, get_score_class

log = logger.getChild("delivery")


class AnalysisOutcome(BaseModel):
    """Metrics for a clip plus the error that forced a fallback, if any."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    metrics: DeliveryMetrics
    error: CadenceError | None = None

    @property
    def used_fallback(self) -> bool:
        return self.error is not None


def analyze_samples(buffer: SampleBuffer, config: AnalysisConfig | None = None) -> DeliveryMetrics:
    """Score a decoded buffer.

    Raises:
        AnalysisError: If any analysis stage fails
    """
    config = config or AnalysisConfig()

    try:
        pace = score_pace(buffer, config)
        volume = score_volume(buffer)
        clarity = score_clarity(buffer, config)
        pause_duration = score_pauses(buffer, config)
        tonal_variation = score_tonal_variation(buffer, config)
    except AnalysisError:
        raise
    except Exception as e:
        raise AnalysisError(f"Delivery analysis failed: {e}") from e

    return derive_metrics(
        pace=pace,
        volume=volume,
        clarity=clarity,
        pause_duration=pause_duration,
        tonal_variation=tonal_variation,
    )


def analyze_clip(raw_bytes: bytes, config: AnalysisConfig | None = None) -> AnalysisOutcome:
    """Analyze raw PCM bytes, returning the fallback record on failure.

    Args:
        raw_bytes: Headerless 16-bit little-endian mono PCM
        config: Analysis settings (defaults apply when omitted)

    Returns:
        AnalysisOutcome whose error is set when the fallback was used
    """
    config = config or AnalysisConfig()

    try:
        buffer = decode(raw_bytes, sample_rate=config.sample_rate)
        log.debug(
            "decoded %d samples (%.2fs at %d Hz)",
            len(buffer.samples),
            buffer.duration_seconds,
            buffer.sample_rate,
        )
        metrics = analyze_samples(buffer, config)
    except (DecodeError, AnalysisError) as e:
        log.warning("Delivery analysis fell back to defaults: %s", e)
        return AnalysisOutcome(metrics=FALLBACK_METRICS, error=e)

    return AnalysisOutcome(metrics=metrics)


def compute_delivery_metrics(
    raw_bytes: bytes, config: AnalysisConfig | None = None
) -> DeliveryMetrics:
    """Compute delivery metrics for a clip. Never raises for bad audio."""
    return analyze_clip(raw_bytes, config).metrics


SCORE_STYLES = {"strong": "green", "fair": "yellow", "weak": "red"}


def _score_cell(score: float) -> str:
    style = SCORE_STYLES[get_score_class(score)]
    return f"[{style}]{score:.1f}[/{style}]"


def _unique_clip_id(stem: str, used: set[str]) -> str:
    clip_id = stem
    suffix = 2
    while clip_id in used:
        clip_id = f"{stem}-{suffix}"
        suffix += 1
    if clip_id != stem:
        log.warning("Clip name %s is already taken in this batch, using %s", stem, clip_id)
    used.add(clip_id)
    return clip_id


def _load_record(path: Path) -> tuple[dict[str, Any], DeliveryMetrics] | None:
    try:
        record = read_json(path)
        return record, DeliveryMetrics.from_dict(record["metrics"])
    except (ValueError, KeyError, TypeError) as e:
        log.warning("Ignoring unreadable record %s: %s", path, e)
        return None


def analyze_all_clips(
    paths: list[Path],
    config: AnalysisConfig | None = None,
    output_dir: Path | None = None,
    force: bool = False,
    console=None,
) -> dict[str, Any]:
    """Analyze delivery for a list of audio files.

    Raw .pcm/.raw files are read directly; anything else is converted
    with the configured extract backend first. Clips sharing a file stem
    get numbered ids (take, take-2, ...) so their records never collide.

    Args:
        paths: Audio files to analyze
        config: Analysis settings
        output_dir: If set, write <clip_id>.json metrics per clip here
        force: Re-analyze clips that already have a record in output_dir
        console: Optional rich console for output

    Returns:
        Dict with analysis summary and per-clip results
    """
    from rich.table import Table

    from cadence.extract.audio import convert_to_pcm, is_raw_pcm

    config = config or AnalysisConfig()

    results: dict[str, Any] = {
        "analyzed": 0,
        "skipped": 0,
        "fallback": 0,
        "failed": 0,
        "errors": [],
        "clips": [],
    }

    table = Table(title="Delivery Analysis")
    table.add_column("Clip", style="cyan")
    table.add_column("Duration")
    table.add_column("Pace")
    table.add_column("Volume")
    table.add_column("Clarity")
    table.add_column("Pauses")
    table.add_column("Tone")
    table.add_column("Confidence")
    table.add_column("Enthusiasm")
    table.add_column("Status", style="yellow")

    used_ids: set[str] = set()

    for path in paths:
        clip_id = _unique_clip_id(path.stem, used_ids)
        record_path = output_dir / f"{clip_id}.json" if output_dir is not None else None

        if record_path is not None and record_path.exists() and not force:
            existing = _load_record(record_path)
            if existing is not None:
                record, metrics = existing
                results["skipped"] += 1
                results["clips"].append(record)
                table.add_row(
                    clip_id,
                    format_duration(record.get("duration_seconds", 0.0)),
                    *[_score_cell(v) for v in metrics.model_dump().values()],
                    "[dim]Skipped (already analyzed)[/dim]",
                )
                continue

        try:
            if is_raw_pcm(path):
                raw = read_pcm(path)
            else:
                raw = convert_to_pcm(
                    path, sample_rate=config.sample_rate, backend=config.extract_backend
                )
        except CadenceError as e:
            table.add_row(clip_id, "-", "-", "-", "-", "-", "-", "-", "-", f"[red]{e}[/red]")
            results["failed"] += 1
            results["errors"].append({"clip_id": clip_id, "error": str(e)})
            continue

        outcome = analyze_clip(raw, config)
        metrics = outcome.metrics
        duration = len(raw) / 2 / config.sample_rate

        record = {
            "clip_id": clip_id,
            "source_file": str(path),
            "duration_seconds": round(duration, 3),
            "analyzed_at": datetime.now().isoformat(timespec="seconds"),
            "fallback": outcome.used_fallback,
            "error": str(outcome.error) if outcome.error else None,
            "metrics": metrics.to_dict(),
        }
        results["clips"].append(record)

        if outcome.used_fallback:
            results["fallback"] += 1
            results["errors"].append({"clip_id": clip_id, "error": str(outcome.error)})
            status = "[yellow]Fallback[/yellow]"
        else:
            results["analyzed"] += 1
            status = "[green]✓ Analyzed[/green]"

        if record_path is not None:
            write_json(record_path, record)

        table.add_row(
            clip_id,
            format_duration(duration),
            *[_score_cell(v) for v in metrics.model_dump().values()],
            status,
        )

    if console:
        console.print(table)

    return results
