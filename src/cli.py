from __future__ import annotations

import json
import logging
from functools import partial
from pathlib import Path
from time import perf_counter
from typing import Callable, TypeVar

import typer

from src.config import Settings, load_settings
from src.ingest.probe import probe_duration, probe_media
from src.logging_config import configure_logging
from src.manifest import load_segments, write_stitch_report
from src.models import PLATFORMS, StitchConfig, normalize_choice
from src.render.invoker import CommandInvoker
from src.stitching.engine import StitchingEngine
from src.transitions.catalog import DEFAULT_CATALOG
from src.transitions.selector import make_rng

app = typer.Typer(help="Stitch generated video segments into one transitioned clip with FFmpeg.")
config_app = typer.Typer(help="Configuration commands.")
transitions_app = typer.Typer(help="Transition catalog commands.")

app.add_typer(config_app, name="config")
app.add_typer(transitions_app, name="transitions")

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_OPTION = typer.Option(
    Path("configs/default.yaml"),
    "--config",
    "-c",
    envvar="CLIP_STITCH_CONFIG",
    help="Path to YAML configuration file.",
)


def _run_with_progress(step_index: int, total_steps: int, label: str, work: Callable[[], T]) -> T:
    typer.echo(f"[{step_index}/{total_steps}] {label}...", err=True)
    started_at = perf_counter()
    try:
        result = work()
    except Exception:
        elapsed = perf_counter() - started_at
        typer.echo(f"[{step_index}/{total_steps}] {label} failed after {elapsed:.1f}s", err=True)
        raise
    elapsed = perf_counter() - started_at
    typer.echo(f"[{step_index}/{total_steps}] {label} done in {elapsed:.1f}s", err=True)
    return result


def _bootstrap(config_path: Path, verbose: bool = False) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.logging, verbose=verbose)
    logger.debug("Loaded runtime settings from %s", config_path)
    return settings


def _build_engine(settings: Settings, config: StitchConfig, seed: int | None = None) -> StitchingEngine:
    return StitchingEngine(
        CommandInvoker(stderr_tail_chars=settings.ffmpeg.stderr_tail_chars),
        rng=make_rng(seed) if seed is not None else None,
        ffmpeg_binary=settings.ffmpeg.binary,
        default_config=config,
    )


def _fail(exc: Exception) -> typer.Exit:
    logger.error("Stitching failed: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=1)


@config_app.command("show")
def show_config(config_path: Path = CONFIG_OPTION) -> None:
    """Print resolved runtime configuration."""

    settings = _bootstrap(config_path)
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


@transitions_app.command("list")
def list_transitions(
    category: str | None = typer.Option(None, help="Only list one category (geometric, circular, ...)."),
    platform: str | None = typer.Option(None, help="Show the preference list for tiktok, youtube or instagram."),
) -> None:
    """Print transition names from the catalog."""

    try:
        if platform:
            resolved = normalize_choice(platform, PLATFORMS, "platform")
            payload: dict[str, list[str]] = {resolved: list(DEFAULT_CATALOG.preferences_for(resolved))}
        elif category:
            payload = {category: DEFAULT_CATALOG.all_names(category)}
        else:
            payload = {name: DEFAULT_CATALOG.all_names(name) for name in DEFAULT_CATALOG.category_names()}
    except ValueError as exc:
        raise _fail(exc) from exc

    typer.echo(json.dumps(payload, indent=2))


@app.command("stitch")
def stitch(
    manifest_path: Path = typer.Argument(..., help="JSON/YAML list of segments in playback order."),
    output_path: Path = typer.Argument(..., help="Output video path."),
    config_path: Path = CONFIG_OPTION,
    mode: str | None = typer.Option(None, help="Transition selection: platform-optimized, sequence or random."),
    platform: str | None = typer.Option(None, help="Target platform: tiktok, youtube or instagram."),
    transition_duration: float | None = typer.Option(None, help="Crossfade length in seconds."),
    overlap: float | None = typer.Option(None, help="Overlap between adjacent segments in seconds."),
    audio_sync: bool | None = typer.Option(None, "--audio-sync/--no-audio-sync", help="Crossfade audio alongside video."),
    seed: int | None = typer.Option(None, help="Seed for the random transition mode."),
    report_path: Path | None = typer.Option(None, "--report", help="Optional JSON report path."),
    probe_durations: bool = typer.Option(True, help="Probe missing segment durations with ffprobe."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log the full FFmpeg command."),
) -> None:
    """Stitch manifest segments into a single video."""

    settings = _bootstrap(config_path, verbose)
    total_steps = 3 if report_path else 2

    try:
        config = StitchConfig.from_settings(
            settings,
            selection_mode=mode,
            target_platform=platform,
            transition_duration_seconds=transition_duration,
            overlap_seconds=overlap,
            audio_sync=audio_sync,
        )
        resolver = partial(probe_duration, ffprobe_binary=settings.ffmpeg.ffprobe_binary) if probe_durations else None
        segments = _run_with_progress(
            1,
            total_steps,
            "Load segments",
            lambda: load_segments(manifest_path, duration_resolver=resolver),
        )
        engine = _build_engine(settings, config, seed)
        result = _run_with_progress(
            2,
            total_steps,
            "Stitch segments",
            lambda: engine.stitch_segments(segments, output_path, config),
        )
        if report_path:
            _run_with_progress(
                3,
                total_steps,
                "Write report",
                lambda: write_stitch_report(result, report_path, extra={"manifest_path": str(manifest_path)}),
            )
    except (RuntimeError, ValueError, OSError) as exc:
        raise _fail(exc) from exc

    typer.echo(json.dumps({"status": "ok", **result.to_dict()}, indent=2))


@app.command("platform")
def render_platform(
    platform: str = typer.Argument(..., help="tiktok, youtube or instagram."),
    manifest_path: Path = typer.Argument(..., help="JSON/YAML list of segments in playback order."),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Directory for the video and metadata."),
    config_path: Path = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log the full FFmpeg command."),
) -> None:
    """Render a platform-optimized stitch plus a metadata JSON."""

    settings = _bootstrap(config_path, verbose)
    resolved_output_dir = output_dir or settings.pipeline.output_dir

    try:
        resolver = partial(probe_duration, ffprobe_binary=settings.ffmpeg.ffprobe_binary)
        segments = _run_with_progress(1, 2, "Load segments", lambda: load_segments(manifest_path, duration_resolver=resolver))
        engine = _build_engine(settings, StitchConfig.from_settings(settings))
        result, metadata_path = _run_with_progress(
            2,
            2,
            f"Render {platform}",
            lambda: engine.render_for_platform(segments, platform, resolved_output_dir),
        )
    except (RuntimeError, ValueError, OSError) as exc:
        raise _fail(exc) from exc

    typer.echo(json.dumps({"status": "ok", "metadata_path": str(metadata_path), **result.to_dict()}, indent=2))


@app.command("probe")
def probe(
    video_path: str,
    config_path: Path = CONFIG_OPTION,
) -> None:
    """Print ffprobe metadata for one clip."""

    settings = _bootstrap(config_path)
    try:
        result = probe_media(video_path, ffprobe_binary=settings.ffmpeg.ffprobe_binary)
    except (RuntimeError, OSError) as exc:
        raise _fail(exc) from exc
    logger.info("Probe completed for %s", video_path)
    typer.echo(json.dumps(result, indent=2))


if __name__ == "__main__":
    app()
