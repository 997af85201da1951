from __future__ import annotations

import logging
import os
import threading
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import Sequence

import numpy as np

from src.errors import ValidationError
from src.manifest import build_platform_metadata, write_json
from src.models import PLATFORMS, SegmentDescriptor, StitchConfig, StitchResult, normalize_choice
from src.render.command import build_ffmpeg_command
from src.render.filter_graph import build_filter_graph
from src.render.invoker import CommandInvoker
from src.scoring.quality import estimate_processing_cost, estimate_quality
from src.transitions.catalog import DEFAULT_CATALOG, TransitionCatalog
from src.transitions.selector import select_transitions

logger = logging.getLogger(__name__)

MIN_SEGMENTS = 2


class StitchingEngine:
    """Stitch ordered segments into one file with chained xfade/acrossfade transitions.

    Each call owns its FFmpeg process and output path; the engine keeps no
    mutable state between calls. There is no internal timeout: pass a
    ``cancel_event`` to bound a call from the outside.
    """

    def __init__(
        self,
        invoker: CommandInvoker | None = None,
        *,
        catalog: TransitionCatalog = DEFAULT_CATALOG,
        rng: np.random.Generator | None = None,
        ffmpeg_binary: str = "ffmpeg",
        default_config: StitchConfig | None = None,
    ) -> None:
        self.invoker = invoker or CommandInvoker()
        self.catalog = catalog
        self.rng = rng
        self.ffmpeg_binary = ffmpeg_binary
        self.default_config = default_config or StitchConfig()

    def stitch_segments(
        self,
        segments: Sequence[SegmentDescriptor],
        output_path: str | Path,
        config: StitchConfig | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> StitchResult:
        """Validate, select transitions, render with FFmpeg and report the result.

        Raises ``ValidationError`` before FFmpeg is spawned and
        ``ProcessExecutionError`` if FFmpeg fails. A partially written output
        file is left in place.
        """

        resolved_config = config or self.default_config
        started_at = perf_counter()
        ordered_segments = list(segments)

        logger.info(
            "Stitching %d segments (mode=%s, platform=%s, audio_sync=%s)",
            len(ordered_segments),
            resolved_config.selection_mode,
            resolved_config.target_platform or "default",
            resolved_config.audio_sync,
        )

        validate_segments(ordered_segments)

        transitions = select_transitions(
            len(ordered_segments) - 1,
            resolved_config,
            catalog=self.catalog,
            rng=self.rng,
        )
        overlap_seconds = resolved_config.resolved_overlap_seconds
        graph = build_filter_graph(
            ordered_segments,
            transitions,
            transition_duration_seconds=resolved_config.transition_duration_seconds,
            overlap_seconds=overlap_seconds,
            audio_sync=resolved_config.audio_sync,
        )

        output = Path(output_path)
        command = build_ffmpeg_command(
            ordered_segments,
            str(output),
            graph,
            resolved_config,
            ffmpeg_binary=self.ffmpeg_binary,
        )
        logger.info("Transitions: %s", ", ".join(transitions))
        logger.info("Crossfade offsets: %s", ", ".join(f"{offset:g}s" for offset in graph.offsets))

        output.parent.mkdir(parents=True, exist_ok=True)
        self.invoker.execute(command, cancel_event)

        processing_time_ms = int(round((perf_counter() - started_at) * 1000))
        file_size_bytes = output.stat().st_size
        total_duration = sum(segment.duration_seconds for segment in ordered_segments) - (
            len(transitions) * overlap_seconds
        )

        result = StitchResult(
            output_path=str(output),
            total_duration_seconds=round(total_duration, 6),
            file_size_bytes=file_size_bytes,
            transitions_used=transitions,
            processing_time_ms=processing_time_ms,
            quality=estimate_quality(resolved_config, transitions),
            estimated_processing_cost=estimate_processing_cost(
                processing_time_ms, resolved_config.output_quality
            ),
            segment_count=len(ordered_segments),
            total_segment_cost=sum(segment.cost for segment in ordered_segments),
            segments=[_segment_summary(segment) for segment in ordered_segments],
        )

        logger.info(
            "Stitched %s: %.1fs, %.1f MB in %.1fs",
            output,
            result.total_duration_seconds,
            file_size_bytes / 1024 / 1024,
            processing_time_ms / 1000,
        )
        return result

    def render_for_platform(
        self,
        segments: Sequence[SegmentDescriptor],
        platform: str,
        output_dir: str | Path,
        *,
        timestamp: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> tuple[StitchResult, Path]:
        """Stitch with the platform's preferred transitions and write a metadata JSON beside the video."""

        resolved_platform = normalize_choice(platform, PLATFORMS, "platform")
        stamp = timestamp or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
        directory = Path(output_dir)

        config = replace(
            self.default_config,
            target_platform=resolved_platform,
            selection_mode="platform-optimized",
            audio_sync=True,
            audio_quality="high",
            output_quality="production",
            video_quality=replace(self.default_config.video_quality, crf=18, preset="slow"),
        )

        output_path = directory / f"stitched-{resolved_platform}-{stamp}.mp4"
        result = self.stitch_segments(segments, output_path, config, cancel_event=cancel_event)

        metadata = build_platform_metadata(result, platform=resolved_platform, timestamp=stamp)
        metadata_path = write_json(metadata, directory / f"stitched-metadata-{resolved_platform}-{stamp}.json")
        logger.info("Platform metadata saved: %s", metadata_path)
        return result, metadata_path


def validate_segments(segments: Sequence[SegmentDescriptor]) -> None:
    """Fail fast on inputs FFmpeg could not use; touches only the filesystem."""

    if len(segments) < MIN_SEGMENTS:
        raise ValidationError(
            f"At least {MIN_SEGMENTS} segments required for stitching, got {len(segments)}."
        )

    for segment in segments:
        if not segment.video_path:
            raise ValidationError(f"Segment {segment.segment_id} has no video path.")
        if segment.duration_seconds <= 0:
            raise ValidationError(
                f"Segment {segment.segment_id} must have a positive duration, "
                f"got {segment.duration_seconds}."
            )

        path = Path(segment.video_path)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise ValidationError(f"Video file not found: {segment.video_path}")

    logger.debug("Validated %d segments", len(segments))


def _segment_summary(segment: SegmentDescriptor) -> dict[str, object]:
    return {
        "segment_id": segment.segment_id,
        "duration_seconds": segment.duration_seconds,
        "cost": segment.cost,
        "has_audio": segment.has_audio,
        "character_consistent": segment.character_consistent,
    }
