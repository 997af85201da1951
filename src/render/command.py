from __future__ import annotations

import shlex
from typing import Sequence

from src.models import SegmentDescriptor, StitchConfig
from src.render.filter_graph import FilterGraph

AUDIO_CODEC = "aac"
AUDIO_BITRATES = {"high": "192k", "standard": "128k"}


def build_ffmpeg_command(
    segments: Sequence[SegmentDescriptor],
    output_path: str,
    graph: FilterGraph,
    config: StitchConfig,
    *,
    ffmpeg_binary: str = "ffmpeg",
) -> list[str]:
    """Assemble the full FFmpeg argument list for a stitched render.

    Flag vocabulary (codec, crf, preset, pix_fmt, profile, level) is tied to
    the FFmpeg CLI; keep changes here so callers never build arguments
    themselves.
    """

    quality = config.video_quality
    command = [ffmpeg_binary, "-y"]

    for segment in segments:
        command.extend(["-i", str(segment.video_path)])

    command.extend(["-filter_complex", graph.filter_complex])
    command.extend(["-map", f"[{graph.video_output_label}]"])
    if graph.audio_output_label is not None:
        command.extend(["-map", f"[{graph.audio_output_label}]"])

    command.extend(
        [
            "-c:v",
            quality.codec,
            "-crf",
            str(quality.crf),
            "-preset",
            quality.preset,
            # Baseline compatibility for desktop players that reject 4:4:4 / high-bit-depth output.
            "-pix_fmt",
            quality.pixel_format,
            "-profile:v",
            quality.profile,
            "-level",
            quality.level,
        ]
    )

    if graph.audio_output_label is not None:
        command.extend(["-c:a", AUDIO_CODEC, "-b:a", AUDIO_BITRATES[config.audio_quality]])

    command.append(str(output_path))
    return command


def format_command(command: Sequence[str]) -> str:
    """Shell-quoted form of an argument list, for logs and copy-paste debugging."""

    return " ".join(shlex.quote(part) for part in command)
