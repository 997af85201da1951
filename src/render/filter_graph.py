from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from src.models import SegmentDescriptor

AUDIO_CROSSFADE_CURVE = "tri"


@dataclass(slots=True, frozen=True)
class FilterGraph:
    """FFmpeg ``-filter_complex`` pieces for a chained crossfade timeline."""

    video_filters: list[str]
    audio_filters: list[str]
    offsets: list[float]
    video_output_label: str
    audio_output_label: str | None

    @property
    def filter_complex(self) -> str:
        return ";".join([*self.video_filters, *self.audio_filters])


def crossfade_offsets(durations: Sequence[float], overlap_seconds: float) -> list[float]:
    """Start time of each crossfade on the combined timeline.

    Every segment overlaps the next by ``overlap_seconds``, so transition ``i``
    starts at the sum of durations ``0..i`` minus ``(i + 1) * overlap_seconds``.
    The last segment's duration never contributes.
    """

    offsets: list[float] = []
    cumulative = 0.0
    for duration in durations[:-1]:
        cumulative += float(duration) - overlap_seconds
        offsets.append(round(cumulative, 6))
    return offsets


def build_filter_graph(
    segments: Sequence[SegmentDescriptor],
    transitions: Sequence[str],
    *,
    transition_duration_seconds: float,
    overlap_seconds: float,
    audio_sync: bool,
) -> FilterGraph:
    """Chain one xfade (and optionally one acrossfade) per adjacent segment pair.

    Input ``i`` of the graph is segment ``i``; each step's output label is the
    left input of the next step.
    """

    if len(segments) < 2:
        raise ValueError("A crossfade graph needs at least 2 segments.")
    if len(transitions) != len(segments) - 1:
        msg = (
            f"Expected {len(segments) - 1} transitions for {len(segments)} segments, "
            f"got {len(transitions)}."
        )
        raise ValueError(msg)

    offsets = crossfade_offsets([segment.duration_seconds for segment in segments], overlap_seconds)
    duration = format_seconds(transition_duration_seconds)

    video_filters: list[str] = []
    audio_filters: list[str] = []
    video_label = "0:v"
    audio_label = "0:a"

    for index, (transition, offset) in enumerate(zip(transitions, offsets)):
        next_index = index + 1
        video_out = f"v{index}{next_index}"
        video_filters.append(
            f"[{video_label}][{next_index}:v]xfade=transition={transition}"
            f":duration={duration}:offset={format_seconds(offset)}[{video_out}]"
        )
        video_label = video_out

        if audio_sync:
            audio_out = f"a{index}{next_index}"
            audio_filters.append(
                f"[{audio_label}][{next_index}:a]acrossfade=d={duration}"
                f":c1={AUDIO_CROSSFADE_CURVE}:c2={AUDIO_CROSSFADE_CURVE}[{audio_out}]"
            )
            audio_label = audio_out

    return FilterGraph(
        video_filters=video_filters,
        audio_filters=audio_filters,
        offsets=offsets,
        video_output_label=video_label,
        audio_output_label=audio_label if audio_sync else None,
    )


def format_seconds(value: float) -> str:
    """Compact decimal form FFmpeg accepts: ``7.5``, ``8``, ``0.25``."""

    text = f"{round(float(value), 6):f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text
