from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

import yaml

from src.models import SegmentDescriptor

if TYPE_CHECKING:
    from src.models import StitchResult

DurationResolver = Callable[[str], float]

_YAML_SUFFIXES = {".yaml", ".yml"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def load_segments(
    path: str | Path,
    *,
    duration_resolver: DurationResolver | None = None,
) -> list[SegmentDescriptor]:
    """Load an ordered segment list from a JSON or YAML manifest.

    The manifest is either a list of rows or a mapping with a ``segments``
    list. Relative ``video_path`` values resolve against the manifest's
    directory. Rows without ``duration_seconds`` need a ``duration_resolver``.
    """

    manifest_path = Path(path)
    text = manifest_path.read_text(encoding="utf-8")
    if manifest_path.suffix.lower() in _YAML_SUFFIXES:
        try:
            payload = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML manifest {manifest_path}: {exc}") from exc
    else:
        payload = json.loads(text)

    if isinstance(payload, dict):
        payload = payload.get("segments")
    if not isinstance(payload, list):
        raise ValueError("Segment manifest must be a list or a mapping with a 'segments' list.")

    base_dir = manifest_path.expanduser().resolve().parent
    segments: list[SegmentDescriptor] = []
    for idx, row in enumerate(payload, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"Segment row {idx} must be an object.")
        segments.append(_parse_row(row, idx, base_dir, duration_resolver))

    return segments


def _parse_row(
    row: dict[str, Any],
    idx: int,
    base_dir: Path,
    duration_resolver: DurationResolver | None,
) -> SegmentDescriptor:
    raw_path = row.get("video_path") or row.get("path")
    if not raw_path:
        raise ValueError(f"Segment row {idx} is missing 'video_path'.")

    video_path = Path(str(raw_path)).expanduser()
    if not video_path.is_absolute():
        video_path = base_dir / video_path

    raw_duration = row.get("duration_seconds", row.get("duration"))
    if raw_duration is None:
        if duration_resolver is None:
            raise ValueError(f"Segment row {idx} is missing 'duration_seconds'.")
        duration = float(duration_resolver(str(video_path)))
    else:
        duration = _parse_float(raw_duration, idx, "duration")

    return SegmentDescriptor(
        segment_id=str(row.get("id") or row.get("segment_id") or f"segment-{idx}"),
        video_path=str(video_path),
        duration_seconds=duration,
        cost=_parse_float(row.get("cost", 0.0), idx, "cost"),
        has_audio=_parse_flag(row.get("has_audio", True), idx, "has_audio"),
        character_consistent=_parse_flag(row.get("character_consistent", False), idx, "character_consistent"),
    )


def _parse_float(raw_value: Any, idx: int, label: str) -> float:
    try:
        return float(raw_value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Segment row {idx} has an invalid {label}: {raw_value!r}.") from exc


def _parse_flag(raw_value: Any, idx: int, label: str) -> bool:
    if isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, str):
        normalized = raw_value.lower().strip()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
    raise ValueError(f"Segment row {idx} has an invalid {label}: {raw_value!r}.")


def build_platform_metadata(result: StitchResult, *, platform: str, timestamp: str) -> dict[str, Any]:
    """Distribution metadata written next to a platform render."""

    return {
        "title": f"Stitched video - {platform.upper()}",
        "timestamp": timestamp,
        "platform": platform,
        "output_path": result.output_path,
        "duration_seconds": result.total_duration_seconds,
        "file_size_bytes": result.file_size_bytes,
        "segment_count": result.segment_count,
        "transitions": list(result.transitions_used),
        "estimated_quality": {
            "video": result.quality.estimated_video_quality,
            "audio": result.quality.estimated_audio_quality,
            "transition_smoothness": result.quality.estimated_transition_smoothness,
        },
        "processing_time_ms": result.processing_time_ms,
        "estimated_processing_cost": result.estimated_processing_cost,
        "total_segment_cost": result.total_segment_cost,
        "segments": [dict(segment) for segment in result.segments],
    }


def write_stitch_report(
    result: StitchResult,
    path: str | Path,
    *,
    extra: dict[str, Any] | None = None,
) -> Path:
    payload = {"status": "ok", **result.to_dict(), **(extra or {})}
    return write_json(payload, path)


def write_json(payload: Any, path: str | Path) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return output_path
