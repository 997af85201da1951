from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any

_SHARED_LIBRARY_MARKER = "error while loading shared libraries"


def probe_media(video_path: str, *, ffprobe_binary: str = "ffprobe") -> dict[str, Any]:
    """Probe container and stream metadata for one clip via ffprobe."""

    source_path = Path(video_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Video file not found: {source_path}")

    payload = _run_ffprobe(source_path, ffprobe_binary=ffprobe_binary)
    return _normalize_probe_payload(source_path, payload)


def probe_duration(video_path: str, *, ffprobe_binary: str = "ffprobe") -> float:
    """Container duration in seconds; falls back to the longest video stream."""

    metadata = probe_media(video_path, ffprobe_binary=ffprobe_binary)
    duration = metadata["format"]["duration_seconds"]
    if duration is None:
        stream_durations = [
            stream["duration_seconds"]
            for stream in metadata["streams"]
            if stream["codec_type"] == "video" and stream["duration_seconds"] is not None
        ]
        duration = max(stream_durations, default=None)

    if duration is None or duration <= 0:
        raise RuntimeError(f"ffprobe reported no usable duration for {metadata['video_path']}.")
    return float(duration)


def _run_ffprobe(video_path: Path, *, ffprobe_binary: str = "ffprobe") -> dict[str, Any]:
    command = [
        ffprobe_binary,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(video_path),
    ]

    try:
        completed = subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise RuntimeError(
            "ffprobe executable was not found. Install FFmpeg so ffprobe is available on PATH."
        ) from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        if _SHARED_LIBRARY_MARKER in stderr:
            raise RuntimeError(
                "ffprobe is installed but failed to start because required shared libraries are missing. "
                f"ffprobe stderr: {stderr}"
            ) from exc
        details = f" ffprobe stderr: {stderr}" if stderr else ""
        raise RuntimeError(
            f"ffprobe failed while probing media file: {video_path}.{details}"
        ) from exc

    try:
        return json.loads(completed.stdout)
    except json.JSONDecodeError as exc:
        raise RuntimeError("ffprobe returned invalid JSON output.") from exc


def _normalize_probe_payload(video_path: Path, payload: dict[str, Any]) -> dict[str, Any]:
    stream_entries = payload.get("streams", [])
    format_entry = payload.get("format", {})

    streams = [_normalize_stream(stream) for stream in stream_entries]

    return {
        "video_path": str(video_path),
        "format": {
            "format_name": format_entry.get("format_name"),
            "duration_seconds": _to_float(format_entry.get("duration")),
            "size_bytes": _to_int(format_entry.get("size")),
            "bit_rate": _to_int(format_entry.get("bit_rate")),
        },
        "streams": streams,
        "has_audio": any(stream["codec_type"] == "audio" for stream in streams),
        "video_stream_count": sum(1 for stream in streams if stream["codec_type"] == "video"),
    }


def _normalize_stream(stream: dict[str, Any]) -> dict[str, Any]:
    return {
        "index": stream.get("index"),
        "codec_type": stream.get("codec_type"),
        "codec_name": stream.get("codec_name"),
        "width": _to_int(stream.get("width")),
        "height": _to_int(stream.get("height")),
        "pix_fmt": stream.get("pix_fmt"),
        "avg_frame_rate": stream.get("avg_frame_rate"),
        "sample_rate": _to_int(stream.get("sample_rate")),
        "duration_seconds": _to_float(stream.get("duration")),
    }


def _to_float(raw_value: Any) -> float | None:
    if raw_value in (None, "N/A", ""):
        return None
    return float(raw_value)


def _to_int(raw_value: Any) -> int | None:
    if raw_value in (None, "N/A", ""):
        return None
    return int(raw_value)
