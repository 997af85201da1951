from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
ENV_PREFIX = "CLIP_STITCH_"


class StitchSettings(BaseModel):
    transition_duration_seconds: float = 0.5
    overlap_seconds: float | None = None
    selection_mode: str = "platform-optimized"
    target_platform: str | None = None
    audio_sync: bool = True
    audio_quality: str = "high"
    output_quality: str = "production"
    custom_transitions: list[str] = Field(default_factory=list)


class EncodingSettings(BaseModel):
    codec: str = "libx264"
    crf: int = 18
    preset: str = "fast"
    pixel_format: str = "yuv420p"
    profile: str = "high"
    level: str = "4.0"


class FFmpegSettings(BaseModel):
    binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    stderr_tail_chars: int = 1000


class PipelineSettings(BaseModel):
    output_dir: Path = Path("data/outputs")


class LoggingSettings(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    stitch: StitchSettings = Field(default_factory=StitchSettings)
    encoding: EncodingSettings = Field(default_factory=EncodingSettings)
    ffmpeg: FFmpegSettings = Field(default_factory=FFmpegSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load typed settings from YAML with environment-variable overrides."""

    resolved_path = Path(
        config_path
        or os.getenv(f"{ENV_PREFIX}CONFIG")
        or DEFAULT_CONFIG_PATH
    )
    raw_config: dict[str, Any] = {}
    if resolved_path.exists():
        raw_config = yaml.safe_load(resolved_path.read_text(encoding="utf-8")) or {}
    data = Settings.model_validate(raw_config).model_dump(mode="python")

    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        suffix = key[len(ENV_PREFIX) :]
        if suffix == "CONFIG":
            continue

        path = [part.lower() for part in suffix.split("__")]
        _apply_override(data, path, raw_value)

    return Settings.model_validate(data)


def _apply_override(data: dict[str, Any], path: list[str], raw_value: str) -> None:
    current: Any = data
    for segment in path[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return
        current = current[segment]

    if not isinstance(current, dict):
        return

    final_key = path[-1]
    if final_key not in current:
        return

    current[final_key] = _coerce_value(raw_value, current[final_key])


def _coerce_value(raw_value: str, existing_value: Any) -> Any:
    if existing_value is None:
        return raw_value or None
    if isinstance(existing_value, bool):
        return raw_value.lower() in {"1", "true", "yes", "on"}
    if isinstance(existing_value, int) and not isinstance(existing_value, bool):
        return int(raw_value)
    if isinstance(existing_value, float):
        return float(raw_value)
    if isinstance(existing_value, list | dict):
        return json.loads(raw_value)
    if isinstance(existing_value, Path):
        return Path(raw_value)
    return raw_value
