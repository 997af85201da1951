from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from src.config import Settings

TransitionSelectionMode = Literal["platform-optimized", "sequence", "random"]
Platform = Literal["tiktok", "youtube", "instagram"]
OutputQuality = Literal["draft", "production", "broadcast"]
AudioQuality = Literal["standard", "high"]

SELECTION_MODES: tuple[str, ...] = ("platform-optimized", "sequence", "random")
PLATFORMS: tuple[str, ...] = ("tiktok", "youtube", "instagram")
OUTPUT_QUALITIES: tuple[str, ...] = ("draft", "production", "broadcast")
AUDIO_QUALITIES: tuple[str, ...] = ("standard", "high")


@dataclass(slots=True, frozen=True)
class SegmentDescriptor:
    """One input clip, in the order it should appear in the stitched output."""

    segment_id: str
    video_path: str
    duration_seconds: float
    cost: float = 0.0
    has_audio: bool = True
    character_consistent: bool = False


@dataclass(slots=True, frozen=True)
class VideoQualityParams:
    """Encoder flags passed through to FFmpeg unchanged."""

    codec: str = "libx264"
    crf: int = 18
    preset: str = "fast"
    pixel_format: str = "yuv420p"
    profile: str = "high"
    level: str = "4.0"


@dataclass(slots=True, frozen=True)
class StitchConfig:
    """Read-only settings for a single stitch call."""

    transition_duration_seconds: float = 0.5
    overlap_seconds: float | None = None
    selection_mode: TransitionSelectionMode = "platform-optimized"
    target_platform: Platform | None = None
    audio_sync: bool = True
    video_quality: VideoQualityParams = field(default_factory=VideoQualityParams)
    output_quality: OutputQuality = "production"
    audio_quality: AudioQuality = "high"
    custom_transitions: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        choices = {
            "selection_mode": (SELECTION_MODES, "transition selection mode"),
            "output_quality": (OUTPUT_QUALITIES, "output quality"),
            "audio_quality": (AUDIO_QUALITIES, "audio quality"),
            "target_platform": (PLATFORMS, "platform"),
        }
        for name, (allowed, label) in choices.items():
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, normalize_choice(value, allowed, label))
        if self.custom_transitions is not None:
            object.__setattr__(self, "custom_transitions", tuple(self.custom_transitions))
        if self.transition_duration_seconds < 0:
            raise ValueError("transition_duration_seconds must not be negative.")
        if self.overlap_seconds is not None and self.overlap_seconds < 0:
            raise ValueError("overlap_seconds must not be negative.")

    @property
    def resolved_overlap_seconds(self) -> float:
        if self.overlap_seconds is None:
            return self.transition_duration_seconds
        return self.overlap_seconds

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> StitchConfig:
        """Build a config from runtime settings; ``None`` overrides are ignored."""

        stitch = settings.stitch
        encoding = settings.encoding
        values: dict[str, Any] = {
            "transition_duration_seconds": stitch.transition_duration_seconds,
            "overlap_seconds": stitch.overlap_seconds,
            "selection_mode": stitch.selection_mode,
            "target_platform": stitch.target_platform,
            "audio_sync": stitch.audio_sync,
            "video_quality": VideoQualityParams(
                codec=encoding.codec,
                crf=encoding.crf,
                preset=encoding.preset,
                pixel_format=encoding.pixel_format,
                profile=encoding.profile,
                level=encoding.level,
            ),
            "output_quality": stitch.output_quality,
            "audio_quality": stitch.audio_quality,
            "custom_transitions": tuple(stitch.custom_transitions) or None,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass(slots=True, frozen=True)
class EstimatedQuality:
    """Heuristic 0-100 scores derived from settings, not measured from the output media."""

    estimated_video_quality: float
    estimated_audio_quality: float
    estimated_transition_smoothness: float


@dataclass(slots=True, frozen=True)
class StitchResult:
    """Outcome of one successful stitch call."""

    output_path: str
    total_duration_seconds: float
    file_size_bytes: int
    transitions_used: list[str]
    processing_time_ms: int
    quality: EstimatedQuality
    estimated_processing_cost: float
    segment_count: int
    total_segment_cost: float = 0.0
    segments: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def normalize_choice(value: str, allowed: tuple[str, ...], label: str) -> Any:
    normalized = str(value).lower().strip()
    if normalized not in allowed:
        msg = f"Unsupported {label} '{value}'. Expected one of: {', '.join(allowed)}."
        raise ValueError(msg)
    return normalized
