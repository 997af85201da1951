from __future__ import annotations

from typing import Sequence

from src.models import EstimatedQuality, StitchConfig

# Presentation-only estimates: derived from encoder settings and transition
# choices, never measured from the rendered media.

CRF_BONUSES = ((18, 25.0), (20, 20.0), (23, 15.0))
PRESET_BONUSES = {"veryslow": 10.0, "slow": 8.0, "medium": 5.0}
OUTPUT_QUALITY_BONUSES = {"broadcast": 10.0, "production": 5.0}
OUTPUT_QUALITY_COST_MULTIPLIERS = {"draft": 1.0, "production": 1.5, "broadcast": 2.0}
COST_PER_PROCESSING_SECOND = 0.001


def estimate_quality(config: StitchConfig, transitions: Sequence[str]) -> EstimatedQuality:
    return EstimatedQuality(
        estimated_video_quality=estimate_video_quality(config),
        estimated_audio_quality=estimate_audio_quality(config),
        estimated_transition_smoothness=estimate_transition_smoothness(transitions),
    )


def estimate_video_quality(config: StitchConfig) -> float:
    """Score 0-100 from CRF, encoder preset and output quality tier."""

    score = 60.0
    crf = config.video_quality.crf
    for threshold, bonus in CRF_BONUSES:
        if crf <= threshold:
            score += bonus
            break

    score += PRESET_BONUSES.get(config.video_quality.preset, 0.0)
    score += OUTPUT_QUALITY_BONUSES.get(config.output_quality, 0.0)
    return _clamp(score)


def estimate_audio_quality(config: StitchConfig) -> float:
    score = 70.0
    if config.audio_sync:
        score += 20.0
    if config.audio_quality == "high":
        score += 10.0
    return _clamp(score)


def estimate_transition_smoothness(transitions: Sequence[str]) -> float:
    """Base 80, plus up to 20 for variety (unique names / total transitions)."""

    if not transitions:
        return 80.0
    variety = len(set(transitions)) / len(transitions)
    return _clamp(80.0 + variety * 20.0)


def estimate_processing_cost(processing_time_ms: int, output_quality: str) -> float:
    multiplier = OUTPUT_QUALITY_COST_MULTIPLIERS.get(output_quality, 1.0)
    return (processing_time_ms / 1000.0) * COST_PER_PROCESSING_SECOND * multiplier


def _clamp(value: float, minimum: float = 0.0, maximum: float = 100.0) -> float:
    return max(minimum, min(maximum, value))
