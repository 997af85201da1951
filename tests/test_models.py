from __future__ import annotations

import pytest

from src.config import Settings
from src.models import StitchConfig


def test_stitch_config_normalizes_choices() -> None:
    config = StitchConfig(selection_mode="Sequence", target_platform=" TikTok ")  # type: ignore[arg-type]

    assert config.selection_mode == "sequence"
    assert config.target_platform == "tiktok"


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"selection_mode": "shuffle"}, "Unsupported transition selection mode"),
        ({"target_platform": "myspace"}, "Unsupported platform"),
        ({"output_quality": "ultra"}, "Unsupported output quality"),
        ({"transition_duration_seconds": -1.0}, "must not be negative"),
        ({"overlap_seconds": -0.5}, "must not be negative"),
    ],
)
def test_stitch_config_rejects_invalid_values(kwargs: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        StitchConfig(**kwargs)


def test_from_settings_applies_non_none_overrides() -> None:
    settings = Settings.model_validate(
        {
            "stitch": {"transition_duration_seconds": 0.75, "custom_transitions": ["fade", "radial"]},
            "encoding": {"crf": 20, "preset": "medium"},
        }
    )

    config = StitchConfig.from_settings(settings, target_platform="instagram", overlap_seconds=None)

    assert config.transition_duration_seconds == pytest.approx(0.75)
    assert config.resolved_overlap_seconds == pytest.approx(0.75)
    assert config.target_platform == "instagram"
    assert config.custom_transitions == ("fade", "radial")
    assert config.video_quality.crf == 20
    assert config.video_quality.preset == "medium"


def test_from_settings_treats_empty_custom_pool_as_unset() -> None:
    assert StitchConfig.from_settings(Settings()).custom_transitions is None
