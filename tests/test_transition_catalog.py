from __future__ import annotations

import pytest

from src.transitions.catalog import DEFAULT_CATALOG, TransitionCatalog


def test_platform_preference_lists_have_five_entries() -> None:
    for platform in ("tiktok", "youtube", "instagram"):
        assert len(DEFAULT_CATALOG.preferences_for(platform)) == 5


def test_unknown_or_missing_platform_falls_back_to_youtube() -> None:
    youtube = DEFAULT_CATALOG.preferences_for("youtube")

    assert DEFAULT_CATALOG.preferences_for(None) == youtube
    assert DEFAULT_CATALOG.preferences_for("vimeo") == youtube
    assert youtube[0] == "fade"


def test_all_names_for_category_and_full_listing() -> None:
    assert DEFAULT_CATALOG.all_names("diagonal") == ["diagtl", "diagtr", "diagbl", "diagbr"]

    every_name = DEFAULT_CATALOG.all_names()
    assert every_name[0] == "fade"
    assert every_name[-1] == "fadeslow"
    assert len(every_name) == 12 + 6 + 4 + 7 + 4 + 5


def test_unknown_category_raises() -> None:
    with pytest.raises(ValueError, match="Unknown transition category"):
        DEFAULT_CATALOG.all_names("sparkles")


def test_sequence_and_random_pools_follow_category_order() -> None:
    sequence = DEFAULT_CATALOG.sequence_pool()
    random_pool = DEFAULT_CATALOG.random_pool()

    assert sequence[:2] == ["fade", "fadeblack"]
    assert sequence[12] == "circleopen"
    assert sequence[-1] == "radial"
    assert random_pool[: len(sequence)] == sequence
    assert random_pool[len(sequence) :] == ["cube", "perspective", "rotate", "zoom"]


def test_custom_catalog_is_independent_and_read_only() -> None:
    catalog = TransitionCatalog(
        categories={"basic": ("fade", "wipeleft")},
        platform_preferences={"youtube": ("fade",)},
        sequence_categories=("basic",),
        random_categories=("basic",),
    )

    assert catalog.sequence_pool() == ["fade", "wipeleft"]
    assert catalog.preferences_for("tiktok") == ("fade",)
    with pytest.raises(TypeError):
        catalog.categories["extra"] = ("zoom",)  # type: ignore[index]
    assert "basic" not in DEFAULT_CATALOG.categories


def test_catalog_requires_default_platform_preferences() -> None:
    with pytest.raises(ValueError, match="Default platform"):
        TransitionCatalog(categories={}, platform_preferences={"tiktok": ("fade",)})
