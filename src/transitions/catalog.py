from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

CATEGORY_ORDER: tuple[str, ...] = (
    "geometric",
    "circular",
    "diagonal",
    "advanced",
    "three_d",
    "creative",
)

DEFAULT_PLATFORM = "youtube"


@dataclass(frozen=True)
class TransitionCatalog:
    """Immutable lookup of xfade transition names and per-platform preferences.

    Pass a smaller catalog to the engine or selector in tests instead of
    patching the module-level default.
    """

    categories: Mapping[str, tuple[str, ...]]
    platform_preferences: Mapping[str, tuple[str, ...]]
    default_platform: str = DEFAULT_PLATFORM
    sequence_categories: tuple[str, ...] = ("geometric", "circular", "advanced")
    random_categories: tuple[str, ...] = ("geometric", "circular", "advanced", "three_d")
    _category_order: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        categories = {name: tuple(names) for name, names in self.categories.items()}
        preferences = {name: tuple(names) for name, names in self.platform_preferences.items()}
        if self.default_platform not in preferences:
            raise ValueError(f"Default platform '{self.default_platform}' has no preference list.")

        object.__setattr__(self, "categories", MappingProxyType(categories))
        object.__setattr__(self, "platform_preferences", MappingProxyType(preferences))
        ordered = [name for name in CATEGORY_ORDER if name in categories]
        ordered.extend(name for name in categories if name not in ordered)
        object.__setattr__(self, "_category_order", tuple(ordered))

    def preferences_for(self, platform: str | None) -> tuple[str, ...]:
        """Ordered preference list for a platform; unknown platforms use the default list."""

        key = (platform or "").lower().strip()
        return self.platform_preferences.get(key, self.platform_preferences[self.default_platform])

    def all_names(self, category: str | None = None) -> list[str]:
        if category is None:
            return self._concat(self._category_order)

        key = category.lower().strip()
        if key not in self.categories:
            msg = (
                f"Unknown transition category '{category}'. "
                f"Expected one of: {', '.join(self._category_order)}."
            )
            raise ValueError(msg)
        return list(self.categories[key])

    def sequence_pool(self) -> list[str]:
        return self._concat(self.sequence_categories)

    def random_pool(self) -> list[str]:
        return self._concat(self.random_categories)

    def category_names(self) -> list[str]:
        return list(self._category_order)

    def _concat(self, category_names: tuple[str, ...]) -> list[str]:
        names: list[str] = []
        for category in category_names:
            names.extend(self.categories.get(category, ()))
        return names


DEFAULT_CATALOG = TransitionCatalog(
    categories={
        "geometric": (
            "fade",
            "fadeblack",
            "fadewhite",
            "distance",
            "wipeleft",
            "wiperight",
            "wipeup",
            "wipedown",
            "slideleft",
            "slideright",
            "slideup",
            "slidedown",
        ),
        "circular": (
            "circleopen",
            "circleclose",
            "vertopen",
            "vertclose",
            "horzopen",
            "horzclose",
        ),
        "diagonal": ("diagtl", "diagtr", "diagbl", "diagbr"),
        "advanced": (
            "hlslice",
            "hrslice",
            "vuslice",
            "vdslice",
            "dissolve",
            "pixelize",
            "radial",
        ),
        "three_d": ("cube", "perspective", "rotate", "zoom"),
        "creative": ("squeezeh", "squeezev", "zoomin", "fadefast", "fadeslow"),
    },
    platform_preferences={
        "tiktok": ("dissolve", "fadeblack", "circleopen", "zoomin", "slideright"),
        "youtube": ("fade", "dissolve", "wipeleft", "perspective", "cube"),
        "instagram": ("fade", "circleopen", "dissolve", "slideup", "radial"),
    },
)
