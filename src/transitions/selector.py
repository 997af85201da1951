from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from src.models import StitchConfig
from src.transitions.catalog import DEFAULT_CATALOG, TransitionCatalog

logger = logging.getLogger(__name__)


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Seedable generator for the ``random`` selection mode."""

    return np.random.default_rng(seed)


def select_transitions(
    count: int,
    config: StitchConfig,
    *,
    catalog: TransitionCatalog = DEFAULT_CATALOG,
    rng: np.random.Generator | None = None,
) -> list[str]:
    """Pick ``count`` transition names, one per boundary between adjacent segments.

    ``platform-optimized`` and ``sequence`` cycle through a fixed list, so the
    result only depends on ``count`` and the config. ``random`` samples with
    repetition and is unseeded unless a generator is passed in.
    """

    if count < 0:
        raise ValueError("Transition count must not be negative.")
    if count == 0:
        return []

    mode = config.selection_mode
    if mode == "platform-optimized":
        return _cycle(catalog.preferences_for(config.target_platform), count)
    if mode == "sequence":
        return _cycle(catalog.sequence_pool(), count)

    pool = list(config.custom_transitions or catalog.random_pool())
    if not pool:
        raise ValueError("Random transition selection requires a non-empty candidate pool.")

    generator = rng if rng is not None else np.random.default_rng()
    indices = generator.integers(0, len(pool), size=count)
    selected = [pool[int(index)] for index in indices]
    logger.debug("Randomly selected transitions from pool of %d: %s", len(pool), selected)
    return selected


def _cycle(names: Sequence[str], count: int) -> list[str]:
    if not names:
        raise ValueError("Transition list is empty; cannot select transitions.")
    return [names[index % len(names)] for index in range(count)]
