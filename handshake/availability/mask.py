"""
Privacy mask — reduce a receiver's true slots to the blind set it offers.

Two transforms, both random:

- concealment: withhold up to ``floor(n * conceal_fraction)`` slots
- jitter: snap a retained slot to half past its hour

The mask is intentionally NOT idempotent. Two runs over the same true
slots may yield different blind sets; callers must not cache or compare
them. Because ``conceal_fraction < 1``, a non-empty true set always
leaves at least one blind slot, and an empty one always yields none.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, Optional

import numpy as np

from ..core.errors import ConfigError
from ..core.models import AvailabilitySlot, SlotKind
from .slots import SLOT_LENGTH

logger = logging.getLogger(__name__)

DEFAULT_CONCEAL_FRACTION = 0.3
DEFAULT_JITTER_PROBABILITY = 0.5
JITTER_MINUTE = 30


def derived_from(blind: AvailabilitySlot, true_slots: Iterable[AvailabilitySlot]) -> bool:
    """True if ``blind`` starts inside the hour of one of ``true_slots``."""
    return any(
        slot.start <= blind.start < slot.start + SLOT_LENGTH
        for slot in true_slots
    )


class PrivacyMask:
    """Random concealment + half-hour jitter over true availability."""

    def __init__(
        self,
        conceal_fraction: float = DEFAULT_CONCEAL_FRACTION,
        jitter_probability: float = DEFAULT_JITTER_PROBABILITY,
        rng: Optional[np.random.Generator] = None,
    ):
        if not 0.0 <= conceal_fraction < 1.0:
            raise ConfigError(f"conceal_fraction must be in [0, 1): {conceal_fraction}")
        if not 0.0 <= jitter_probability <= 1.0:
            raise ConfigError(f"jitter_probability must be in [0, 1]: {jitter_probability}")
        self._conceal_fraction = conceal_fraction
        self._jitter_probability = jitter_probability
        self._rng = rng if rng is not None else np.random.default_rng()

    def apply(self, true_slots: list[AvailabilitySlot]) -> list[AvailabilitySlot]:
        """Return the blind slots, sorted chronologically."""
        n = len(true_slots)
        if n == 0:
            return []

        max_hidden = int(n * self._conceal_fraction)
        hidden_count = int(self._rng.integers(0, max_hidden + 1))
        hidden: set[int] = set()
        if hidden_count:
            hidden = set(self._rng.choice(n, size=hidden_count, replace=False).tolist())

        blind: list[AvailabilitySlot] = []
        for index, slot in enumerate(true_slots):
            if index in hidden:
                continue
            start = slot.start
            if self._rng.random() < self._jitter_probability:
                start = start.replace(minute=0, second=0, microsecond=0) + timedelta(
                    minutes=JITTER_MINUTE
                )
            blind.append(AvailabilitySlot(start=start, kind=SlotKind.BLIND))

        logger.debug("Masked %d true slots into %d blind slots", n, len(blind))
        return sorted(blind)
