"""
Seeded randomness for the generation core.

Every random draw in the engine goes through ``seeded_random``: a pure
linear-congruential step with no hidden counter, so the same state always
yields the same value on every platform. ``smooth_noise`` builds a
continuous 1-D noise curve on top of it.

Callers derive a distinct seed per feature (base seed + fixed offset) instead
of threading one mutable seed through the pipeline, which keeps draws for
different features independent of evaluation order.
"""

from __future__ import annotations

import math
from typing import overload

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MODULUS = 2**32


@overload
def seeded_random(state: int) -> tuple[float, int]: ...


@overload
def seeded_random(state: int, lo: float, hi: float) -> tuple[float, int]: ...


def seeded_random(
    state: int, lo: float | None = None, hi: float | None = None
) -> tuple[float, int]:
    """Advance the LCG one step from ``state``.

    Returns ``(value, next_state)`` where ``value`` is uniform in [0, 1) or,
    when both bounds are given, in [lo, hi).
    """
    next_state = (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
    value = next_state / LCG_MODULUS
    if lo is not None and hi is not None:
        return lo + value * (hi - lo), next_state
    return value, next_state


def seeded_value(state: int, lo: float = 0.0, hi: float = 1.0) -> float:
    """Single draw in [lo, hi) for callers that discard the next state."""
    value, _ = seeded_random(state, lo, hi)
    return value


def smooth_noise(x: float, seed: int) -> float:
    """Cosine-interpolated value noise in [-1, 1].

    Lattice values at ``floor(x)`` and ``floor(x) + 1`` come from the LCG
    seeded with ``seed + lattice_index``; the result depends on ``(x, seed)``
    only.
    """
    int_x = math.floor(x)
    frac_x = x - int_x

    v1 = seeded_value(seed + int_x, -1.0, 1.0)
    v2 = seeded_value(seed + int_x + 1, -1.0, 1.0)

    f = (1.0 - math.cos(frac_x * math.pi)) * 0.5
    return v1 * (1.0 - f) + v2 * f
