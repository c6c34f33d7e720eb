"""
Character shaping: raw variant output -> positioned, bounded value.

Stages run in a fixed order; later stages assume earlier ones already
bounded the signal to [-1, 1]:

1. Complexity: three detail layers of smooth noise
2. Peak irregularity: time-warped interference plus peak events
3. Scaling: complexity drift, flow blend toward the previous point,
   randomness layers, then intensity
4. Positioning: center offset and clamp to [min_value, max_value]

Each character parameter reads noise from its own seed offsets, so zeroing one
parameter never shifts the draws another one sees.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

import numpy as np

from .config import CurvePoint, GenerationConfig
from .noise import smooth_noise

# (frequency multiple, seed offset, weight)
COMPLEXITY_LAYERS: tuple[tuple[float, int, float], ...] = (
    (1.618, 2000, 0.08),
    (7.389, 3000, 0.05),
    (13.42, 4000, 0.03),
)
RANDOMNESS_LAYERS: tuple[tuple[float, int, float], ...] = (
    (25.0, 12000, 0.08),
    (40.0, 13000, 0.05),
    (80.0, 14000, 0.03),
)

SEED_OFFSETS: Mapping[str, int] = MappingProxyType(
    {
        "warp_slow": 5000,
        "warp_fast": 6000,
        "warped_interference": 7000,
        "event_slow": 8000,
        "event_fast": 9000,
        "drift": 10000,
        "flow": 11000,
    }
)

WARP_BOUNDS = (0.7, 1.5)


def _clamp_unit(value: float) -> float:
    return float(np.clip(value, -1.0, 1.0))


def apply_complexity(value: float, time_norm: float, seed: int, complexity: float, rate: float) -> float:
    if complexity > 0:
        for multiple, offset, weight in COMPLEXITY_LAYERS:
            value += smooth_noise(time_norm * multiple * rate, seed + offset) * weight * complexity
    return _clamp_unit(value)


def apply_peak_irregularity(
    value: float, time_norm: float, seed: int, peak_irregularity: float, rate: float
) -> float:
    """Time warp plus multiplicative peak events, clamped to [-1, 1]."""
    if peak_irregularity > 0:
        warp = smooth_noise(time_norm * 0.7 * rate, seed + SEED_OFFSETS["warp_slow"])
        warp += smooth_noise(time_norm * 2.3 * rate, seed + SEED_OFFSETS["warp_fast"]) * 0.6
        warp_factor = float(np.clip(1.0 + warp * peak_irregularity * 0.2, *WARP_BOUNDS))

        interference = smooth_noise(
            time_norm * 5.196 * warp_factor * rate, seed + SEED_OFFSETS["warped_interference"]
        )
        value += interference * peak_irregularity * 0.1

        events = smooth_noise(time_norm * 2.718 * rate, seed + SEED_OFFSETS["event_slow"])
        events += smooth_noise(time_norm * 5.439 * rate, seed + SEED_OFFSETS["event_fast"]) * 0.7
        value *= 1.0 + events * peak_irregularity * 0.15
    return _clamp_unit(value)


def drift_factor(time_norm: float, seed: int, complexity: float, rate: float) -> float:
    """Slow amplitude drift in [0.8, 1.0] driven by complexity."""
    envelope = smooth_noise(time_norm * 1.5 * rate, seed + SEED_OFFSETS["drift"]) * 0.5 + 0.5
    return float(np.clip(0.8 + envelope * complexity * 0.2, 0.8, 1.0))


def apply_scaling(
    value: float,
    time_norm: float,
    config: GenerationConfig,
    rate: float,
    previous: CurvePoint | None,
) -> float:
    seed = config.seed

    if config.complexity > 0:
        value *= drift_factor(time_norm, seed, config.complexity, rate)

    if config.flow > 0:
        if previous is not None:
            anchor = previous.continuity_value
            value = anchor + (value - anchor) * (0.7 + 0.3 * config.flow)
        value += smooth_noise(time_norm * 20.0 * rate, seed + SEED_OFFSETS["flow"]) * config.flow * 0.05

    if config.randomness > 0:
        for multiple, offset, weight in RANDOMNESS_LAYERS:
            value += smooth_noise(time_norm * multiple * rate, seed + offset) * config.randomness * weight

    return value * config.intensity


def position(value: float, config: GenerationConfig) -> float:
    return float(np.clip(config.center + value, config.min_value, config.max_value))


def shape(
    raw: float,
    time_norm: float,
    config: GenerationConfig,
    rate: float,
    previous: CurvePoint | None = None,
) -> float:
    """Run all four stages on one raw sample and return the final value."""
    value = apply_complexity(raw, time_norm, config.seed, config.complexity, rate)
    value = apply_peak_irregularity(value, time_norm, config.seed, config.peak_irregularity, rate)
    value = apply_scaling(value, time_norm, config, rate, previous)
    return position(value, config)
