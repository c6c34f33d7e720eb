from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from .algorithms import get_variant
from .config import AnyParams, CurvePoint, GenerationConfig, GenerationResult
from .frequency import effective_rate_multiplier
from .shaping import shape

_LOGGER = logging.getLogger("macromod.sampler")


def total_steps(config: GenerationConfig) -> int:
    return config.point_count


def generate(config: GenerationConfig) -> GenerationResult:
    """Sample the full pipeline across ``config``'s span.

    Points are produced strictly in time order: the walk variant and the flow
    stage both carry state from one sample to the next.
    """
    steps = total_steps(config)
    if steps == 0:
        _LOGGER.info(
            "Nothing to generate (span=%.3fs, density=%.1f/min)",
            config.span_seconds,
            config.points_per_minute,
        )
        return GenerationResult()

    variant = get_variant(config.algorithm)
    state = variant.new_state()
    rate = effective_rate_multiplier(config.params)

    points: list[CurvePoint] = []
    previous: CurvePoint | None = None
    for i in range(steps):
        t = i / (steps - 1)
        raw = variant.generate_base(t, config.seed, config.params, state)
        value = shape(raw, t, config, rate, previous)
        previous = CurvePoint(
            time=config.range_start + t * config.span_seconds,
            value=value,
            continuity_value=value,
        )
        points.append(previous)

    _LOGGER.debug(
        "Generated %d points (algorithm=%s, seed=%d, rate=%.3f)",
        steps,
        config.algorithm,
        config.seed,
        rate,
    )
    return GenerationResult(points=tuple(points))


def preview_raw(params: AnyParams, seed: int, samples: int = 10) -> NDArray[np.float64]:
    """Raw ``generate_base`` output at ``samples`` evenly spaced times."""
    if samples <= 0:
        return np.zeros(0, dtype=np.float64)
    variant = get_variant(params.algorithm)
    state = variant.new_state()
    times = np.linspace(0.0, 1.0, samples) if samples > 1 else np.zeros(1)
    return np.array(
        [variant.generate_base(float(t), seed, params, state) for t in times], dtype=np.float64
    )
