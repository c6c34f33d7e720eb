"""
Parameter randomization policy.

Every operation is a pure function of ``(config, locks, rng_seed)`` returning a
new config. Locked parameters come back bit-for-bit unchanged. Categorical
fields (fractal type, L-system mapping mode), the algorithm choice and the
target span are never touched; only ``randomize_all`` draws a new seed.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

import numpy as np

from .config import (
    CORE_DEFAULTS,
    CORE_RANDOM_RANGES,
    PARAMS_MODELS,
    VARIANT_PARAM_RANGES,
    GenerationConfig,
    ParameterLockSet,
    ParamRange,
)

_LOGGER = logging.getLogger("macromod.randomize")

RandomizeMode = Literal["reset", "mild", "extreme", "all"]

MILD_FRACTION = 0.2
SEED_DRAW_RANGE = (1, 1_000_000)
SLIDER_KNEE = 5.0
RANDOMNESS_KNEE = 2.0
SLIDER_MAX = 10.0
RANDOMNESS_MAX = 10.0


def randomness_from_slider(position: float) -> float:
    """Slider position 0-10 to randomness: linear to 2.0 at mid-travel, then steeper to 10."""
    position = float(np.clip(position, 0.0, SLIDER_MAX))
    if position <= SLIDER_KNEE:
        return position / SLIDER_KNEE * RANDOMNESS_KNEE
    upper = (position - SLIDER_KNEE) / (SLIDER_MAX - SLIDER_KNEE)
    return RANDOMNESS_KNEE + upper * (RANDOMNESS_MAX - RANDOMNESS_KNEE)


def slider_from_randomness(value: float) -> float:
    value = float(np.clip(value, 0.0, RANDOMNESS_MAX))
    if value <= RANDOMNESS_KNEE:
        return value / RANDOMNESS_KNEE * SLIDER_KNEE
    upper = (value - RANDOMNESS_KNEE) / (RANDOMNESS_MAX - RANDOMNESS_KNEE)
    return SLIDER_KNEE + upper * (SLIDER_MAX - SLIDER_KNEE)


def draw_seed(rng: np.random.Generator | None = None) -> int:
    """Fresh generation seed from ambient randomness; only UI-facing code should call this."""
    rng = rng if rng is not None else np.random.default_rng()
    return int(rng.integers(*SEED_DRAW_RANGE))


def _draw(param_range: ParamRange, rng: np.random.Generator, *, mild: bool) -> float | int:
    if mild:
        half = param_range.width * MILD_FRACTION
        lo, hi = param_range.midpoint - half, param_range.midpoint + half
    else:
        lo, hi = param_range.lo, param_range.hi
    return param_range.coerce(float(rng.uniform(lo, hi)))


def _rebuild(
    config: GenerationConfig, core: dict[str, Any], params: dict[str, Any]
) -> GenerationConfig:
    payload = config.model_dump()
    payload.update(core)
    payload["params"] = {**payload["params"], **params}
    return GenerationConfig.model_validate(payload)


def _randomized(
    config: GenerationConfig, locks: ParameterLockSet, rng: np.random.Generator, *, mild: bool
) -> GenerationConfig:
    core: dict[str, Any] = {}
    for name, param_range in CORE_RANDOM_RANGES.items():
        if locks.is_locked(name):
            continue
        drawn = _draw(param_range, rng, mild=mild)
        core[name] = randomness_from_slider(drawn) if name == "randomness" else drawn

    locked_fields = locks.locked_variant_fields(config.algorithm)
    params: dict[str, Any] = {}
    for name, param_range in VARIANT_PARAM_RANGES[config.algorithm].items():
        if name not in locked_fields:
            params[name] = _draw(param_range, rng, mild=mild)
    return _rebuild(config, core, params)


def reset_parameters(config: GenerationConfig, locks: ParameterLockSet) -> GenerationConfig:
    """Restore defaults for every unlocked parameter; density and value range always reset."""
    core: dict[str, Any] = {
        name: value for name, value in CORE_DEFAULTS.items() if not locks.is_locked(name)
    }
    for name in ("points_per_minute", "min_value", "max_value"):
        core[name] = GenerationConfig.model_fields[name].default

    defaults = PARAMS_MODELS[config.algorithm]()
    locked_fields = locks.locked_variant_fields(config.algorithm)
    params = {
        name: getattr(defaults, name)
        for name in VARIANT_PARAM_RANGES[config.algorithm]
        if name not in locked_fields
    }
    return _rebuild(config, core, params)


def randomize_mild(
    config: GenerationConfig, locks: ParameterLockSet, rng_seed: int | None = None
) -> GenerationConfig:
    """Draw each unlocked parameter within ±20% of its range width around the midpoint."""
    return _randomized(config, locks, np.random.default_rng(rng_seed), mild=True)


def randomize_extreme(
    config: GenerationConfig, locks: ParameterLockSet, rng_seed: int | None = None
) -> GenerationConfig:
    """Draw each unlocked parameter across its full range."""
    return _randomized(config, locks, np.random.default_rng(rng_seed), mild=False)


def randomize_all(
    config: GenerationConfig, locks: ParameterLockSet, rng_seed: int | None = None
) -> GenerationConfig:
    rng = np.random.default_rng(rng_seed)
    randomized = _randomized(config, locks, rng, mild=False)
    return randomized.model_copy(update={"seed": draw_seed(rng)})


def apply_randomization(
    mode: RandomizeMode,
    config: GenerationConfig,
    locks: ParameterLockSet | None = None,
    rng_seed: int | None = None,
) -> GenerationConfig:
    locks = locks if locks is not None else ParameterLockSet()
    _LOGGER.debug("Applying %s randomization (locks=%s)", mode, locks.model_dump(exclude_defaults=True))
    if mode == "reset":
        return reset_parameters(config, locks)
    if mode == "mild":
        return randomize_mild(config, locks, rng_seed)
    if mode == "extreme":
        return randomize_extreme(config, locks, rng_seed)
    if mode == "all":
        return randomize_all(config, locks, rng_seed)
    raise ValueError(f"Unknown randomization mode: {mode!r}")
