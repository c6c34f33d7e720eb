from __future__ import annotations

import pytest

from macromod.config import PARAMS_MODELS, VARIANT_PARAM_RANGES, FractalParams, WalkParams
from macromod.frequency import RATE_PROFILES, effective_rate_multiplier

BANDS = {
    "fractal": (0.3, 2.0),
    "sine": (0.4, 2.0),
    "walk": (0.5, 2.0),
    "lsystem": (0.6, 2.0),
    "cellular": (0.4, 2.0),
}


def _extreme_params(algorithm: str, *, busy: bool):
    profile = RATE_PROFILES[algorithm]
    values = {}
    for name in profile.weights:
        param_range = VARIANT_PARAM_RANGES[algorithm][name]
        high = busy != (name in profile.inverted)
        values[name] = param_range.coerce(param_range.hi if high else param_range.lo)
    return PARAMS_MODELS[algorithm](**values)


@pytest.mark.parametrize("algorithm", list(BANDS))
def test_band_edges(algorithm: str) -> None:
    floor, ceiling = BANDS[algorithm]
    assert effective_rate_multiplier(_extreme_params(algorithm, busy=False)) == pytest.approx(floor)
    assert effective_rate_multiplier(_extreme_params(algorithm, busy=True)) == pytest.approx(ceiling)


@pytest.mark.parametrize("algorithm", list(BANDS))
def test_defaults_fall_inside_band(algorithm: str) -> None:
    floor, ceiling = BANDS[algorithm]
    assert floor <= effective_rate_multiplier(PARAMS_MODELS[algorithm]()) <= ceiling


@pytest.mark.parametrize("algorithm", list(BANDS))
def test_weights_sum_to_one(algorithm: str) -> None:
    assert sum(RATE_PROFILES[algorithm].weights.values()) == pytest.approx(1.0)


def test_shorter_walk_segments_are_busier() -> None:
    long_segments = effective_rate_multiplier(WalkParams(segment_length=0.3))
    short_segments = effective_rate_multiplier(WalkParams(segment_length=0.01))
    assert short_segments > long_segments


def test_fractal_type_does_not_change_rate() -> None:
    assert effective_rate_multiplier(FractalParams(type="fbm")) == effective_rate_multiplier(
        FractalParams(type="turbulence")
    )


def test_unweighted_walk_params_ignored() -> None:
    base = effective_rate_multiplier(WalkParams())
    assert effective_rate_multiplier(WalkParams(levy_probability=0.1, markov_bias=-1.0)) == base
