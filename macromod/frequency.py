from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .config import VARIANT_PARAM_RANGES, AlgorithmName, AnyParams


@dataclass(frozen=True)
class RateProfile:
    """How one algorithm folds its own parameters into a rate multiplier.

    ``weights`` maps parameter name to its share of the composite; inverted
    parameters count "smaller is busier".
    """

    floor: float
    ceiling: float
    weights: Mapping[str, float]
    inverted: frozenset[str] = frozenset()

    def multiplier(self, composite: float) -> float:
        return self.floor + composite * (self.ceiling - self.floor)


RATE_PROFILES: Mapping[AlgorithmName, RateProfile] = MappingProxyType(
    {
        "fractal": RateProfile(
            floor=0.3,
            ceiling=2.0,
            weights=MappingProxyType(
                {
                    "octaves": 0.3,
                    "persistence": 0.2,
                    "frequency_scale": 0.3,
                    "lacunarity": 0.1,
                    "amplitude_bias": 0.1,
                }
            ),
        ),
        "sine": RateProfile(
            floor=0.4,
            ceiling=2.0,
            weights=MappingProxyType(
                {
                    "wave_count": 0.2,
                    "frequency_spread": 0.3,
                    "amplitude_variation": 0.1,
                    "phase_drift": 0.3,
                    "beat_frequency": 0.1,
                }
            ),
        ),
        "walk": RateProfile(
            floor=0.5,
            ceiling=2.0,
            weights=MappingProxyType(
                {
                    "segment_length": 0.35,
                    "smoothing_factor": 0.25,
                    "variation_scale": 0.2,
                    "momentum": 0.2,
                }
            ),
            inverted=frozenset({"segment_length"}),
        ),
        "lsystem": RateProfile(
            floor=0.6,
            ceiling=2.0,
            weights=MappingProxyType(
                {
                    "iterations": 0.25,
                    "branch_angle_deg": 0.1,
                    "length_scale": 0.1,
                    "growth_rate": 0.3,
                    "complexity_factor": 0.1,
                    "max_change_rate": 0.15,
                }
            ),
        ),
        "cellular": RateProfile(
            floor=0.4,
            ceiling=2.0,
            weights=MappingProxyType(
                {
                    "evolution_rate": 0.3,
                    "random_activation": 0.2,
                    "smoothing_window": 0.2,
                    "cell_count": 0.2,
                    "rule_variation": 0.1,
                }
            ),
        ),
    }
)


def _assert_weights_known() -> None:
    for algorithm, profile in RATE_PROFILES.items():
        unknown = set(profile.weights) - set(VARIANT_PARAM_RANGES[algorithm])
        if unknown:
            raise AssertionError(f"{algorithm} rate weights name unknown params: {sorted(unknown)!r}")


_assert_weights_known()


def effective_rate_multiplier(params: AnyParams) -> float:
    """Rate multiplier for the character detail layers, from ``params`` alone."""
    profile = RATE_PROFILES[params.algorithm]
    ranges = VARIANT_PARAM_RANGES[params.algorithm]
    composite = 0.0
    for name, weight in profile.weights.items():
        factor = ranges[name].normalize(float(getattr(params, name)))
        if name in profile.inverted:
            factor = 1.0 - factor
        composite += factor * weight
    return profile.multiplier(composite)
