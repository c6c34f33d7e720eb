from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Annotated, Any, Iterator, Literal, Mapping, Union

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidConfigError

_LOGGER = logging.getLogger("macromod.config")

AlgorithmName = Literal["fractal", "sine", "walk", "lsystem", "cellular"]
FractalType = Literal["fbm", "ridged", "turbulence"]
MappingMode = Literal["y_value", "symmetry_axis"]
CoreParamName = Literal[
    "intensity",
    "center",
    "complexity",
    "flow",
    "randomness",
    "peak_irregularity",
]
LockName = Literal[
    "intensity",
    "center",
    "complexity",
    "flow",
    "randomness",
    "peak_irregularity",
    "algo_param1",
    "algo_param2",
    "algo_param3",
    "algo_param4",
    "algo_param5",
]

ALGORITHM_LABELS: Mapping[AlgorithmName, str] = MappingProxyType(
    {
        "fractal": "Fractal Curves",
        "sine": "Sine Wave Interference",
        "walk": "Generative Walk",
        "lsystem": "L-Systems",
        "cellular": "Cellular Automata",
    }
)

MIN_POINTS = 30
MIN_POINTS_PER_MINUTE = 60.0
MAX_POINTS_PER_MINUTE = 500.0
CHARACTER_MAX = 10.0
MAX_SEED = 2**63 - 1
TIME_RESOLUTION_ULPS = 4.0

_PARAMS_CONFIG = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)


@dataclass(frozen=True, slots=True)
class ParamRange:
    """Closed numeric range of a tunable parameter."""

    lo: float
    hi: float
    integer: bool = False

    @property
    def width(self) -> float:
        return self.hi - self.lo

    @property
    def midpoint(self) -> float:
        return self.lo + self.width * 0.5

    def normalize(self, value: float) -> float:
        """Map ``value`` to [0, 1] across this range."""
        if self.width <= 0:
            return 0.0
        return float(np.clip((value - self.lo) / self.width, 0.0, 1.0))

    def coerce(self, value: float) -> float | int:
        """Clamp into range, rounding integer parameters."""
        clamped = float(np.clip(value, self.lo, self.hi))
        if self.integer:
            return int(round(clamped))
        return clamped


# -----------------------------------------------------------------------------
# Variant parameter records
# -----------------------------------------------------------------------------


class FractalParams(BaseModel):
    """Layered smooth noise (fBm / ridged / turbulence)."""

    algorithm: Literal["fractal"] = "fractal"
    type: FractalType = "fbm"
    octaves: int = Field(default=9, ge=0, le=10)
    persistence: float = Field(default=0.4, ge=0.0, le=1.0)
    frequency_scale: float = Field(default=10.0, ge=1.0, le=20.0)
    lacunarity: float = Field(default=0.7, ge=0.5, le=5.0)
    amplitude_bias: float = Field(default=1.9, ge=0.01, le=2.5)

    model_config = _PARAMS_CONFIG


class SineParams(BaseModel):
    """Drifting, beating bank of sine oscillators."""

    algorithm: Literal["sine"] = "sine"
    wave_count: int = Field(default=8, ge=1, le=30)
    frequency_spread: float = Field(default=3.0, ge=0.5, le=10.0)
    amplitude_variation: float = Field(default=0.6, ge=0.1, le=2.0)
    phase_drift: float = Field(default=4.0, ge=0.1, le=30.0)
    beat_frequency: float = Field(default=1.5, ge=0.1, le=10.0)

    model_config = _PARAMS_CONFIG


class WalkParams(BaseModel):
    """Segment-based random walk with momentum."""

    algorithm: Literal["walk"] = "walk"
    segment_length: float = Field(default=0.2, ge=0.01, le=0.3)
    smoothing_factor: float = Field(default=21.0, ge=0.01, le=50.0)
    variation_scale: float = Field(default=0.03, ge=0.01, le=0.05)
    momentum: float = Field(default=0.075, ge=0.0, le=0.1)
    levy_probability: float = Field(default=0.02, ge=0.0, le=0.1)
    markov_bias: float = Field(default=0.0, ge=-1.0, le=1.0)

    model_config = _PARAMS_CONFIG


class LSystemParams(BaseModel):
    """Turtle-traced bracketed L-system read back as a scalar."""

    algorithm: Literal["lsystem"] = "lsystem"
    iterations: int = Field(default=4, ge=1, le=6)
    branch_angle_deg: float = Field(default=25.0, ge=10.0, le=90.0)
    length_scale: float = Field(default=0.7, ge=0.3, le=0.95)
    growth_rate: float = Field(default=1.0, ge=0.01, le=4.0)
    complexity_factor: float = Field(default=0.6, ge=0.2, le=1.0)
    max_change_rate: float = Field(default=2.0, ge=0.1, le=10.0)
    tilt: float = Field(default=0.0, ge=-1.0, le=1.0)
    mapping_mode: MappingMode = "y_value"

    model_config = _PARAMS_CONFIG


class CellularParams(BaseModel):
    """1-D cellular automaton read through a weighted cell average."""

    algorithm: Literal["cellular"] = "cellular"
    evolution_rate: float = Field(default=0.2025, ge=0.005, le=0.4)
    random_activation: float = Field(default=0.405, ge=0.01, le=0.8)
    smoothing_window: int = Field(default=21, ge=2, le=40)
    cell_count: int = Field(default=240, ge=32, le=512)
    rule_variation: float = Field(default=2.0, ge=0.0, le=4.0)

    model_config = _PARAMS_CONFIG


AnyParams = Union[FractalParams, SineParams, WalkParams, LSystemParams, CellularParams]
VariantParams = Annotated[AnyParams, Field(discriminator="algorithm")]

PARAMS_MODELS: Mapping[AlgorithmName, type[AnyParams]] = MappingProxyType(
    {
        "fractal": FractalParams,
        "sine": SineParams,
        "walk": WalkParams,
        "lsystem": LSystemParams,
        "cellular": CellularParams,
    }
)


def _field_range(model: type[BaseModel], name: str) -> ParamRange | None:
    field = model.model_fields[name]
    if field.annotation not in (int, float):
        return None
    lo: float | None = None
    hi: float | None = None
    for meta in field.metadata:
        lo = getattr(meta, "ge", lo)
        hi = getattr(meta, "le", hi)
    if lo is None or hi is None:
        raise AssertionError(f"{model.__name__}.{name} must declare ge/le bounds")
    return ParamRange(float(lo), float(hi), integer=field.annotation is int)


def _numeric_ranges(model: type[BaseModel]) -> Mapping[str, ParamRange]:
    ranges: dict[str, ParamRange] = {}
    for name in model.model_fields:
        param_range = _field_range(model, name)
        if param_range is not None:
            ranges[name] = param_range
    return MappingProxyType(ranges)


# Field order doubles as the algo_param1..5 lock slot order.
VARIANT_PARAM_RANGES: Mapping[AlgorithmName, Mapping[str, ParamRange]] = MappingProxyType(
    {name: _numeric_ranges(model) for name, model in PARAMS_MODELS.items()}
)

# Ranges offered for randomization; randomness is drawn as a 0-10 slider position.
CORE_RANDOM_RANGES: Mapping[CoreParamName, ParamRange] = MappingProxyType(
    {
        "intensity": ParamRange(0.0, 1.0),
        "center": ParamRange(0.0, 1.0),
        "complexity": ParamRange(0.0, 1.0),
        "flow": ParamRange(0.0, 3.0),
        "randomness": ParamRange(0.0, 10.0),
        "peak_irregularity": ParamRange(0.0, 1.0),
    }
)

ALGO_SLOTS: tuple[LockName, ...] = (
    "algo_param1",
    "algo_param2",
    "algo_param3",
    "algo_param4",
    "algo_param5",
)


def slot_fields(algorithm: AlgorithmName) -> Mapping[LockName, str]:
    """Which variant field each generic lock slot guards."""
    names = list(VARIANT_PARAM_RANGES[algorithm])
    return MappingProxyType(dict(zip(ALGO_SLOTS, names)))


# -----------------------------------------------------------------------------
# Generation config
# -----------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """Immutable input for one generation call."""

    seed: int = Field(default=12345, ge=0, le=MAX_SEED)
    range_start: float = 0.0
    span_seconds: float = Field(default=30.0, ge=0.0)
    points_per_minute: float = Field(default=200.0, ge=0.0)

    intensity: float = Field(default=0.5, ge=0.0, le=1.0)
    center: float = Field(default=0.5, ge=0.0, le=1.0)
    min_value: float = 0.0
    max_value: float = 1.0

    complexity: float = Field(default=0.55, ge=0.0, le=CHARACTER_MAX)
    flow: float = Field(default=1.5, ge=0.0, le=CHARACTER_MAX)
    randomness: float = Field(default=1.5, ge=0.0, le=CHARACTER_MAX)
    peak_irregularity: float = Field(default=0.35, ge=0.0, le=CHARACTER_MAX)

    params: VariantParams = Field(default_factory=FractalParams)

    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    @field_validator("points_per_minute")
    @classmethod
    def _clamp_density(cls, value: float) -> float:
        # 0 means "no points"; anything else lands in the supported band.
        if value == 0:
            return 0.0
        return float(np.clip(value, MIN_POINTS_PER_MINUTE, MAX_POINTS_PER_MINUTE))

    @model_validator(mode="after")
    def _validate_value_range(self) -> "GenerationConfig":
        if self.min_value > self.max_value:
            raise ValueError(
                f"min_value ({self.min_value}) must not exceed max_value ({self.max_value})"
            )
        return self

    @model_validator(mode="after")
    def _validate_time_resolution(self) -> "GenerationConfig":
        # Consecutive point times must stay distinct at this magnitude.
        steps = self.point_count
        if steps < 2:
            return self
        step = self.span_seconds / (steps - 1)
        magnitude = max(abs(self.range_start), abs(self.range_end))
        if step <= TIME_RESOLUTION_ULPS * float(np.spacing(magnitude)):
            raise ValueError(
                f"span_seconds ({self.span_seconds}) is too short to place {steps} distinct "
                f"points after range_start ({self.range_start})"
            )
        return self

    @property
    def algorithm(self) -> AlgorithmName:
        return self.params.algorithm

    @property
    def point_count(self) -> int:
        """Points one generation emits; 0 for a zero span or zero density."""
        if self.span_seconds <= 0 or self.points_per_minute <= 0:
            return 0
        return max(MIN_POINTS, math.floor(self.span_seconds * self.points_per_minute / 60.0))

    @property
    def range_end(self) -> float:
        return self.range_start + self.span_seconds


CORE_DEFAULTS: Mapping[CoreParamName, float] = MappingProxyType(
    {name: float(GenerationConfig.model_fields[name].default) for name in CORE_RANDOM_RANGES}
)


class ParameterLockSet(BaseModel):
    """Parameters that randomization must leave untouched."""

    intensity: bool = False
    center: bool = False
    complexity: bool = False
    flow: bool = False
    randomness: bool = False
    peak_irregularity: bool = False
    algo_param1: bool = False
    algo_param2: bool = False
    algo_param3: bool = False
    algo_param4: bool = False
    algo_param5: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def of(cls, *names: LockName) -> "ParameterLockSet":
        return cls.model_validate({name: True for name in names})

    def is_locked(self, name: LockName) -> bool:
        return bool(getattr(self, name))

    def locked_variant_fields(self, algorithm: AlgorithmName) -> frozenset[str]:
        return frozenset(
            field for slot, field in slot_fields(algorithm).items() if self.is_locked(slot)
        )


def parse_config(payload: Mapping[str, Any]) -> GenerationConfig:
    """Parse a config payload, raising InvalidConfigError on failure."""

    try:
        return GenerationConfig.model_validate(payload)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse generation config: %s", exc)
        raise InvalidConfigError(str(exc)) from exc


def parse_locks(names: Mapping[str, bool] | list[str]) -> ParameterLockSet:
    """Parse lock flags given as a mapping or a list of locked names."""

    payload = dict(names) if isinstance(names, Mapping) else {name: True for name in names}
    try:
        return ParameterLockSet.model_validate(payload)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse lock set: %s", exc)
        raise InvalidConfigError(str(exc)) from exc


# -----------------------------------------------------------------------------
# Output
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CurvePoint:
    """One generated node; ``continuity_value`` feeds the next point's flow blend."""

    time: float
    value: float
    continuity_value: float


@dataclass(frozen=True, slots=True)
class EnvelopePoint:
    """A point in the form an automation lane inserts it."""

    time: float
    value: float
    shape: Literal["smooth"] = "smooth"
    tension: float = 0.0


@dataclass(frozen=True)
class GenerationResult:
    """Ordered, immutable point list for one generation call."""

    points: tuple[CurvePoint, ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[CurvePoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> CurvePoint:
        return self.points[index]

    def times(self) -> NDArray[np.float64]:
        return np.fromiter((p.time for p in self.points), dtype=np.float64, count=len(self))

    def values(self) -> NDArray[np.float64]:
        return np.fromiter((p.value for p in self.points), dtype=np.float64, count=len(self))

    def to_envelope_points(self, env_min: float = 0.0, env_max: float = 1.0) -> list[EnvelopePoint]:
        """Map values from [0, 1] into a lane's native range.

        A degenerate lane range (``env_min == env_max``) falls back to [0, 1].
        """
        if env_min == env_max:
            env_min, env_max = 0.0, 1.0
        lo, hi = min(env_min, env_max), max(env_min, env_max)
        out: list[EnvelopePoint] = []
        for point in self.points:
            native = env_min + point.value * (env_max - env_min)
            out.append(EnvelopePoint(time=point.time, value=float(np.clip(native, lo, hi))))
        return out
