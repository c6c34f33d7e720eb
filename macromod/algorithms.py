"""
Base-signal generators.

Each variant turns normalized time t in [0, 1] into a raw value in [-1, 1]:

1. Fractal Curves: layered smooth noise
2. Sine Wave Interference: drifting, beating oscillator bank
3. Generative Walk: segment interpolation with momentum
4. L-Systems: turtle-traced rewrite system read back as a scalar
5. Cellular Automata: ring automaton averaged through a moving window

Variants are stateless singletons. Anything that must persist between samples
of one pass lives in a run state from ``new_state()``, which the sampler
allocates fresh for every generation call.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Generic, Mapping, TypeVar

import numpy as np
from numpy.typing import NDArray

from .config import (
    AlgorithmName,
    AnyParams,
    CellularParams,
    FractalParams,
    FractalType,
    LSystemParams,
    SineParams,
    WalkParams,
)
from .errors import InvalidConfigError, UnknownAlgorithmError
from .noise import seeded_value, smooth_noise

_LOGGER = logging.getLogger("macromod.algorithms")

P = TypeVar("P", bound=AnyParams)
S = TypeVar("S")

TWO_PI = 2.0 * math.pi
SILENT_AMPLITUDE = 1e-12
DEGENERATE_SPAN = 0.001

# Per-feature seed offsets; kept clear of the shaping pipeline's 2000-14000 block.
OCTAVE_SEED_STRIDE = 1000
SEGMENT_SEED_STRIDE = 1000
SINE_PHASE_SEED = 15000
SINE_AMP_PHASE_SEED = 16000
SINE_BEAT_SEED = 17000
LSYSTEM_TURN_SEED = 18000
CELL_INIT_SEED = 19000
CELL_ACTIVATION_SEED = 1_000_000
CELL_VARIATION_SEED = 5_000_000
CELL_GENERATION_STRIDE = 1024


def _clamp_unit(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return float(np.clip(value, -1.0, 1.0))


class AlgorithmVariant(ABC, Generic[P, S]):
    """Common interface of every base-signal generator."""

    algorithm: ClassVar[AlgorithmName]

    @abstractmethod
    def new_state(self) -> S:
        """Fresh per-run scratch state."""

    @abstractmethod
    def _generate(self, time_norm: float, seed: int, params: P, state: S) -> float: ...

    def generate_base(self, time_norm: float, seed: int, params: P, state: S) -> float:
        """Raw value for normalized time ``time_norm``, always within [-1, 1]."""
        if params.algorithm != self.algorithm:
            raise InvalidConfigError(
                f"{type(self).__name__} cannot run {params.algorithm!r} parameters"
            )
        return _clamp_unit(self._generate(time_norm, seed, params, state))


# -----------------------------------------------------------------------------
# FRACTAL CURVES
# -----------------------------------------------------------------------------

_FRACTAL_SHAPERS: Mapping[FractalType, Callable[[float], float]] = MappingProxyType(
    {
        "fbm": lambda n: n,
        "ridged": lambda n: (1.0 - abs(n)) ** 2,
        "turbulence": abs,
    }
)


@dataclass
class FractalState:
    """Fractal noise carries nothing between samples."""


def fractal_noise(x: float, params: FractalParams, seed: int) -> float:
    """Weighted octave sum of smooth noise, normalized by total octave weight."""
    shaper = _FRACTAL_SHAPERS[params.type]
    value = 0.0
    total_weight = 0.0
    amplitude = 1.0
    frequency = 1.0

    for octave in range(1, params.octaves + 1):
        layer = shaper(smooth_noise(x * frequency, seed + octave * OCTAVE_SEED_STRIDE))
        weight = amplitude * (params.amplitude_bias ** (octave - 1))
        value += layer * weight
        total_weight += weight
        amplitude *= params.persistence
        frequency *= params.lacunarity

    if total_weight <= 0.0:
        return 0.0
    return value / total_weight


class FractalCurves(AlgorithmVariant[FractalParams, FractalState]):
    algorithm = "fractal"

    def new_state(self) -> FractalState:
        return FractalState()

    def _generate(
        self, time_norm: float, seed: int, params: FractalParams, state: FractalState
    ) -> float:
        return fractal_noise(time_norm * params.frequency_scale, params, seed)


# -----------------------------------------------------------------------------
# SINE WAVE INTERFERENCE
# -----------------------------------------------------------------------------


@dataclass
class SineState:
    """Per-oscillator phases, drawn once per run."""

    key: tuple[int, SineParams] | None = None
    phases: tuple[float, ...] = ()
    amplitude_phases: tuple[float, ...] = ()
    beat_rates: tuple[float, ...] = ()
    frequencies: tuple[float, ...] = ()


def oscillator_frequencies(wave_count: int, frequency_spread: float) -> tuple[float, ...]:
    """1 + (i-1)·spread/(n-1) for i = 1..n; a single oscillator sits at 1."""
    if wave_count <= 1:
        return (1.0,)
    step = frequency_spread / (wave_count - 1)
    return tuple(1.0 + i * step for i in range(wave_count))


class SineInterference(AlgorithmVariant[SineParams, SineState]):
    algorithm = "sine"

    def new_state(self) -> SineState:
        return SineState()

    def _prepare(self, seed: int, params: SineParams, state: SineState) -> None:
        key = (seed, params)
        if state.key == key:
            return
        count = params.wave_count
        state.phases = tuple(seeded_value(seed + SINE_PHASE_SEED + i, 0.0, TWO_PI) for i in range(count))
        state.amplitude_phases = tuple(
            seeded_value(seed + SINE_AMP_PHASE_SEED + i, 0.0, TWO_PI) for i in range(count)
        )
        state.beat_rates = tuple(
            TWO_PI * params.beat_frequency * seeded_value(seed + SINE_BEAT_SEED + i, 0.5, 1.5)
            for i in range(count)
        )
        state.frequencies = oscillator_frequencies(count, params.frequency_spread)
        state.key = key

    def _generate(self, time_norm: float, seed: int, params: SineParams, state: SineState) -> float:
        self._prepare(seed, params, state)
        value = 0.0
        total_amplitude = 0.0
        for freq, phase, amp_phase, beat_rate in zip(
            state.frequencies, state.phases, state.amplitude_phases, state.beat_rates
        ):
            # Depths above 1 swing negative and invert the oscillator.
            amplitude = 1.0 + params.amplitude_variation * math.sin(
                amp_phase + time_norm * beat_rate
            )
            theta = TWO_PI * freq * params.phase_drift * time_norm + phase
            value += amplitude * math.sin(theta)
            total_amplitude += abs(amplitude)

        if total_amplitude <= SILENT_AMPLITUDE:
            return 0.0
        return value / total_amplitude


# -----------------------------------------------------------------------------
# GENERATIVE WALK
# -----------------------------------------------------------------------------

LEVY_SCALE = 5.0
MARKOV_PULL = 0.25


@dataclass
class WalkState:
    last_value: float = 0.0
    velocity: float = 0.0
    last_time: float | None = None


def _walk_blend(segment_pos: float, smoothing_factor: float) -> float:
    """Blend between linear and smoothstep; factors above 0.5 overshoot."""
    smoothstep = segment_pos * segment_pos * (3.0 - 2.0 * segment_pos)
    if smoothing_factor > 0.5:
        k = (smoothing_factor - 0.5) * 2.0
        return smoothstep * k + segment_pos * (1.0 - k)
    k = smoothing_factor * 2.0
    return segment_pos * k + smoothstep * (1.0 - k)


class GenerativeWalk(AlgorithmVariant[WalkParams, WalkState]):
    """Order-dependent: sample i reads the velocity left by sample i-1."""

    algorithm = "walk"

    def new_state(self) -> WalkState:
        return WalkState()

    def _endpoints(
        self, segment: int, seed: int, params: WalkParams, running: float
    ) -> tuple[float, float]:
        segment_seed = seed + segment * SEGMENT_SEED_STRIDE
        scale = params.variation_scale
        start = seeded_value(segment_seed, -scale, scale)
        end = seeded_value(segment_seed + 1, -scale, scale)

        if seeded_value(segment_seed + 2) < params.levy_probability:
            end += seeded_value(segment_seed + 3, -LEVY_SCALE * scale, LEVY_SCALE * scale)

        if params.markov_bias != 0.0:
            pull = (params.markov_bias - running) * abs(params.markov_bias) * MARKOV_PULL
            start += pull
            end += pull
        return start, end

    def _generate(self, time_norm: float, seed: int, params: WalkParams, state: WalkState) -> float:
        if state.last_time is not None and time_norm < state.last_time:
            _LOGGER.debug("Walk restarted at t=%.4f after t=%.4f", time_norm, state.last_time)
            state.last_value, state.velocity, state.last_time = 0.0, 0.0, None

        segments = max(1, math.floor(1.0 / params.segment_length))
        position = time_norm * segments
        segment = math.floor(position)
        segment_pos = position - segment

        start, end = self._endpoints(segment, seed, params, state.last_value)
        raw = start + (end - start) * _walk_blend(segment_pos, params.smoothing_factor)

        if params.momentum > 0.0 and state.last_time is not None:
            dt = max(0.001, time_norm - state.last_time)
            target_velocity = (raw - state.last_value) / dt
            state.velocity = (
                state.velocity * (1.0 - params.momentum) + target_velocity * params.momentum
            )
            raw = state.last_value + state.velocity * dt

        state.last_value = raw
        state.last_time = time_norm
        return raw


# -----------------------------------------------------------------------------
# L-SYSTEMS
# -----------------------------------------------------------------------------

LSYSTEM_AXIOM = "F"
LSYSTEM_RULES: Mapping[str, str] = MappingProxyType({"F": "F[+F]F[-F]"})
TURN_JITTER = 0.15


@lru_cache(maxsize=16)
def expand_lsystem(iterations: int, axiom: str = LSYSTEM_AXIOM) -> str:
    """Apply the production rules ``iterations`` times."""
    symbols = axiom
    for _ in range(iterations):
        symbols = "".join(LSYSTEM_RULES.get(symbol, symbol) for symbol in symbols)
    return symbols


def trace_turtle(
    symbols: str, angle_deg: float, length_scale: float, seed: int
) -> NDArray[np.float64]:
    """Turtle path through ``symbols`` as an (n, 2) array, origin first.

    Every turn angle gets a small seed-derived jitter; each branch level
    shortens the stride by ``length_scale``.
    """
    x, y = 0.0, 0.0
    heading = 90.0
    length = 1.0
    stack: list[tuple[float, float, float, float]] = []
    points: list[tuple[float, float]] = [(x, y)]
    turn_index = 0

    for symbol in symbols:
        if symbol == "F":
            rad = math.radians(heading)
            x += length * math.cos(rad)
            y += length * math.sin(rad)
            points.append((x, y))
        elif symbol in "+-":
            jitter = seeded_value(seed + LSYSTEM_TURN_SEED + turn_index, -TURN_JITTER, TURN_JITTER)
            turn_index += 1
            turn = angle_deg * (1.0 + jitter)
            heading += turn if symbol == "+" else -turn
        elif symbol == "[":
            stack.append((x, y, heading, length))
            length *= length_scale
        elif symbol == "]" and stack:
            x, y, heading, length = stack.pop()

    return np.asarray(points, dtype=np.float64)


def normalize_cloud(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Scale a point cloud into [-1, 1]² per axis; flat axes use a 0.001 span."""
    lo = points.min(axis=0)
    span = points.max(axis=0) - lo
    span = np.where(span > 0.0, span, DEGENERATE_SPAN)
    return 2.0 * (points - lo) / span - 1.0


@dataclass
class LSystemState:
    key: tuple[Any, ...] | None = None
    path: NDArray[np.float64] = field(default_factory=lambda: np.zeros((1, 2)))
    last_value: float = 0.0
    last_time: float | None = None


class LSystems(AlgorithmVariant[LSystemParams, LSystemState]):
    algorithm = "lsystem"

    def new_state(self) -> LSystemState:
        return LSystemState()

    def _path(self, seed: int, params: LSystemParams, state: LSystemState) -> NDArray[np.float64]:
        key = (
            seed,
            params.iterations,
            params.branch_angle_deg,
            params.length_scale,
            params.complexity_factor,
        )
        if state.key != key:
            symbols = expand_lsystem(params.iterations)
            cloud = trace_turtle(
                symbols,
                params.branch_angle_deg * params.complexity_factor,
                params.length_scale,
                seed,
            )
            state.path = normalize_cloud(cloud)
            state.key = key
            _LOGGER.debug("Traced L-system path: %d symbols, %d points", len(symbols), len(cloud))
        return state.path

    def _generate(
        self, time_norm: float, seed: int, params: LSystemParams, state: LSystemState
    ) -> float:
        path = self._path(seed, params, state)
        position = (time_norm * params.growth_rate) % 1.0
        index = int(round(position * (len(path) - 1)))
        x, y = float(path[index, 0]), float(path[index, 1])

        if params.mapping_mode == "symmetry_axis":
            value = 0.7 * x + 0.3 * y
        else:
            value = y + 0.3 * x * params.complexity_factor

        if state.last_time is not None and time_norm >= state.last_time:
            max_delta = params.max_change_rate * (time_norm - state.last_time)
            value = state.last_value + float(np.clip(value - state.last_value, -max_delta, max_delta))

        state.last_value = value
        state.last_time = time_norm
        return value + params.tilt * (time_norm - 0.5)


# -----------------------------------------------------------------------------
# CELLULAR AUTOMATA
# -----------------------------------------------------------------------------


@dataclass
class CellularState:
    cells: list[int] = field(default_factory=list)
    generation: int = 0
    last_time: float | None = None
    history: deque[float] = field(default_factory=deque)


def _neighbour_rule(left: int, center: int, right: int) -> int:
    total = left + center + right
    if total == 1:
        return 1
    if total == 2:
        return 0 if center else 1
    return 0


class CellularAutomata(AlgorithmVariant[CellularParams, CellularState]):
    algorithm = "cellular"

    def new_state(self) -> CellularState:
        return CellularState()

    def _reset(self, seed: int, params: CellularParams, state: CellularState) -> None:
        state.cells = [
            1 if seeded_value(seed + CELL_INIT_SEED + i) > 0.5 else 0
            for i in range(params.cell_count)
        ]
        state.generation = 0
        state.history = deque(maxlen=params.smoothing_window)

    def _evolve(self, seed: int, params: CellularParams, state: CellularState) -> None:
        cells = state.cells
        count = len(cells)
        base = state.generation * CELL_GENERATION_STRIDE
        new_cells: list[int] = []
        for i in range(count):
            result = _neighbour_rule(cells[i - 1], cells[i], cells[(i + 1) % count])
            if params.rule_variation > 0.0:
                if seeded_value(seed + CELL_VARIATION_SEED + base + i) < params.rule_variation:
                    result = 1 - result
            if seeded_value(seed + CELL_ACTIVATION_SEED + base + i) < params.random_activation:
                result = 1
            new_cells.append(result)
        state.cells = new_cells
        state.generation += 1

    def _generate(
        self, time_norm: float, seed: int, params: CellularParams, state: CellularState
    ) -> float:
        if state.last_time is None or time_norm < state.last_time:
            self._reset(seed, params, state)

        target_generation = math.floor(time_norm / params.evolution_rate)
        while state.generation < target_generation:
            self._evolve(seed, params, state)

        weights = [math.cos((i + 1) * 0.2) for i, cell in enumerate(state.cells) if cell]
        raw = sum(weights) / len(weights) if weights else -0.5

        state.history.append(raw)
        state.last_time = time_norm
        return sum(state.history) / len(state.history)


VARIANTS: Mapping[AlgorithmName, AlgorithmVariant[Any, Any]] = MappingProxyType(
    {
        "fractal": FractalCurves(),
        "sine": SineInterference(),
        "walk": GenerativeWalk(),
        "lsystem": LSystems(),
        "cellular": CellularAutomata(),
    }
)


def get_variant(algorithm: str) -> AlgorithmVariant[Any, Any]:
    try:
        return VARIANTS[algorithm]  # type: ignore[index]
    except KeyError as exc:
        raise UnknownAlgorithmError(
            f"Unknown algorithm: {algorithm!r}. Valid: {list(VARIANTS)}"
        ) from exc
