from __future__ import annotations

from .algorithms import VARIANTS, AlgorithmVariant, get_variant
from .config import (
    ALGORITHM_LABELS,
    AlgorithmName,
    CellularParams,
    CurvePoint,
    EnvelopePoint,
    FractalParams,
    FractalType,
    GenerationConfig,
    GenerationResult,
    LSystemParams,
    MappingMode,
    ParameterLockSet,
    SineParams,
    WalkParams,
    parse_config,
    parse_locks,
)
from .errors import InvalidConfigError, MacroModError, UnknownAlgorithmError
from .frequency import effective_rate_multiplier
from .noise import seeded_random, smooth_noise
from .randomize import (
    apply_randomization,
    randomize_all,
    randomize_extreme,
    randomize_mild,
    randomness_from_slider,
    reset_parameters,
    slider_from_randomness,
)
from .sampler import generate, preview_raw, total_steps

__version__ = "0.1.0"

__all__ = [
    "ALGORITHM_LABELS",
    "VARIANTS",
    "AlgorithmName",
    "AlgorithmVariant",
    "CellularParams",
    "CurvePoint",
    "EnvelopePoint",
    "FractalParams",
    "FractalType",
    "GenerationConfig",
    "GenerationResult",
    "InvalidConfigError",
    "LSystemParams",
    "MacroModError",
    "MappingMode",
    "ParameterLockSet",
    "SineParams",
    "UnknownAlgorithmError",
    "WalkParams",
    "apply_randomization",
    "effective_rate_multiplier",
    "generate",
    "get_variant",
    "parse_config",
    "parse_locks",
    "preview_raw",
    "randomize_all",
    "randomize_extreme",
    "randomize_mild",
    "randomness_from_slider",
    "reset_parameters",
    "seeded_random",
    "slider_from_randomness",
    "smooth_noise",
    "total_steps",
]
