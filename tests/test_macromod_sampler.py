from __future__ import annotations

import logging

import numpy as np
import pytest

from macromod.config import PARAMS_MODELS, FractalParams, GenerationConfig, WalkParams
from macromod.sampler import generate, preview_raw, total_steps

ALGORITHMS = list(PARAMS_MODELS)


def _config(algorithm: str = "fractal", **overrides) -> GenerationConfig:
    return GenerationConfig(params=PARAMS_MODELS[algorithm](), **overrides)


def _scenario_a() -> GenerationConfig:
    return GenerationConfig(
        seed=12345,
        params=FractalParams(
            octaves=9, persistence=0.4, frequency_scale=10.0, lacunarity=0.7, amplitude_bias=1.9
        ),
        intensity=0.5,
        center=0.5,
        min_value=0.0,
        max_value=1.0,
        span_seconds=30.0,
        points_per_minute=200.0,
    )


@pytest.mark.parametrize(
    ("span", "density", "expected"),
    [
        (30.0, 200.0, 100),
        (5.0, 60.0, 30),
        (60.0, 500.0, 500),
        (100.0, 137.0, 228),
        (0.5, 200.0, 30),
    ],
)
def test_point_count_law(span: float, density: float, expected: int) -> None:
    config = _config(span_seconds=span, points_per_minute=density)
    assert total_steps(config) == expected
    assert len(generate(config)) == expected


def test_density_is_clamped() -> None:
    assert _config(points_per_minute=1000.0).points_per_minute == 500.0
    assert _config(points_per_minute=10.0).points_per_minute == 60.0


@pytest.mark.parametrize("overrides", [{"span_seconds": 0.0}, {"points_per_minute": 0.0}])
def test_no_op_requests_return_empty(overrides: dict, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="macromod.sampler"):
        result = generate(_config(**overrides))
    assert len(result) == 0
    assert result.points == ()
    assert "Nothing to generate" in caplog.text


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_generation_is_deterministic(algorithm: str) -> None:
    config = _config(algorithm, seed=777)
    assert generate(config).points == generate(config).points


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_times_are_monotonic_and_anchored(algorithm: str) -> None:
    config = _config(algorithm, range_start=12.5, span_seconds=30.0)
    times = generate(config).times()
    assert times[0] == 12.5
    assert times[-1] == pytest.approx(42.5)
    assert np.all(np.diff(times) > 0)


def test_short_span_far_from_origin_keeps_distinct_times() -> None:
    config = _config(range_start=1e6, span_seconds=1.0, points_per_minute=60.0)
    times = generate(config).times()
    assert len(times) == 30
    assert np.all(np.diff(times) > 0)


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_values_stay_in_user_range(algorithm: str) -> None:
    config = _config(
        algorithm,
        min_value=0.2,
        max_value=0.7,
        intensity=1.0,
        complexity=5.0,
        flow=3.0,
        randomness=5.0,
        peak_irregularity=5.0,
    )
    values = generate(config).values()
    assert np.all(values >= 0.2)
    assert np.all(values <= 0.7)


# Reference output for seed 12345, default fractal preset, 30 s at 200 points/min.
SCENARIO_A_VALUES = np.array(
    [
        0.54577427892799124, 0.46233994986237448, 0.46718037552832564, 0.49169146221375487,
        0.50049735818507435, 0.48013748995154643, 0.50135054926647316, 0.52041455690491545,
        0.5358084300189716, 0.48141243070367573, 0.48439130129145541, 0.48554046720428834,
        0.46974956968441861, 0.46191675747058863, 0.4788715147821242, 0.45873918041173101,
        0.45489597563705331, 0.47721215529360239, 0.51375402273123905, 0.51518735350000078,
        0.51746927665821674, 0.55424926513725992, 0.55633541957949784, 0.46564306795531785,
        0.42966667906773948, 0.44551945081567756, 0.47912242131478444, 0.48108851153137738,
        0.49719736493249794, 0.50746626437452003, 0.48567696236488861, 0.41516788654486303,
        0.44428173992425102, 0.48604165691447032, 0.52392488297774176, 0.49345467842832097,
        0.48600403367597961, 0.48886844206532226, 0.48021454888542481, 0.44337205155468684,
        0.48341469597300396, 0.50011796370613626, 0.51757136503529944, 0.48201646962632888,
        0.47137703408453424, 0.4478714482733912, 0.38158286159630495, 0.32766763064969201,
        0.31735274619599974, 0.30024406581064622, 0.30942745350529488, 0.32242133605790513,
        0.37980149442291333, 0.38280758744991122, 0.35846542691531086, 0.3940858555165932,
        0.43520340736825586, 0.43568715441808215, 0.4702052269559075, 0.49224240807799524,
        0.48166043308276146, 0.38013633253876916, 0.32693110822385674, 0.36744645724696151,
        0.42569278160938806, 0.43389548137235795, 0.48038186524962989, 0.52998128771648445,
        0.58065942191313979, 0.53597034011063482, 0.54418021649125548, 0.58891293250987564,
        0.61780231306571975, 0.57171945162854276, 0.56213100251764792, 0.56933293304544985,
        0.57116762962133771, 0.49531369659145774, 0.48481362980534282, 0.51145295755629727,
        0.52317071614523614, 0.50021568411802564, 0.50262870679408389, 0.51721374814039478,
        0.49333848645776623, 0.39561744474755017, 0.34356128119533308, 0.31521124667744249,
        0.3198222513149237, 0.36894899418656035, 0.38715019827974195, 0.33067741075441714,
        0.34293925153055249, 0.38350430276795039, 0.42287029290994205, 0.44545729071571455,
        0.49051070702197186, 0.52125167988550136, 0.48152051616819502, 0.38949056229918555,
    ]
)


def test_scenario_a_reference_points() -> None:
    result = generate(_scenario_a())
    assert len(result) == 100
    assert np.allclose(result.values(), SCENARIO_A_VALUES, rtol=0.0, atol=1e-12)
    assert np.allclose(result.times(), np.linspace(0.0, 30.0, 100), rtol=0.0, atol=1e-12)


def test_seed_changes_output() -> None:
    assert generate(_config(seed=1)).points != generate(_config(seed=2)).points


def test_interleaved_runs_do_not_share_state() -> None:
    walk = GenerationConfig(params=WalkParams(), seed=99)
    alone = generate(walk)
    generate(_config("sine", seed=5))
    generate(_config("lsystem", seed=6))
    assert generate(walk).points == alone.points


def test_continuity_value_tracks_final_value() -> None:
    for point in generate(_config("sine")):
        assert point.continuity_value == point.value


def test_preview_raw_shape_and_bounds() -> None:
    for algorithm in ALGORITHMS:
        raw = preview_raw(PARAMS_MODELS[algorithm](), 12345, samples=10)
        assert raw.shape == (10,)
        assert np.all(np.abs(raw) <= 1.0)
    assert preview_raw(FractalParams(), 1, samples=0).size == 0
