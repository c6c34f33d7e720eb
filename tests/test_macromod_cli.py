from __future__ import annotations

import json

import pytest

from macromod import cli
from macromod.logging_utils import LOG_DIR_ENV


@pytest.fixture(autouse=True)
def _log_dir(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))


def test_preview_prints_table_and_summary(capsys) -> None:
    assert cli.main(["preview", "--rows", "5"]) == 0
    out = capsys.readouterr().out
    assert "Fractal Curves" in out
    assert "100 points" in out


def test_preview_json_lists_every_point(capsys) -> None:
    assert cli.main(["preview", "--json", "--span", "60", "--density", "120", "--start", "4"]) == 0
    points = json.loads(capsys.readouterr().out)
    assert len(points) == 120
    assert points[0]["time"] == 4.0
    assert points[-1]["time"] == pytest.approx(64.0)


def test_preview_accepts_variant_params(capsys) -> None:
    argv = ["preview", "--json", "--algorithm", "sine", "--param", "wave_count=1", "--seed", "9"]
    assert cli.main(argv) == 0
    assert len(json.loads(capsys.readouterr().out)) == 100


def test_preview_accepts_categorical_params(capsys) -> None:
    argv = ["preview", "--json", "--param", "type=ridged", "--min", "0.2", "--max", "0.4"]
    assert cli.main(argv) == 0
    values = [point["value"] for point in json.loads(capsys.readouterr().out)]
    assert min(values) >= 0.2
    assert max(values) <= 0.4


def test_debug_lists_every_algorithm(capsys) -> None:
    assert cli.main(["debug"]) == 0
    out = capsys.readouterr().out
    for label in ("Fractal Curves", "Sine Wave Interference", "Generative Walk", "L-Systems"):
        assert label in out


def test_randomize_respects_locks(capsys) -> None:
    argv = ["randomize", "extreme", "--intensity", "0.9", "--lock", "intensity", "--rng-seed", "3"]
    assert cli.main(argv) == 0
    config = json.loads(capsys.readouterr().out)
    assert config["intensity"] == 0.9
    assert config["params"]["algorithm"] == "fractal"


def test_invalid_config_returns_error(tmp_path, capsys) -> None:
    assert cli.main(["preview", "--param", "octaves=99"]) == 1
    assert "macromod failed" in capsys.readouterr().out
    log_file = tmp_path / "macromod.log"
    assert log_file.exists()
    assert "InvalidConfigError" in log_file.read_text(encoding="utf-8")


def test_parse_param_rejects_missing_equals() -> None:
    with pytest.raises(SystemExit):
        cli.main(["preview", "--param", "octaves"])


def test_log_dir_flag_redirects_log_file(tmp_path, capsys) -> None:
    target = tmp_path / "custom"
    assert cli.main(["--log-dir", str(target), "preview", "--param", "octaves=99"]) == 1
    capsys.readouterr()
    assert "InvalidConfigError" in (target / "macromod.log").read_text(encoding="utf-8")
    assert not (tmp_path / "macromod.log").exists()


def test_debug_flag_shows_traceback_on_stderr(capsys) -> None:
    assert cli.main(["--debug", "preview", "--param", "octaves=99"]) == 1
    assert "Traceback" in capsys.readouterr().err
