from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, get_args

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .algorithms import VARIANTS
from .config import (
    ALGORITHM_LABELS,
    PARAMS_MODELS,
    GenerationConfig,
    LockName,
    parse_config,
    parse_locks,
)
from .logging_utils import configure_logging, log_exception
from .randomize import apply_randomization
from .sampler import generate, preview_raw

_LOGGER = logging.getLogger("macromod.cli")
_CONSOLE = Console()
_DEBUG_SAMPLES = 10


def _parse_scalar(raw: str) -> Any:
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def _parse_param(raw: str) -> tuple[str, Any]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    return key.strip(), _parse_scalar(value.strip())


def _add_config_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--algorithm", choices=list(ALGORITHM_LABELS), default="fractal")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--span", type=float, default=None, help="Span in seconds.")
    parser.add_argument("--density", type=float, default=None, help="Points per minute.")
    parser.add_argument("--start", type=float, default=None, help="Range start in seconds.")
    parser.add_argument("--intensity", type=float, default=None)
    parser.add_argument("--center", type=float, default=None)
    parser.add_argument("--min", dest="min_value", type=float, default=None)
    parser.add_argument("--max", dest="max_value", type=float, default=None)
    parser.add_argument("--complexity", type=float, default=None)
    parser.add_argument("--flow", type=float, default=None)
    parser.add_argument("--randomness", type=float, default=None)
    parser.add_argument("--peak-irregularity", dest="peak_irregularity", type=float, default=None)
    parser.add_argument(
        "--param",
        dest="params",
        action="append",
        type=_parse_param,
        default=[],
        metavar="KEY=VALUE",
        help="Variant parameter override (repeatable).",
    )


_FLAG_FIELDS = {
    "seed": "seed",
    "span": "span_seconds",
    "density": "points_per_minute",
    "start": "range_start",
    "intensity": "intensity",
    "center": "center",
    "min_value": "min_value",
    "max_value": "max_value",
    "complexity": "complexity",
    "flow": "flow",
    "randomness": "randomness",
    "peak_irregularity": "peak_irregularity",
}


def config_from_args(args: argparse.Namespace) -> GenerationConfig:
    payload: dict[str, Any] = {}
    for flag, field in _FLAG_FIELDS.items():
        value = getattr(args, flag)
        if value is not None:
            payload[field] = value
    payload["params"] = {"algorithm": args.algorithm, **dict(args.params)}
    return parse_config(payload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="macromod")
    parser.add_argument("--debug", action="store_true", help="Show debug logs and tracebacks.")
    parser.add_argument("--log-dir", type=Path, default=None, help="Directory for macromod.log.")
    sub = parser.add_subparsers(dest="command", required=True)

    preview = sub.add_parser("preview", help="Generate a curve and print its points.")
    _add_config_flags(preview)
    preview.add_argument("--rows", type=int, default=20)
    preview.add_argument("--json", action="store_true", help="Print every point as JSON.")

    sub.add_parser("debug", help="Print raw output of every algorithm with default params.")

    randomize = sub.add_parser("randomize", help="Apply a randomization and print the config.")
    randomize.add_argument("mode", choices=["reset", "mild", "extreme", "all"])
    _add_config_flags(randomize)
    randomize.add_argument(
        "--lock", dest="locks", action="append", default=[], choices=list(get_args(LockName))
    )
    randomize.add_argument("--rng-seed", type=int, default=None)
    return parser


def _print_preview(config: GenerationConfig, rows: int, as_json: bool) -> None:
    result = generate(config)
    if as_json:
        payload = [
            {"time": point.time, "value": point.value} for point in result.points
        ]
        sys.stdout.write(json.dumps(payload) + "\n")
        return

    table = Table(title=f"{ALGORITHM_LABELS[config.algorithm]} (seed {config.seed})")
    table.add_column("#", justify="right")
    table.add_column("time (s)", justify="right")
    table.add_column("value", justify="right")
    for index, point in enumerate(result.points[: max(rows, 0)]):
        table.add_row(str(index), f"{point.time:.3f}", f"{point.value:.4f}")
    _CONSOLE.print(table)

    if len(result) == 0:
        _CONSOLE.print("No points generated.")
        return
    values = result.values()
    _CONSOLE.print(
        f"{len(result)} points, min {values.min():.4f}, max {values.max():.4f}, mean {values.mean():.4f}"
    )


def _print_debug() -> None:
    seed = GenerationConfig.model_fields["seed"].default
    for algorithm in VARIANTS:
        raw = preview_raw(PARAMS_MODELS[algorithm](), seed, samples=_DEBUG_SAMPLES)
        samples = ", ".join(f"{value:+.3f}" for value in raw)
        _CONSOLE.print(f"[bold]{ALGORITHM_LABELS[algorithm]}[/bold]: {samples}")
        _CONSOLE.print(f"  range {raw.min():+.3f} .. {raw.max():+.3f}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(debug=args.debug, log_dir=args.log_dir)
    try:

        if args.command == "preview":
            _print_preview(config_from_args(args), args.rows, args.json)
            return 0

        if args.command == "debug":
            _print_debug()
            return 0

        if args.command == "randomize":
            config = config_from_args(args)
            locks = parse_locks(args.locks)
            updated = apply_randomization(args.mode, config, locks, args.rng_seed)
            sys.stdout.write(updated.model_dump_json(indent=2) + "\n")
            return 0

        parser.print_help()
        return 1
    except Exception as exc:
        _LOGGER.warning("macromod CLI failed: %s", exc)
        log_exception("macromod CLI", exc)
        _CONSOLE.print(f"[red]macromod failed:[/red] {escape(str(exc))}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
