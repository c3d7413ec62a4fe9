"""Command line entry point for backpropnet training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from backpropnet.core.types import RunResult
from backpropnet.training import pipelines


def _format_result(result: RunResult) -> str:
    payload = {
        "epochs": result.epochs,
        "final_loss": result.final_loss,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "predictions": result.predictions,
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="xor-sigmoid",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--epochs", type=int, help="Override the number of epochs")
    parser.add_argument("--lr", type=float, help="Override the learning rate")
    parser.add_argument("--seed", type=int, help="Seed used for weight initialisation")
    parser.add_argument(
        "--mode",
        choices=["single", "batch"],
        help="Train on the first sample only or on every sample per epoch",
    )
    parser.add_argument("--run-dir", help="Directory receiving metrics and the manifest")
    parser.add_argument(
        "--verbose", action="store_true", help="Print a run banner and per-epoch loss"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = dict(pipelines.load_preset(args.preset))
    if args.config:
        override = pipelines.read_config(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    train_cfg = config.setdefault("train", {})
    if args.epochs is not None:
        train_cfg["epochs"] = int(args.epochs)
    if args.lr is not None:
        train_cfg["learning_rate"] = float(args.lr)
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.mode is not None:
        train_cfg["mode"] = args.mode
    if args.run_dir is not None:
        train_cfg["run_dir"] = args.run_dir

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config, verbose=args.verbose)
    print(_format_result(result))


if __name__ == "__main__":
    main()
