"""Config-driven assembly of networks and training runs."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

import numpy as np
import yaml

from ..core.layers import Activation, FullyConnected, Layer
from ..core.types import RunResult
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import ConsoleSink, CsvSink, JsonlSink
from .losses import REGISTRY as LOSS_REGISTRY
from .network import Network

XOR_INPUTS: List[List[float]] = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
XOR_TARGETS: List[List[float]] = [[0.0], [1.0], [1.0], [0.0]]

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-sigmoid": {
        "data": {"name": "xor"},
        "model": {"input_size": 2, "layer_sizes": [3, 1], "activation": "sigmoid"},
        "train": {
            "mode": "batch",
            "epochs": 20000,
            "learning_rate": 0.1,
            "seed": 0,
            "report_every": 1000,
            "run_dir": "runs/xor-sigmoid",
        },
    },
    "xor-tanh": {
        "data": {"name": "xor"},
        "model": {
            "layers": [
                {"type": "fully_connected", "in": 2, "out": 4},
                {"type": "activation", "function": "tanh"},
                {"type": "fully_connected", "in": 4, "out": 1},
                {"type": "activation", "function": "sigmoid"},
            ]
        },
        "train": {
            "mode": "batch",
            "epochs": 5000,
            "learning_rate": 0.1,
            "seed": 0,
            "report_every": 500,
            "run_dir": "runs/xor-tanh",
        },
    },
    "single-sample-relu": {
        "data": {"inputs": [[0.5, -0.25, 1.0]], "targets": [[1.0, 0.0]]},
        "model": {
            "layers": [
                {"type": "fully_connected", "in": 3, "out": 4},
                {"type": "activation", "function": "relu"},
                {"type": "fully_connected", "in": 4, "out": 2},
            ]
        },
        "train": {
            "mode": "single",
            "epochs": 200,
            "learning_rate": 0.01,
            "seed": 3,
            "report_every": 20,
            "run_dir": "runs/single-sample-relu",
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None
_REQUIRED_SECTIONS = {"data", "model", "train"}


def read_config(path: str | Path) -> Mapping[str, object]:
    """Load a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config(file)
                missing = _REQUIRED_SECTIONS - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    available = presets()
    if name not in available:
        raise KeyError(f"Unknown preset {name!r}. Available presets: {', '.join(sorted(available))}")
    return available[name]


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    """Recursively overlay ``override`` on a copy of ``base``."""

    merged: Dict[str, object] = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


def build_problem(data_cfg: Mapping[str, object]) -> Tuple[List[List[float]], List[List[float]]]:
    """Return ``(inputs, targets)`` for an inline or named toy problem."""

    name = data_cfg.get("name")
    if name == "xor":
        return deepcopy(XOR_INPUTS), deepcopy(XOR_TARGETS)
    if name is not None:
        raise ValueError(f"Unknown problem: {name}")
    if "inputs" not in data_cfg or "targets" not in data_cfg:
        raise KeyError("data config needs either 'name' or both 'inputs' and 'targets'")
    inputs = [[float(v) for v in row] for row in data_cfg["inputs"]]  # type: ignore[union-attr]
    targets = [[float(v) for v in row] for row in data_cfg["targets"]]  # type: ignore[union-attr]
    return inputs, targets


def _build_layer(spec: Mapping[str, object], rng: np.random.Generator) -> Layer:
    kind = str(spec.get("type", "")).lower()
    if kind == "fully_connected":
        return FullyConnected(int(spec["in"]), int(spec["out"]), rng=rng)  # type: ignore[arg-type]
    if kind == "activation":
        return Activation(str(spec["function"]))
    raise ValueError(f"Unknown layer type: {spec.get('type')!r}")


def build_network(model_cfg: Mapping[str, object], rng: np.random.Generator) -> Network:
    layers = model_cfg.get("layers")
    if layers is not None:
        return Network([_build_layer(spec, rng) for spec in layers])  # type: ignore[union-attr]
    return Network.from_sizes(
        int(model_cfg["input_size"]),  # type: ignore[arg-type]
        [int(size) for size in model_cfg["layer_sizes"]],  # type: ignore[union-attr]
        activation=str(model_cfg.get("activation", "sigmoid")),
        rng=rng,
    )


def run_pipeline(config: Mapping[str, object], *, verbose: bool = False) -> RunResult:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    mode = str(train_cfg.get("mode", "batch"))
    if mode not in {"single", "batch"}:
        raise ValueError("train.mode must be one of {'single','batch'}")
    seed = int(train_cfg.get("seed", 0))
    epochs = int(train_cfg.get("epochs", 1))
    learning_rate = float(train_cfg.get("learning_rate", 0.1))
    report_every = int(train_cfg.get("report_every", 1))
    run_dir = Path(str(train_cfg.get("run_dir", "runs/default")))
    loss = LOSS_REGISTRY.get(str(train_cfg.get("loss", "mse")))

    inputs, targets = build_problem(data_cfg)
    network = build_network(model_cfg, np.random.default_rng(seed))

    if verbose:
        _print_startup_summary(
            problem=str(data_cfg.get("name", "inline")),
            network=network,
            mode=mode,
            epochs=epochs,
            learning_rate=learning_rate,
        )

    metrics_path = run_dir / "metrics.jsonl"
    callbacks: List[object] = [
        JsonlSink(metrics_path, seed=seed),
        CsvSink(run_dir / "metrics.csv"),
    ]
    if verbose:
        callbacks.append(ConsoleSink())

    if mode == "single":
        inputs, targets = inputs[:1], targets[:1]
        result = network.train(
            inputs[0],
            targets[0],
            learning_rate,
            epochs,
            callbacks=callbacks,
            report_every=report_every,
        )
    else:
        result = network.train_batch(
            inputs,
            targets,
            learning_rate,
            epochs,
            callbacks=callbacks,
            report_every=report_every,
        )

    predictions = [network.predict(x).tolist() for x in inputs]
    eval_loss = float(np.mean([loss.loss(t, p) for t, p in zip(targets, predictions)]))
    manifest_path = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config)),
        problem={"name": data_cfg.get("name", "inline"), "samples": len(inputs)},
        summary={
            "epochs": result.epochs,
            "final_loss": result.final_loss,
            f"eval_{loss.name}": eval_loss,
            "parameters": network.n_params,
        },
    )
    return RunResult(
        epochs=result.epochs,
        final_loss=result.final_loss,
        metrics_path=str(metrics_path),
        manifest_path=manifest_path,
        predictions=predictions,
    )


def _print_startup_summary(
    *,
    problem: str,
    network: Network,
    mode: str,
    epochs: int,
    learning_rate: float,
) -> None:
    print("=== backpropnet run ===")
    print(f"Problem       : {problem}")
    print(f"Layers        : {network!r}")
    print(f"Mode          : {mode}")
    print(f"Epochs        : {epochs}")
    print(f"Learning rate : {learning_rate}")
    print(f"Parameters    : {network.n_params}")
    print("=======================")


__all__ = [
    "XOR_INPUTS",
    "XOR_TARGETS",
    "build_network",
    "build_problem",
    "load_preset",
    "merge_config",
    "presets",
    "read_config",
    "run_pipeline",
]
