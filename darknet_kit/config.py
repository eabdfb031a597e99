from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Sequence

from .postprocess import DarknetPostConfig
from .runtime import network_paths, resolve_path


@dataclass(frozen=True)
class DetectConfig:
    network: str
    image_path: str
    input_size: int = 416
    score_threshold: float = 0.45
    nms_threshold: float = 0.8
    max_detections: int = 100
    assets_dir: str = "assets"
    classes_file: str = "coco.names"
    output_path: str = "result.jpg"
    class_agnostic_nms: bool = True
    show_score: bool = False
    prefer_cuda: bool = False
    show: bool = False

    def __post_init__(self) -> None:
        if not self.network or not self.network.strip():
            raise ValueError("network must be a non-empty name")
        if not self.image_path or not self.image_path.strip():
            raise ValueError("image_path must be a non-empty path")
        if self.input_size < 32 or self.input_size % 32 != 0:
            raise ValueError("input_size must be >= 32 and a multiple of 32")
        if not 0.0 <= self.score_threshold <= 1.0:
            raise ValueError("score_threshold must be in [0, 1]")
        if not 0.0 <= self.nms_threshold <= 1.0:
            raise ValueError("nms_threshold must be in [0, 1]")
        if self.max_detections < 1:
            raise ValueError("max_detections must be >= 1")
        if not self.output_path or not self.output_path.strip():
            raise ValueError("output_path must be a non-empty path")

    @property
    def weights_path(self) -> Path:
        return network_paths(self.network, self.assets_dir)[0]

    @property
    def cfg_path(self) -> Path:
        return network_paths(self.network, self.assets_dir)[1]

    @property
    def classes_path(self) -> Path:
        return resolve_path(self.classes_file, root=resolve_path(self.assets_dir))

    def post_config(self) -> DarknetPostConfig:
        return DarknetPostConfig(
            score_threshold=self.score_threshold,
            nms_threshold=self.nms_threshold,
            max_detections=self.max_detections,
            class_agnostic_nms=self.class_agnostic_nms,
        )


def load_run_config(path: Path) -> Dict[str, object]:
    if not path.is_file():
        raise FileNotFoundError(f"Run config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid run config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Run config must be a JSON object")
    return payload


def collect_cli_dests(parser: argparse.ArgumentParser, argv: Sequence[str]) -> set[str]:
    dests: set[str] = set()
    for opt, action in parser._option_string_actions.items():
        for arg in argv:
            if arg == opt or arg.startswith(f"{opt}="):
                dests.add(action.dest)
                break
    return dests


STR_KEYS = {"net", "image", "assets", "classes", "out"}
INT_KEYS = {"size", "max_det"}
FLOAT_KEYS = {"thresh", "nms"}
BOOL_KEYS = {"per_class_nms", "show_score", "cuda", "show"}


def apply_run_config(
    *,
    args: argparse.Namespace,
    payload: Dict[str, object],
    cli_dests: set[str],
    parser: argparse.ArgumentParser,
) -> None:
    """
    Copy run config values onto `args`. Options given explicitly on the command
    line (`cli_dests`) win over the file.
    """

    allowed = {action.dest for action in parser._actions if action.dest != "help"}
    if "config" in payload:
        raise ValueError("run config must not include the 'config' key")
    unknown = sorted(k for k in payload.keys() if k not in allowed)
    if unknown:
        raise ValueError(f"Unknown run config keys: {unknown}")

    for key, value in payload.items():
        if key in cli_dests:
            continue
        if value is None:
            continue
        if key in STR_KEYS:
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{key} must be a non-empty string")
            setattr(args, key, value)
            continue
        if key in BOOL_KEYS:
            if not isinstance(value, bool):
                raise ValueError(f"{key} must be a boolean")
            setattr(args, key, value)
            continue
        if key in INT_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{key} must be an integer")
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{key} must be an integer")
            setattr(args, key, int(value))
            continue
        if key in FLOAT_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{key} must be a number")
            setattr(args, key, float(value))
            continue
        raise ValueError(f"Unsupported run config key: {key}")


def config_from_args(args: argparse.Namespace) -> DetectConfig:
    if not args.net:
        raise ValueError("--net is required (or set 'net' in --config)")
    if not args.image:
        raise ValueError("--image is required (or set 'image' in --config)")
    return DetectConfig(
        network=args.net,
        image_path=args.image,
        input_size=args.size,
        score_threshold=args.thresh,
        nms_threshold=args.nms,
        max_detections=args.max_det,
        assets_dir=args.assets,
        classes_file=args.classes,
        output_path=args.out,
        class_agnostic_nms=not args.per_class_nms,
        show_score=args.show_score,
        prefer_cuda=args.cuda,
        show=args.show,
    )
