from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

import cv2

from .config import DetectConfig, apply_run_config, collect_cli_dests, config_from_args, load_run_config
from .runtime import DetectResult, load_pipeline, read_image, write_image


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="darknet-detect",
        allow_abbrev=False,
        description="Run a Darknet YOLO network on one image and save the annotated result.",
    )
    parser.add_argument("--net", default=None, help="Network name; loads <assets>/<net>.weights and <assets>/<net>.cfg.")
    parser.add_argument("--size", type=int, default=416, help="Square network input size (multiple of 32).")
    parser.add_argument("--thresh", type=float, default=0.45, help="Score threshold.")
    parser.add_argument("--nms", type=float, default=0.8, help="IoU threshold for NMS.")
    parser.add_argument("--image", default=None, help="Path to the input image.")
    parser.add_argument("--assets", default="assets", help="Directory holding weights, cfg and class names.")
    parser.add_argument("--classes", default="coco.names", help="Class names file (relative to --assets unless absolute).")
    parser.add_argument("--out", default="result.jpg", help="Output path for the annotated image.")
    parser.add_argument("--max-det", type=int, default=100, help="Maximum number of detections kept after NMS.")
    parser.add_argument("--per-class-nms", action="store_true", help="Run NMS per class instead of across classes.")
    parser.add_argument("--show-score", action="store_true", help="Append the score to each label.")
    parser.add_argument("--cuda", action="store_true", help="Use the OpenCV DNN CUDA backend/target.")
    parser.add_argument("--show", action="store_true", help="Show a window with the result and wait for a key.")
    parser.add_argument("--config", default=None, help="JSON run config; explicit CLI flags take precedence.")
    return parser


def parse_config(argv: Optional[Sequence[str]] = None) -> DetectConfig:
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(argv)
    if args.config:
        payload = load_run_config(Path(args.config))
        apply_run_config(args=args, payload=payload, cli_dests=collect_cli_dests(parser, argv), parser=parser)
    return config_from_args(args)


def format_confidences(confidences: Sequence[float]) -> str:
    return "[" + ", ".join(f"{c:.4f}" for c in confidences) + "]"


def run(cfg: DetectConfig) -> DetectResult:
    image = read_image(cfg.image_path)

    with load_pipeline(
        cfg.network,
        assets_dir=cfg.assets_dir,
        classes_path=cfg.classes_path,
        input_size=cfg.input_size,
        post_cfg=cfg.post_config(),
        prefer_cuda=cfg.prefer_cuda,
        show_score=cfg.show_score,
    ) as pipeline:
        start = time.perf_counter()
        result = pipeline.detect(image)
        elapsed_s = time.perf_counter() - start

    print(f"Time taken: {elapsed_s * 1000.0:.1f} ms")
    print(f"Detect Class : {result.kept.class_names}")
    print(f"Detect Confidence : {format_confidences(result.kept.confidences)}")

    write_image(cfg.output_path, result.image)

    if cfg.show:
        cv2.imshow("detections", result.image)
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        cfg = parse_config(argv)
        run(cfg)
    except (OSError, ValueError, RuntimeError, cv2.error) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
