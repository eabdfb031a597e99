from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from .errors import ImageDecodeError
from .metadata import load_class_names
from .postprocess import DarknetPostConfig, DarknetPostprocessor
from .types import Detection, KeptDetections
from .visualize import draw_detections, label_for


PathLike = Union[str, Path]


def resolve_path(path: PathLike, root: Optional[PathLike] = None) -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, the working
      directory otherwise.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    base = Path.cwd() if root is None else Path(root).resolve()
    return (base / p).resolve()


def network_paths(network: str, assets_dir: PathLike = "assets") -> Tuple[Path, Path]:
    """
    Locate `<network>.weights` and `<network>.cfg` under `assets_dir`.
    """

    if not network:
        raise ValueError("network name must not be empty")
    base = resolve_path(assets_dir)
    return base / f"{network}.weights", base / f"{network}.cfg"


def read_image(path: PathLike) -> np.ndarray:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Could not read image at path: {p}")
    img = cv2.imread(str(p), cv2.IMREAD_COLOR)
    if img is None:
        raise ImageDecodeError(f"Could not decode image: {p}")
    return img


def write_image(path: PathLike, image_bgr: np.ndarray) -> None:
    ok = cv2.imwrite(str(path), image_bgr)
    if not ok:
        raise RuntimeError(f"Failed to write output image: {path}")


@dataclass
class DetectResult:
    image: np.ndarray
    detections: List[Detection] = field(default_factory=list)
    kept_detections: List[Detection] = field(default_factory=list)
    kept: KeptDetections = field(default_factory=KeptDetections)


class DarknetPipeline:
    """
    Plug-and-play pipeline: preprocess (blob) -> inference -> decode -> NMS -> draw.

    The pipeline expects BGR images (OpenCV-style) as `np.ndarray`. Calling it
    returns every decoded candidate; `detect()` also suppresses and renders.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], Sequence[np.ndarray]],
        *,
        backend: Optional[object] = None,
        input_size: int = 416,
        post_cfg: DarknetPostConfig = DarknetPostConfig(),
        class_names: Optional[Dict[int, str]] = None,
        show_score: bool = False,
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.input_size = int(input_size)
        self.post = DarknetPostprocessor(post_cfg)
        self.class_names = dict(class_names) if class_names else {}
        self.show_score = show_score

    def preprocess(self, image_bgr: np.ndarray) -> np.ndarray:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        # BGR -> RGB, scale to [0, 1], stretch to the square input, HWC -> NCHW
        return cv2.dnn.blobFromImage(
            image_bgr.astype(np.float32),
            1 / 255.0,
            (self.input_size, self.input_size),
            (0, 0, 0),
            swapRB=True,
            crop=False,
        )

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        blob = self.preprocess(image_bgr)
        outputs = self._infer_fn(blob)
        h, w = image_bgr.shape[:2]
        return self.post.decode(outputs, frame_size=(w, h))

    def detect(self, image_bgr: np.ndarray) -> DetectResult:
        """
        Run the full pass and draw the surviving boxes onto `image_bgr` in place.

        When nothing is decoded the image is returned untouched and no NMS runs.
        """

        detections = self(image_bgr)
        if not detections:
            return DetectResult(image=image_bgr)

        kept = self.post.suppress(detections)
        draw_detections(image_bgr, kept, class_names=self.class_names, show_score=self.show_score)
        return DetectResult(
            image=image_bgr,
            detections=detections,
            kept_detections=kept,
            kept=KeptDetections(
                class_names=[label_for(d, self.class_names) for d in kept],
                confidences=[d.score for d in kept],
            ),
        )

    def close(self) -> None:
        close = getattr(self.backend, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "DarknetPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def load_pipeline(
    network: str,
    *,
    assets_dir: PathLike = "assets",
    classes_path: Optional[PathLike] = None,
    input_size: int = 416,
    post_cfg: DarknetPostConfig = DarknetPostConfig(),
    prefer_cuda: bool = False,
    show_score: bool = False,
) -> DarknetPipeline:
    """
    Create a pipeline for a Darknet network stored as `<assets_dir>/<network>.{weights,cfg}`.

    Typical usage:
        with load_pipeline("yolov4-tiny", classes_path="assets/coco.names") as pipe:
            result = pipe.detect(image)

    Args:
        network: base name of the weights/cfg pair
        assets_dir: directory holding the pair; relative paths resolve against the working directory
        classes_path: optional `.names` file; without it labels are numeric class ids
    """

    from .backends.opencv_dnn_backend import OpenCvDnnBackend, OpenCvDnnBackendConfig

    # Read the class list first so a missing file fails before the network loads.
    class_names = load_class_names(resolve_path(classes_path)) if classes_path is not None else {}

    weights_path, cfg_path = network_paths(network, assets_dir)
    backend = OpenCvDnnBackend(weights_path, cfg_path, OpenCvDnnBackendConfig(prefer_cuda=prefer_cuda))
    return DarknetPipeline(
        backend.infer,
        backend=backend,
        input_size=input_size,
        post_cfg=post_cfg,
        class_names=class_names,
        show_score=show_score,
    )
