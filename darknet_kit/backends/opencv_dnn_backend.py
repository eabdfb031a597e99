from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OpenCvDnnBackendConfig:
    """
    Configuration for OpenCV DNN inference of Darknet models.

    - prefer_cuda: request the CUDA backend/target (needs an OpenCV build with CUDA)
    """

    prefer_cuda: bool = False


class OpenCvDnnBackend:
    """
    Darknet (.weights + .cfg) backend on top of `cv2.dnn`.

    Expects an NCHW float32 blob, typically shaped (1, 3, size, size).
    Returns one (N, 5 + C) array per YOLO output layer.

    The network handle is released by `close()`; use the backend as a context
    manager to scope it.
    """

    def __init__(
        self,
        weights_path: PathLike,
        cfg_path: PathLike,
        cfg: OpenCvDnnBackendConfig = OpenCvDnnBackendConfig(),
    ):
        self.weights_path = Path(weights_path)
        self.cfg_path = Path(cfg_path)
        for p in (self.weights_path, self.cfg_path):
            if not p.is_file():
                raise FileNotFoundError(f"Network file not found: {p}")

        self.net: Optional[cv2.dnn.Net] = cv2.dnn.readNet(str(self.weights_path), str(self.cfg_path))
        if cfg.prefer_cuda:
            self.net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            self.net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)

        self.output_names: Tuple[str, ...] = tuple(n for n in self.net.getUnconnectedOutLayersNames() if n != "_input")

    @property
    def closed(self) -> bool:
        return self.net is None

    def infer(self, blob: np.ndarray) -> List[np.ndarray]:
        if self.net is None:
            raise RuntimeError("Backend is closed.")
        self.net.setInput(blob)
        outputs = self.net.forward(list(self.output_names))
        return [np.asarray(o) for o in outputs]

    def close(self) -> None:
        self.net = None

    def __enter__(self) -> "OpenCvDnnBackend":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
