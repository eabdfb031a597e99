"""
Darknet YOLO single-image detection on top of OpenCV DNN.

OpenCV runs the network; this package decodes the raw output layers, applies
NMS, draws the survivors and wraps it all in a small CLI (`darknet-detect`).
"""

from .types import Detection, KeptDetections
from .errors import ImageDecodeError, InvalidTensorShapeError
from .nms import NMSConfig, nms
from .postprocess import DarknetPostConfig, DarknetPostprocessor, decode_outputs
from .runtime import DarknetPipeline, DetectResult, load_pipeline, network_paths, read_image, resolve_path, write_image
from .metadata import load_class_names
from .visualize import draw_detections
from .config import DetectConfig

__all__ = [
    "Detection",
    "KeptDetections",
    "ImageDecodeError",
    "InvalidTensorShapeError",
    "NMSConfig",
    "nms",
    "DarknetPostConfig",
    "DarknetPostprocessor",
    "decode_outputs",
    "DarknetPipeline",
    "DetectResult",
    "load_pipeline",
    "network_paths",
    "read_image",
    "resolve_path",
    "write_image",
    "load_class_names",
    "draw_detections",
    "DetectConfig",
]
