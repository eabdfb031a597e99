"""
Inference backends for darknet_kit.

Backends are kept in a separate module so core functionality (decode/NMS/drawing)
can be used and tested without loading a network.
"""

from __future__ import annotations

from .opencv_dnn_backend import OpenCvDnnBackend, OpenCvDnnBackendConfig

__all__ = ["OpenCvDnnBackend", "OpenCvDnnBackendConfig"]
