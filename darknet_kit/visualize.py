from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

import cv2
import numpy as np

from .types import Detection


def _color_for_class_id(class_id: Optional[int]) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class id (OpenCV expects BGR).
    """

    if class_id is None:
        return (0, 255, 255)

    # Small deterministic palette, then fallback to a seeded RNG for larger IDs.
    palette = [
        (56, 56, 255),
        (151, 157, 255),
        (31, 112, 255),
        (29, 178, 255),
        (49, 210, 207),
        (10, 249, 72),
        (23, 204, 146),
        (134, 219, 61),
        (52, 147, 26),
        (187, 212, 0),
        (168, 153, 44),
        (255, 194, 0),
        (147, 69, 52),
        (255, 115, 100),
        (236, 24, 0),
        (255, 56, 132),
        (133, 0, 82),
        (255, 56, 203),
        (200, 149, 255),
        (199, 55, 255),
    ]
    if 0 <= class_id < len(palette):
        return palette[class_id]

    rng = np.random.default_rng(int(class_id))
    bgr = rng.integers(0, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


def label_for(det: Detection, class_names: Optional[Dict[int, str]] = None) -> str:
    if det.class_id is None:
        return "object"
    if class_names:
        return class_names.get(det.class_id, str(det.class_id))
    return str(det.class_id)


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    class_names: Optional[Dict[int, str]] = None,
    show_score: bool = False,
    box_thickness: int = 2,
    font_scale: float = 0.6,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw bounding boxes + labels onto an OpenCV BGR image in place and return it.

    Args:
        image_bgr: input image in BGR (H, W, 3); modified in place.
        detections: iterable of Detection with xywh in original image coordinates.
        class_names: optional mapping {class_id: class_name}.
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = det.as_xyxy()
        x1i = int(np.clip(x1, 0, w - 1))
        y1i = int(np.clip(y1, 0, h - 1))
        x2i = int(np.clip(x2, 0, w - 1))
        y2i = int(np.clip(y2, 0, h - 1))

        color = _color_for_class_id(det.class_id)
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        label = label_for(det, class_names)
        if show_score:
            label = f"{label} {det.score:.2f}"

        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_DUPLEX, font_scale, font_thickness)
        # Place label above the box if possible, else inside.
        y_text_top = y1i - th - baseline
        if y_text_top < 0:
            y_text_top = y1i

        x_text_right = min(x1i + tw, w - 1)
        y_text_bottom = min(y_text_top + th + baseline, h - 1)

        cv2.rectangle(out, (x1i, y_text_top), (x_text_right, y_text_bottom), color, thickness=-1)
        cv2.putText(
            out,
            label,
            (x1i, min(y_text_top + th, h - 1)),
            cv2.FONT_HERSHEY_DUPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
