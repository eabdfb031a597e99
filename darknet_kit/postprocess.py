from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidTensorShapeError
from .nms import NMSConfig, nms
from .types import Detection


# Columns before the class scores: cx, cy, w, h, objectness.
GEOMETRY_COLUMNS = 5


@dataclass(frozen=True)
class DarknetPostConfig:
    """
    Post-processing configuration for Darknet region/yolo layer outputs.
    """
    score_threshold: float = 0.45
    nms_threshold: float = 0.8
    max_detections: int = 100
    # If False, runs per-class NMS then merges results by score.
    class_agnostic_nms: bool = True


def _as_rows(tensor: np.ndarray) -> np.ndarray:
    p = np.asarray(tensor, dtype=np.float32)
    if p.ndim == 3:
        if p.shape[0] != 1:
            raise InvalidTensorShapeError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
        p = p[0]
    if p.ndim != 2:
        raise InvalidTensorShapeError(f"Expected a 2-D output tensor, got shape {p.shape}.")
    if p.shape[1] < GEOMETRY_COLUMNS:
        raise InvalidTensorShapeError(
            f"Expected at least {GEOMETRY_COLUMNS} columns [cx, cy, w, h, obj, ...], got shape {p.shape}."
        )
    return p


def decode_outputs(
    outputs: Union[np.ndarray, Iterable[np.ndarray]],
    frame_size: Tuple[int, int],
) -> List[Detection]:
    """
    Decode raw Darknet output tensors into candidate detections.

    Every row of every tensor yields exactly one Detection, in input order; no
    score filtering happens here. The row confidence is the best class score
    (objectness is not consulted).

    Args:
        outputs: one (N, 5 + C) tensor or a sequence of them (one per output layer)
        frame_size: (width, height) of the original frame; normalized geometry is
            scaled by these, not by the network input size
    """

    if isinstance(outputs, np.ndarray):
        outputs = [outputs]
    tensors = [_as_rows(t) for t in outputs]

    frame_w, frame_h = frame_size
    fw = np.float32(frame_w)
    fh = np.float32(frame_h)

    detections: List[Detection] = []
    for p in tensors:
        n = p.shape[0]
        if n == 0:
            continue

        # float32 products truncated toward zero
        cx = (p[:, 0] * fw).astype(np.int64)
        cy = (p[:, 1] * fh).astype(np.int64)
        w = (p[:, 2] * fw).astype(np.int64)
        h = (p[:, 3] * fh).astype(np.int64)
        left = cx - (w / 2).astype(np.int64)
        top = cy - (h / 2).astype(np.int64)

        if p.shape[1] > GEOMETRY_COLUMNS:
            class_scores = p[:, GEOMETRY_COLUMNS:]
            class_ids = np.argmax(class_scores, axis=1)
            scores = class_scores[np.arange(n), class_ids]
            ids: Sequence = [int(c) for c in class_ids]
        else:
            scores = np.zeros((n,), dtype=np.float32)
            ids = [None] * n

        detections.extend(
            Detection(
                x=int(x),
                y=int(y),
                width=int(bw),
                height=int(bh),
                score=float(score),
                class_id=cls_id,
            )
            for x, y, bw, bh, score, cls_id in zip(left, top, w, h, scores, ids)
        )

    return detections


class DarknetPostprocessor:
    """
    Decode + suppress for Darknet YOLO outputs as returned by `cv2.dnn`.

    Layout (per output layer): (N, 5 + C) rows of
    [cx, cy, w, h, objectness, class_scores...] with normalized geometry.
    """

    def __init__(self, cfg: DarknetPostConfig):
        self.cfg = cfg

    def decode(self, outputs: Union[np.ndarray, Iterable[np.ndarray]], frame_size: Tuple[int, int]) -> List[Detection]:
        return decode_outputs(outputs, frame_size)

    def process(self, outputs: Union[np.ndarray, Iterable[np.ndarray]], frame_size: Tuple[int, int]) -> List[Detection]:
        return self.suppress(self.decode(outputs, frame_size))

    def suppress(self, detections: Sequence[Detection]) -> List[Detection]:
        """
        Run NMS over decoded candidates and return the survivors, best first.
        """

        if not detections:
            return []

        boxes = np.array([d.as_xywh() for d in detections], dtype=np.float64).reshape(-1, 4)
        scores = np.array([d.score for d in detections], dtype=np.float32)
        keep_idx = self._apply_nms(boxes, scores, detections)
        return [detections[int(i)] for i in keep_idx]

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _nms_cfg(self) -> NMSConfig:
        return NMSConfig(
            score_threshold=self.cfg.score_threshold,
            iou_threshold=self.cfg.nms_threshold,
            max_detections=self.cfg.max_detections,
        )

    def _apply_nms(self, boxes: np.ndarray, scores: np.ndarray, detections: Sequence[Detection]) -> np.ndarray:
        nms_cfg = self._nms_cfg()

        if self.cfg.class_agnostic_nms:
            return nms(boxes, scores, nms_cfg)

        class_ids = np.array([-1 if d.class_id is None else d.class_id for d in detections], dtype=np.int64)
        kept: List[int] = []
        for cls in np.unique(class_ids):
            idx = np.where(class_ids == cls)[0]
            keep_local = nms(boxes[idx], scores[idx], nms_cfg)
            kept.extend(idx[keep_local].tolist())

        if not kept:
            return np.empty((0,), dtype=np.int32)

        kept_arr = np.array(kept, dtype=np.int32)
        order = np.argsort(-scores[kept_arr], kind="stable")
        return kept_arr[order][: self.cfg.max_detections]
