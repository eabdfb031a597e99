from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class NMSConfig:
    score_threshold: float = 0.45
    iou_threshold: float = 0.8
    max_detections: int = 100


def box_iou(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    """
    IoU between one xywh box (4,) and many xywh boxes (N, 4).
    """

    x1 = np.maximum(box[0], others[:, 0])
    y1 = np.maximum(box[1], others[:, 1])
    x2 = np.minimum(box[0] + box[2], others[:, 0] + others[:, 2])
    y2 = np.minimum(box[1] + box[3], others[:, 1] + others[:, 3])

    w = np.maximum(0.0, x2 - x1)
    h = np.maximum(0.0, y2 - y1)
    inter = w * h
    union = box[2] * box[3] + others[:, 2] * others[:, 3] - inter
    # Degenerate (zero-area) pairs count as non-overlapping.
    return np.where(union > 0, inter / np.maximum(union, 1e-6), 0.0)


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xywh and scores shape (N,).

    Scores below `cfg.score_threshold` are dropped (a score equal to the threshold
    is kept). Returns the indices of kept boxes, best first, sized exactly to the
    number of survivors.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float32).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"boxes and scores length mismatch: {boxes.shape[0]} != {scores.shape[0]}")

    if boxes.size == 0 or cfg.max_detections <= 0:
        return np.empty((0,), dtype=np.int32)

    candidates = np.where(scores >= np.float32(cfg.score_threshold))[0]
    # Stable sort keeps the earlier candidate first on equal scores.
    order = candidates[np.argsort(-scores[candidates], kind="stable")]
    keep = []

    while order.size > 0 and len(keep) < cfg.max_detections:
        i = order[0]
        keep.append(i)

        iou = box_iou(boxes[i], boxes[order[1:]])
        inds = np.where(iou <= cfg.iou_threshold)[0]
        order = order[inds + 1]

    return np.array(keep, dtype=np.int32)
