from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class Detection:
    """
    One decoded candidate in original image pixel space.

    The box is stored as top-left corner plus size; corners are derived on demand.
    """

    x: int
    y: int
    width: int
    height: int
    score: float
    class_id: Optional[int] = None

    def as_xywh(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass
class KeptDetections:
    """Class names and confidences that survived suppression, in suppression order."""

    class_names: List[str] = field(default_factory=list)
    confidences: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.class_names)
