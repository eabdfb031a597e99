class InvalidTensorShapeError(ValueError):
    """Raised when a network output cannot be read as rows of [cx, cy, w, h, obj, scores...]."""


class ImageDecodeError(ValueError):
    """Raised when an input image exists on disk but OpenCV cannot decode it."""
