from __future__ import annotations

from pathlib import Path
from typing import Dict, Union


def load_class_names(names_path: Union[str, Path]) -> Dict[int, str]:
    """
    Load class names from a Darknet `.names` file (e.g. `assets/coco.names`).

    One name per line; the line number is the class id:

        person
        bicycle
        car
        ...

    Trailing blank lines are ignored. Blank lines in the middle keep their slot
    so later ids stay aligned with the network's class columns.
    """

    path = Path(names_path)
    if not path.is_file():
        raise FileNotFoundError(f"Class names file not found: {path}")

    lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
    while lines and not lines[-1]:
        lines.pop()

    return {idx: name for idx, name in enumerate(lines)}
