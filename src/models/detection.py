"""
Detection models for per-frame vehicle detections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned bounding box in pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    @classmethod
    def centered(cls, cx: float, cy: float, size: float) -> "BoundingBox":
        """Square box of side `size` centered on (cx, cy)."""
        half = size / 2
        return cls(x=cx - half, y=cy - half, width=size, height=size)


@dataclass(frozen=True)
class DetectionBox:
    """
    A single detection handed over by the external vision pipeline.

    Attributes:
        bbox: Bounding box in pixel coordinates.
        class_name: Detector class label (e.g. "car", "bus").
        confidence: Detection confidence score (0-1).
    """
    bbox: BoundingBox
    class_name: str = ""
    confidence: float = 1.0

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        class_name: str = "",
        confidence: float = 1.0,
    ) -> "DetectionBox":
        """Create DetectionBox from x, y, width, height."""
        return cls(
            bbox=BoundingBox(x=x, y=y, width=width, height=height),
            class_name=class_name,
            confidence=confidence,
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionBox":
        """
        Adapter: Create from a detection dictionary.

        Accepts either a nested {"bbox": {x, y, width, height}} or flat keys.
        The class label may be given as "class" or "class_name".
        """
        box = d.get("bbox", d)
        return cls(
            bbox=BoundingBox(
                x=float(box["x"]),
                y=float(box["y"]),
                width=float(box["width"]),
                height=float(box["height"]),
            ),
            class_name=d.get("class_name", d.get("class", "")) or "",
            confidence=float(d.get("confidence", 1.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bbox": {
                "x": self.bbox.x,
                "y": self.bbox.y,
                "width": self.bbox.width,
                "height": self.bbox.height,
            },
            "class_name": self.class_name,
            "confidence": self.confidence,
        }


def detections_from_numpy(
    arr: np.ndarray,
    class_names: Optional[Sequence[str]] = None,
) -> List[DetectionBox]:
    """
    Adapter: Convert numpy array of detections to DetectionBox objects.

    Args:
        arr: Array of shape (N, 4+) where each row is [x, y, w, h, confidence?].
        class_names: Optional class label per row.
    """
    if arr is None or len(arr) == 0:
        return []
    arr = np.atleast_2d(np.asarray(arr, dtype=float))
    detections = []
    for idx, row in enumerate(arr):
        label = class_names[idx] if class_names is not None and idx < len(class_names) else ""
        detections.append(DetectionBox(
            bbox=BoundingBox(
                x=float(row[0]),
                y=float(row[1]),
                width=float(row[2]),
                height=float(row[3]),
            ),
            class_name=label,
            confidence=float(row[4]) if len(row) > 4 else 1.0,
        ))
    return detections


def detections_to_numpy(detections: Sequence[DetectionBox]) -> np.ndarray:
    """
    Adapter: Convert DetectionBox objects to an (N, 5) array.

    Returns:
        Array with rows [x, y, w, h, confidence]; empty array when no detections.
    """
    if not detections:
        return np.array([])
    return np.array([
        [*d.bbox.as_tuple(), d.confidence] for d in detections
    ], dtype=float)
