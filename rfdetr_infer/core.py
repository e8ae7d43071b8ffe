"""Geometry primitives, image preprocessing and non-maximum suppression."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from PIL import Image

PAD_VALUE = 114
IMAGENET_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
IMAGENET_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left corner and size."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def area(self) -> float:
        """Return width times height."""
        return self.width * self.height

    def intersection(self, other: Rect) -> Rect:
        """Return the overlap of two rectangles, or an empty rectangle."""
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.right, other.right)
        y2 = min(self.bottom, other.bottom)
        if x2 - x1 <= 0 or y2 - y1 <= 0:
            return Rect()
        return Rect(x1, y1, x2 - x1, y2 - y1)


@dataclass
class Detection:
    """A detected object: its box in image pixels, class index and confidence."""

    rect: Rect = field(default_factory=Rect)
    label: int = 0
    prob: float = 0.0


def _check_bgr(image: np.ndarray) -> None:
    if not isinstance(image, np.ndarray):
        raise TypeError("image must be a numpy array")
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"expected an HxWx3 image, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"expected a uint8 image, got {image.dtype}")


def letterbox(image: np.ndarray, input_w: int, input_h: int) -> np.ndarray:
    """Resize keeping the aspect ratio and pad bottom/right to the input size."""
    _check_bgr(image)
    rows, cols = image.shape[:2]
    if rows == 0 or cols == 0:
        raise ValueError("image is empty")
    r = min(
        np.float32(input_w) / np.float32(cols),
        np.float32(input_h) / np.float32(rows),
    )
    unpad_w = int(r * np.float32(cols))
    unpad_h = int(r * np.float32(rows))
    if unpad_w <= 0 or unpad_h <= 0:
        raise ValueError("target size is too small for this image")

    resized = Image.fromarray(image).resize((unpad_w, unpad_h), Image.BILINEAR)
    out = np.full((input_h, input_w, 3), PAD_VALUE, dtype=np.uint8)
    out[:unpad_h, :unpad_w] = np.asarray(resized)
    return out


def image_to_blob(image: np.ndarray) -> np.ndarray:
    """Convert a BGR uint8 image to a normalised RGB float32 CHW array."""
    _check_bgr(image)
    rgb = image[..., ::-1].astype(np.float32) / np.float32(255.0)
    normalised = (rgb - IMAGENET_MEAN) / IMAGENET_STD
    return np.ascontiguousarray(normalised.transpose(2, 0, 1), dtype=np.float32)


def nms_sorted(objects: Sequence[Detection], threshold: float) -> list[int]:
    """Greedy NMS over detections already sorted by confidence.

    Returns the indices of the detections that are kept.
    """
    areas = [obj.rect.area() for obj in objects]
    picked: list[int] = []
    for i, candidate in enumerate(objects):
        keep = True
        for j in picked:
            inter = candidate.rect.intersection(objects[j].rect).area()
            union = areas[i] + areas[j] - inter
            if union > 0 and inter / union > threshold:
                keep = False
                break
        if keep:
            picked.append(i)
    return picked