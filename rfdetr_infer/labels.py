"""Class label tables and label lookup."""

from __future__ import annotations

import os
from typing import Sequence

COCO_CLASSES: tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train",
    "truck", "boat", "traffic light", "fire hydrant", "_", "stop sign",
    "parking meter", "bench", "bird", "cat", "dog", "horse", "sheep", "cow",
    "elephant", "bear", "zebra", "giraffe", "_", "backpack", "umbrella", "_",
    "_", "handbag", "tie", "suitcase", "frisbee", "skis", "snowboard",
    "sports ball", "kite", "baseball bat", "baseball glove", "skateboard",
    "surfboard", "tennis racket", "bottle", "_", "wine glass", "cup", "fork",
    "knife", "spoon", "bowl", "banana", "apple", "sandwich", "orange",
    "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair",
    "couch", "potted plant", "bed", "_", "dining table", "_", "_", "toilet",
    "_", "tv", "laptop", "mouse", "remote", "keyboard", "cell phone",
    "microwave", "oven", "toaster", "sink", "refrigerator", "_", "book",
    "clock", "vase", "scissors", "teddy bear", "hair drier", "toothbrush",
)


def read_class_labels(path: str | os.PathLike[str]) -> list[str]:
    """Read one class name per line from a text file."""
    with open(path, encoding="utf-8") as handle:
        return [line.rstrip("\n") for line in handle]


def label_text(label: int, class_names: Sequence[str]) -> str:
    """Return the display name for a class index."""
    if 0 <= label < len(class_names):
        return class_names[label]
    return f"Class {label}"