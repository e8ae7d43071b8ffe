"""RF-DETR detection: model variants, preprocessing and decoding of outputs."""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Any, Callable, Sequence

import numpy as np
from PIL import Image

from .core import Detection, Rect, _check_bgr, image_to_blob, letterbox, nms_sorted

logger = logging.getLogger(__name__)

# Class indices at or above this value are outside the COCO label range.
MAX_CLASS_INDEX = 91

Model = Callable[[np.ndarray], Any]


class ModelVariant(Enum):
    """Known model sizes, selected from the model file name."""

    NANO = ("nano", 384, True)
    SMALL = ("small", 512, True)
    MEDIUM = ("medium", 576, True)
    LEGACY = ("legacy", 640, False)

    def __init__(self, key: str, size: int, new_generation: bool) -> None:
        self.key = key
        self.size = size
        self.new_generation = new_generation

    @property
    def input_w(self) -> int:
        return self.size

    @property
    def input_h(self) -> int:
        return self.size


def variant_for_path(model_path: str | os.PathLike[str]) -> ModelVariant:
    """Pick the model variant whose name appears in the model path."""
    path = os.fspath(model_path)
    for variant in (ModelVariant.NANO, ModelVariant.SMALL, ModelVariant.MEDIUM):
        if variant.key in path:
            return variant
    return ModelVariant.LEGACY


def _split_outputs(outputs: Any) -> tuple[np.ndarray, np.ndarray]:
    if isinstance(outputs, np.ndarray):
        logger.warning("Model has single output, may need different post-processing")
        return outputs, outputs
    items = list(outputs)
    if len(items) >= 2:
        return np.asarray(items[0]), np.asarray(items[1])
    if len(items) == 1:
        logger.warning("Model has single output, may need different post-processing")
        single = np.asarray(items[0])
        return single, single
    raise RuntimeError(f"Unexpected number of model outputs: {len(items)}")


class RfDetr:
    """Runs an RF-DETR model and turns its outputs into detections.

    ``model`` is called with a ``(1, 3, H, W)`` float32 blob and returns either
    a sequence ``(boxes, scores)`` or a single array used for both.
    """

    def __init__(
        self,
        model: Model,
        variant: ModelVariant = ModelVariant.LEGACY,
        nms_threshold: float = 0.45,
        conf_threshold: float = 0.3,
        input_size: tuple[int, int] | None = None,
    ) -> None:
        self._model = model
        if input_size is not None:
            self.input_w, self.input_h = (int(v) for v in input_size)
            self.new_generation = False
        else:
            self.input_w = variant.input_w
            self.input_h = variant.input_h
            self.new_generation = variant.new_generation
        self.nms_threshold = float(nms_threshold)
        self.conf_threshold = float(conf_threshold)

    def _scale(self, rows: int, cols: int) -> np.float32:
        return min(
            np.float32(self.input_w) / np.float32(cols),
            np.float32(self.input_h) / np.float32(rows),
        )

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        """Resize a BGR image to the model input and return a (1, 3, H, W) blob."""
        _check_bgr(image)
        if image.shape[0] == 0 or image.shape[1] == 0:
            raise ValueError("image is empty")
        if self.new_generation:
            resized = np.asarray(
                Image.fromarray(image).resize(
                    (self.input_w, self.input_h), Image.BILINEAR
                )
            )
        else:
            resized = letterbox(image, self.input_w, self.input_h)
        return image_to_blob(resized)[np.newaxis]

    def postprocess(
        self,
        boxes: np.ndarray,
        scores: np.ndarray,
        image_shape: Sequence[int],
    ) -> list[Detection]:
        """Decode box and score tensors into detections in image pixels."""
        boxes = np.asarray(boxes, dtype=np.float32)
        scores = np.asarray(scores, dtype=np.float32)
        logger.debug("Boxes shape: %s", list(boxes.shape))
        logger.debug("Scores shape: %s", list(scores.shape))
        if boxes.ndim != 3 or scores.ndim != 3:
            raise ValueError("Unexpected output shape dimensions. Expected 3D tensors.")

        rows, cols = int(image_shape[0]), int(image_shape[1])
        if rows <= 0 or cols <= 0:
            raise ValueError("image is empty")

        num_queries = boxes.shape[1]
        num_classes = scores.shape[2]
        if num_queries == 0 or num_classes == 0:
            return []
        boxes_flat = boxes.reshape(-1)
        scores_flat = scores.reshape(-1)
        if boxes_flat.size < num_queries * 4 or scores_flat.size < num_queries * num_classes:
            raise ValueError("output tensors are smaller than their shapes imply")

        box_rows = boxes_flat[: num_queries * 4].reshape(num_queries, 4)
        score_rows = scores_flat[: num_queries * num_classes].reshape(
            num_queries, num_classes
        )

        best = score_rows.argmax(axis=1)
        max_score = score_rows[np.arange(num_queries), best]
        non_positive = max_score <= 0
        best = np.where(non_positive, 0, best)
        max_score = np.where(non_positive, np.float32(0), max_score)

        keep = (
            (max_score > np.float32(self.conf_threshold))
            & (best > 0)
            & (best < MAX_CLASS_INDEX)
        )

        half = np.float32(0.5)
        cx, cy, w, h = box_rows.T
        x1n = cx - half * w
        y1n = cy - half * h
        x2n = cx + half * w
        y2n = cy + half * h

        if self.new_generation:
            fcols, frows = np.float32(cols), np.float32(rows)
            x1, y1, x2, y2 = x1n * fcols, y1n * frows, x2n * fcols, y2n * frows
        else:
            scale = self._scale(rows, cols)
            fw, fh = np.float32(self.input_w), np.float32(self.input_h)
            x1 = x1n * fw / scale
            y1 = y1n * fh / scale
            x2 = x2n * fw / scale
            y2 = y2n * fh / scale

        max_x = np.float32(cols - 1)
        max_y = np.float32(rows - 1)
        x1 = np.maximum(np.float32(0), np.minimum(x1, max_x))
        y1 = np.maximum(np.float32(0), np.minimum(y1, max_y))
        x2 = np.maximum(x1, np.minimum(x2, max_x))
        y2 = np.maximum(y1, np.minimum(y2, max_y))

        valid = keep & (x2 > x1) & (y2 > y1)
        objects = [
            Detection(
                rect=Rect(
                    float(x1[i]),
                    float(y1[i]),
                    float(x2[i] - x1[i]),
                    float(y2[i] - y1[i]),
                ),
                label=int(best[i]) - 1,
                prob=float(max_score[i]),
            )
            for i in np.flatnonzero(valid)
        ]
        objects.sort(key=lambda obj: obj.prob, reverse=True)
        return [objects[i] for i in nms_sorted(objects, self.nms_threshold)]

    def inference(self, image: np.ndarray) -> list[Detection]:
        """Run the model on a BGR image and return the kept detections."""
        blob = self.preprocess(image)
        boxes, scores = _split_outputs(self._model(blob))
        return self.postprocess(boxes, scores, image.shape)