"""Image-to-detections pipeline with message types for publishing results."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence

import numpy as np

from .core import Detection
from .draw import draw_objects
from .labels import COCO_CLASSES, read_class_labels

logger = logging.getLogger(__name__)


@dataclass
class NodeConfig:
    """Settings for a detection pipeline."""

    model_path: str = "example.onnx"
    class_labels_path: str = ""
    conf: float = 0.3
    nms: float = 0.45
    openvino_device: str = "AUTO"
    model_type: str = "openvino"
    src_image_topic_name: str = "image_raw"
    publish_boundingbox_topic_name: str = "rf_detr/bounding_boxes"
    publish_image_topic_name: str = "rf_detr/image_raw"
    publish_resized_image: bool = False


@dataclass
class Header:
    """Timestamp and frame of an image."""

    stamp_sec: int = 0
    stamp_nanosec: int = 0
    frame_id: str = ""


@dataclass
class Detection2D:
    """A bounding box given by its centre and size, with one hypothesis."""

    center_x: float
    center_y: float
    size_x: float
    size_y: float
    class_id: str
    score: float


@dataclass
class Detection2DArray:
    """All detections found in one image."""

    header: Header = field(default_factory=Header)
    detections: list[Detection2D] = field(default_factory=list)


class Detector(Protocol):
    def inference(self, image: np.ndarray) -> list[Detection]: ...


def objects_to_detection2d(
    objects: Sequence[Detection], header: Header
) -> Detection2DArray:
    """Convert detections into a centre-based detection array."""
    return Detection2DArray(
        header=header,
        detections=[
            Detection2D(
                center_x=obj.rect.x + obj.rect.width / 2,
                center_y=obj.rect.y + obj.rect.height / 2,
                size_x=obj.rect.width,
                size_y=obj.rect.height,
                class_id=str(obj.label),
                score=obj.prob,
            )
            for obj in objects
        ],
    )


class DetectionPipeline:
    """Runs a detector on incoming images and hands results to publishers."""

    def __init__(
        self,
        config: NodeConfig,
        detector: Detector,
        publish_detections: Callable[[Detection2DArray], None] | None = None,
        publish_image: Callable[[Header, np.ndarray], None] | None = None,
    ) -> None:
        if config.model_type != "openvino":
            raise ValueError(f"Unsupported model type: {config.model_type}")
        self.config = config
        self.detector = detector
        self.publish_detections = publish_detections
        self.publish_image = publish_image

        if config.class_labels_path:
            logger.info("read class labels from '%s'", config.class_labels_path)
            self.class_names: list[str] = read_class_labels(config.class_labels_path)
        else:
            self.class_names = list(COCO_CLASSES)

    def handle_image(self, image: np.ndarray, header: Header) -> Detection2DArray:
        """Detect objects in a BGR image, annotate a copy and publish the results."""
        frame = np.array(image, dtype=np.uint8, copy=True)

        start = time.perf_counter()
        objects = self.detector.inference(frame)
        elapsed_us = int((time.perf_counter() - start) * 1_000_000)
        logger.info(
            "Inference time: %5d us, Detected objects: %d", elapsed_us, len(objects)
        )

        draw_objects(frame, objects, self.class_names)
        detections = objects_to_detection2d(objects, header)

        if self.publish_detections is None:
            logger.error("no detection publisher configured")
            return detections
        self.publish_detections(detections)

        if self.config.publish_resized_image and self.publish_image is not None:
            self.publish_image(header, frame)
        return detections