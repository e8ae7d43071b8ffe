"""Pre- and post-processing for RF-DETR object detection models."""

__version__ = "0.1.0"

__all__ = ["core", "labels", "draw", "detector", "node"]