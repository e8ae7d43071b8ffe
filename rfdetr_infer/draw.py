"""Drawing detections onto BGR images."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .core import Detection, _check_bgr
from .labels import label_text

# Channel order matches the image (BGR).
COLORS: tuple[tuple[int, int, int], ...] = (
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 0),
    (255, 0, 255),
    (0, 255, 255),
)
TEXT_COLOR = (255, 255, 255)


def _text_size(draw: ImageDraw.ImageDraw, font, text: str) -> tuple[int, int, int]:
    """Return (width, height above baseline, descent below baseline)."""
    left, _, right, bottom = draw.textbbox((0, 0), text, font=font)
    width = int(right - left)
    if hasattr(font, "getmetrics"):
        ascent, descent = font.getmetrics()
        return width, int(ascent), int(descent)
    return width, int(bottom), 0


def draw_objects(
    image: np.ndarray,
    objects: Sequence[Detection],
    class_names: Sequence[str],
) -> None:
    """Draw boxes and class labels onto ``image`` in place."""
    _check_bgr(image)
    cols = image.shape[1]
    canvas = Image.fromarray(image)
    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()

    for index, obj in enumerate(objects):
        color = COLORS[index % len(COLORS)]

        x0 = round(obj.rect.x)
        y0 = round(obj.rect.y)
        x1 = max(x0, x0 + round(obj.rect.width) - 1)
        y1 = max(y0, y0 + round(obj.rect.height) - 1)
        draw.rectangle([x0, y0, x1, y1], outline=color, width=2)

        text = label_text(obj.label, class_names)
        text_w, text_h, baseline = _text_size(draw, font, text)

        x = int(obj.rect.x)
        y = int(obj.rect.y) - text_h - baseline
        if y < 0:
            y = 0
        if x + text_w > cols:
            x = cols - text_w

        box_w = max(text_w, 1)
        box_h = max(text_h + baseline, 1)
        draw.rectangle([x, y, x + box_w - 1, y + box_h - 1], fill=color)
        draw.text((x, y), text, fill=TEXT_COLOR, font=font)

    image[...] = np.asarray(canvas)