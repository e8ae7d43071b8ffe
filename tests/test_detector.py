import numpy as np
import pytest

from rfdetr_infer.core import image_to_blob
from rfdetr_infer.detector import ModelVariant, RfDetr, variant_for_path

NUM_CLASSES = 92


def _model_unused(blob):
    raise AssertionError("model must not be called")


def _outputs(entries):
    """entries: list of ((cx, cy, w, h), class_index, score)."""
    boxes = np.zeros((1, len(entries), 4), dtype=np.float32)
    scores = np.zeros((1, len(entries), NUM_CLASSES), dtype=np.float32)
    for i, (box, cls, score) in enumerate(entries):
        boxes[0, i] = box
        scores[0, i, cls] = score
    return boxes, scores


@pytest.mark.parametrize(
    "path, variant, size",
    [
        ("weights/rf-detr-nano.onnx", ModelVariant.NANO, 384),
        ("weights/rf-detr-small.xml", ModelVariant.SMALL, 512),
        ("weights/rf-detr-medium.onnx", ModelVariant.MEDIUM, 576),
        ("weights/rf-detr-base.onnx", ModelVariant.LEGACY, 640),
    ],
)
def test_variant_for_path(path, variant, size):
    found = variant_for_path(path)
    assert found is variant
    assert found.input_w == size and found.input_h == size


def test_only_legacy_is_old_generation():
    assert variant_for_path("example.onnx").new_generation is False
    assert variant_for_path("nano.onnx").new_generation is True


def test_preprocess_legacy_pads_bottom():
    det = RfDetr(_model_unused, ModelVariant.LEGACY)
    image = np.full((320, 640, 3), 10, dtype=np.uint8)
    blob = det.preprocess(image)
    assert blob.shape == (1, 3, 640, 640)
    assert blob.dtype == np.float32
    pad = image_to_blob(np.full((1, 1, 3), 114, dtype=np.uint8))[:, 0, 0]
    fill = image_to_blob(np.full((1, 1, 3), 10, dtype=np.uint8))[:, 0, 0]
    np.testing.assert_allclose(blob[0, :, 500, 300], pad)
    np.testing.assert_allclose(blob[0, :, 100, 300], fill)


def test_preprocess_new_generation_stretches():
    det = RfDetr(_model_unused, ModelVariant.NANO)
    image = np.full((100, 300, 3), 200, dtype=np.uint8)
    blob = det.preprocess(image)
    assert blob.shape == (1, 3, 384, 384)
    expected = image_to_blob(np.full((1, 1, 3), 200, dtype=np.uint8))[:, 0, 0]
    np.testing.assert_allclose(blob[0, :, 383, 383], expected, rtol=1e-5)


def test_input_size_override():
    det = RfDetr(_model_unused, ModelVariant.NANO, input_size=(320, 256))
    assert det.new_generation is False
    blob = det.preprocess(np.zeros((64, 64, 3), dtype=np.uint8))
    assert blob.shape == (1, 3, 256, 320)


def test_label_is_class_minus_one():
    det = RfDetr(_model_unused, ModelVariant.NANO)
    boxes, scores = _outputs([((0.5, 0.5, 0.4, 0.4), 3, 0.9)])
    result = det.postprocess(boxes, scores, (100, 200, 3))
    assert len(result) == 1
    assert result[0].label == 3 - 1
    assert result[0].prob == pytest.approx(0.9)


@pytest.mark.parametrize(
    "cls, score",
    [(0, 0.9), (91, 0.9), (5, 0.2), (5, 0.3)],
)
def test_filtered_entries(cls, score):
    det = RfDetr(_model_unused, ModelVariant.NANO, conf_threshold=0.3)
    boxes, scores = _outputs([((0.5, 0.5, 0.4, 0.4), cls, score)])
    assert det.postprocess(boxes, scores, (100, 200, 3)) == []


def test_full_image_box_is_clamped():
    det = RfDetr(_model_unused, ModelVariant.NANO)
    rows, cols = 120, 200
    boxes, scores = _outputs([((0.5, 0.5, 1.0, 1.0), 1, 0.8)])
    (obj,) = det.postprocess(boxes, scores, (rows, cols, 3))
    assert obj.rect.x == 0 and obj.rect.y == 0
    assert obj.rect.width == pytest.approx(cols - 1)
    assert obj.rect.height == pytest.approx(rows - 1)


def test_degenerate_box_dropped():
    det = RfDetr(_model_unused, ModelVariant.NANO)
    boxes, scores = _outputs([((0.5, 0.5, 0.0, 0.4), 1, 0.8)])
    assert det.postprocess(boxes, scores, (100, 100, 3)) == []


def test_square_image_legacy_matches_new_generation():
    boxes, scores = _outputs(
        [((0.3, 0.4, 0.2, 0.3), 2, 0.7), ((0.7, 0.6, 0.2, 0.2), 4, 0.6)]
    )
    shape = (320, 320, 3)
    legacy = RfDetr(_model_unused, ModelVariant.LEGACY).postprocess(boxes, scores, shape)
    newer = RfDetr(_model_unused, ModelVariant.SMALL).postprocess(boxes, scores, shape)
    assert len(legacy) == len(newer) == 2
    for a, b in zip(legacy, newer):
        assert a.label == b.label
        assert a.rect.x == pytest.approx(b.rect.x, rel=1e-4)
        assert a.rect.width == pytest.approx(b.rect.width, rel=1e-4)


def test_nms_keeps_highest_of_overlapping():
    det = RfDetr(_model_unused, ModelVariant.NANO)
    boxes, scores = _outputs(
        [((0.5, 0.5, 0.4, 0.4), 1, 0.6), ((0.5, 0.5, 0.4, 0.4), 1, 0.9)]
    )
    result = det.postprocess(boxes, scores, (100, 100, 3))
    assert len(result) == 1
    assert result[0].prob == pytest.approx(0.9)


def test_disjoint_boxes_sorted_by_confidence():
    det = RfDetr(_model_unused, ModelVariant.NANO)
    boxes, scores = _outputs(
        [
            ((0.2, 0.2, 0.2, 0.2), 1, 0.5),
            ((0.8, 0.8, 0.2, 0.2), 2, 0.95),
            ((0.2, 0.8, 0.2, 0.2), 3, 0.7),
        ]
    )
    result = det.postprocess(boxes, scores, (100, 100, 3))
    probs = [obj.prob for obj in result]
    assert len(result) == 3
    assert probs == sorted(probs, reverse=True)


def test_postprocess_rejects_wrong_rank():
    det = RfDetr(_model_unused)
    with pytest.raises(ValueError):
        det.postprocess(np.zeros((5, 4)), np.zeros((1, 5, 3)), (10, 10, 3))


def test_inference_passes_blob_to_model():
    seen = []
    boxes, scores = _outputs([((0.5, 0.5, 0.5, 0.5), 7, 0.8)])

    def model(blob):
        seen.append(blob.shape)
        return boxes, scores

    det = RfDetr(model, ModelVariant.MEDIUM)
    result = det.inference(np.zeros((50, 60, 3), dtype=np.uint8))
    assert seen == [(1, 3, 576, 576)]
    assert [obj.label for obj in result] == [6]


def test_inference_without_outputs_raises():
    det = RfDetr(lambda blob: [], ModelVariant.NANO)
    with pytest.raises(RuntimeError, match="Unexpected number of model outputs"):
        det.inference(np.zeros((20, 20, 3), dtype=np.uint8))


def test_single_output_used_for_boxes_and_scores():
    single = np.array([[[0.5, 0.5, 0.9, 0.2]]], dtype=np.float32)
    det = RfDetr(lambda blob: single, ModelVariant.NANO)
    result = det.inference(np.zeros((100, 100, 3), dtype=np.uint8))
    assert len(result) == 1
    assert result[0].label == 1
    assert result[0].prob == pytest.approx(0.9)


def test_preprocess_rejects_grayscale():
    det = RfDetr(_model_unused)
    with pytest.raises(ValueError):
        det.preprocess(np.zeros((10, 10), dtype=np.uint8))