# rfdetr-infer

Image pre-processing and detection post-processing for RF-DETR object
detection models, built on NumPy and Pillow.

The package handles everything around the network itself:

- **Pre-processing**: letterboxing onto a grey (114, 114, 114) canvas for
  legacy 640×640 models, plain resizing for the newer nano, small and medium
  models, BGR→RGB conversion and ImageNet normalisation into an NCHW blob.
- **Post-processing**: picks the best class for each query, applies the
  confidence threshold, skips class 0 and indices of 91 and above, converts
  normalised `cx, cy, w, h` boxes back to image pixels, clips them, sorts by
  score and applies greedy non-maximum suppression. Labels returned are the
  model's class index minus one.
- **Labels and drawing**: the COCO class list (with `_` placeholders for
  unused ids), reading a label file one name per line, and drawing boxes
  with captions onto an image.
- **Detection messages**: converting detections into a `Detection2DArray`
  of box centres, sizes, class ids and scores, and a `DetectionPipeline`
  that runs a detector on each image and passes the result to callbacks.

Images are `H×W×3` `uint8` NumPy arrays in BGR channel order throughout.

## Installation

```
pip install rfdetr-infer
```

## Usage

### Model variants

`variant_for_path` chooses the input size from the model file name:

```python
from rfdetr_infer.detector import ModelVariant, variant_for_path

variant_for_path("rf-detr-nano.onnx")    # ModelVariant.NANO,   384×384, new generation
variant_for_path("rf-detr-small.onnx")   # ModelVariant.SMALL,  512×512, new generation
variant_for_path("rf-detr-medium.onnx")  # ModelVariant.MEDIUM, 576×576, new generation
variant_for_path("rf-detr-base.onnx")    # ModelVariant.LEGACY, 640×640, letterboxed
```

New-generation variants are resized straight to the input size, and their
boxes are scaled straight to the image size. Legacy variants are letterboxed,
and their boxes are mapped back through the letterbox scale.

### Running a detector

`RfDetr` wraps the pre- and post-processing around a model that you supply.
The model is any callable that takes the `1×3×H×W` float32 blob and returns
either a sequence `(boxes, scores)` (`1×Q×4` and `1×Q×C`) or a single array,
which is then used for both.

```python
from rfdetr_infer.detector import RfDetr, variant_for_path

def model(blob):
    ...                      # run your network here
    return boxes, scores

detector = RfDetr(
    model,
    variant=variant_for_path("rf-detr-small.onnx"),
    nms_threshold=0.45,
    conf_threshold=0.3,
)
objects = detector.inference(image)
for obj in objects:
    print(obj.label, obj.prob, obj.rect)
```

Passing `input_size=(w, h)` instead of a variant sets a fixed input size and
treats the model as legacy (letterboxed).

The steps can also be called one at a time: `RfDetr.preprocess(image)`
returns the blob, and `RfDetr.postprocess(boxes, scores, image_shape)`
returns the detections. `postprocess` raises `ValueError` when the outputs
are not 3-D, and `inference` raises `RuntimeError` when the model returns no
outputs.

### Building blocks

```python
from rfdetr_infer.core import Detection, Rect, image_to_blob, letterbox, nms_sorted

canvas = letterbox(image, 640, 640)    # resized, padded bottom/right
blob = image_to_blob(canvas)           # 3×H×W float32, RGB, ImageNet-normalised
kept = nms_sorted(detections, 0.45)    # indices kept; input sorted by score first
```

`Rect` is a frozen dataclass (`x`, `y`, `width`, `height`) with `area()` and
`intersection(other)`. `Detection` holds a `rect`, a `label` and a `prob`.

### Labels and drawing

```python
from rfdetr_infer.draw import draw_objects
from rfdetr_infer.labels import COCO_CLASSES, label_text, read_class_labels

names = read_class_labels("labels.txt")  # one class name per line
label_text(3, COCO_CLASSES)              # "airplane"
label_text(500, COCO_CLASSES)            # "Class 500"
draw_objects(image, objects, names)      # draws boxes and captions in place
```

### Detection messages and the pipeline

```python
from rfdetr_infer.node import DetectionPipeline, Header, NodeConfig, objects_to_detection2d

array = objects_to_detection2d(objects, Header(stamp_sec=1, frame_id="camera"))
for det in array.detections:
    print(det.class_id, det.score, det.center_x, det.center_y, det.size_x, det.size_y)

pipeline = DetectionPipeline(
    NodeConfig(publish_resized_image=True),
    detector,
    publish_detections=lambda detections: ...,
    publish_image=lambda header, frame: ...,
)
result = pipeline.handle_image(image, Header(frame_id="camera"))
```

`NodeConfig` holds the settings with their defaults: confidence 0.3, NMS
threshold 0.45, device `AUTO`, model type `openvino`, input topic
`image_raw`, box topic `rf_detr/bounding_boxes` and image topic
`rf_detr/image_raw`. A `class_labels_path` makes the pipeline read its class
names from that file; otherwise it uses `COCO_CLASSES`. Any model type other
than `openvino` raises `ValueError`.

`handle_image` copies the image, runs the detector, draws the results on the
copy, and passes the `Detection2DArray` to `publish_detections`. When
`publish_resized_image` is set and `publish_image` is given, it also passes
the annotated copy. The array is returned in every case. Inference time is
logged through the `logging` module.

## What this package does not do

- It does not load or run model files. The model is a callable that you
  provide, backed by whatever inference runtime you use.
- It does not connect to a message bus. The topic names in `NodeConfig` are
  plain settings; results go to the callbacks given to `DetectionPipeline`.
- It has no command-line program and no image window.

## Tests

```
pip install "rfdetr-infer[test]"
pytest
```