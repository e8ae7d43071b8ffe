[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rfdetr-infer"
version = "0.1.0"
description = "Pre- and post-processing for RF-DETR object detection models: letterboxing, normalisation, box decoding, NMS and drawing"
requires-python = ">=3.10"
keywords = ["rf-detr", "object detection", "detr", "nms", "computer vision", "coco"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Recognition",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["rfdetr_infer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
