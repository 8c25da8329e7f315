[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fddbeval"
version = "0.1.0"
description = "Evaluate face detections against elliptical face annotations and write ROC curves"
requires-python = ">=3.10"
keywords = ["face detection", "evaluation", "roc", "hungarian", "assignment", "intersection over union"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
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

[project.scripts]
fddb-evaluate = "fddbeval.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["fddbeval"]

[tool.pytest.ini_options]
addopts = "-ra"
