[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nanocov"
version = "0.1.0"
description = "Per-base coverage, read statistics and coverage plots from BAM files"
requires-python = ">=3.10"
keywords = ["bam", "coverage", "genomics", "nanopore", "sequencing", "bioinformatics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]
dependencies = [
    "matplotlib",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
nanocov = "nanocov.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["nanocov"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
