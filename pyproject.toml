[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pulsesift"
version = "0.1.0"
description = "Single-pulse candidate refinement for radio transient searches: off-pulse statistics, RFI cleaning, boxcar matched filtering and search plans."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "astronomy",
    "radio",
    "pulsar",
    "fast radio burst",
    "single pulse",
    "dedispersion",
    "matched filter",
    "rfi",
]
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
    "Topic :: Scientific/Engineering :: Astronomy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pulsesift"]

[tool.hatch.build.targets.sdist]
include = [
    "pulsesift",
    "tests",
    "pyproject.toml",
    "README.md",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
