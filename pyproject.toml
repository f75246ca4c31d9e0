[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "audiochain"
version = "1.0.0"
description = "Audio chain engine: device selection, smoothed gain, level metering and spectrum analysis"
requires-python = ">=3.10"
keywords = ["audio", "metering", "spectrum", "fft", "gain", "dsp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["audiochain"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
