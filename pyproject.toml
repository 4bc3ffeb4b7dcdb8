[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ogmkit"
version = "0.7.2"
description = "Readers for OGG/OGM media, WAVE audio, SRT and VobSub subtitles, with Vorbis comment handling"
requires-python = ">=3.10"
dependencies = []
keywords = ["ogg", "ogm", "oggds", "vorbis", "srt", "vobsub", "wave", "subtitles", "demuxer"]
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
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ogmkit"]

[tool.hatch.build.targets.sdist]
include = ["ogmkit", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
