[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lsmkv"
version = "0.1.0"
description = "Building blocks of a log-structured merge-tree key-value store"
requires-python = ">=3.10"
dependencies = []
keywords = ["lsm-tree", "key-value", "storage", "bloom-filter", "memtable", "murmur3"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lsmkv"]

[tool.pytest.ini_options]
addopts = "-ra"
