[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "noirledger"
version = "0.1.0"
description = "Memory-hard proof-of-work hash built on a custom BLAKE3 core, AES-256, ChaCha and floating-point mixing stages"
requires-python = ">=3.10"
dependencies = []
keywords = ["hash", "proof-of-work", "blake3", "memory-hard", "benchmark"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
noirledger-profiler = "noirledger.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["noirledger"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
