[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evmflow"
version = "0.1.0"
description = "EVM bytecode decoding and control-flow analysis: opcode tables, EOF containers, static jumps, dead code and sections"
requires-python = ">=3.10"
dependencies = []
keywords = ["evm", "ethereum", "bytecode", "eof", "static-analysis", "compiler"]
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
    "Topic :: Software Development :: Compilers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evmflow"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
