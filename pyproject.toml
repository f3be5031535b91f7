[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgcopykit"
version = "0.1.0"
description = "Encode and decode PostgreSQL COPY data (binary and text formats) and map PostgreSQL types to logical column types"
requires-python = ">=3.10"
dependencies = []
keywords = ["postgresql", "copy", "binary", "numeric", "types", "oid"]
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
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pgcopykit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
