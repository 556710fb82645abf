[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tkutils"
version = "0.1.0"
description = "Small embedded-style utilities: byte and string helpers, linked list, ring buffer, multi-value hash map, bounded queue, reference counting and a simulated heap allocator."
requires-python = ">=3.10"
dependencies = []
keywords = ["ring buffer", "hashmap", "queue", "linked list", "heap allocator", "checksum", "utilities"]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tkutils"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
