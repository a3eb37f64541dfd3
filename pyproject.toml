[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "halofind"
version = "0.1.0"
description = "Halo-finding building blocks: configuration, cosmology, spatial trees, friends-of-friends grouping and checked I/O"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "astronomy",
    "cosmology",
    "dark matter",
    "halo finder",
    "friends-of-friends",
    "n-body",
    "spatial tree",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Astronomy",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["halofind"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
