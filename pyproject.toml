[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "grimvaders"
version = "0.1.0"
description = "Rules and state for a small turn-based strategy game: board, enemy waves, shop, deck and scripted unit triggers."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["game", "turn-based", "strategy", "ecs", "entity-component"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Turn Based Strategy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["grimvaders"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
