[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fbik"
version = "0.1.1"
description = "Full body inverse kinematics for games, solved with damped least squares"
requires-python = ">=3.10"
keywords = ["ik", "fbik", "inverse-kinematics", "game", "gamedev", "animation"]
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
    "Topic :: Games/Entertainment :: Simulation",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fbik"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
