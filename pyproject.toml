[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netemu"
version = "0.1.0"
description = "Discrete-event emulator of a lossy network channel with Go-Back-N and Selective Repeat transport protocols"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "network",
    "emulator",
    "discrete-event",
    "simulation",
    "go-back-n",
    "selective-repeat",
    "reliable-transport",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
netemu = "netemu.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["netemu"]

[tool.pytest.ini_options]
addopts = "-ra"
