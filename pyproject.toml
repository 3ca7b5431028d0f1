[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "catapult"
version = "0.0.1"
description = "Project model, toolchain detection and package manifests for building C and C++ projects"
requires-python = ">=3.11"
dependencies = []
keywords = [
    "build-system",
    "package-manager",
    "c",
    "c++",
    "toolchain",
    "compiler",
    "nasm",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Programming Language :: C",
    "Programming Language :: C++",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["catapult"]

[tool.hatch.build.targets.sdist]
include = ["catapult", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
