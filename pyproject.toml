[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spwnkit"
version = "0.0.8"
description = "Compiler support tools for SPWN: error reports, level save files and trigger optimisation"
requires-python = ">=3.10"
keywords = ["spwn", "geometry-dash", "triggers", "optimizer", "level-string", "compiler"]
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
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["spwnkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
