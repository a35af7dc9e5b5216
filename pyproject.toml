[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "podscale"
version = "0.1.0"
description = "Discrete-event simulation of a scanner/orchestrator/catalog job pipeline with pod autoscaling controllers"
requires-python = ">=3.10"
dependencies = []
keywords = ["simulation", "discrete-event", "autoscaling", "queueing", "pods"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
podscale = "podscale.network:main"

[tool.hatch.build.targets.wheel]
packages = ["podscale"]

[tool.pytest.ini_options]
addopts = "-ra"
