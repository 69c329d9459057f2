[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chomptraj"
version = "0.1.0"
description = "Covariant trajectory optimization with banded solvers, equality constraints and multigrid upsampling"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["trajectory optimization", "motion planning", "chomp", "robotics", "cholesky", "band matrix"]
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
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
chomptraj-circle = "chomptraj.circle_demo:main"

[tool.hatch.build.targets.wheel]
packages = ["chomptraj"]

[tool.pytest.ini_options]
addopts = "-ra"
