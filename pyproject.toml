[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kuios"
version = "0.1.0"
description = "A small widget toolkit, software framebuffer, memory and task bookkeeping, and a toy IPv4 network stack"
requires-python = ">=3.10"
dependencies = []
keywords = ["gui", "widgets", "framebuffer", "psf", "targa", "scheduler", "networking", "dhcp"]
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
    "Topic :: Software Development :: User Interfaces",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kuios"]

[tool.pytest.ini_options]
addopts = "-ra"
