[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "raven"
version = "0.1.0"
description = "Task-and-queue runtime for vehicle control: worker tasks, event bus, shared state and a TCP message gateway"
requires-python = ">=3.10"
dependencies = []
keywords = ["robotics", "runtime", "message-queue", "event-bus", "gateway", "tcp"]
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
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["raven"]

[tool.pytest.ini_options]
addopts = "-ra"
