[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "daprkit"
version = "0.1.0"
description = "Client for a Dapr sidecar runtime: state, pub/sub, invocation, secrets, configuration and locks"
requires-python = ">=3.10"
dependencies = []
keywords = ["dapr", "sidecar", "microservices", "pubsub", "state", "distributed"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["daprkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
