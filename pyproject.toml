[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "layotto"
version = "0.1.0"
description = "Application runtime building blocks: RPC invokers, channels, transport protocols and an actuator for health and info"
requires-python = ">=3.10"
keywords = ["rpc", "runtime", "sidecar", "actuator", "health-check", "bolt", "dubbo"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["layotto"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
