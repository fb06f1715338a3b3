[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taskserver"
version = "0.1.0"
description = "A small HTTP/1.0 server that runs simple tasks on per-route worker pools"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "server", "worker-pool", "threads", "tasks"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
taskserver = "taskserver.server:main"

[tool.hatch.build.targets.wheel]
packages = ["taskserver"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
