[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chatline"
version = "0.1.0"
description = "A small multi-user terminal chat server and client over a length-prefixed TCP protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tcp", "socket", "terminal", "server", "client", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
chatline = "chatline.client:main"
chatline-server = "chatline.server:main"

[tool.hatch.build.targets.wheel]
packages = ["chatline"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
