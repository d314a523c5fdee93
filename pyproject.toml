[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "reactorhttp"
version = "0.1.0"
description = "A small reactor-style TCP server, HTTP routing and an echo server, with timing-wheel idle connection release"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "server", "reactor", "event-loop", "selectors", "timing-wheel", "echo"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
reactorhttp-echo = "reactorhttp.echo:main"

[tool.hatch.build.targets.wheel]
packages = ["reactorhttp"]

[tool.pytest.ini_options]
addopts = "-ra"
