[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quash"
version = "0.1.0"
description = "A small interactive Unix-style shell with pipelines, output redirection, background jobs and built-in commands"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "command-line", "jobs", "pipeline", "repl"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
quash = "quash.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["quash"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
