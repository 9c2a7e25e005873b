[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "secretsanta"
version = "0.1.0"
description = "A Telegram bot that runs Secret Santa draws in group chats"
requires-python = ">=3.10"
keywords = ["telegram", "bot", "secret santa", "gift exchange", "chat", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
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
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
secretsanta = "secretsanta.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["secretsanta"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
