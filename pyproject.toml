[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bercon"
version = "0.1.0"
description = "BattlEye RCon client and command-line tool with response parsing and table or JSON output"
requires-python = ">=3.10"
dependencies = []
keywords = ["battleye", "rcon", "dayz", "arma", "game-server", "udp", "cli", "geoip"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
bercon-cli = "bercon.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["bercon"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
