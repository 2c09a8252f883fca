[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "redteamkit"
version = "0.1.0"
description = "Model, track and document cloud attack techniques mapped to MITRE ATT&CK tactics"
requires-python = ">=3.10"
keywords = [
    "security",
    "red-team",
    "mitre-attack",
    "cloud",
    "terraform",
    "detection-engineering",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Information Technology",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
redteamkit-docs = "redteamkit.docs:main"

[tool.hatch.build.targets.wheel]
packages = ["redteamkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
