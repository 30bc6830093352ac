[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scorecron"
version = "0.1.0"
description = "Batch tooling for scheduled security scoring of open source repositories: project lists, sharded requests, result buckets and transfers."
requires-python = ">=3.10"
keywords = ["security", "scorecard", "cron", "batch", "pubsub", "bigquery", "supply-chain"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Software Development :: Quality Assurance",
]
dependencies = [
    "pyyaml>=6.0",
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
scorecron-add = "scorecron.tools:add_main"
scorecron-validate = "scorecron.tools:validate_main"
scorecron-docs = "scorecron.docs:generate_main"

[tool.hatch.build.targets.wheel]
packages = ["scorecron"]

[tool.hatch.build.targets.sdist]
include = ["scorecron", "tests", "README.md", "pyproject.toml"]

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
