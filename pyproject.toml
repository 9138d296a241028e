[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minibank"
version = "0.1.0"
description = "A small banking service: companies, accounts and batch CSV transfers over a JSON HTTP API"
requires-python = ">=3.10"
keywords = ["bank", "accounts", "transfers", "ledger", "csv", "rest", "flask", "sqlalchemy"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Accounting",
]
dependencies = [
    "flask>=2.2",
    "sqlalchemy>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
minibank-server = "minibank.server:main"
minibank-migrate = "minibank.migrate:main"
minibank-seed = "minibank.seed:main"

[tool.hatch.build.targets.wheel]
packages = ["minibank"]

[tool.hatch.build.targets.sdist]
include = ["minibank", "tests", "pyproject.toml"]

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
warn_redundant_casts = true
