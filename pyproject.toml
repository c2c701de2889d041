[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shredwatch"
version = "0.1.0"
description = "Decode Solana shred-stream entries and describe Pump and Pump AMM transactions touching watched accounts."
requires-python = ">=3.10"
dependencies = [
    "python-dotenv",
]
keywords = [
    "solana",
    "shredstream",
    "entries",
    "transactions",
    "pump",
    "amm",
    "decoder",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Natural Language :: Chinese (Simplified)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["shredwatch"]

[tool.hatch.build.targets.sdist]
include = [
    "shredwatch",
    "tests",
    "README.md",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
