[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wavelet"
version = "0.1.0"
description = "Ledger account state storage, genesis loading, contract memory snapshots, debouncing and transaction payload encoding"
requires-python = ">=3.10"
dependencies = []
keywords = ["ledger", "transactions", "smart-contracts", "debounce", "snappy", "genesis"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wavelet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
