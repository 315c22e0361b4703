[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "extmm"
version = "0.1.0"
description = "Market-making building blocks: fair price, spread, skew, order-flow signals and risk guards"
requires-python = ">=3.11"
dependencies = []
keywords = [
    "market-making",
    "trading",
    "orderbook",
    "vpin",
    "markout",
    "risk",
    "decimal",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["extmm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
