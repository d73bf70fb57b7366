[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lorawan_gateway"
version = "0.1.0"
description = "Building blocks for a LoRaWAN gateway service: packets, routing filters, region parameters, fees and self-updates"
requires-python = ">=3.11"
dependencies = [
    "semver",
]
keywords = ["lorawan", "lora", "gateway", "routing", "iot"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["lorawan_gateway"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
