[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "apkdk"
version = "0.1.0"
description = "Binary data and event packages of a diagnostic monitoring system: reading, writing and parsing"
requires-python = ">=3.10"
dependencies = []
keywords = ["monitoring", "diagnostics", "binary protocol", "telemetry", "events"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["apkdk"]

[tool.pytest.ini_options]
addopts = "-ra"
