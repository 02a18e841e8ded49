[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "logrotor"
version = "0.1.0"
description = "A log file writer that rotates by size or by a strftime file name pattern, prunes old backups and gzips them."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "log rotation", "rotating file", "gzip", "backups"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["logrotor"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
