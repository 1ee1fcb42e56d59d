[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "eventprov"
version = "0.1.0"
description = "Data model, storage, messaging and HTTP client for an event provenance registry"
requires-python = ">=3.10"
keywords = [
    "events",
    "provenance",
    "registry",
    "cloudevents",
    "graphql",
    "kafka",
    "ci",
    "release",
]
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
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "requests>=2.28",
    "sqlalchemy>=2.0",
    "jsonschema>=4.17",
    "pyyaml>=6.0",
    "bcrypt>=4.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["eventprov"]

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
ignore_missing_imports = true
