[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flowmvc"
version = "0.1.0"
description = "A small MVC toolkit for WSGI web applications: routing, code generators, SQL migrations and a SQLite adapter."
requires-python = ">=3.10"
keywords = ["wsgi", "mvc", "router", "scaffold", "migrations", "code-generator", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Software Development :: Code Generators",
    "Topic :: Database",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["flowmvc"]

[tool.hatch.build.targets.sdist]
include = ["flowmvc", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
