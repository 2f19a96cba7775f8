[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "txcli"
version = "0.1.0"
description = "Client library for a {json:api} localization service: projects, resources, async uploads and downloads, and a concurrent task pool"
requires-python = ">=3.10"
keywords = ["localization", "translation", "jsonapi", "i18n", "l10n"]
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
    "Topic :: Software Development :: Localization",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests>=2.25",
    "python-slugify>=5.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.20",
]

[tool.hatch.build.targets.wheel]
packages = ["txcli"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
