[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "crmhub"
version = "0.1.0"
description = "Asyncio CRM building blocks: user statistics SQL queries, content metadata, notification queueing and welcome campaigns"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["crm", "notification", "email", "sms", "user-stats", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["crmhub"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
