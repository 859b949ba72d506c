[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "statstracker"
version = "0.1.0"
description = "Pull request review latency report for GitHub repositories, with on-disk caching of API responses."
requires-python = ">=3.10"
keywords = [
    "metrics",
    "pull-requests",
    "code-review",
    "github",
    "review-latency",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]
dependencies = [
    "requests>=2.28",
    "platformdirs>=3.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
pr-tracker = "statstracker.pr_tracker:main"

[tool.hatch.build.targets.wheel]
packages = ["statstracker"]

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
warn_redundant_casts = true
