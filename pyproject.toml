[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lachuoi"
version = "0.1.0"
description = "Small WSGI endpoints, a random city picker, a random-place posting bot and an RSS-to-Mastodon relay."
requires-python = ">=3.10"
keywords = ["mastodon", "rss", "bot", "wsgi", "places", "geonames", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Communications",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
lachuoi-hello = "lachuoi.hello:main"
lachuoi-random-place = "lachuoi.random_place:main"
lachuoi-place-bot = "lachuoi.place_bot:main"
lachuoi-newspenguin = "lachuoi.newspenguin:main"

[tool.hatch.build.targets.wheel]
packages = ["lachuoi"]

[tool.hatch.build.targets.sdist]
include = ["lachuoi", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
