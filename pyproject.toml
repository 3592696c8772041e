[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "glovesearch"
version = "0.1.0"
description = "Word-embedding term expansion and Elasticsearch phrase search for review corpora"
requires-python = ">=3.10"
keywords = [
    "word2vec",
    "cbow",
    "embeddings",
    "elasticsearch",
    "search",
    "similar-words",
    "text-mining",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing :: Indexing",
    "Topic :: Text Processing :: Linguistic",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
]
dependencies = [
    "numpy>=1.23",
    "requests>=2.28",
    "flask>=2.2",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
glovesearch-train = "glovesearch.train_cli:main"
glovesearch-loadcsv = "glovesearch.loadcsv:main"
glovesearch-server = "glovesearch.server:main"

[tool.hatch.build.targets.wheel]
packages = ["glovesearch"]

[tool.hatch.build.targets.sdist]
include = [
    "glovesearch",
    "tests",
    "pyproject.toml",
]

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
