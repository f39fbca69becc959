[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shelfkit"
version = "0.1.0"
description = "Home e-book library toolkit: catalogue filtering, book trees, previews, tags and MOBI/AZW editing"
requires-python = ">=3.10"
dependencies = []
keywords = ["ebook", "library", "catalog", "mobi", "azw", "kindle"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["shelfkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
