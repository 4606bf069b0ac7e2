[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kaklsp"
version = "0.1.0"
description = "Position, text edit, configuration and workspace helpers for a Kakoune language server client"
requires-python = ">=3.11"
dependencies = []
keywords = ["kakoune", "lsp", "language-server", "editor", "text-edit"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Editors :: Integrated Development Environments (IDE)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kaklsp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
