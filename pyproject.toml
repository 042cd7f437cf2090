[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "powerprompt"
version = "1.0.0"
description = "A themeable powerline-style shell prompt generator for bash, zsh and other shells"
requires-python = ">=3.10"
keywords = ["prompt", "powerline", "shell", "bash", "zsh", "terminal", "git"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: MacOS",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
    "Topic :: Terminals",
]
dependencies = [
    "wcwidth",
    "pyyaml",
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
powerprompt = "powerprompt.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["powerprompt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
