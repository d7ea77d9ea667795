[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oscal-sdk"
version = "0.1.0"
description = "Work with OSCAL compliance documents: rule extensions, framework settings, and assessment plan and result generation."
requires-python = ">=3.10"
dependencies = []
keywords = ["oscal", "compliance", "security", "assessment", "nist"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Information Technology",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["oscal_sdk"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
