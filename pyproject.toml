[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "seacrate"
version = "0.1.0"
description = "A small secret manager with Shamir-sealed encryption keys and an HTTP API"
requires-python = ">=3.10"
keywords = ["secrets", "vault", "shamir", "aes-gcm", "argon2", "encryption"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography>=44",
    "flask>=2.0",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
seacrate = "seacrate.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["seacrate"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
