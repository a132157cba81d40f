[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chainsig"
version = "0.1.0"
description = "State machine, configuration and key handling for a threshold MPC signing network"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["mpc", "threshold-signatures", "secp256k1", "hpke", "chain-signatures"]
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
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["chainsig"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
