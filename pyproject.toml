[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "p2pool"
version = "0.1.0"
description = "Building blocks of a decentralized Monero mining pool node: difficulty arithmetic, wallet addresses, ZeroMQ feed parsing, address lists, bans and SOCKS5 handshakes"
requires-python = ">=3.10"
keywords = ["monero", "mining", "p2pool", "zeromq", "socks5", "base58"]
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
    "Topic :: Internet",
    "Topic :: System :: Networking",
]
dependencies = [
    "pycryptodome",
    "pyzmq",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["p2pool"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
