[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ibsr"
version = "0.1.0"
description = "Clocks, BPF counter map decoding and XDP program safety checks for inbound traffic monitoring"
requires-python = ">=3.10"
dependencies = []
keywords = ["xdp", "bpf", "ebpf", "network", "monitoring", "safety", "elf"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ibsr"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
