[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "casaos"
version = "0.1.0"
description = "Home server service layer: Samba shares, SMB connections, notifications, file operations, host information, search suggestions and storage routing"
requires-python = ">=3.10"
keywords = ["home-server", "samba", "nas", "system-information", "storage"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "psutil",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["casaos"]

[tool.pytest.ini_options]
addopts = "-ra"
