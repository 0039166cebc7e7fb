[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cansock"
version = "0.1.0"
description = "CAN bus access over Linux SocketCAN: frames, filters, dispatchers, a dummy driver, BCM cyclic transmission and bridge helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["can", "socketcan", "canbus", "bcm", "candump", "embedded"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN)",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cansock-candump = "cansock.candump:main"
cansock-canbcm = "cansock.canbcm:main"

[tool.hatch.build.targets.wheel]
packages = ["cansock"]

[tool.pytest.ini_options]
addopts = "-ra"
