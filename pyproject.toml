[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "termserial"
version = "0.1.0"
description = "Serial port access for POSIX systems with millisecond timeouts, line reading and port discovery"
requires-python = ">=3.10"
dependencies = []
keywords = ["serial", "tty", "termios", "rs232", "uart"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Serial",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
termserial = "termserial.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["termserial"]

[tool.pytest.ini_options]
addopts = "-ra"
