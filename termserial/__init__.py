"""POSIX serial port access with timeouts, line reading and port discovery."""

__version__ = "0.1.0"