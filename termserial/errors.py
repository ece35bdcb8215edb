"""Exceptions raised by serial port operations."""

from __future__ import annotations

import os

__all__ = ["SerialException", "IOException", "PortNotOpenedException"]


class SerialException(Exception):
    """A serial port operation failed."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"SerialException {description} failed.")


class IOException(Exception):
    """An input/output error from the underlying device or system call."""

    def __init__(self, description: str | None = None, errno: int = 0) -> None:
        self.description = description
        self._errno = errno
        if description is None:
            message = f"IO Exception ({errno}): {os.strerror(errno)}"
        else:
            message = f"IO Exception: {description}"
        super().__init__(message)

    @property
    def error_number(self) -> int:
        """The system error number, or 0 when none applies."""
        return self._errno


class PortNotOpenedException(Exception):
    """An operation needed an open port but the port was closed."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"PortNotOpenedException {description} failed.")