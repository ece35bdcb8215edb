"""Line settings, timeouts and port descriptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

__all__ = ["ByteSize", "Parity", "StopBits", "FlowControl", "Timeout", "PortInfo"]

_UINT32_MAX = 0xFFFFFFFF


class ByteSize(IntEnum):
    """Number of data bits in each character."""

    FIVEBITS = 5
    SIXBITS = 6
    SEVENBITS = 7
    EIGHTBITS = 8


class Parity(IntEnum):
    """Parity checking mode."""

    NONE = 0
    ODD = 1
    EVEN = 2
    MARK = 3
    SPACE = 4


class StopBits(IntEnum):
    """Number of stop bits; ONE_POINT_FIVE stands for 1.5."""

    ONE = 1
    TWO = 2
    ONE_POINT_FIVE = 3


class FlowControl(IntEnum):
    """Flow control mode."""

    NONE = 0
    SOFTWARE = 1
    HARDWARE = 2


@dataclass(frozen=True)
class Timeout:
    """Read and write timeouts in milliseconds.

    Set ``inter_byte_timeout`` to ``Timeout.max()`` to disable the
    inter-byte timeout.
    """

    inter_byte_timeout: int = 0
    read_timeout_constant: int = 0
    read_timeout_multiplier: int = 0
    write_timeout_constant: int = 0
    write_timeout_multiplier: int = 0

    def __post_init__(self) -> None:
        for name, value in vars(self).items():
            if not isinstance(value, int) or not 0 <= value <= _UINT32_MAX:
                raise ValueError(
                    f"{name} must be an integer between 0 and {_UINT32_MAX}, got {value!r}"
                )

    @staticmethod
    def max() -> int:
        """The largest timeout value, which disables the inter-byte timeout."""
        return _UINT32_MAX

    @classmethod
    def simple_timeout(cls, timeout: int) -> Timeout:
        """A timeout with a single absolute limit for reads and writes."""
        return cls(cls.max(), timeout, 0, timeout, 0)


@dataclass(frozen=True)
class PortInfo:
    """Description of a serial device found on the system."""

    port: str = ""
    description: str = ""
    hardware_id: str = ""