"""Translation of line settings into terminal attributes."""

from __future__ import annotations

import sys
import termios

from .settings import ByteSize, FlowControl, Parity, StopBits

__all__ = ["baud_constant", "apply_line_settings", "byte_time_ns"]

_STANDARD_RATES = (
    0, 50, 75, 110, 134, 150, 200, 300, 600, 1200, 1800, 2400, 4800, 7200,
    9600, 14400, 19200, 28800, 57600, 76800, 38400, 115200, 128000, 153600,
    230400, 256000, 460800, 500000, 576000, 921600, 1000000, 1152000,
    1500000, 2000000, 2500000, 3000000, 3500000, 4000000,
)

_BAUD_TABLE = {
    rate: getattr(termios, f"B{rate}")
    for rate in _STANDARD_RATES
    if hasattr(termios, f"B{rate}")
}

_CMSPAR = getattr(termios, "CMSPAR", None)
if _CMSPAR is None and sys.platform.startswith("linux"):
    _CMSPAR = 0o10000000000

_RTSCTS = getattr(termios, "CRTSCTS", None)
if _RTSCTS is None:
    _RTSCTS = getattr(termios, "CNEW_RTSCTS", 0)

_CHAR_SIZE = {
    ByteSize.EIGHTBITS: termios.CS8,
    ByteSize.SEVENBITS: termios.CS7,
    ByteSize.SIXBITS: termios.CS6,
    ByteSize.FIVEBITS: termios.CS5,
}

_IFLAG, _OFLAG, _CFLAG, _LFLAG, _ISPEED, _OSPEED, _CC = range(7)


def baud_constant(baudrate: int) -> int | None:
    """The terminal speed constant for a standard rate, or None for a custom one."""
    return _BAUD_TABLE.get(baudrate)


def _coerce(enum_type, value, message):
    try:
        return enum_type(value)
    except ValueError:
        raise ValueError(message) from None


def apply_line_settings(attrs, baudrate, bytesize, parity, stopbits, flowcontrol):
    """Return a copy of ``termios.tcgetattr`` output configured for raw serial I/O.

    Raises ValueError for an invalid character size, stop bit, parity or
    flow control setting.  A baud rate with no standard constant leaves
    the speeds untouched; the caller sets it by other means.
    """
    bytesize = _coerce(ByteSize, bytesize, "invalid char len")
    stopbits = _coerce(StopBits, stopbits, "invalid stop bit")
    parity = _coerce(Parity, parity, "invalid parity")
    flowcontrol = _coerce(FlowControl, flowcontrol, "invalid flow control")

    new = list(attrs)
    new[_CC] = list(attrs[_CC])
    iflag, oflag, cflag, lflag = new[_IFLAG], new[_OFLAG], new[_CFLAG], new[_LFLAG]

    # Raw mode, no echo, binary.
    cflag |= termios.CLOCAL | termios.CREAD
    lflag &= ~(
        termios.ICANON | termios.ECHO | termios.ECHOE | termios.ECHOK
        | termios.ECHONL | termios.ISIG | termios.IEXTEN
    )
    oflag &= ~termios.OPOST
    iflag &= ~(termios.INLCR | termios.IGNCR | termios.ICRNL | termios.IGNBRK)
    iflag &= ~getattr(termios, "IUCLC", 0)
    iflag &= ~getattr(termios, "PARMRK", 0)

    speed = baud_constant(baudrate)
    if speed is not None:
        new[_ISPEED] = speed
        new[_OSPEED] = speed

    cflag &= ~termios.CSIZE
    cflag |= _CHAR_SIZE[bytesize]

    if stopbits is StopBits.ONE:
        cflag &= ~termios.CSTOPB
    else:
        # No POSIX support for 1.5 stop bits; treated as two.
        cflag |= termios.CSTOPB

    iflag &= ~(termios.INPCK | termios.ISTRIP)
    if parity is Parity.NONE:
        cflag &= ~(termios.PARENB | termios.PARODD)
    elif parity is Parity.EVEN:
        cflag &= ~termios.PARODD
        cflag |= termios.PARENB
    elif parity is Parity.ODD:
        cflag |= termios.PARENB | termios.PARODD
    elif _CMSPAR is None:
        raise ValueError("OS does not support mark or space parity")
    elif parity is Parity.MARK:
        cflag |= termios.PARENB | _CMSPAR | termios.PARODD
    else:
        cflag |= termios.PARENB | _CMSPAR
        cflag &= ~termios.PARODD

    xonxoff = flowcontrol is FlowControl.SOFTWARE
    rtscts = flowcontrol is FlowControl.HARDWARE

    if xonxoff:
        iflag |= termios.IXON | termios.IXOFF
    else:
        iflag &= ~(termios.IXON | termios.IXOFF | getattr(termios, "IXANY", 0))

    if rtscts:
        cflag |= _RTSCTS
    else:
        cflag &= ~_RTSCTS

    cc = new[_CC]
    cc[termios.VMIN] = 0
    cc[termios.VTIME] = 0

    new[_IFLAG], new[_OFLAG], new[_CFLAG], new[_LFLAG] = iflag, oflag, cflag, lflag
    return new


def byte_time_ns(baudrate, bytesize, parity, stopbits):
    """Nanoseconds needed to transmit one character at the given settings."""
    if baudrate <= 0:
        raise ValueError(f"baudrate must be positive, got {baudrate!r}")
    bit_time = int(1e9 / baudrate)
    total = bit_time * (1 + int(bytesize) + int(parity) + int(stopbits))
    if int(stopbits) == StopBits.ONE_POINT_FIVE:
        # The enum value is 3, not 1.5; correct for the difference.
        total = int(total + (1.5 - StopBits.ONE_POINT_FIVE) * bit_time)
    return total