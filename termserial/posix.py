"""Serial port access through POSIX terminal devices."""

from __future__ import annotations

import array
import contextlib
import errno
import fcntl
import os
import select
import struct
import sys
import termios
import threading
import time

from .errors import IOException, PortNotOpenedException, SerialException
from .lineconfig import apply_line_settings, baud_constant, byte_time_ns
from .settings import ByteSize, FlowControl, Parity, StopBits, Timeout
from .timer import MillisecondTimer

__all__ = ["PosixPort"]

_TIOCINQ = getattr(termios, "TIOCINQ", termios.FIONREAD)
_TIOCMIWAIT = getattr(termios, "TIOCMIWAIT", None)

# Linux serial_struct access for custom baud rates.
_TIOCGSERIAL = getattr(termios, "TIOCGSERIAL", 0x541E)
_TIOCSSERIAL = getattr(termios, "TIOCSSERIAL", 0x541F)
_ASYNC_SPD_MASK = 0x1030
_ASYNC_SPD_CUST = 0x0030
_SERIAL_FLAGS, _SERIAL_CUSTOM_DIVISOR, _SERIAL_BAUD_BASE = 4, 6, 7

# macOS arbitrary speed ioctl.
_IOSSIOSPEED = 0x80045402

_MODEM_LINES = {
    "CTS": termios.TIOCM_CTS,
    "DSR": termios.TIOCM_DSR,
    "RI": getattr(termios, "TIOCM_RI", getattr(termios, "TIOCM_RNG", 0)),
    "CD": getattr(termios, "TIOCM_CD", getattr(termios, "TIOCM_CAR", 0)),
}


def _as_enum(enum_type, value):
    try:
        return enum_type(value)
    except ValueError:
        return value


def _ioctl_failure(what: str, exc: OSError) -> SerialException:
    code = exc.errno or 0
    return SerialException(f"{what}: {code} {os.strerror(code)}")


class PosixPort:
    """A serial port backed by a terminal device file descriptor.

    The port opens on construction when a port name is given.  All
    timeouts are taken from :attr:`timeout`, in milliseconds.
    """

    def __init__(
        self,
        port: str = "",
        baudrate: int = 9600,
        bytesize=ByteSize.EIGHTBITS,
        parity=Parity.NONE,
        stopbits=StopBits.ONE,
        flowcontrol=FlowControl.NONE,
    ) -> None:
        self._port = port
        self._fd: int | None = None
        self._is_open = False
        self._timeout = Timeout()
        self._baudrate = baudrate
        self._bytesize = _as_enum(ByteSize, bytesize)
        self._parity = _as_enum(Parity, parity)
        self._stopbits = _as_enum(StopBits, stopbits)
        self._flowcontrol = _as_enum(FlowControl, flowcontrol)
        self._byte_time_ns = 0
        self.read_lock = threading.Lock()
        self.write_lock = threading.Lock()
        if self._port:
            self.open()

    def __del__(self) -> None:
        with contextlib.suppress(Exception):
            if getattr(self, "_is_open", False):
                self.close()

    # -- opening and closing -------------------------------------------

    def open(self) -> None:
        """Open the device and apply the current line settings."""
        if not self._port:
            raise ValueError("Empty port is invalid.")
        if self._is_open:
            raise SerialException("Serial port already open.")
        while True:
            try:
                fd = os.open(self._port, os.O_RDWR | os.O_NOCTTY | os.O_NONBLOCK)
                break
            except InterruptedError:
                continue
            except OSError as exc:
                if exc.errno in (errno.ENFILE, errno.EMFILE):
                    raise IOException("Too many file handles open.") from exc
                raise IOException(errno=exc.errno or 0) from exc
        self._fd = fd
        try:
            self._reconfigure()
        except BaseException:
            self._fd = None
            with contextlib.suppress(OSError):
                os.close(fd)
            raise
        self._is_open = True

    def close(self) -> None:
        """Close the device; closing a closed port does nothing."""
        if not self._is_open:
            return
        if self._fd is not None:
            try:
                os.close(self._fd)
            except OSError as exc:
                raise IOException(errno=exc.errno or 0) from exc
            self._fd = None
        self._is_open = False

    @property
    def is_open(self) -> bool:
        """Whether the port is open."""
        return self._is_open

    def _reconfigure(self) -> None:
        if self._fd is None:
            raise IOException("Invalid file descriptor, is the serial port open?")
        try:
            attrs = termios.tcgetattr(self._fd)
        except termios.error as exc:
            raise IOException("::tcgetattr") from exc

        new_attrs = apply_line_settings(
            attrs,
            self._baudrate,
            self._bytesize,
            self._parity,
            self._stopbits,
            self._flowcontrol,
        )
        with contextlib.suppress(termios.error):
            termios.tcsetattr(self._fd, termios.TCSANOW, new_attrs)

        if baud_constant(self._baudrate) is None:
            self._set_custom_baudrate()

        if self._baudrate > 0:
            self._byte_time_ns = byte_time_ns(
                self._baudrate, self._bytesize, self._parity, self._stopbits
            )
        else:
            self._byte_time_ns = 0

    def _set_custom_baudrate(self) -> None:
        if sys.platform == "darwin":
            speed = array.array("i", [self._baudrate])
            try:
                fcntl.ioctl(self._fd, _IOSSIOSPEED, speed, True)
            except OSError as exc:
                raise IOException(errno=exc.errno or 0) from exc
        elif sys.platform.startswith("linux"):
            info = array.array("i", [0] * 64)
            try:
                fcntl.ioctl(self._fd, _TIOCGSERIAL, info, True)
            except OSError as exc:
                raise IOException(errno=exc.errno or 0) from exc
            info[_SERIAL_CUSTOM_DIVISOR] = info[_SERIAL_BAUD_BASE] // self._baudrate
            info[_SERIAL_FLAGS] &= ~_ASYNC_SPD_MASK
            info[_SERIAL_FLAGS] |= _ASYNC_SPD_CUST
            try:
                fcntl.ioctl(self._fd, _TIOCSSERIAL, info, True)
            except OSError as exc:
                raise IOException(errno=exc.errno or 0) from exc
        else:
            raise ValueError("OS does not currently support custom bauds")

    # -- reading and writing -------------------------------------------

    def available(self) -> int:
        """Number of bytes waiting in the input buffer; 0 when closed."""
        if not self._is_open:
            return 0
        count = array.array("i", [0])
        try:
            fcntl.ioctl(self._fd, _TIOCINQ, count, True)
        except OSError as exc:
            raise IOException(errno=exc.errno or 0) from exc
        return count[0]

    def wait_readable(self, timeout: int) -> bool:
        """Block until data can be read or ``timeout`` milliseconds pass."""
        try:
            readable, _, _ = select.select([self._fd], [], [], timeout / 1000)
        except InterruptedError:
            return False
        except (OSError, ValueError, TypeError) as exc:
            code = getattr(exc, "errno", None) or errno.EBADF
            raise IOException(errno=code) from exc
        return bool(readable)

    def wait_byte_times(self, count: int) -> None:
        """Sleep for the time needed to transmit ``count`` characters."""
        time.sleep(self._byte_time_ns * count / 1e9)

    def read(self, size: int = 1) -> bytes:
        """Read up to ``size`` bytes, returning early on timeout."""
        if not self._is_open:
            raise PortNotOpenedException("Serial::read")
        timeout = self._timeout
        deadline = MillisecondTimer(
            timeout.read_timeout_constant + timeout.read_timeout_multiplier * size
        )

        data = bytearray()
        with contextlib.suppress(OSError):
            data += os.read(self._fd, size)

        while len(data) < size:
            remaining = deadline.remaining()
            if remaining <= 0:
                break
            wait = min(remaining, timeout.inter_byte_timeout)
            if not self.wait_readable(wait):
                continue
            if size > 1 and timeout.inter_byte_timeout == Timeout.max():
                pending = self.available() + len(data)
                if pending < size:
                    self.wait_byte_times(size - pending)
            try:
                chunk = os.read(self._fd, size - len(data))
            except OSError:
                chunk = b""
            if not chunk:
                raise SerialException(
                    "device reports readiness to read but returned no data "
                    "(device disconnected?)"
                )
            data += chunk
        return bytes(data)

    def write(self, data) -> int:
        """Write ``data``, returning how many bytes went out before any timeout."""
        if not self._is_open:
            raise PortNotOpenedException("Serial::write")
        view = memoryview(data).cast("B")
        length = len(view)
        timeout = self._timeout
        deadline = MillisecondTimer(
            timeout.write_timeout_constant + timeout.write_timeout_multiplier * length
        )

        written = 0
        first_iteration = True
        while written < length:
            remaining = deadline.remaining()
            # A zero timeout still gets one attempt.
            if not first_iteration and remaining <= 0:
                break
            first_iteration = False
            try:
                _, writable, _ = select.select(
                    [], [self._fd], [], max(remaining, 0) / 1000
                )
            except InterruptedError:
                continue
            except OSError as exc:
                raise IOException(errno=exc.errno or 0) from exc
            if not writable:
                break
            try:
                count = os.write(self._fd, view[written:])
                err = 0
            except InterruptedError:
                continue
            except OSError as exc:
                count, err = -1, exc.errno or 0
            if count < 1:
                raise SerialException(
                    "device reports readiness to write but returned no data "
                    "(device disconnected?)"
                    f" errno={err} bytes_written_now= {count}"
                    f" bytes_written={written} length={length}"
                )
            written += count
        return written

    # -- buffers and line control --------------------------------------

    def _require_open(self, operation: str) -> int:
        if not self._is_open:
            raise PortNotOpenedException(f"Serial::{operation}")
        return self._fd

    def flush(self) -> None:
        """Wait until all output has been transmitted."""
        fd = self._require_open("flush")
        with contextlib.suppress(termios.error):
            termios.tcdrain(fd)

    def flush_input(self) -> None:
        """Discard data received but not yet read."""
        fd = self._require_open("flushInput")
        with contextlib.suppress(termios.error):
            termios.tcflush(fd, termios.TCIFLUSH)

    def flush_output(self) -> None:
        """Discard data written but not yet transmitted."""
        fd = self._require_open("flushOutput")
        with contextlib.suppress(termios.error):
            termios.tcflush(fd, termios.TCOFLUSH)

    def send_break(self, duration: int) -> None:
        """Send a break signal; see tcsendbreak(3)."""
        fd = self._require_open("sendBreak")
        with contextlib.suppress(termios.error):
            termios.tcsendbreak(fd, int(duration / 4))

    def set_break(self, level: bool = True) -> None:
        """Set or clear the break condition."""
        fd = self._require_open("setBreak")
        name, request = (
            ("TIOCSBRK", termios.TIOCSBRK) if level else ("TIOCCBRK", termios.TIOCCBRK)
        )
        try:
            fcntl.ioctl(fd, request)
        except OSError as exc:
            raise _ioctl_failure(f"setBreak failed on a call to ioctl({name})", exc) from exc

    def _set_modem_line(self, label: str, bit: int, level: bool) -> None:
        fd = self._require_open(f"set{label}")
        name, request = (
            ("TIOCMBIS", termios.TIOCMBIS) if level else ("TIOCMBIC", termios.TIOCMBIC)
        )
        try:
            fcntl.ioctl(fd, request, struct.pack("i", bit))
        except OSError as exc:
            raise _ioctl_failure(f"set{label} failed on a call to ioctl({name})", exc) from exc

    def set_rts(self, level: bool = True) -> None:
        """Set the RTS handshaking line."""
        self._set_modem_line("RTS", termios.TIOCM_RTS, level)

    def set_dtr(self, level: bool = True) -> None:
        """Set the DTR handshaking line."""
        self._set_modem_line("DTR", termios.TIOCM_DTR, level)

    def _modem_status(self, fd: int, caller: str) -> int:
        status = array.array("i", [0])
        try:
            fcntl.ioctl(fd, termios.TIOCMGET, status, True)
        except OSError as exc:
            raise _ioctl_failure(f"{caller} failed on a call to ioctl(TIOCMGET)", exc) from exc
        return status[0]

    def wait_for_change(self) -> bool:
        """Block until CTS, DSR, RI or CD changes.

        Returns False only when the port closes while polling.
        """
        mask = 0
        for bit in _MODEM_LINES.values():
            mask |= bit
        if _TIOCMIWAIT is not None:
            fd = self._fd if self._fd is not None else -1
            try:
                fcntl.ioctl(fd, _TIOCMIWAIT, mask)
            except OSError as exc:
                raise _ioctl_failure(
                    "waitForDSR failed on a call to ioctl(TIOCMIWAIT)", exc
                ) from exc
            return True
        while self._is_open:
            if self._modem_status(self._fd, "waitForChange") & mask:
                return True
            time.sleep(0.001)
        return False

    def _line(self, label: str) -> bool:
        fd = self._require_open(f"get{label}")
        return bool(self._modem_status(fd, f"get{label}") & _MODEM_LINES[label])

    @property
    def cts(self) -> bool:
        """State of the CTS line."""
        return self._line("CTS")

    @property
    def dsr(self) -> bool:
        """State of the DSR line."""
        return self._line("DSR")

    @property
    def ri(self) -> bool:
        """State of the RI line."""
        return self._line("RI")

    @property
    def cd(self) -> bool:
        """State of the CD line."""
        return self._line("CD")

    # -- settings ------------------------------------------------------

    @property
    def port(self) -> str:
        """Device path; changing it does not reopen the port."""
        return self._port

    @port.setter
    def port(self, value: str) -> None:
        self._port = value

    @property
    def timeout(self) -> Timeout:
        """Read and write timeouts."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: Timeout) -> None:
        self._timeout = value

    @property
    def baudrate(self) -> int:
        """Line speed in bits per second."""
        return self._baudrate

    @baudrate.setter
    def baudrate(self, value: int) -> None:
        self._baudrate = value
        if self._is_open:
            self._reconfigure()

    @property
    def bytesize(self):
        """Data bits per character."""
        return self._bytesize

    @bytesize.setter
    def bytesize(self, value) -> None:
        self._bytesize = _as_enum(ByteSize, value)
        if self._is_open:
            self._reconfigure()

    @property
    def parity(self):
        """Parity mode."""
        return self._parity

    @parity.setter
    def parity(self, value) -> None:
        self._parity = _as_enum(Parity, value)
        if self._is_open:
            self._reconfigure()

    @property
    def stopbits(self):
        """Stop bits per character."""
        return self._stopbits

    @stopbits.setter
    def stopbits(self, value) -> None:
        self._stopbits = _as_enum(StopBits, value)
        if self._is_open:
            self._reconfigure()

    @property
    def flowcontrol(self):
        """Flow control mode."""
        return self._flowcontrol

    @flowcontrol.setter
    def flowcontrol(self, value) -> None:
        self._flowcontrol = _as_enum(FlowControl, value)
        if self._is_open:
            self._reconfigure()

    @property
    def byte_time_ns(self) -> int:
        """Nanoseconds to transmit one character at the applied settings."""
        return self._byte_time_ns