"""High-level serial port with timeouts, line reading and thread safety."""

from __future__ import annotations

from .posix import PosixPort
from .settings import ByteSize, FlowControl, Parity, StopBits, Timeout

__all__ = ["Serial"]

_DEFAULT_LINE_LIMIT = 65536


def _to_bytes(data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class Serial:
    """A serial port that opens on construction when a port name is given.

    Reads and writes are guarded by separate locks, so one thread may
    read while another writes.  Timeouts are in milliseconds; see
    :class:`~termserial.settings.Timeout`.
    """

    def __init__(
        self,
        port: str = "",
        baudrate: int = 9600,
        timeout: Timeout | None = None,
        bytesize=ByteSize.EIGHTBITS,
        parity=Parity.NONE,
        stopbits=StopBits.ONE,
        flowcontrol=FlowControl.NONE,
    ) -> None:
        self._impl = PosixPort(port, baudrate, bytesize, parity, stopbits, flowcontrol)
        self._impl.timeout = timeout if timeout is not None else Timeout()

    def __enter__(self) -> Serial:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- opening and closing -------------------------------------------

    def open(self) -> None:
        """Open the port; it must have a name and not already be open."""
        self._impl.open()

    def close(self) -> None:
        """Close the port."""
        self._impl.close()

    @property
    def is_open(self) -> bool:
        """Whether the port is open."""
        return self._impl.is_open

    def available(self) -> int:
        """Number of bytes waiting to be read."""
        return self._impl.available()

    def wait_readable(self) -> bool:
        """Block until data arrives or the read timeout constant elapses."""
        return self._impl.wait_readable(self._impl.timeout.read_timeout_constant)

    def wait_byte_times(self, count: int) -> None:
        """Sleep for the transmission time of ``count`` characters."""
        self._impl.wait_byte_times(count)

    # -- reading -------------------------------------------------------

    def read(self, size: int = 1) -> bytes:
        """Read up to ``size`` bytes; fewer are returned on timeout."""
        with self._impl.read_lock:
            return self._impl.read(size)

    def readline(self, size: int = _DEFAULT_LINE_LIMIT, eol=b"\n") -> bytes:
        """Read one line, ending at ``eol``, at ``size`` bytes or on timeout.

        The end-of-line marker is kept in the result.
        """
        eol = _to_bytes(eol)
        buffer = bytearray()
        with self._impl.read_lock:
            while True:
                byte = self._impl.read(1)
                if not byte:
                    break
                buffer += byte
                if len(buffer) >= len(eol) and buffer.endswith(eol):
                    break
                if len(buffer) >= size:
                    break
        return bytes(buffer)

    def readlines(self, size: int = _DEFAULT_LINE_LIMIT, eol=b"\n") -> list[bytes]:
        """Read lines until a timeout or until ``size`` bytes in total."""
        eol = _to_bytes(eol)
        lines: list[bytes] = []
        buffer = bytearray()
        start = 0
        with self._impl.read_lock:
            while len(buffer) < size:
                byte = self._impl.read(1)
                if not byte:
                    if start != len(buffer):
                        lines.append(bytes(buffer[start:]))
                    break
                buffer += byte
                if len(buffer) >= len(eol) and buffer.endswith(eol):
                    lines.append(bytes(buffer[start:]))
                    start = len(buffer)
                if len(buffer) == size:
                    if start != len(buffer):
                        lines.append(bytes(buffer[start:]))
                    break
        return lines

    # -- writing -------------------------------------------------------

    def write(self, data) -> int:
        """Write bytes (or a str, encoded as UTF-8); return the count written."""
        payload = _to_bytes(data)
        with self._impl.write_lock:
            return self._impl.write(payload)

    # -- settings ------------------------------------------------------

    @property
    def port(self) -> str:
        """Device path; changing it reopens an open port."""
        return self._impl.port

    @port.setter
    def port(self, value: str) -> None:
        with self._impl.read_lock, self._impl.write_lock:
            was_open = self._impl.is_open
            if was_open:
                self._impl.close()
            self._impl.port = value
            if was_open:
                self._impl.open()

    @property
    def timeout(self) -> Timeout:
        """Read and write timeouts."""
        return self._impl.timeout

    @timeout.setter
    def timeout(self, value: Timeout) -> None:
        self._impl.timeout = value

    def set_timeout(
        self,
        inter_byte_timeout=0,
        read_timeout_constant: int = 0,
        read_timeout_multiplier: int = 0,
        write_timeout_constant: int = 0,
        write_timeout_multiplier: int = 0,
    ) -> None:
        """Set the timeouts from a Timeout or from its five components."""
        if isinstance(inter_byte_timeout, Timeout):
            self._impl.timeout = inter_byte_timeout
            return
        self._impl.timeout = Timeout(
            inter_byte_timeout,
            read_timeout_constant,
            read_timeout_multiplier,
            write_timeout_constant,
            write_timeout_multiplier,
        )

    @property
    def baudrate(self) -> int:
        """Line speed in bits per second."""
        return self._impl.baudrate

    @baudrate.setter
    def baudrate(self, value: int) -> None:
        self._impl.baudrate = value

    @property
    def bytesize(self):
        """Data bits per character."""
        return self._impl.bytesize

    @bytesize.setter
    def bytesize(self, value) -> None:
        self._impl.bytesize = value

    @property
    def parity(self):
        """Parity mode."""
        return self._impl.parity

    @parity.setter
    def parity(self, value) -> None:
        self._impl.parity = value

    @property
    def stopbits(self):
        """Stop bits per character."""
        return self._impl.stopbits

    @stopbits.setter
    def stopbits(self, value) -> None:
        self._impl.stopbits = value

    @property
    def flowcontrol(self):
        """Flow control mode."""
        return self._impl.flowcontrol

    @flowcontrol.setter
    def flowcontrol(self, value) -> None:
        self._impl.flowcontrol = value

    # -- buffers and line control --------------------------------------

    def flush(self) -> None:
        """Wait until all output has been transmitted."""
        with self._impl.read_lock, self._impl.write_lock:
            self._impl.flush()

    def flush_input(self) -> None:
        """Discard unread input."""
        with self._impl.read_lock:
            self._impl.flush_input()

    def flush_output(self) -> None:
        """Discard untransmitted output."""
        with self._impl.write_lock:
            self._impl.flush_output()

    def send_break(self, duration: int) -> None:
        """Send a break signal."""
        self._impl.send_break(duration)

    def set_break(self, level: bool = True) -> None:
        """Set or clear the break condition."""
        self._impl.set_break(level)

    def set_rts(self, level: bool = True) -> None:
        """Set the RTS line."""
        self._impl.set_rts(level)

    def set_dtr(self, level: bool = True) -> None:
        """Set the DTR line."""
        self._impl.set_dtr(level)

    def wait_for_change(self) -> bool:
        """Block until CTS, DSR, RI or CD changes."""
        return self._impl.wait_for_change()

    @property
    def cts(self) -> bool:
        """State of the CTS line."""
        return self._impl.cts

    @property
    def dsr(self) -> bool:
        """State of the DSR line."""
        return self._impl.dsr

    @property
    def ri(self) -> bool:
        """State of the RI line."""
        return self._impl.ri

    @property
    def cd(self) -> bool:
        """State of the CD line."""
        return self._impl.cd