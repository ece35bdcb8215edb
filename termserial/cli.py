"""Command-line tool that lists ports or exercises a looped-back port."""

from __future__ import annotations

import re
import sys

from .list_ports import list_ports
from .serial import Serial
from .settings import Timeout

__all__ = ["enumerate_ports", "main"]

_USAGE = "Usage: termserial {-e|<serial port address>} <baudrate> [test string]"
_ITERATIONS = 10


def enumerate_ports() -> None:
    """Print every serial port found as ``(port, description, hardware id)``."""
    for info in list_ports():
        print(f"({info.port}, {info.description}, {info.hardware_id})")


def _print_usage() -> None:
    print(_USAGE, file=sys.stderr)


def _parse_baud(text: str) -> int:
    """Leading decimal digits of ``text``, or 0 when there are none."""
    match = re.match(r"\s*\+?(\d+)", text)
    return int(match.group(1)) if match else 0


def _exercise(port: Serial, text: str, read_size: int, title: str) -> None:
    print(title)
    for count in range(_ITERATIONS):
        written = port.write(text)
        result = port.read(max(read_size, 0))
        print(
            f"Iteration: {count}, Bytes written: {written}, "
            f"Bytes read: {len(result)}, "
            f"String read: {result.decode('utf-8', errors='replace')}"
        )


def _run(argv: list[str]) -> int:
    if not argv:
        _print_usage()
        return 0

    port_name = argv[0]
    if port_name == "-e":
        enumerate_ports()
        return 0
    if len(argv) < 2:
        _print_usage()
        return 1

    baud = _parse_baud(argv[1])
    port = Serial(port_name, baud, Timeout.simple_timeout(1000))
    with port:
        print("Is the serial port open?" + (" Yes." if port.is_open else " No."))

        text = argv[2] if len(argv) == 3 else "Testing."
        size = len(text.encode("utf-8"))

        _exercise(port, text, size + 1,
                  "Timeout == 1000ms, asking for 1 more byte than written.")

        port.set_timeout(Timeout.max(), 250, 0, 250, 0)
        _exercise(port, text, size + 1,
                  "Timeout == 250ms, asking for 1 more byte than written.")
        _exercise(port, text, size,
                  "Timeout == 250ms, asking for exactly what was written.")
        _exercise(port, text, size - 1,
                  "Timeout == 250ms, asking for 1 less than was written.")
    return 0


def main(argv=None) -> int:
    """Run the tool; ``argv`` excludes the program name."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        return _run(list(argv))
    except Exception as exc:  # noqa: BLE001 - report anything to the user
        print(f"Unhandled Exception: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())