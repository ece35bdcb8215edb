import os

import pytest

from termserial.errors import PortNotOpenedException, SerialException
from termserial.serial import Serial
from termserial.settings import ByteSize, FlowControl, Parity, StopBits, Timeout


@pytest.fixture
def pty_pair():
    master, slave = os.openpty()
    name = os.ttyname(slave)
    yield master, name
    os.close(master)
    os.close(slave)


@pytest.fixture
def link(pty_pair):
    master, name = pty_pair
    port = Serial(name, 115200, Timeout.simple_timeout(250))
    yield master, port
    port.close()


def _read_exact(fd, count):
    data = b""
    while len(data) < count:
        data += os.read(fd, count - len(data))
    return data


def test_read_works(link):
    master, port = link
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_write_works(link):
    master, port = link
    assert port.write("abc\n") == 4
    assert _read_exact(master, 4) == b"abc\n"


def test_write_bytes(link):
    master, port = link
    assert port.write(b"\x00\x01\xff") == 3
    assert _read_exact(master, 3) == b"\x00\x01\xff"


def test_timeout_works(link):
    master, port = link
    assert port.read() == b""
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_partial_read(link):
    master, port = link
    os.write(master, b"abc\n")
    assert port.read(10) == b"abc\n"
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_readline_stops_at_eol(link):
    master, port = link
    os.write(master, b"first\nsecond\n")
    assert port.readline() == b"first\n"
    assert port.readline() == b"second\n"


def test_readline_respects_size(link):
    master, port = link
    os.write(master, b"abcdef\n")
    assert port.readline(3) == b"abc"
    assert port.readline() == b"def\n"


def test_readline_custom_eol(link):
    master, port = link
    os.write(master, b"a\r\nb")
    assert port.readline(eol=b"\r\n") == b"a\r\n"
    assert port.readline(eol="\r\n") == b"b"


def test_readline_timeout_returns_empty(link):
    _, port = link
    assert port.readline() == b""


def test_readlines_until_timeout(link):
    master, port = link
    os.write(master, b"a\nb\nc")
    assert port.readlines() == [b"a\n", b"b\n", b"c"]


def test_readlines_size_limit(link):
    master, port = link
    os.write(master, b"ab\ncd\nef\n")
    assert port.readlines(5) == [b"ab\n", b"cd"]


def test_available_and_wait_readable(link):
    master, port = link
    os.write(master, b"abcd")
    assert port.wait_readable() is True
    assert port.available() == 4
    assert port.read(4) == b"abcd"


def test_wait_readable_times_out(link):
    _, port = link
    assert port.wait_readable() is False


def test_context_manager_closes(pty_pair):
    _, name = pty_pair
    with Serial(name, 9600, Timeout.simple_timeout(10)) as port:
        assert port.is_open is True
    assert port.is_open is False


def test_unnamed_port_stays_closed():
    port = Serial()
    assert port.is_open is False
    assert port.available() == 0
    with pytest.raises(PortNotOpenedException):
        port.read(1)
    with pytest.raises(PortNotOpenedException):
        port.write(b"x")


def test_open_without_port_raises():
    with pytest.raises(ValueError):
        Serial().open()


def test_open_twice_raises(link):
    _, port = link
    with pytest.raises(SerialException):
        port.open()


def test_defaults():
    port = Serial()
    assert port.port == ""
    assert port.baudrate == 9600
    assert port.timeout == Timeout()
    assert port.bytesize == ByteSize.EIGHTBITS
    assert port.parity == Parity.NONE
    assert port.stopbits == StopBits.ONE
    assert port.flowcontrol == FlowControl.NONE


def test_set_timeout_components(link):
    _, port = link
    port.set_timeout(1, 2, 3, 4, 5)
    assert port.timeout == Timeout(1, 2, 3, 4, 5)


def test_set_timeout_struct(link):
    _, port = link
    port.set_timeout(Timeout.simple_timeout(100))
    assert port.timeout == Timeout(Timeout.max(), 100, 0, 100, 0)


def test_changing_port_reopens(link, pty_pair):
    master, port = link
    _, name = pty_pair
    port.port = name
    assert port.is_open is True
    assert port.port == name
    os.write(master, b"xy")
    assert port.read(2) == b"xy"


def test_changing_port_on_closed_keeps_closed():
    port = Serial()
    port.port = "/dev/does-not-matter"
    assert port.port == "/dev/does-not-matter"
    assert port.is_open is False


def test_settings_round_trip(link):
    _, port = link
    port.baudrate = 9600
    port.bytesize = ByteSize.SEVENBITS
    port.parity = Parity.EVEN
    port.stopbits = StopBits.TWO
    port.flowcontrol = FlowControl.SOFTWARE
    assert port.baudrate == 9600
    assert port.bytesize == ByteSize.SEVENBITS
    assert port.parity == Parity.EVEN
    assert port.stopbits == StopBits.TWO
    assert port.flowcontrol == FlowControl.SOFTWARE
    assert port.is_open is True


def test_line_control_requires_open_port():
    port = Serial()
    with pytest.raises(PortNotOpenedException):
        port.flush()
    with pytest.raises(PortNotOpenedException):
        port.flush_input()
    with pytest.raises(PortNotOpenedException):
        port.flush_output()
    with pytest.raises(PortNotOpenedException):
        port.send_break(100)
    with pytest.raises(PortNotOpenedException):
        port.set_rts(True)
    with pytest.raises(PortNotOpenedException):
        port.set_dtr(False)
    with pytest.raises(PortNotOpenedException):
        port.cts


def test_read_after_close_raises(link):
    _, port = link
    port.close()
    assert port.is_open is False
    with pytest.raises(PortNotOpenedException):
        port.read(1)