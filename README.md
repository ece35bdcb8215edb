# termserial

Serial port access for POSIX systems, built on `termios` and `select`.
It offers:

- reads that stop when a total timeout or an inter-byte timeout runs out,
- `readline` and `readlines` with any end-of-line marker,
- writes with a timeout,
- control of the modem lines (RTS, DTR, break) and reading of their state
  (CTS, DSR, RI, CD),
- discovery of serial devices through `/dev` and `/sys`.

## Installation

```
pip install termserial
```

## Usage

```python
from termserial.serial import Serial
from termserial.settings import Timeout

with Serial("/dev/ttyUSB0", 115200, Timeout.simple_timeout(1000)) as port:
    port.write(b"ping\n")
    reply = port.readline()
    print(reply)
```

`Serial` opens the port when it is given a port name; otherwise set
`port.port` and call `open()`. Leaving the `with` block closes the port.

`read(size)` returns `bytes`, fewer than `size` when the timeout runs out.
`readline(size=65536, eol=b"\n")` returns one line with its end-of-line
marker kept; `readlines` returns a list of lines read until a timeout or
until `size` bytes in total. `write` accepts bytes, or a `str` which is
encoded as UTF-8, and returns the number of bytes written.

Reads and writes are guarded by separate locks, so one thread may read
while another writes.

### Timeouts

Times in a `Timeout` are milliseconds. The total read limit is
`read_timeout_constant + read_timeout_multiplier * bytes requested`, and
the same holds for writes. Use `Timeout.max()` as the inter-byte timeout to
turn the inter-byte limit off. `Timeout.simple_timeout(ms)` builds a timeout
with one limit for reads and writes and no inter-byte limit. Change the
timeouts with `port.timeout = ...` or `port.set_timeout(...)`.

### Line settings

Line settings come from the enums in `termserial.settings`: `ByteSize`,
`Parity`, `StopBits` and `FlowControl`, and are set through the `baudrate`,
`bytesize`, `parity`, `stopbits` and `flowcontrol` properties. Changing one
of them while the port is open applies it at once. Changing `port` on an
open port closes it and opens the new one. Baud rates without a standard
terminal constant are set through a driver call on Linux and macOS.

### Errors

Errors are raised as `SerialException`, `IOException` or
`PortNotOpenedException` from `termserial.errors`. An invalid line setting
or an empty port name raises `ValueError`.

### Listing ports

```python
from termserial.list_ports import list_ports

for info in list_ports():
    print(info.port, info.description, info.hardware_id)
```

`list_ports(dev_root="/dev", sys_root="/sys")` looks for `ttyACM*`,
`ttyS*`, `ttyUSB*`, `tty.*`, `cu.*` and `rfcomm*` devices. USB adapters are
described from their sysfs attributes (manufacturer, product, serial number,
vendor and product id); otherwise the description is the device name and
the hardware id is `n/a`.

## Command line

```
termserial -e
```

This prints each serial port found as `(port, description, hardware id)`.

```
termserial /dev/ttyUSB0 115200 "Testing."
```

This runs a loopback test on the port. The port needs a loopback
connection, or a device that echoes what it receives. The test writes the
string ten times under each of four settings (a 1000 ms timeout, then
250 ms timeouts asking for one byte more, exactly as many, and one byte
fewer than written) and prints what was read back. Without a test string,
`Testing.` is used.

## What it does not do

The package uses POSIX terminal interfaces only; it does not work on
Windows. Port discovery reads the Linux `/sys` tree, so on other systems
ports are listed by device name without USB details.