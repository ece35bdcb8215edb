"""Discovery of serial devices through /dev and sysfs."""

from __future__ import annotations

import glob
import os

from .settings import PortInfo

__all__ = ["list_ports", "sysfs_info"]

_SEARCH_PATTERNS = ("ttyACM*", "ttyS*", "ttyUSB*", "tty.*", "cu.*", "rfcomm*")


def _basename(path: str) -> str:
    pos = path.rfind("/")
    return path if pos == -1 else path[pos + 1:]


def _dirname(path: str) -> str:
    pos = path.rfind("/")
    if pos == -1:
        return path
    if pos == 0:
        return "/"
    return path[:pos]


def _realpath(path: str) -> str:
    """Resolved path, or an empty string when the path does not exist."""
    if not os.path.exists(path):
        return ""
    return os.path.realpath(path)


def _read_line(path: str) -> str:
    """First line of a file without its newline; empty if unreadable."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            return handle.readline().rstrip("\n")
    except OSError:
        return ""


def _usb_friendly_name(usb_path: str) -> str:
    manufacturer = _read_line(f"{usb_path}/manufacturer")
    product = _read_line(f"{usb_path}/product")
    serial = _read_line(f"{usb_path}/serial")
    if not (manufacturer or product or serial):
        return ""
    return f"{manufacturer} {product} {serial}"


def _usb_hardware_id(usb_path: str) -> str:
    serial = _read_line(f"{usb_path}/serial")
    if serial:
        serial = f"SNR={serial}"
    vid = _read_line(f"{usb_path}/idVendor")
    pid = _read_line(f"{usb_path}/idProduct")
    return f"USB VID:PID={vid}:{pid} {serial}"


def sysfs_info(device_path: str, sys_root: str = "/sys") -> tuple[str, str]:
    """Return ``(description, hardware_id)`` for a device node.

    USB serial adapters and modems are described from their USB
    attributes; other devices use a sysfs ``id`` file when present.
    Missing values fall back to the device name and ``"n/a"``.
    """
    device_name = _basename(device_path)
    friendly_name = ""
    hardware_id = ""
    sys_device_path = f"{sys_root}/class/tty/{device_name}/device"

    if device_name.startswith("ttyUSB"):
        usb_path = _dirname(_dirname(_realpath(sys_device_path)))
        if os.path.exists(usb_path):
            friendly_name = _usb_friendly_name(usb_path)
            hardware_id = _usb_hardware_id(usb_path)
    elif device_name.startswith("ttyACM"):
        usb_path = _dirname(_realpath(sys_device_path))
        if os.path.exists(usb_path):
            friendly_name = _usb_friendly_name(usb_path)
            hardware_id = _usb_hardware_id(usb_path)
    else:
        id_path = f"{sys_device_path}/id"
        if os.path.exists(id_path):
            hardware_id = _read_line(id_path)

    return friendly_name or device_name, hardware_id or "n/a"


def list_ports(dev_root: str = "/dev", sys_root: str = "/sys") -> list[PortInfo]:
    """List serial devices found under ``dev_root``.

    Devices are grouped by name pattern in a fixed order and sorted
    within each group.
    """
    ports = []
    for pattern in _SEARCH_PATTERNS:
        for device in sorted(glob.glob(os.path.join(dev_root, pattern))):
            description, hardware_id = sysfs_info(device, sys_root)
            ports.append(PortInfo(device, description, hardware_id))
    return ports