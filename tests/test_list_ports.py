import os

from termserial.list_ports import list_ports, sysfs_info
from termserial.settings import PortInfo


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


def _link_device(sys_root, name, target):
    target.mkdir(parents=True, exist_ok=True)
    link_dir = sys_root / "class" / "tty" / name
    link_dir.mkdir(parents=True, exist_ok=True)
    os.symlink(target, link_dir / "device")


def test_plain_device_without_sysfs_entry(tmp_path):
    description, hardware_id = sysfs_info(str(tmp_path / "dev" / "ttyS1"), str(tmp_path))
    assert description == "ttyS1"
    assert hardware_id == "n/a"


def test_bare_device_name(tmp_path):
    assert sysfs_info("ttyS9", str(tmp_path)) == ("ttyS9", "n/a")


def test_pci_device_reads_id(tmp_path):
    _write(tmp_path / "class" / "tty" / "ttyS0" / "device" / "id", "PNP0501\n")
    assert sysfs_info("/dev/ttyS0", str(tmp_path)) == ("ttyS0", "PNP0501")


def test_usb_adapter_uses_grandparent_attributes(tmp_path):
    usb = tmp_path / "devices" / "usb1" / "1-1"
    _link_device(tmp_path, "ttyUSB0", usb / "1-1:1.0" / "ttyUSB0")
    _write(usb / "manufacturer", "Acme\n")
    _write(usb / "product", "Widget\n")
    _write(usb / "serial", "SN0000TEST\n")
    _write(usb / "idVendor", "1234\n")
    _write(usb / "idProduct", "5678\n")

    description, hardware_id = sysfs_info("/dev/ttyUSB0", str(tmp_path))
    assert description == "Acme Widget SN0000TEST"
    assert hardware_id == "USB VID:PID=1234:5678 SNR=SN0000TEST"


def test_acm_modem_uses_parent_attributes(tmp_path):
    usb = tmp_path / "devices" / "usb1" / "1-2"
    _link_device(tmp_path, "ttyACM0", usb / "1-2:1.0")
    _write(usb / "manufacturer", "Acme\n")
    _write(usb / "product", "Modem\n")
    _write(usb / "idVendor", "1234\n")
    _write(usb / "idProduct", "5678\n")

    description, hardware_id = sysfs_info("/dev/ttyACM0", str(tmp_path))
    assert description == "Acme Modem "
    assert hardware_id == "USB VID:PID=1234:5678 "


def test_usb_without_attributes_falls_back_to_name(tmp_path):
    usb = tmp_path / "devices" / "usb2" / "2-1"
    _link_device(tmp_path, "ttyUSB3", usb / "2-1:1.0" / "ttyUSB3")

    description, hardware_id = sysfs_info("/dev/ttyUSB3", str(tmp_path))
    assert description == "ttyUSB3"
    assert hardware_id.startswith("USB VID:PID=")


def test_usb_with_missing_link(tmp_path):
    assert sysfs_info("/dev/ttyUSB7", str(tmp_path)) == ("ttyUSB7", "n/a")


def test_list_ports_orders_by_pattern_then_name(tmp_path):
    dev = tmp_path / "dev"
    dev.mkdir()
    names = ["ttyUSB0", "ttyACM1", "ttyACM0", "ttyS2", "rfcomm0", "tty.foo", "cu.bar", "null"]
    for name in names:
        (dev / name).touch()

    ports = list_ports(str(dev), str(tmp_path / "sys"))
    assert [os.path.basename(p.port) for p in ports] == [
        "ttyACM0", "ttyACM1", "ttyS2", "ttyUSB0", "tty.foo", "cu.bar", "rfcomm0",
    ]
    assert all(p.port.startswith(str(dev)) for p in ports)


def test_list_ports_builds_port_info(tmp_path):
    dev = tmp_path / "dev"
    dev.mkdir()
    (dev / "ttyS0").touch()
    sys_root = tmp_path / "sys"
    _write(sys_root / "class" / "tty" / "ttyS0" / "device" / "id", "PNP0501\n")

    assert list_ports(str(dev), str(sys_root)) == [
        PortInfo(str(dev / "ttyS0"), "ttyS0", "PNP0501")
    ]


def test_list_ports_empty_directory(tmp_path):
    assert list_ports(str(tmp_path), str(tmp_path)) == []