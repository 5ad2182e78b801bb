from unittest import TestCase, main

from fstabgen.environment import in_initrd
from fstabgen.fs.devices import fstab_node_to_udev_node, is_device_path
from zenlib.logging import loggify


@loggify
class TestDevices(TestCase):
    def test_tags(self):
        self.assertEqual(fstab_node_to_udev_node("LABEL=root"), "/dev/disk/by-label/root")
        self.assertEqual(fstab_node_to_udev_node("UUID=1234-ABCD"), "/dev/disk/by-uuid/1234-ABCD")
        self.assertEqual(fstab_node_to_udev_node("PARTUUID=0a1b-02"), "/dev/disk/by-partuuid/0a1b-02")
        self.assertEqual(fstab_node_to_udev_node("PARTLABEL=swap"), "/dev/disk/by-partlabel/swap")

    def test_tag_encoding(self):
        self.assertEqual(fstab_node_to_udev_node('LABEL="my disk"'), "/dev/disk/by-label/my\\x20disk")
        self.assertEqual(fstab_node_to_udev_node("LABEL=a/b"), "/dev/disk/by-label/a\\x2fb")

    def test_passthrough(self):
        for device in ["/dev/sda1", "server:/export", "tmpfs", "FOO=bar"]:
            self.assertEqual(fstab_node_to_udev_node(device), device)

    def test_is_device_path(self):
        self.assertTrue(is_device_path("/dev/sda1"))
        self.assertTrue(is_device_path("/dev/disk/by-uuid/abcd"))
        self.assertTrue(is_device_path("/sys/devices/foo"))
        self.assertFalse(is_device_path("server:/export"))
        self.assertFalse(is_device_path("/device"))

    def test_initrd_release(self):
        self.assertFalse(in_initrd("/nonexistent/initrd-release"))
        self.assertTrue(in_initrd(__file__))


if __name__ == "__main__":
    main()
