from unittest import TestCase, main

from fstabgen.base.cmdline import collect_boot_overrides, parse_boolean, split_cmdline
from fstabgen.fs.mounts import get_root_options
from zenlib.logging import loggify


@loggify
class TestCmdline(TestCase):
    def test_split(self):
        self.assertEqual(split_cmdline('root=/dev/sda1 ro quiet\n'), ["root=/dev/sda1", "ro", "quiet"])
        self.assertEqual(split_cmdline('rootflags="noatime,subvol=@"'), ["rootflags=noatime,subvol=@"])
        self.assertEqual(split_cmdline('mount.usrflags="a b" quiet'), ["mount.usrflags=a b", "quiet"])

    def test_split_keeps_backslashes(self):
        """Only double quotes are special, backslashes and single quotes are kept."""
        self.assertEqual(
            split_cmdline(r"root=/dev/disk/by-label/My\x20Disk ro"), [r"root=/dev/disk/by-label/My\x20Disk", "ro"]
        )
        self.assertEqual(split_cmdline("root=LABEL='root' rw"), ["root=LABEL='root'", "rw"])

    def test_split_unterminated_quote(self):
        self.assertEqual(split_cmdline('quiet root="/dev/sda1 ro\n'), ["quiet", "root=/dev/sda1 ro"])

    def test_boolean(self):
        self.assertTrue(parse_boolean("yes"))
        self.assertFalse(parse_boolean("0"))
        with self.assertRaises(ValueError):
            parse_boolean("maybe")

    def test_last_wins(self):
        overrides = collect_boot_overrides(self, ["root=/dev/sda1", "rootfstype=ext4", "root=/dev/sda2"])
        self.assertEqual(overrides.root_what, "/dev/sda2")
        self.assertEqual(overrides.root_fstype, "ext4")

    def test_flags_concatenated(self):
        overrides = collect_boot_overrides(self, ["rootflags=noatime", "rootflags=ro"])
        self.assertEqual(overrides.root_options, "noatime,ro")

    def test_rw_ro(self):
        self.assertIsNone(collect_boot_overrides(self, ["quiet"]).root_rw)
        self.assertTrue(collect_boot_overrides(self, ["ro", "rw"]).root_rw)
        self.assertFalse(collect_boot_overrides(self, ["rw", "ro"]).root_rw)
        self.assertIsNone(collect_boot_overrides(self, ["rw=1"]).root_rw)

    def test_fstab_switch(self):
        self.assertTrue(collect_boot_overrides(self, []).fstab_enabled)
        self.assertFalse(collect_boot_overrides(self, ["fstab=0"]).fstab_enabled)
        self.assertFalse(collect_boot_overrides(self, ["fstab=yes", "rd.fstab=no"]).fstab_enabled)

    def test_bad_fstab_switch(self):
        """An unparseable value is a warning, and keeps the previous value."""
        with self.assertLogs(self.logger, level="WARNING"):
            overrides = collect_boot_overrides(self, ["fstab=0", "fstab=maybe"])
        self.assertFalse(overrides.fstab_enabled)

    def test_usr_defaults(self):
        overrides = collect_boot_overrides(self, ["root=/dev/vda1", "rootfstype=btrfs", "rootflags=subvol=@"])
        self.assertFalse(overrides.usr_requested)

        overrides = collect_boot_overrides(
            self, ["root=/dev/vda1", "rootfstype=btrfs", "rootflags=subvol=@", "mount.usrflags=subvol=@usr"]
        )
        self.assertTrue(overrides.usr_requested)
        self.assertEqual(overrides.usr_with_root_defaults(), ("/dev/vda1", "btrfs", "subvol=@usr"))

    def test_root_options(self):
        def root_options(*parameters):
            return get_root_options(collect_boot_overrides(self, ["root=/dev/vda1", *parameters]))

        self.assertEqual(root_options(), "ro")
        self.assertEqual(root_options("rw"), "rw")
        self.assertEqual(root_options("rootflags=noatime"), "noatime,ro")
        self.assertEqual(root_options("rootflags=noatime", "rw"), "noatime,rw")
        self.assertEqual(root_options("rootflags=noatime,rw"), "noatime,rw")
        self.assertEqual(root_options("rootflags=ro", "rw"), "ro,rw")


if __name__ == "__main__":
    main()
