from os import readlink
from pathlib import Path
from shutil import rmtree
from unittest import TestCase, main
from uuid import uuid4

from fstabgen import FstabGenerator, UnitWriteError
from fstabgen.fs.unit_name import unit_name_from_path
from zenlib.logging import loggify

FSTAB = """# Test mount table
/dev/sda1 / ext4 defaults 1 1
/dev/sda2 /home ext4 noatime 0 2
UUID=abcd /data xfs nofail,x-systemd.automount 0 0
server:/export /mnt/nfs nfs _netdev 0 0
/dev/sda3 none swap pri=5 0 0
tmpfs /run/lock tmpfs defaults 0 0
proc /proc proc defaults 0 0
"""

SYSROOT_FSTAB = """/dev/vda1 / ext4 defaults 1 1
/dev/vda2 /usr ext4 defaults 0 0
/dev/vda3 /var ext4 x-initrd.mount 0 0
/dev/vda4 /home ext4 defaults 0 0
"""


@loggify
class TestGenerator(TestCase):
    def setUp(self):
        self.workdir = Path(f"/tmp/{uuid4()}")
        self.dest = self.workdir / "units"
        self.fstab = self.workdir / "fstab"
        self.workdir.mkdir()
        self.addCleanup(rmtree, self.workdir, ignore_errors=True)

    def make_generator(self, fstab=FSTAB, **kwargs):
        if fstab is not None:
            self.fstab.write_text(fstab)
        kwargs = {"config": None, "initrd": False, "container": False, "cmdline": ["quiet"], **kwargs}
        return FstabGenerator(logger=self.logger, dest=self.dest, fstab_path=self.fstab, **kwargs)

    def assertLink(self, link, unit):
        link = self.dest / link
        self.assertTrue(link.is_symlink(), msg=link)
        self.assertEqual(readlink(link), str(self.dest / unit))

    def test_generate(self):
        generator = self.make_generator(ignored_mount_points=["/run/lock"])
        self.assertEqual(generator.generate(), 0)

        root = (self.dest / "-.mount").read_text()
        self.assertIn("What=/dev/sda1\nWhere=/\nType=ext4\n", root)
        self.assertNotIn("Options=", root)
        self.assertLink("local-fs.target.requires/-.mount", "-.mount")
        self.assertTrue((self.dest / "local-fs.target.wants/systemd-fsck-root.service").is_symlink())

        home = (self.dest / "home.mount").read_text()
        self.assertIn("Requires=systemd-fsck@dev-sda2.service", home)
        self.assertIn("Options=noatime", home)
        self.assertLink("local-fs.target.requires/home.mount", "home.mount")

        self.assertIn("What=/dev/disk/by-uuid/abcd", (self.dest / "data.mount").read_text())
        self.assertIn("Before=local-fs.target", (self.dest / "data.automount").read_text())
        self.assertLink("local-fs.target.wants/data.mount", "data.mount")
        self.assertLink("local-fs.target.wants/data.automount", "data.automount")

        self.assertIn("Before=remote-fs.target", (self.dest / "mnt-nfs.mount").read_text())
        self.assertLink("remote-fs.target.requires/mnt-nfs.mount", "mnt-nfs.mount")

        self.assertIn("Priority=5", (self.dest / "dev-sda3.swap").read_text())
        self.assertLink("swap.target.requires/dev-sda3.swap", "dev-sda3.swap")

        self.assertFalse((self.dest / "run-lock.mount").exists())
        self.assertFalse((self.dest / "proc.mount").exists())

    def test_duplicate_entry(self):
        """A duplicate entry fails the run, the other entries are still generated."""
        fstab = "/dev/sdb1 /data ext4 defaults 0 0\n/dev/sdc1 /data ext4 defaults 0 0\n/dev/sdd1 /srv ext4 defaults 0 0\n"
        generator = self.make_generator(fstab)
        self.assertEqual(generator.generate(), 1)
        self.assertIn("What=/dev/sdb1", (self.dest / "data.mount").read_text())
        self.assertTrue((self.dest / "srv.mount").exists())
        self.assertEqual(len(generator.failures), 1)

    def test_existing_unit(self):
        self.dest.mkdir()
        (self.dest / "data.mount").write_text("")
        generator = self.make_generator("/dev/sdb1 /data ext4 defaults 0 0\n")
        self.assertEqual(generator.generate(), 1)
        self.assertIsInstance(generator.failures[0][1], UnitWriteError)

    def test_malformed_priority(self):
        generator = self.make_generator("/dev/sda3 none swap pri=fast 0 0\n/dev/sdb1 /data ext4 defaults 0 0\n")
        self.assertEqual(generator.generate(), 1)
        self.assertFalse((self.dest / "dev-sda3.swap").exists())
        self.assertTrue((self.dest / "data.mount").exists())

    def test_missing_fstab(self):
        generator = self.make_generator(None)
        self.assertEqual(generator.generate(), 0)
        self.assertFalse(self.dest.exists())

    def test_fstab_disabled(self):
        generator = self.make_generator(cmdline=["fstab=0"])
        self.assertEqual(generator.generate(), 0)
        self.assertFalse(self.dest.exists())

    def test_container(self):
        generator = self.make_generator(container=True)
        self.assertEqual(generator.generate(), 0)
        self.assertFalse((self.dest / "home.mount").exists())
        self.assertFalse((self.dest / "dev-sda3.swap").exists())
        self.assertTrue((self.dest / "mnt-nfs.mount").exists())

    def test_initrd(self):
        sysroot = self.workdir / "sysroot"
        (sysroot / "etc").mkdir(parents=True)
        (sysroot / "etc/fstab").write_text(SYSROOT_FSTAB)
        generator = self.make_generator(
            None,
            initrd=True,
            sysroot=sysroot,
            cmdline=["root=/dev/vda1", "rootfstype=ext4", "rootflags=noatime", "rw"],
        )
        self.assertEqual(generator.generate(), 0)

        root_unit = unit_name_from_path(str(sysroot), ".mount")
        root = (self.dest / root_unit).read_text()
        self.assertIn("SourcePath=/proc/cmdline", root)
        self.assertIn("Options=noatime,rw", root)
        self.assertIn("Requires=systemd-fsck@dev-vda1.service", root)
        self.assertLink(f"initrd-root-fs.target.requires/{root_unit}", root_unit)

        for path in ["usr", "var"]:
            unit = unit_name_from_path(str(sysroot / path), ".mount")
            self.assertIn("Before=initrd-fs.target", (self.dest / unit).read_text())
            self.assertLink(f"initrd-fs.target.requires/{unit}", unit)
        self.assertFalse((self.dest / unit_name_from_path(str(sysroot / "home"), ".mount")).exists())

    def test_existing_automount(self):
        """The mount unit is linked before the automount unit is written."""
        self.dest.mkdir()
        (self.dest / "data.automount").write_text("")
        generator = self.make_generator("/dev/sdb1 /data ext4 x-systemd.automount 0 0\n")
        self.assertEqual(generator.generate(), 1)
        self.assertLink("local-fs.target.wants/data.mount", "data.mount")
        self.assertFalse((self.dest / "local-fs.target.requires/data.automount").exists())

    def test_non_utf8_fstab(self):
        """Invalid UTF-8 does not stop the run, the bytes are kept in unit names and files."""
        self.fstab.write_bytes(
            b"# caf\xe9 comment\n/dev/sda1 / ext4 defaults 0 0\n/dev/sdb1 /mnt/caf\xe9 ext4 defaults 0 0\n"
        )
        generator = self.make_generator(None)
        self.assertEqual(generator.generate(), 0)
        self.assertTrue((self.dest / "-.mount").exists())
        self.assertIn(b"Where=/mnt/caf\xe9\n", (self.dest / "mnt-caf\\xe9.mount").read_bytes())
        self.assertLink("local-fs.target.requires/mnt-caf\\xe9.mount", "mnt-caf\\xe9.mount")

    def test_non_utf8_cmdline(self):
        cmdline = self.workdir / "cmdline"
        cmdline.write_bytes(b"quiet caf\xe9 root=/dev/disk/by-label/My\\x20Disk ro\n")
        sysroot = self.workdir / "sysroot"
        generator = self.make_generator(None, initrd=True, sysroot=sysroot, cmdline=[], cmdline_path=cmdline)
        self.assertEqual(generator.generate(), 0)

        root = (self.dest / unit_name_from_path(str(sysroot), ".mount")).read_text()
        self.assertIn("What=/dev/disk/by-label/My\\x20Disk\n", root)
        self.assertIn("Options=ro\n", root)

    def test_cmdline_string(self):
        generator = self.make_generator(None, cmdline=r"root=/dev/disk/by-label/My\x20Disk quiet")
        self.assertEqual(generator["cmdline"], [r"root=/dev/disk/by-label/My\x20Disk", "quiet"])


if __name__ == "__main__":
    main()
