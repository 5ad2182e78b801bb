from unittest import TestCase, main

from fstabgen.fs.unit_name import escape_path, path_kill_slashes, unit_name_from_path, unit_name_from_path_instance
from zenlib.logging import loggify


@loggify
class TestUnitName(TestCase):
    def test_root(self):
        self.assertEqual(unit_name_from_path("/", ".mount"), "-.mount")
        self.assertEqual(unit_name_from_path("//", ".mount"), "-.mount")

    def test_simple_paths(self):
        self.assertEqual(unit_name_from_path("/data", ".mount"), "data.mount")
        self.assertEqual(unit_name_from_path("/var/lib/docker", ".mount"), "var-lib-docker.mount")
        self.assertEqual(unit_name_from_path("/dev/sda3", ".swap"), "dev-sda3.swap")
        self.assertEqual(unit_name_from_path("/home", ".automount"), "home.automount")

    def test_redundant_slashes(self):
        self.assertEqual(unit_name_from_path("//var//log/", ".mount"), "var-log.mount")
        self.assertEqual(path_kill_slashes("//var//log/"), "/var/log")
        self.assertEqual(path_kill_slashes("/"), "/")

    def test_escaping(self):
        self.assertEqual(escape_path("/home/my-dir"), "home-my\\x2ddir")
        self.assertEqual(escape_path("/mnt/a b"), "mnt-a\\x20b")
        self.assertEqual(escape_path("/.snapshots"), "\\x2esnapshots")
        self.assertEqual(escape_path("/data/.hidden"), "data-.hidden")
        self.assertEqual(escape_path("/mnt/ä"), "mnt-\\xc3\\xa4")

    def test_distinct_paths_distinct_names(self):
        paths = ["/a-b", "/a/b", "/a b", "/a\\x2db", "/.a", "/\\x2ea", "/a_b", "/a:b"]
        names = [unit_name_from_path(path, ".mount") for path in paths]
        self.assertEqual(len(set(names)), len(paths))

    def test_bad_suffix(self):
        with self.assertRaises(ValueError):
            unit_name_from_path("/data", ".service")

    def test_instance(self):
        self.assertEqual(
            unit_name_from_path_instance("systemd-fsck", "/dev/sda1", ".service"), "systemd-fsck@dev-sda1.service"
        )
        self.assertEqual(
            unit_name_from_path_instance("systemd-fsck", "/dev/disk/by-uuid/abcd", ".service"),
            "systemd-fsck@dev-disk-by\\x2duuid-abcd.service",
        )


if __name__ == "__main__":
    main()
