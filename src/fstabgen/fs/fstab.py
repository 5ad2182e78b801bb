__version__ = "0.4.0"

from dataclasses import dataclass
from pathlib import Path
from re import sub
from typing import Union

from zenlib.util import colorize as c_


@dataclass(frozen=True)
class TableEntry:
    """One mount table line.

    :param device: Device spec, such as /dev/sda1 or UUID=...
    :param mount_point: Where the device is mounted, 'none' or 'swap' for swap entries
    :param fstype: Filesystem type, 'auto' if unspecified
    :param options: Raw comma separated mount options
    :param dump: Dump flag, unused
    :param passno: fsck pass number, 0 disables checking
    """

    device: str
    mount_point: str
    fstype: str
    options: str = ""
    dump: int = 0
    passno: int = 0

    def __str__(self) -> str:
        return "%s %s %s %s %d %d" % (
            self.device,
            self.mount_point,
            self.fstype,
            self.options or "defaults",
            self.dump,
            self.passno,
        )


def _decode_field(field: str) -> str:
    """Decodes octal escapes such as \\040 for spaces."""
    return sub(r"\\([0-7]{3})", lambda match: chr(int(match.group(1), 8)), field)


def _parse_int(self, line_number: int, name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        self.logger.warning("[%d] Invalid %s field, using 0: %s" % (line_number, name, c_(value, "yellow")))
        return 0


def parse_fstab_line(self, line: str, line_number=0) -> Union[TableEntry, None]:
    """Parses a single fstab line, returns None for comments, blank and short lines."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    fields = [_decode_field(field) for field in line.split()]
    if len(fields) < 3:
        self.logger.warning("[%d] Ignoring incomplete fstab line: %s" % (line_number, c_(line, "yellow")))
        return None

    device, mount_point, fstype = fields[:3]
    options = fields[3] if len(fields) > 3 else ""
    dump = _parse_int(self, line_number, "dump", fields[4]) if len(fields) > 4 else 0
    passno = _parse_int(self, line_number, "pass", fields[5]) if len(fields) > 5 else 0
    return TableEntry(device, mount_point, fstype, options, dump, passno)


def read_fstab(self, fstab_path: Union[Path, str]) -> list[TableEntry]:
    """Returns the entries of an fstab file, in file order.
    A missing file has no entries, other read errors are raised.
    Bytes which are not valid UTF-8 are kept as surrogates, so they reach unit names and files unchanged."""
    try:
        with open(fstab_path, "r", encoding="utf-8", errors="surrogateescape") as fstab:
            lines = fstab.readlines()
    except FileNotFoundError:
        self.logger.debug("Mount table not found, skipping: %s" % fstab_path)
        return []

    self.logger.info("Parsing mount table: %s" % c_(fstab_path, "blue", bold=True))
    entries = []
    for line_number, line in enumerate(lines, start=1):
        if entry := parse_fstab_line(self, line, line_number):
            entries.append(entry)
    return entries
