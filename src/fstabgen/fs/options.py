__author__ = "desultory"
__version__ = "1.2.0"

from re import compile, fullmatch
from typing import Union

from fstabgen.exceptions import MalformedPriority

NOAUTO_OPTIONS = ["noauto"]
NOFAIL_OPTIONS = ["nofail"]
AUTOMOUNT_OPTIONS = ["x-systemd.automount", "comment=systemd.automount"]
INITRD_OPTIONS = ["x-initrd.mount"]
NETWORK_OPTIONS = ["_netdev"]
DEVICE_TIMEOUT_OPTIONS = ["x-systemd.device-timeout", "comment=systemd.device-timeout"]
PRIORITY_OPTION = "pri"

# Markers are consumed by the generator and never passed on to mount units
MARKER_OPTIONS = [
    *NOAUTO_OPTIONS,
    *NOFAIL_OPTIONS,
    *AUTOMOUNT_OPTIONS,
    *INITRD_OPTIONS,
    *DEVICE_TIMEOUT_OPTIONS,
    PRIORITY_OPTION,
]

NETWORK_FSTYPES = [
    "cifs",
    "smbfs",
    "sshfs",
    "ncpfs",
    "ncp",
    "nfs",
    "nfs4",
    "gfs",
    "gfs2",
    "glusterfs",
    "pvfs2",
    "ocfs2",
    "lustre",
    "ceph",
    "davfs",
    "afs",
]

# The /usr mount is always needed before switching root
INITRD_MOUNT_POINT = "/usr"

TIMESPAN_UNITS = {
    "usec": 0.000001,
    "us": 0.000001,
    "msec": 0.001,
    "ms": 0.001,
    "seconds": 1,
    "second": 1,
    "sec": 1,
    "s": 1,
    "": 1,
    "minutes": 60,
    "minute": 60,
    "min": 60,
    "m": 60,
    "hours": 3600,
    "hour": 3600,
    "hr": 3600,
    "h": 3600,
    "days": 86400,
    "day": 86400,
    "d": 86400,
    "weeks": 604800,
    "week": 604800,
    "w": 604800,
    "months": 2629800,
    "month": 2629800,
    "M": 2629800,
    "years": 31557600,
    "year": 31557600,
    "y": 31557600,
}
_TIMESPAN_PART = compile(r"\s*([0-9]+(?:\.[0-9]*)?)\s*([a-zA-Z]*)\s*")


def _split_options(options: Union[str, None]) -> list[str]:
    return [option for option in (options or "").split(",") if option]


def _option_matches(option: str, name: str) -> bool:
    """Matches like hasmntopt, by the bare name or name=value."""
    return option == name or option.startswith(name + "=")


def find_option(options: Union[str, None], name: str) -> Union[str, None]:
    """Returns the first option matching the name, or None."""
    for option in _split_options(options):
        if _option_matches(option, name):
            return option


def has_option(options: Union[str, None], *names: str) -> bool:
    """Checks if any of the named options are set."""
    return any(find_option(options, name) for name in names)


def mount_test_option(options: Union[str, None], name: str) -> bool:
    """Checks for a bare option, such as 'ro' or 'rw'."""
    return name in _split_options(options)


def find_priority(options: Union[str, None]) -> Union[int, None]:
    """Returns the swap priority set with pri=<digits>, or None if unset.

    Raises MalformedPriority if pri is present but the value is empty or not a plain number.
    """
    if not (option := find_option(options, PRIORITY_OPTION)):
        return None

    value = option.removeprefix(PRIORITY_OPTION)
    if not value.startswith("="):
        raise MalformedPriority("Priority option is missing a value: %s" % option)

    value = value[1:]
    if not fullmatch(r"[0-9]+", value):
        raise MalformedPriority("Failed to parse priority: %s" % option)

    return int(value)


def is_noauto(options: Union[str, None]) -> bool:
    return has_option(options, *NOAUTO_OPTIONS)


def is_nofail(options: Union[str, None]) -> bool:
    return has_option(options, *NOFAIL_OPTIONS)


def is_automount(options: Union[str, None]) -> bool:
    return has_option(options, *AUTOMOUNT_OPTIONS)


def mount_is_network(entry) -> bool:
    """Network mounts are set with _netdev or use a network filesystem type."""
    return has_option(entry.options, *NETWORK_OPTIONS) or entry.fstype in NETWORK_FSTYPES


def mount_in_initrd(entry) -> bool:
    """Mounts which must be available in the initrd, before switching root."""
    return has_option(entry.options, *INITRD_OPTIONS) or entry.mount_point == INITRD_MOUNT_POINT


def get_device_timeout(options: Union[str, None]) -> Union[str, None]:
    """Returns the device timeout value, the last definition takes precedence."""
    timeout = None
    for option in _split_options(options):
        for name in DEVICE_TIMEOUT_OPTIONS:
            if option.startswith(name + "="):
                timeout = option.removeprefix(name + "=")
    return timeout


def filter_mount_options(options: Union[str, None]) -> Union[str, None]:
    """Drops generator markers from mount options.
    Returns None if nothing but 'defaults' is left."""
    filtered = ",".join(
        option for option in _split_options(options) if not any(_option_matches(option, m) for m in MARKER_OPTIONS)
    )
    if not filtered or filtered == "defaults":
        return None
    return filtered


def swap_options(options: Union[str, None]) -> Union[str, None]:
    """Swap options are passed as-is, pri included, unless empty or 'defaults'."""
    if not options or options == "defaults":
        return None
    return options


def parse_timespan(timespan: str) -> float:
    """Parses a systemd style timespan into seconds, such as '90', '1min 30s' or 'infinity'."""
    timespan = timespan.strip()
    if timespan == "infinity":
        return float("inf")
    if not timespan:
        raise ValueError("Empty timespan")

    seconds = 0.0
    position = 0
    while position < len(timespan):
        if not (match := _TIMESPAN_PART.match(timespan, position)) or match.end() == position:
            raise ValueError("Invalid timespan: %s" % timespan)
        value, unit = match.groups()
        if unit not in TIMESPAN_UNITS:
            raise ValueError("[%s] Unknown timespan unit: %s" % (timespan, unit))
        seconds += float(value) * TIMESPAN_UNITS[unit]
        position = match.end()

    return seconds
