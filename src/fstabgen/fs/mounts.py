__author__ = "desultory"
__version__ = "8.0.0"

from dataclasses import dataclass
from enum import Enum
from typing import Union

from zenlib.util import colorize as c_

from fstabgen.exceptions import DuplicateUnitError

from .devices import fstab_node_to_udev_node, is_device_path
from .fstab import TableEntry
from .options import (
    filter_mount_options,
    find_priority,
    get_device_timeout,
    is_automount,
    is_noauto,
    is_nofail,
    mount_in_initrd,
    mount_is_network,
    mount_test_option,
    swap_options,
)
from .unit_name import path_kill_slashes, unit_name_from_path

LOCAL_FS_TARGET = "local-fs.target"
REMOTE_FS_TARGET = "remote-fs.target"
INITRD_FS_TARGET = "initrd-fs.target"
INITRD_ROOT_FS_TARGET = "initrd-root-fs.target"
SWAP_TARGET = "swap.target"

CMDLINE_SOURCE = "/proc/cmdline"
AUTOFS_FSTYPE = "autofs"
SWAP_FSTYPE = "swap"


class SkipReason(Enum):
    AUTOFS = "autofs-placeholder"
    CONTAINER = "isolated-instance-suppression"
    INVALID_PATH = "invalid-path"
    IGNORED_MOUNT_POINT = "ignored-mount-point"
    NOT_INITRD = "not-initrd-mount"
    NO_DEVICE = "no-device"
    DUPLICATE = "duplicate"


@dataclass
class Skip:
    """An entry which does not produce any units."""

    reason: SkipReason
    detail: str = ""

    def __str__(self) -> str:
        return "skip (%s) %s" % (self.reason.value, self.detail)


@dataclass
class MountPlan:
    """A mount unit, and optionally its automount unit.

    :param what: Resolved device path
    :param where: Mount point
    :param fstype: Filesystem type, None when unspecified
    :param options: Filtered mount options, None when there is nothing to pass
    :param passno: fsck pass number, 0 disables the fsck dependency
    :param post: Target the mount is ordered before
    :param source: Where the entry was read from
    """

    what: str
    where: str
    fstype: Union[str, None]
    options: Union[str, None]
    passno: int
    noauto: bool
    nofail: bool
    automount: bool
    post: Union[str, None]
    source: str
    name: str
    automount_name: Union[str, None] = None
    device_timeout: Union[str, None] = None
    is_root: bool = False

    def __str__(self) -> str:
        return "mount %s: %s -> %s (%s)" % (self.name, self.what, self.where, self.post)


@dataclass
class SwapPlan:
    """A swap unit, options are passed as-is, the priority is also set separately."""

    what: str
    options: Union[str, None]
    priority: Union[int, None]
    noauto: bool
    nofail: bool
    source: str
    name: str
    device_timeout: Union[str, None] = None
    post: str = SWAP_TARGET

    def __str__(self) -> str:
        return "swap %s: %s" % (self.name, self.what)


def mount_point_is_api(self, where: str) -> bool:
    """API filesystems are mounted by the service manager itself."""
    return where in self["api_mount_points"] or any(where.startswith(prefix) for prefix in self["api_mount_prefixes"])


def mount_point_ignore(self, where: str) -> bool:
    return where in self["ignored_mount_points"]


def claim_unit_name(self, name: str) -> None:
    """Registers a generated unit name, the first entry using a name keeps it."""
    if name in self.claimed_units:
        raise DuplicateUnitError("Unit already generated, duplicate entry in the mount table?: %s" % name)
    self.claimed_units.add(name)


def build_mount_plan(
    self,
    what: str,
    where: str,
    fstype: Union[str, None],
    options: Union[str, None],
    passno: int,
    noauto: bool,
    nofail: bool,
    automount: bool,
    post: Union[str, None],
    source: str,
) -> Union[MountPlan, Skip]:
    """Validates the mount point and builds the mount plan.
    Claims the unit name, raises DuplicateUnitError if it was already used."""
    if fstype == AUTOFS_FSTYPE:
        return Skip(SkipReason.AUTOFS, where)

    if not where or not where.startswith("/"):
        self.logger.warning("Mount point is not a valid path, ignoring: %s" % c_(where, "yellow"))
        return Skip(SkipReason.INVALID_PATH, where)

    if mount_point_is_api(self, where) or mount_point_ignore(self, where):
        self.logger.debug("Ignoring API or ignored mount point: %s" % where)
        return Skip(SkipReason.IGNORED_MOUNT_POINT, where)

    is_root = where == "/"
    if is_root:  # The root mount can't be optional
        automount = noauto = nofail = False

    name = unit_name_from_path(where, ".mount")
    claim_unit_name(self, name)

    return MountPlan(
        what=what,
        where=where,
        fstype=None if not fstype or fstype == "auto" else fstype,
        options=filter_mount_options(options),
        passno=passno,
        noauto=noauto,
        nofail=nofail,
        automount=automount,
        post=post,
        source=source,
        name=name,
        automount_name=unit_name_from_path(where, ".automount") if automount else None,
        device_timeout=get_device_timeout(options),
        is_root=is_root,
    )


def _classify_swap(self, entry: TableEntry, what: str, noauto: bool, nofail: bool, source: str) -> Union[SwapPlan, Skip]:
    if self["container"]:
        self.logger.info("Running in a container, ignoring swap entry: %s" % c_(what, "yellow"))
        return Skip(SkipReason.CONTAINER, what)

    priority = find_priority(entry.options)
    name = unit_name_from_path(what, ".swap")
    claim_unit_name(self, name)

    return SwapPlan(
        what=what,
        options=swap_options(entry.options),
        priority=priority,
        noauto=noauto,
        nofail=nofail,
        source=source,
        name=name,
        device_timeout=get_device_timeout(entry.options),
    )


def get_mount_target(entry: TableEntry, initrd=False) -> str:
    """Returns the target a mount must be ordered before."""
    if initrd:
        return INITRD_FS_TARGET
    elif mount_in_initrd(entry):
        return INITRD_ROOT_FS_TARGET
    elif mount_is_network(entry):
        return REMOTE_FS_TARGET
    return LOCAL_FS_TARGET


def classify_entry(self, entry: TableEntry, source: str, initrd=False) -> Union[MountPlan, SwapPlan, Skip]:
    """Classifies a mount table entry.

    If initrd is set, the entry was read from the real root's mount table while in the initrd,
    only initrd mounts are used, and mount points are placed under the sysroot.

    Raises an EntryError if the entry is broken, such as a duplicate or a bad swap priority.
    """
    if initrd and not mount_in_initrd(entry):
        self.logger.log(5, "Skipping non-initrd entry: %s" % entry.mount_point)
        return Skip(SkipReason.NOT_INITRD, entry.mount_point)

    what = fstab_node_to_udev_node(entry.device)
    if entry.fstype == AUTOFS_FSTYPE:
        self.logger.debug("Skipping autofs entry: %s" % entry.mount_point)
        return Skip(SkipReason.AUTOFS, entry.mount_point)

    if self["container"] and is_device_path(what):
        self.logger.info("Running in a container, ignoring device entry: %s" % c_(what, "yellow"))
        return Skip(SkipReason.CONTAINER, what)

    noauto, nofail = is_noauto(entry.options), is_nofail(entry.options)
    self.logger.debug(
        "Found entry what=%s where=%s type=%s nofail=%s noauto=%s"
        % (what, entry.mount_point, entry.fstype, nofail, noauto)
    )

    if entry.fstype == SWAP_FSTYPE:
        return _classify_swap(self, entry, what, noauto, nofail, source)

    where = "%s/%s" % (self["sysroot"], entry.mount_point) if initrd else entry.mount_point
    if where.startswith("/"):
        where = path_kill_slashes(where)

    return build_mount_plan(
        self,
        what,
        where,
        entry.fstype,
        entry.options,
        entry.passno,
        noauto,
        nofail,
        is_automount(entry.options),
        get_mount_target(entry, initrd),
        source,
    )


def get_root_options(overrides) -> str:
    """Adds 'ro' or 'rw' to the root flags.
    Without rootflags, 'rw' is only used if requested.
    If rootflags set ro or rw, and neither 'ro' nor 'rw' was passed, the flags are used as-is."""
    rw = "rw" if overrides.root_rw else "ro"
    if overrides.root_options is None:
        return rw

    if overrides.root_rw is not None or not (
        mount_test_option(overrides.root_options, "ro") or mount_test_option(overrides.root_options, "rw")
    ):
        return "%s,%s" % (overrides.root_options, rw)
    return overrides.root_options


def classify_root_mount(self, overrides) -> Union[MountPlan, Skip]:
    """Builds the sysroot mount from root=, rootfstype= and rootflags=."""
    if not overrides.root_what:
        self.logger.debug("Could not find a root= entry on the kernel command line.")
        return Skip(SkipReason.NO_DEVICE, "root")

    where = str(self["sysroot"])
    what = fstab_node_to_udev_node(overrides.root_what)
    if not what.startswith("/"):
        self.logger.debug("Skipping entry what=%s where=%s type=%s" % (what, where, overrides.root_fstype))
        return Skip(SkipReason.NO_DEVICE, what)

    self.logger.debug("Found entry what=%s where=%s type=%s" % (what, where, overrides.root_fstype))
    return build_mount_plan(
        self,
        what,
        where,
        overrides.root_fstype,
        get_root_options(overrides),
        1,
        False,
        False,
        False,
        INITRD_ROOT_FS_TARGET,
        CMDLINE_SOURCE,
    )


def classify_usr_mount(self, overrides) -> Union[MountPlan, Skip]:
    """Builds the sysroot /usr mount from mount.usr=, mount.usrfstype= and mount.usrflags=.
    Unset values are taken from the root parameters, both a device and flags are required."""
    if not overrides.usr_requested:
        self.logger.debug("No mount.usr parameters on the kernel command line.")
        return Skip(SkipReason.NO_DEVICE, "usr")

    usr_what, usr_fstype, usr_options = overrides.usr_with_root_defaults()
    if usr_what is None or usr_options is None:
        self.logger.debug("Both a /usr device and mount flags are required, skipping /usr mount.")
        return Skip(SkipReason.NO_DEVICE, "usr")

    where = path_kill_slashes("%s/usr" % self["sysroot"])
    what = fstab_node_to_udev_node(usr_what)
    if not what.startswith("/"):
        self.logger.warning("Skipping /usr mount with invalid device what=%s where=%s type=%s" % (what, where, usr_fstype))
        return Skip(SkipReason.NO_DEVICE, what)

    self.logger.debug("Found entry what=%s where=%s type=%s" % (what, where, usr_fstype))
    return build_mount_plan(
        self,
        what,
        where,
        usr_fstype,
        usr_options,
        1,
        False,
        False,
        False,
        INITRD_ROOT_FS_TARGET,
        CMDLINE_SOURCE,
    )
