__version__ = "1.1.0"

from dataclasses import dataclass, field
from typing import Union

from zenlib.util import colorize as c_

from .devices import is_device_path
from .mounts import LOCAL_FS_TARGET, MountPlan, SwapPlan
from .options import parse_timespan
from .unit_name import unit_name_from_path, unit_name_from_path_instance

GENERATOR_NAME = "fstabgen"
DOCUMENTATION = "man:fstab(5) man:systemd-fstab-generator(8)"
FSCK_ROOT_SERVICE = "systemd-fsck-root.service"
FSCK_SERVICE_PREFIX = "systemd-fsck"
DEVICE_TIMEOUT_DROPIN = "50-device-timeout.conf"

WANTS = "wants"
REQUIRES = "requires"


@dataclass
class UnitFile:
    """A unit file or drop-in, as ordered sections of key/value pairs.

    :param name: Path relative to the destination directory
    :param exclusive: Fail if the file already exists
    """

    name: str
    sections: list[tuple[str, list[tuple[str, str]]]] = field(default_factory=list)
    exclusive: bool = True

    def get(self, section: str, key: str) -> list[str]:
        """Returns all values of a key in a section."""
        return [value for name, entries in self.sections if name == section for k, value in entries if k == key]

    def render(self) -> list[str]:
        out = ["# Automatically generated by %s" % GENERATOR_NAME]
        for section, entries in self.sections:
            out += ["", "[%s]" % section]
            out += ["%s=%s" % (key, value) for key, value in entries]
        out.append("")  # Trailing newline
        return out


@dataclass
class LinkRequest:
    """A link in <target>.<wants|requires>/, pointing at a generated unit unless a source is given."""

    target: str
    kind: str
    name: str
    source: Union[str, None] = None

    @property
    def directory(self) -> str:
        return "%s.%s" % (self.target, self.kind)

    def __str__(self) -> str:
        return "%s/%s" % (self.directory, self.name)


def _unit_metadata(source: str) -> list[tuple[str, str]]:
    return [("SourcePath", source), ("Documentation", DOCUMENTATION)]


def get_link_kind(weak: bool) -> str:
    return WANTS if weak else REQUIRES


def fsck_dependencies(self, plan: MountPlan) -> tuple[list[tuple[str, str]], list[LinkRequest]]:
    """Returns the unit dependencies and links needed to check the filesystem before mounting.
    The root filesystem is checked by its own service, pulled in by the local-fs target."""
    if not is_device_path(plan.what):
        self.logger.warning("Checking was requested for '%s', but it is not a device." % c_(plan.what, "yellow"))
        return [], []

    if plan.is_root:
        source = str(self["system_unit_path"] / FSCK_ROOT_SERVICE)
        return [], [LinkRequest(LOCAL_FS_TARGET, WANTS, FSCK_ROOT_SERVICE, source)]

    fsck = unit_name_from_path_instance(FSCK_SERVICE_PREFIX, plan.what, ".service")
    return [("Requires", fsck), ("After", fsck)], []


def device_timeout_dropin(self, what: str, where: str, timeout: Union[str, None]) -> Union[UnitFile, None]:
    """Creates a drop-in for the device unit backing a mount, setting how long to wait for it to show up."""
    if timeout is None:
        return None

    try:
        parse_timespan(timeout)
    except ValueError:
        self.logger.warning("[%s] Failed to parse device timeout, ignoring: %s" % (where, c_(timeout, "yellow")))
        return None

    if not is_device_path(what):
        self.logger.warning("[%s] Device timeout ignored for non-device: %s" % (where, c_(what, "yellow")))
        return None

    device_unit = unit_name_from_path(what, ".device")
    return UnitFile(
        "%s.d/%s" % (device_unit, DEVICE_TIMEOUT_DROPIN),
        [("Unit", [("JobTimeoutSec", timeout)])],
        exclusive=False,
    )


def build_mount_units(self, plan: MountPlan) -> tuple[list[UnitFile], list[LinkRequest]]:
    """Builds the mount unit, automount unit and device timeout drop-in for a mount plan."""
    unit_section = _unit_metadata(plan.source)
    if plan.post and not plan.noauto and not plan.nofail and not plan.automount:
        unit_section.append(("Before", plan.post))

    links = []
    if plan.passno != 0:
        fsck_deps, fsck_links = fsck_dependencies(self, plan)
        unit_section += fsck_deps
        links += fsck_links

    mount_section = [("What", plan.what), ("Where", plan.where)]
    if plan.fstype:
        mount_section.append(("Type", plan.fstype))
    if plan.options:
        mount_section.append(("Options", plan.options))

    units = [UnitFile(plan.name, [("Unit", unit_section), ("Mount", mount_section)])]
    if dropin := device_timeout_dropin(self, plan.what, plan.where, plan.device_timeout):
        units.append(dropin)

    if plan.post and not plan.noauto:
        links.append(LinkRequest(plan.post, get_link_kind(plan.nofail or plan.automount), plan.name))

    if plan.automount:
        automount_unit = _unit_metadata(plan.source)
        if plan.post:
            automount_unit.append(("Before", plan.post))
        units.append(UnitFile(plan.automount_name, [("Unit", automount_unit), ("Automount", [("Where", plan.where)])]))

        if plan.post and not plan.noauto:
            links.append(LinkRequest(plan.post, get_link_kind(plan.nofail), plan.automount_name))

    return units, links


def build_swap_units(self, plan: SwapPlan) -> tuple[list[UnitFile], list[LinkRequest]]:
    """Builds the swap unit, the priority is passed both as Priority= and in Options=."""
    swap_section = [("What", plan.what)]
    if plan.priority is not None:
        swap_section.append(("Priority", str(plan.priority)))
    if plan.options:
        swap_section.append(("Options", plan.options))

    units = [UnitFile(plan.name, [("Unit", _unit_metadata(plan.source)), ("Swap", swap_section)])]
    # The device is used as the mount point, for nicer error messages
    if dropin := device_timeout_dropin(self, plan.what, plan.what, plan.device_timeout):
        units.append(dropin)

    links = []
    if not plan.noauto:
        links.append(LinkRequest(plan.post, get_link_kind(plan.nofail), plan.name))

    return units, links


def build_units(self, plan: Union[MountPlan, SwapPlan]) -> tuple[list[UnitFile], list[LinkRequest]]:
    """Returns the unit files and activation links for a plan."""
    if isinstance(plan, MountPlan):
        return build_mount_units(self, plan)
    elif isinstance(plan, SwapPlan):
        return build_swap_units(self, plan)
    raise TypeError("Unknown plan type: %s" % type(plan).__name__)
