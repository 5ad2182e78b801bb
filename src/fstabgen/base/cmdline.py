__author__ = "desultory"
__version__ = "2.0.0"

from dataclasses import dataclass
from re import compile
from typing import Iterable, Union

from zenlib.util import colorize as c_

# root=, rootfstype=, mount.usr= and mount.usrfstype= may be repeated, the last one wins
LAST_WINS_PARAMETERS = {
    "root": "root_what",
    "rootfstype": "root_fstype",
    "mount.usr": "usr_what",
    "mount.usrfstype": "usr_fstype",
}
# Repeated rootflags= and mount.usrflags= are joined with commas
CONCATENATED_PARAMETERS = {
    "rootflags": "root_options",
    "mount.usrflags": "usr_options",
}
FSTAB_SWITCH_PARAMETERS = ["fstab", "rd.fstab"]

# Only double quotes group, an unterminated quote runs to the end of the line
_CMDLINE_PARAMETER = compile(r'(?:[^\s"]+|"[^"]*(?:"|$))+')

TRUE_VALUES = ["1", "yes", "y", "true", "t", "on"]
FALSE_VALUES = ["0", "no", "n", "false", "f", "off"]


@dataclass
class BootOverrides:
    """Mount overrides collected from the kernel command line.

    root_rw is None unless 'rw' or 'ro' was passed.
    """

    root_what: Union[str, None] = None
    root_fstype: Union[str, None] = None
    root_options: Union[str, None] = None
    root_rw: Union[bool, None] = None
    usr_what: Union[str, None] = None
    usr_fstype: Union[str, None] = None
    usr_options: Union[str, None] = None
    fstab_enabled: bool = True

    @property
    def usr_requested(self) -> bool:
        return any(value is not None for value in (self.usr_what, self.usr_fstype, self.usr_options))

    def usr_with_root_defaults(self) -> tuple[Union[str, None], Union[str, None], Union[str, None]]:
        """Returns the /usr device, type and options, unset values are taken from the root parameters."""
        return (
            self.usr_what if self.usr_what is not None else self.root_what,
            self.usr_fstype if self.usr_fstype is not None else self.root_fstype,
            self.usr_options if self.usr_options is not None else self.root_options,
        )


def parse_boolean(value: str) -> bool:
    """Parses a boolean string, raises a ValueError if it can't be parsed."""
    if value.lower() in TRUE_VALUES:
        return True
    if value.lower() in FALSE_VALUES:
        return False
    raise ValueError("Invalid boolean value: %s" % value)


def split_cmdline(cmdline: str) -> list[str]:
    """Splits a kernel command line into parameters the way the kernel does.
    Double quotes group words and are removed, backslashes and single quotes are kept."""
    return [parameter.replace('"', "") for parameter in _CMDLINE_PARAMETER.findall(cmdline.strip())]


def read_cmdline(self) -> list[str]:
    """Returns the boot parameters.
    Uses the 'cmdline' parameter if set, otherwise reads the file at 'cmdline_path'."""
    if self["cmdline"]:
        self.logger.debug("Using configured boot parameters: %s" % " ".join(self["cmdline"]))
        return list(self["cmdline"])

    try:
        return split_cmdline(self["cmdline_path"].read_text(encoding="utf-8", errors="surrogateescape"))
    except OSError as e:
        self.logger.warning("Failed to read kernel command line, ignoring: %s" % e)
        return []


def _apply_parameter(self, overrides: BootOverrides, key: str, value: Union[str, None]) -> None:
    if key in FSTAB_SWITCH_PARAMETERS and value is not None:
        try:
            overrides.fstab_enabled = parse_boolean(value)
        except ValueError:
            self.logger.warning("[%s] Failed to parse fstab switch, ignoring: %s" % (key, c_(value, "yellow")))
    elif key in LAST_WINS_PARAMETERS and value is not None:
        setattr(overrides, LAST_WINS_PARAMETERS[key], value)
    elif key in CONCATENATED_PARAMETERS and value is not None:
        attr = CONCATENATED_PARAMETERS[key]
        current = getattr(overrides, attr)
        setattr(overrides, attr, "%s,%s" % (current, value) if current is not None else value)
    elif key == "rw" and value is None:
        overrides.root_rw = True
    elif key == "ro" and value is None:
        overrides.root_rw = False
    else:
        return self.logger.log(5, "Ignoring boot parameter: %s" % key)

    self.logger.debug("[%s] Applied boot parameter: %s" % (key, c_(value, "green")))


def collect_boot_overrides(self, parameters: Iterable[str]) -> BootOverrides:
    """Folds boot parameters into a BootOverrides record, processing them in order."""
    overrides = BootOverrides()
    for parameter in parameters:
        key, sep, value = parameter.partition("=")
        _apply_parameter(self, overrides, key, value if sep else None)

    self.logger.debug("Collected boot overrides: %s" % overrides)
    return overrides
