__author__ = "desultory"
__version__ = "1.0.0"

from collections import UserDict
from pathlib import Path
from tomllib import TOMLDecodeError, load

from zenlib.logging import loggify
from zenlib.types import NoDupFlatList
from zenlib.util import colorize, pretty_print

from .base.cmdline import split_cmdline
from .exceptions import ValidationError

BASE_CONFIG = Path(__file__).parent / "base.toml"


@loggify
class GeneratorConfigDict(UserDict):
    """
    Dict for the fstab generator config.

    Only parameters defined in builtin_parameters can be set.
    Setting a list parameter appends to it, everything else is converted to the parameter type.
    The base config is loaded from base.toml, next to this file.
    """

    builtin_parameters = {
        "dest": Path,  # Where generated units are written
        "fstab_path": Path,  # The primary mount table
        "sysroot": Path,  # Where the real root is mounted in the initrd
        "cmdline_path": Path,  # Where boot parameters are read from, unless cmdline is set
        "cmdline": list,  # Boot parameters, used instead of the cmdline_path contents
        "initrd": bool,  # Running in the initrd, detected using initrd_release if unset
        "initrd_release": Path,
        "container": bool,  # Running in a container, detected if unset
        "api_mount_points": NoDupFlatList,  # Mount points managed by the service manager itself
        "api_mount_prefixes": NoDupFlatList,
        "ignored_mount_points": NoDupFlatList,  # Mount points which are never turned into units
        "system_unit_path": Path,  # Location of the installed system units
    }

    def __init__(self, *args, **kwargs):
        kwargs.pop("logger", None)  # Handled by loggify
        super().__init__(*args, **kwargs)
        for parameter, default_type in self.builtin_parameters.items():
            if default_type == NoDupFlatList:
                self.data[parameter] = default_type(no_warn=True, _log_bump=5, logger=self.logger)
            elif default_type is list:
                self.data[parameter] = []
        self.load_toml(BASE_CONFIG)

    def import_args(self, args: dict, quiet=False) -> None:
        """Imports data from an argument dict."""
        log_level = 10 if quiet else 20
        for arg, value in args.items():
            self.logger.log(log_level, f"[{colorize(arg, 'blue')}] Setting from arguments: {colorize(value, 'green')}")
            self[arg] = value

    def load_toml(self, config_file) -> None:
        """Loads a toml config file into the dict, raises FileNotFoundError if it does not exist."""
        with open(config_file, "rb") as f:
            self.logger.debug("Loading config file: %s" % colorize(f.name, "blue", bold=True))
            try:
                raw_config = load(f)
            except TOMLDecodeError as e:
                raise ValueError("[%s] Error decoding config file: %s" % (config_file, e)) from e

        for parameter, value in raw_config.items():
            self.logger.debug("[%s] (%s) Processing config value: %s" % (config_file, parameter, value))
            self[parameter] = value

    def __setitem__(self, key: str, value) -> None:
        if key not in self.builtin_parameters:
            raise ValidationError("Unknown config parameter: %s" % key)

        if hasattr(self, f"_process_{key}"):
            self.logger.log(5, "[%s] Using builtin setitem: %s" % (key, f"_process_{key}"))
            return getattr(self, f"_process_{key}")(value)

        expected_type = self.builtin_parameters[key]
        if expected_type is NoDupFlatList:  # Append to lists, don't replace
            self.logger.log(5, "Using list setitem for: %s" % key)
            return self.data[key].append(value)

        self.logger.debug("[%s] Setting parameter: %s" % (key, value))
        self.data[key] = expected_type(value)

    def _process_cmdline(self, cmdline) -> None:
        """Replaces the boot parameters, keeping their order and duplicates.
        Strings are split like a kernel command line."""
        if isinstance(cmdline, str):
            cmdline = split_cmdline(cmdline)
        self.data["cmdline"] = list(cmdline)

    def __str__(self) -> str:
        return pretty_print(self.data)
