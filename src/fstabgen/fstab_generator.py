__author__ = "desultory"
__version__ = "1.0.0"

from typing import Callable, Union

from zenlib.logging import loggify
from zenlib.util import colorize as c_
from zenlib.util import contains

from .base.cmdline import BootOverrides, collect_boot_overrides, read_cmdline
from .environment import detect_container, in_initrd
from .exceptions import DuplicateUnitError, EntryError
from .fs.fstab import TableEntry, read_fstab
from .fs.mounts import (
    MountPlan,
    Skip,
    SkipReason,
    SwapPlan,
    classify_entry,
    classify_root_mount,
    classify_usr_mount,
)
from .fs.units import build_units
from .generator_dict import GeneratorConfigDict
from .generator_helpers import GeneratorHelpers


@loggify
class FstabGenerator(GeneratorHelpers):
    """Generates mount, swap and automount units from the mount table and kernel command line.

    Entries are processed in order, a failing entry is logged and recorded in self.failures,
    and processing continues with the next entry.
    """

    def __init__(self, config="/etc/fstabgen/config.toml", *args, **kwargs):
        kwargs.pop("logger", None)  # Handled by loggify
        self.config_dict = GeneratorConfigDict(logger=self.logger)
        self.claimed_units = set()  # Names of all units generated in this run
        self.results = []  # (entry, plan, skip or error) for every processed entry
        self.failures = []  # (entry, error) for every failed entry

        # Passed kwargs are imported before and after the config file, so they take precedence
        self.config_dict.import_args(kwargs)
        try:
            self.load_config(config)
            self.config_dict.import_args(kwargs, quiet=True)
        except FileNotFoundError:
            if config:
                self.logger.info("[%s] Config file not found, using the base config." % config)
            else:
                self.logger.info("No config file specified, using the base config.")

        self.detect_environment()

    def load_config(self, config_filename) -> None:
        """Loads the config from the specified toml file."""
        if not config_filename:
            raise FileNotFoundError("Config file not specified.")
        self.logger.info("Loading config file: %s" % c_(config_filename, "blue", bold=True))
        self.config_dict.load_toml(config_filename)
        self.logger.debug("Loaded config:\n%s" % self.config_dict)

    def detect_environment(self) -> None:
        """Detects the initrd and container state, unless already configured."""
        if "initrd" not in self:
            self["initrd"] = in_initrd(self["initrd_release"])
        if "container" not in self:
            container = detect_container()
            if container:
                self.logger.info("Detected container: %s" % c_(container, "cyan"))
            self["container"] = bool(container)
        self.logger.debug("initrd=%s container=%s" % (self["initrd"], self["container"]))

    def __setitem__(self, key, value):
        self.config_dict[key] = value

    def __getitem__(self, item):
        return self.config_dict[item]

    def __contains__(self, item):
        return item in self.config_dict

    def get(self, item, default=None):
        return self.config_dict.get(item, default)

    @property
    def status(self) -> int:
        """The exit status, 1 if any entry failed."""
        return 1 if self.failures else 0

    def generate(self) -> int:
        """Runs all passes, returns the exit status.

        In the initrd, the root and /usr mounts from the kernel command line are added first.
        Then the mount table is parsed, unless disabled with fstab=/rd.fstab=,
        followed by the real root's mount table when in the initrd.
        """
        self._log_run(f"Running fstabgen v{__version__}")
        overrides = collect_boot_overrides(self, read_cmdline(self))

        self.add_boot_override_mounts(overrides)

        if overrides.fstab_enabled:
            self.parse_fstab(self["fstab_path"])
            self.parse_initrd_fstab()
        else:
            self.logger.info("Mount table disabled on the kernel command line, skipping.")

        if self.failures:
            self.logger.error(
                "Failed entries: %s" % c_(", ".join(entry for entry, _ in self.failures), "red", bold=True)
            )
        return self.status

    @contains("initrd", "Not running in the initrd, skipping kernel command line mounts.")
    def add_boot_override_mounts(self, overrides: BootOverrides) -> None:
        """Adds the sysroot mount, and the sysroot /usr mount if the root mount did not fail."""
        if self.process_entry("root", classify_root_mount, overrides):
            self.process_entry("usr", classify_usr_mount, overrides)

    @contains("initrd", "Not running in the initrd, skipping the sysroot mount table.")
    def parse_initrd_fstab(self) -> None:
        """Parses the mount table of the real root, only initrd mounts are used."""
        self.parse_fstab(self["sysroot"] / "etc/fstab", initrd=True)

    def parse_fstab(self, fstab_path, initrd=False) -> None:
        """Processes every entry in a mount table."""
        try:
            entries = read_fstab(self, fstab_path)
        except OSError as e:
            self.logger.error("Failed to open mount table %s: %s" % (c_(fstab_path, "red", bold=True), e))
            self.failures.append((str(fstab_path), e))
            return

        for entry in entries:
            self.process_entry(entry, classify_entry, entry, str(fstab_path), initrd)

    def process_entry(self, entry: Union[TableEntry, str], classifier: Callable, *args) -> bool:
        """Classifies an entry and writes the resulting units.
        Returns False if the entry failed."""
        try:
            outcome = classifier(self, *args)
            if isinstance(outcome, Skip):
                self.logger.debug("[%s] Skipped: %s" % (entry, outcome.reason.value))
            else:
                self.write_plan(outcome)
        except DuplicateUnitError as e:
            return self._fail(entry, e, Skip(SkipReason.DUPLICATE, str(e)))
        except EntryError as e:
            return self._fail(entry, e, e)

        self.results.append((entry, outcome))
        return True

    def _fail(self, entry, error: EntryError, outcome) -> bool:
        self.logger.error("[%s] %s" % (c_(entry, "red", bold=True), error))
        self.failures.append((str(entry), error))
        self.results.append((entry, outcome))
        return False

    def write_plan(self, plan: Union[MountPlan, SwapPlan]) -> None:
        """Writes the units for a plan in order, each followed by its activation links.
        Links with an explicit source, such as the root fsck service, are created last.

        If a write fails, units written before it are kept along with their links,
        so a failing automount unit leaves a linked mount unit behind.
        """
        self.logger.info("Generating units for: %s" % c_(plan, "blue"))
        units, links = build_units(self, plan)
        for unit in units:
            unit_path = self._write(unit.name, unit.render(), exclusive=unit.exclusive)
            for link in links:
                if not link.source and link.name == unit.name:
                    self._symlink(str(unit_path), "%s/%s" % (link.directory, link.name))

        for link in links:
            if link.source:
                self._symlink(link.source, "%s/%s" % (link.directory, link.name))

    def _log_run(self, logline) -> None:
        self.logger.info(f"-- | {c_(logline, 'blue', bold=True)}")

    def __str__(self) -> str:
        return str(self.config_dict)
