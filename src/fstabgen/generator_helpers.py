from os import readlink
from pathlib import Path
from typing import Union

from zenlib.util import colorize as c_

from .exceptions import UnitWriteError

__version__ = "2.0.0"
__author__ = "desultory"


def get_subpath(path: Path, subpath: Union[Path, str]) -> Path:
    """Returns the subpath of a path."""
    if not isinstance(subpath, Path):
        subpath = Path(subpath)

    if subpath.is_relative_to(path):
        return subpath

    if subpath.is_absolute():
        subpath = subpath.relative_to("/")
    return path / subpath


class GeneratorHelpers:
    """Mixin class for the FstabGenerator class, writes files under the destination directory."""

    def _get_dest_path(self, path: Union[Path, str]) -> Path:
        """Returns the path relative to the destination directory."""
        return get_subpath(self["dest"], path)

    def _mkdir(self, path: Path) -> None:
        """Creates a directory and its parents, if they do not exist."""
        if path.is_dir():
            return self.logger.log(5, "Directory already exists: %s" % path)

        try:
            path.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise UnitWriteError("Failed to create directory %s: %s" % (path, e)) from e
        self.logger.debug("Created directory: %s" % c_(path, "green"))

    def _write(self, file_name: Union[Path, str], contents: list[str], exclusive=True) -> Path:
        """
        Writes a file within the destination directory.
        If exclusive is set, an existing file is an error, as it means the unit was already generated.
        Returns the path of the written file.
        """
        file_path = self._get_dest_path(file_name)
        self._mkdir(file_path.parent)

        if isinstance(contents, list):
            contents = "\n".join(contents)

        self.logger.debug("[%s] Writing contents:\n%s" % (file_path, contents))
        try:
            with open(file_path, "x" if exclusive else "w", encoding="utf-8", errors="surrogateescape") as file:
                file.write(contents)
            file_path.chmod(0o644)
        except FileExistsError as e:
            raise UnitWriteError(
                "Failed to create unit file %s, as it already exists. Duplicate entry in the mount table?" % file_path
            ) from e
        except OSError as e:
            raise UnitWriteError("Failed to write unit file %s: %s" % (file_path, e)) from e

        self.logger.info("Wrote file: %s" % c_(file_path, "green", bright=True))
        return file_path

    def _symlink(self, source: Union[Path, str], target: Union[Path, str]) -> None:
        """Creates a symlink at target, within the destination directory, pointing to source.
        Creates parent directories if they do not exist.
        An existing link to the same source is left alone."""
        target = self._get_dest_path(target)
        self._mkdir(target.parent)

        if target.is_symlink() and readlink(target) == str(source):
            return self.logger.debug("Symlink already exists: %s -> %s" % (target, source))

        try:
            target.symlink_to(source)
        except OSError as e:
            raise UnitWriteError("Failed to create symlink %s: %s" % (target, e)) from e
        self.logger.debug("Created symlink: %s -> %s" % (c_(target, "green"), c_(source, "blue")))
