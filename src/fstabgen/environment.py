__version__ = "0.2.0"

from os import environ
from pathlib import Path
from typing import Union

CONTAINER_MARKERS = [Path("/.dockerenv"), Path("/run/.containerenv")]
CONTAINER_RUN_FILE = Path("/run/systemd/container")


def in_initrd(initrd_release: Union[Path, str] = "/etc/initrd-release") -> bool:
    """The initrd is identified by its release file."""
    return Path(initrd_release).exists()


def detect_container() -> Union[str, None]:
    """Returns the container type if running in a container, otherwise None."""
    if container := environ.get("container"):
        return container

    if CONTAINER_RUN_FILE.is_file() and (container := CONTAINER_RUN_FILE.read_text().strip()):
        return container

    for marker in CONTAINER_MARKERS:
        if marker.exists():
            return marker.name.lstrip(".")
