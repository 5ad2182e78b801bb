__version__ = "1.0.1"

from string import ascii_letters, digits

UNIT_VALID_CHARS = set((digits + ascii_letters + ":_.").encode())
ROOT_UNIT_PREFIX = "-"
UNIT_SUFFIXES = [".mount", ".swap", ".automount", ".device"]


def path_kill_slashes(path: str) -> str:
    """Collapses repeated slashes and removes trailing slashes, keeping a lone '/'."""
    parts = [part for part in path.split("/") if part]
    if path.startswith("/"):
        return "/" + "/".join(parts)
    return "/".join(parts)


def _escape_byte(byte: int) -> str:
    return "\\x%02x" % byte


def escape_path(path: str) -> str:
    """Escapes a path the same way the service manager does for path based unit names.

    Slashes between components become '-', a leading '.' and any byte outside [A-Za-z0-9:_.]
    is written as \\xNN. The root path is '-'.
    """
    path = path_kill_slashes(path).strip("/")
    if not path:
        return ROOT_UNIT_PREFIX

    out = []
    for index, byte in enumerate(path.encode(errors="surrogateescape")):
        if byte == ord("/"):
            out.append("-")
        elif index == 0 and byte == ord("."):
            out.append(_escape_byte(byte))  # Hidden unit files are not loaded
        elif byte in UNIT_VALID_CHARS:
            out.append(chr(byte))
        else:
            out.append(_escape_byte(byte))
    return "".join(out)


def unit_name_from_path(path: str, suffix: str) -> str:
    """Returns the unit name for a path, such as 'home-user.mount' for '/home/user'."""
    if suffix not in UNIT_SUFFIXES:
        raise ValueError("Invalid unit suffix: %s" % suffix)
    return escape_path(path) + suffix


def unit_name_from_path_instance(prefix: str, path: str, suffix: str) -> str:
    """Returns a templated unit name with the escaped path as the instance, such as 'systemd-fsck@dev-sda1.service'."""
    return "%s@%s%s" % (prefix, escape_path(path), suffix)
