__version__ = "0.3.0"

from string import ascii_letters, digits

# Tags which can be used in place of a device path, and their udev symlink directory
TAG_DIRECTORIES = {
    "LABEL": "label",
    "UUID": "uuid",
    "PARTUUID": "partuuid",
    "PARTLABEL": "partlabel",
}
DEVNODE_VALID_CHARS = set(digits + ascii_letters + "#+-.:=@_")
DEVICE_PATH_PREFIXES = ["/dev/", "/sys/"]


def _unquote(value: str) -> str:
    """Strips matching single or double quotes around a value."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def encode_devnode_name(name: str) -> str:
    """Encodes a name the way udev does for /dev/disk/by-* symlinks.
    Non-ASCII characters are kept, unsafe ASCII characters are written as \\xNN."""
    return "".join(
        char if ord(char) > 127 or char in DEVNODE_VALID_CHARS else "\\x%02x" % ord(char) for char in name
    )


def fstab_node_to_udev_node(device: str) -> str:
    """Resolves an fstab device spec to a device node path.
    LABEL=, UUID=, PARTUUID= and PARTLABEL= are resolved to the /dev/disk/by-* symlinks,
    anything else is returned as-is."""
    tag, sep, value = device.partition("=")
    if sep and tag in TAG_DIRECTORIES:
        return "/dev/disk/by-%s/%s" % (TAG_DIRECTORIES[tag], encode_devnode_name(_unquote(value)))
    return device


def is_device_path(path: str) -> bool:
    return any(path.startswith(prefix) for prefix in DEVICE_PATH_PREFIXES)
